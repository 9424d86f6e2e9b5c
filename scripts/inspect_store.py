"""Print a document store's tree and how configured targets resolve.

Read-only: nothing is moved and no lock record is written. Handy for
checking a config on the device before enabling the timer.

Usage:
    python scripts/inspect_store.py /home/root/.config/booksafe.toml
    python scripts/inspect_store.py booksafe.toml --tree
"""

from __future__ import annotations

import argparse
import logging
import sys

from booksafe import BookSafeError, DocumentTree, LockRecordStore, PathResolver, load_config


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect a document store")
    parser.add_argument("config", help="path to booksafe.toml")
    parser.add_argument("--tree", action="store_true", help="print the full folder tree")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config)
        tree = DocumentTree.from_store(config.store.documents)
        records = LockRecordStore(config.store.state)
    except BookSafeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(f"{len(tree)} nodes, {len(tree.warnings)} corrupt records skipped")
    if args.tree:
        print(tree.render(), end="")

    resolver = PathResolver(tree)
    print("\nTargets:")
    for target in config.targets:
        try:
            node_id = resolver.resolve(target)
        except BookSafeError as e:
            print(f"  {target!r}: {e}")
            continue
        print(f"  {target!r} -> {tree.full_path(node_id)!r} ({node_id})")

    print(f"\nHidden ({len(records)}):")
    for record in records:
        print(f"  {record.label}: {len(record.entries)} entries in {record.hidden_path} since {record.locked_at:%Y-%m-%d %H:%M}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
