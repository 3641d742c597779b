#!/usr/bin/env python3
"""Report (and optionally delete) checks that no user references.

Usage:
    python -m tools.reconcile --data-dir .data           # dry run, JSON report
    python -m tools.reconcile --data-dir .data --apply   # delete orphans

Stop the server before using --apply: a check being created while it runs
can be deleted between its two writes, leaving its owner listing a missing
check.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from app.config import load_settings
from app.logging_conf import setup_logging
from app.service.reconcile import find_orphaned_checks, remove_orphaned_checks
from app.store import DocumentStore


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile orphaned uptime checks")
    parser.add_argument("--data-dir", default=None, help="Defaults to DATA_DIR / .data")
    parser.add_argument("--apply", action="store_true", help="Delete orphans instead of listing them")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    setup_logging()
    data_dir = Path(args.data_dir) if args.data_dir else load_settings().data_dir
    store = DocumentStore(data_dir)

    orphans = remove_orphaned_checks(store) if args.apply else find_orphaned_checks(store)
    report = {
        "data_dir": str(data_dir),
        "applied": args.apply,
        "orphans": [o.as_dict() for o in orphans],
    }
    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
