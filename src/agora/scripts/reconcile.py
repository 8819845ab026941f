# src/agora/scripts/reconcile.py
"""Recount denormalized counters from the command line.

Usage::

    agora-reconcile            # repair drifted counters
    agora-reconcile --dry-run  # only report them
"""
from __future__ import annotations

import argparse
import json

from agora.core.logging import configure_logging
from agora.db.session import SessionLocal
from agora.services.reconcile import reconcile_counters



def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agora-reconcile",
        description="Recount answer, comment, vote and tag counters and repair drift.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="report drifted counters without writing anything",
    )
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    db = SessionLocal()
    try:
        report = reconcile_counters(db, dry_run=args.dry_run)
    finally:
        db.close()

    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        verb = "out of step" if args.dry_run else "repaired"
        print(f"{len(report.fixes)} counter(s) {verb}")
        for fix in report.fixes:
            print(f"  {fix.entity} {fix.entity_id} {fix.field}: {fix.stored!r} -> {fix.expected!r}")
    return 1 if args.dry_run and report.changed else 0


if __name__ == "__main__":
    raise SystemExit(main())
