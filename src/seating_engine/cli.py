"""Command line interface for the seating engine."""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from .arranger import auto_arrange
from .config import ArrangementConstraints, load_constraints
from .csv_loader import load_all, load_venue_elements
from .ledger import AssignmentLedger
from .report import summarize, table_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Auto-arrange event guests across tables")
    parser.add_argument("--guests", required=True, help="Path to guests.csv")
    parser.add_argument("--tables", required=True, help="Path to tables.csv")
    parser.add_argument("--venue", help="Path to venue elements CSV (id,kind,x,y).")
    parser.add_argument("--event-id", default="event", help="Event identifier used for locking.")
    parser.add_argument("--constraints", type=Path,
                        help="JSON file with constraint options; overrides the flags below.")
    parser.add_argument("--ignore-relationships", action="store_true",
                        help="Do not group guests by relationship type.")
    parser.add_argument("--mix-sides", action="store_true",
                        help="Allow bride and groom sides to share a group.")
    parser.add_argument("--split-families", action="store_true",
                        help="Do not merge households into single groups.")
    parser.add_argument("--optimize-proximity", action="store_true",
                        help="Break table ties by venue proximity preferences.")
    parser.add_argument("--max-per-table", type=int, default=8,
                        help="Seats auto-arrangement may fill per table.")
    parser.add_argument("--min-per-table", type=int,
                        help="Warn about non-empty tables below this many seats.")
    parser.add_argument("--keep-existing", action="store_true",
                        help="Keep guests already seated at unlocked tables.")
    parser.add_argument("--out-assignments", type=Path,
                        help="Write assignments CSV: guest,table.")
    parser.add_argument("--out-report", type=Path,
                        help="Write per-table report CSV with utilization and grades.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def constraints_from_args(args: argparse.Namespace) -> ArrangementConstraints:
    if args.constraints:
        return load_constraints(args.constraints)
    options: Dict[str, Any] = {
        "respect_relationships": not args.ignore_relationships,
        "balance_bride_groom_sides": not args.mix_sides,
        "keep_families_together": not args.split_families,
        "optimize_venue_proximity": args.optimize_proximity,
        "max_guests_per_table": args.max_per_table,
        "min_guests_per_table": args.min_per_table,
    }
    return ArrangementConstraints(**options)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``python -m seating_engine.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    guests, tables = load_all(args.guests, args.tables)
    venue = load_venue_elements(args.venue) if args.venue else []
    constraints = constraints_from_args(args)

    ledger = AssignmentLedger(args.event_id, guests, tables)
    result = auto_arrange(ledger, constraints, venue, clear_existing=not args.keep_existing)

    print(summarize(result))

    names = {t.id: t.name for t in tables}
    rows = sorted(
        (g.name, names[g.table_assignment]) for g in guests if g.table_assignment is not None
    )
    for guest, table in rows:
        print(f"{guest},{table}")

    if args.out_assignments:
        args.out_assignments.parent.mkdir(parents=True, exist_ok=True)
        with args.out_assignments.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["guest", "table"])
            w.writerows(rows)

    group_of = result.plan.group_of if result.plan else None
    graded = table_report(guests, tables, group_of, constraints)
    for s in graded:
        print(f"[REPORT] {s['table']} grade={s['grade']} seats={s['occupied_seats']}/{s['capacity']} "
              f"groups={s['group_count']} locked={s['locked']}")

    if args.out_report:
        args.out_report.parent.mkdir(parents=True, exist_ok=True)
        with args.out_report.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=[
                "table", "grade", "occupied_seats", "capacity", "utilization",
                "guest_count", "group_count", "locked", "members",
            ])
            w.writeheader()
            for s in graded:
                w.writerow({
                    "table": s["table"],
                    "grade": s["grade"],
                    "occupied_seats": s["occupied_seats"],
                    "capacity": s["capacity"],
                    "utilization": f"{s['utilization']:.4f}",
                    "guest_count": s["guest_count"],
                    "group_count": s["group_count"],
                    "locked": s["locked"],
                    "members": s["members"],
                })

    return 0 if result.report is None or result.report.is_valid else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
