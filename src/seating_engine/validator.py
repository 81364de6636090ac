"""Post-arrangement consistency checks. Read-only: nothing here heals state."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .capacity import table_capacity
from .config import ArrangementConstraints
from .models import Guest, Table
from .planner import Plan

# errors
DUPLICATE_ASSIGNMENT = "duplicate_assignment"
OVER_CAPACITY = "over_capacity"
ORPHANED_REFERENCE = "orphaned_reference"
MISMATCHED_REFERENCE = "mismatched_reference"
UNKNOWN_GUEST = "unknown_guest"
# warnings
UNDER_MINIMUM = "under_minimum"
INELIGIBLE_ASSIGNMENT = "ineligible_assignment"
MIXED_TABLES = "mixed_tables"


@dataclass
class Issue:
    code: str
    message: str
    guest_ids: List[str] = field(default_factory=list)
    table_ids: List[str] = field(default_factory=list)


@dataclass
class ValidationReport:
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def codes(self) -> List[str]:
        return [i.code for i in self.errors + self.warnings]

    def to_dict(self) -> Dict[str, object]:
        def dump(issues: List[Issue]) -> List[Dict[str, object]]:
            return [
                {"code": i.code, "message": i.message, "guestIds": i.guest_ids, "tableIds": i.table_ids}
                for i in issues
            ]

        return {"isValid": self.is_valid, "errors": dump(self.errors), "warnings": dump(self.warnings)}


def _check_membership(guests_by_id: Dict[str, Guest], tables: List[Table], report: ValidationReport) -> None:
    listed: Dict[str, List[Table]] = {}
    for t in tables:
        for gid in t.assigned_guests:
            listed.setdefault(gid, []).append(t)

    for gid, holders in listed.items():
        guest = guests_by_id.get(gid)
        if guest is None:
            report.errors.append(
                Issue(
                    UNKNOWN_GUEST,
                    f"Unknown guest {gid} listed at {', '.join(t.name for t in holders)}",
                    guest_ids=[gid],
                    table_ids=[t.id for t in holders],
                )
            )
            continue
        if len(holders) > 1:
            report.errors.append(
                Issue(
                    DUPLICATE_ASSIGNMENT,
                    f"{guest.name} is listed {len(holders)} times "
                    f"({', '.join(t.name for t in holders)})",
                    guest_ids=[gid],
                    table_ids=[t.id for t in holders],
                )
            )
        for t in holders:
            if guest.table_assignment != t.id:
                report.errors.append(
                    Issue(
                        MISMATCHED_REFERENCE,
                        f"{t.name} lists {guest.name} but the guest points to "
                        f"{guest.table_assignment or 'no table'}",
                        guest_ids=[gid],
                        table_ids=[t.id],
                    )
                )

    tables_by_id = {t.id: t for t in tables}
    for guest in guests_by_id.values():
        tid = guest.table_assignment
        if tid is None:
            continue
        table = tables_by_id.get(tid)
        if table is None or guest.id not in table.assigned_guests:
            where = table.name if table is not None else f"missing table {tid}"
            report.errors.append(
                Issue(
                    ORPHANED_REFERENCE,
                    f"{guest.name} points to {where}, which does not list the guest",
                    guest_ids=[guest.id],
                    table_ids=[tid],
                )
            )


def _plan_warnings(plan: Plan, report: ValidationReport) -> None:
    for w in plan.warnings:
        report.warnings.append(Issue(w.code, w.message, list(w.guest_ids), list(w.table_ids)))
    if plan.mixed_tables:
        report.warnings.append(
            Issue(
                MIXED_TABLES,
                f"{len(plan.mixed_tables)} tables seat more than one group",
                table_ids=list(plan.mixed_tables),
            )
        )


def validate_arrangement(
    guests: Iterable[Guest],
    tables: Iterable[Table],
    constraints: Optional[ArrangementConstraints] = None,
    plan: Optional[Plan] = None,
) -> ValidationReport:
    """Check a complete or partial arrangement.

    Errors cover duplicate listings, over-capacity tables and references
    that disagree between guest and table. Warnings cover under-filled
    tables, non-accepted guests still seated, and the planner's diagnostics
    when ``plan`` is given.
    """
    guests_by_id = {g.id: g for g in guests}
    tables = list(tables)
    report = ValidationReport()

    _check_membership(guests_by_id, tables, report)

    minimum = constraints.min_guests_per_table if constraints is not None else None
    for t in tables:
        cap = table_capacity(t, guests_by_id)
        if cap.is_over_capacity:
            report.errors.append(
                Issue(
                    OVER_CAPACITY,
                    f"Table {t.name} is over capacity: {cap.occupied_seats}/{t.capacity} seats",
                    guest_ids=list(t.assigned_guests),
                    table_ids=[t.id],
                )
            )
        if minimum is not None and 0 < cap.occupied_seats < minimum:
            report.warnings.append(
                Issue(
                    UNDER_MINIMUM,
                    f"Table {t.name} seats {cap.occupied_seats}, below the minimum of {minimum}",
                    table_ids=[t.id],
                )
            )

    listed = {gid for t in tables for gid in t.assigned_guests}
    for guest in guests_by_id.values():
        if guest.is_eligible:
            continue
        if guest.table_assignment is not None or guest.id in listed:
            report.warnings.append(
                Issue(
                    INELIGIBLE_ASSIGNMENT,
                    f"{guest.name} is {guest.rsvp_status.value} but still has a residual table assignment",
                    guest_ids=[guest.id],
                    table_ids=[guest.table_assignment] if guest.table_assignment else [],
                )
            )

    if plan is not None:
        _plan_warnings(plan, report)

    return report

