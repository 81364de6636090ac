"""Auto-arrangement run: group, plan, apply and validate under the event lock."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import ArrangementConstraints
from .grouping import build_groups
from .ledger import AssignmentLedger, LedgerSnapshot
from .planner import Plan, plan_arrangement, plan_releases
from .proximity import VenueElement
from .report import summary_message
from .validator import Issue, ValidationReport, validate_arrangement

logger = logging.getLogger(__name__)


@dataclass
class ArrangementResult:
    success: bool
    message: str
    arranged_guests: int = 0
    warnings: List[Issue] = field(default_factory=list)
    plan: Optional[Plan] = None
    report: Optional[ValidationReport] = None
    undo: Optional[LedgerSnapshot] = None
    retracted: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        """Response body shape expected by the HTTP layer."""
        return {
            "success": self.success,
            "message": self.message,
            "arrangedGuests": self.arranged_guests,
            "warnings": [w.message for w in self.warnings],
        }


def auto_arrange(
    ledger: AssignmentLedger,
    constraints: Optional[ArrangementConstraints] = None,
    venue_elements: Sequence[VenueElement] = (),
    clear_existing: bool = True,
) -> ArrangementResult:
    """Arrange accepted guests across the event's unlocked tables.

    Non-accepted guests are always retracted. With ``clear_existing`` every
    guest on an unlocked table is re-planned; guests at locked tables stay.
    The plan is committed atomically and the ``undo`` snapshot restores the
    previous arrangement via :meth:`AssignmentLedger.restore`.
    """
    constraints = constraints or ArrangementConstraints()
    with ledger.lock:
        guests = list(ledger.guests.values())
        tables = list(ledger.tables.values())
        undo = ledger.snapshot()

        releases = plan_releases(guests, tables, clear_existing)
        released = set(releases)
        seated = {gid for t in tables for gid in t.assigned_guests if gid not in released}
        pending = [g for g in guests if g.is_eligible and g.id not in seated]
        unlocked = [t for t in tables if not t.is_locked]

        if not unlocked or not any(g.is_eligible for g in guests):
            retracted = ledger.unassign_ineligible()
            message = (
                "No unlocked tables available for auto-arrangement"
                if not unlocked
                else "No guests with accepted RSVP status to arrange"
            )
            logger.info("Event %s: %s", ledger.event_id, message)
            report = validate_arrangement(guests, tables, constraints)
            return ArrangementResult(
                success=False,
                message=message,
                warnings=list(report.warnings),
                report=report,
                undo=undo,
                retracted=retracted,
            )

        groups = build_groups(pending, constraints)
        plan = plan_arrangement(
            ledger.event_id,
            groups,
            guests,
            tables,
            constraints,
            releases=releases,
            venue_elements=venue_elements,
        )
        ledger.apply_plan(plan)
        report = validate_arrangement(guests, tables, constraints, plan)

    placed = len(plan.placed_guest_ids)
    message = summary_message(
        placed,
        len(plan.assignments),
        len(plan.unplaced),
        plan.separation_quality,
        len(plan.split_groups),
    )
    if not report.is_valid:
        message += f"; {len(report.errors)} consistency errors need repair"
    logger.info("Event %s: %s", ledger.event_id, message)
    return ArrangementResult(
        success=True,
        message=message,
        arranged_guests=placed,
        warnings=list(report.warnings),
        plan=plan,
        report=report,
        undo=undo,
        retracted=[gid for gid in releases if not ledger.guests[gid].is_eligible],
    )
