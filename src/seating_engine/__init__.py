"""Seating engine package."""
from .models import Guest, Table, Position, RsvpStatus, Side
from .config import ArrangementConstraints, load_constraints
from .errors import (
    SeatingError,
    ContractViolation,
    InvalidConstraints,
    UnknownGuest,
    UnknownTable,
    DuplicateTable,
    StalePlan,
    AssignmentRejected,
    CapacityExceeded,
    GuestNotEligible,
)
from .capacity import TableCapacity, table_capacity, capacity_snapshot
from .grouping import GuestGroup, build_groups
from .planner import Plan, PlanWarning, plan_arrangement, plan_releases
from .ledger import AssignmentLedger, LedgerSnapshot, event_lock
from .validator import Issue, ValidationReport, validate_arrangement
from .arranger import ArrangementResult, auto_arrange
from .proximity import VenueElement
from .csv_loader import load_guests, load_tables, load_all
from .report import summarize, table_report

__all__ = [
    "Guest",
    "Table",
    "Position",
    "RsvpStatus",
    "Side",
    "ArrangementConstraints",
    "load_constraints",
    "SeatingError",
    "ContractViolation",
    "InvalidConstraints",
    "UnknownGuest",
    "UnknownTable",
    "DuplicateTable",
    "StalePlan",
    "AssignmentRejected",
    "CapacityExceeded",
    "GuestNotEligible",
    "TableCapacity",
    "table_capacity",
    "capacity_snapshot",
    "GuestGroup",
    "build_groups",
    "Plan",
    "PlanWarning",
    "plan_arrangement",
    "plan_releases",
    "AssignmentLedger",
    "LedgerSnapshot",
    "event_lock",
    "Issue",
    "ValidationReport",
    "validate_arrangement",
    "ArrangementResult",
    "auto_arrange",
    "VenueElement",
    "load_guests",
    "load_tables",
    "load_all",
    "summarize",
    "table_report",
]
