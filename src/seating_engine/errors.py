"""Exception types raised by the seating engine.

Contract violations subclass ``ValueError`` so callers that only know about
malformed input can keep catching that.
"""
from __future__ import annotations

from typing import Optional


class SeatingError(Exception):
    """Base class for all seating engine errors."""


class ContractViolation(SeatingError, ValueError):
    """Malformed input, rejected before any state is touched."""


class InvalidConstraints(ContractViolation):
    pass


class UnknownGuest(ContractViolation):
    def __init__(self, guest_id: str) -> None:
        super().__init__(f"Unknown guest: {guest_id}")
        self.guest_id = guest_id


class UnknownTable(ContractViolation):
    def __init__(self, table_id: str) -> None:
        super().__init__(f"Unknown table: {table_id}")
        self.table_id = table_id


class DuplicateTable(ContractViolation):
    def __init__(self, table_id: str) -> None:
        super().__init__(f"Duplicate table id: {table_id}")
        self.table_id = table_id


class StalePlan(ContractViolation):
    """The plan no longer matches the live guest/table state."""


class AssignmentRejected(SeatingError):
    """A direct assignment was refused; the caller may retry elsewhere."""


class CapacityExceeded(AssignmentRejected):
    def __init__(self, table_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Table {table_id} cannot seat {requested} more (only {available} available)"
        )
        self.table_id = table_id
        self.requested = requested
        self.available = available


class GuestNotEligible(AssignmentRejected):
    def __init__(self, guest_id: str, status: Optional[str] = None) -> None:
        super().__init__(f"Guest {guest_id} has not accepted (status: {status})")
        self.guest_id = guest_id
        self.status = status
