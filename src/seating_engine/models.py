"""Data models for the seating engine."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RsvpStatus(str, Enum):
    NOT_INVITED = "not_invited"
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    NO_RESPONSE = "no_response"


class Side(str, Enum):
    BRIDE = "bride"
    GROOM = "groom"


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    text = str(value).strip()
    return not text or text.lower() in {"nan", "none", "null"}


def parse_pipe_list(value: object) -> List[str]:
    """Split a pipe separated string into a list.

    Empty values such as ``""`` or ``None`` return an empty list.
    ``pandas`` often provides ``float('nan')`` for missing values which is
    also treated as empty.
    """
    if _is_blank(value):
        return []
    return [part.strip() for part in str(value).split("|") if part.strip()]


def parse_bool(value: object) -> bool:
    """Parse common truthy strings into bool."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "yes", "1"}


def parse_optional(value: object) -> Optional[str]:
    """Return a stripped string, or ``None`` for blank cells."""
    if _is_blank(value):
        return None
    text = str(value).strip()
    # pandas reads integer ids with missing neighbours as floats
    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    return text


def parse_rsvp(value: object) -> RsvpStatus:
    """Parse an RSVP status; blank cells mean ``pending``."""
    if _is_blank(value):
        return RsvpStatus.PENDING
    return RsvpStatus(str(value).strip().lower().replace(" ", "_"))


def parse_side(value: object) -> Optional[Side]:
    if _is_blank(value):
        return None
    return Side(str(value).strip().lower())


@dataclass
class Position:
    """Layout coordinates of a table or venue element."""

    x: float
    y: float

    def distance_to(self, other: "Position") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass
class Guest:
    """Representation of an invited guest.

    ``table_assignment`` is a weak back-reference kept in sync with
    :attr:`Table.assigned_guests` by :class:`~seating_engine.ledger.AssignmentLedger`.
    """

    id: str
    name: str
    rsvp_status: RsvpStatus = RsvpStatus.PENDING
    relationship_type: str = ""
    side: Optional[Side] = None
    additional_guests: int = 0
    household: str = ""
    linked_guests: List[str] = field(default_factory=list)
    dietary_restrictions: List[str] = field(default_factory=list)
    table_assignment: Optional[str] = None

    @property
    def seat_demand(self) -> int:
        """Seats consumed: the guest plus any additional guests."""
        return 1 + self.additional_guests

    @property
    def is_eligible(self) -> bool:
        return self.rsvp_status == RsvpStatus.ACCEPTED


@dataclass
class Table:
    """Dinner table definition."""

    id: str
    name: str
    capacity: int
    is_locked: bool = False
    assigned_guests: List[str] = field(default_factory=list)
    position: Optional[Position] = None
