"""Constraint configuration for an arrangement run."""
from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidConstraints

# HTTP callers send camelCase keys
_ALIASES = {
    "respectRelationships": "respect_relationships",
    "balanceBrideGroomSides": "balance_bride_groom_sides",
    "keepFamiliesTogether": "keep_families_together",
    "considerDietaryRestrictions": "consider_dietary_restrictions",
    "optimizeVenueProximity": "optimize_venue_proximity",
    "maxGuestsPerTable": "max_guests_per_table",
    "minGuestsPerTable": "min_guests_per_table",
}

_BOUNDS = ("max_guests_per_table", "min_guests_per_table")


@dataclass(frozen=True)
class ArrangementConstraints:
    """Options recognised by grouping and placement.

    Attributes:
        respect_relationships: Group guests by relationship type.
        balance_bride_groom_sides: Partition relationship groups by side.
        keep_families_together: Merge household / linked guests into one group.
        consider_dietary_restrictions: Informational only.
        optimize_venue_proximity: Use venue proximity as a table tie-breaker.
        max_guests_per_table: Policy ceiling on seats filled by auto-arrangement.
        min_guests_per_table: Soft lower bound, reported by the validator.
    """

    respect_relationships: bool = True
    balance_bride_groom_sides: bool = True
    keep_families_together: bool = True
    consider_dietary_restrictions: bool = False
    optimize_venue_proximity: bool = False
    max_guests_per_table: Optional[int] = 8
    min_guests_per_table: Optional[int] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _BOUNDS:
                if value is None:
                    continue
                if isinstance(value, bool) or not isinstance(value, int):
                    raise InvalidConstraints(f"{f.name} must be an integer, got {value!r}")
                if value < 1:
                    raise InvalidConstraints(f"{f.name} must be at least 1, got {value}")
            elif not isinstance(value, bool):
                raise InvalidConstraints(f"{f.name} must be a boolean, got {value!r}")
        if (
            self.max_guests_per_table is not None
            and self.min_guests_per_table is not None
            and self.min_guests_per_table > self.max_guests_per_table
        ):
            raise InvalidConstraints(
                "min_guests_per_table cannot exceed max_guests_per_table "
                f"({self.min_guests_per_table} > {self.max_guests_per_table})"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ArrangementConstraints":
        """Build constraints from a request body, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise InvalidConstraints(f"Unknown constraint: {key}")
            if name in kwargs:
                raise InvalidConstraints(f"Constraint given twice: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_constraints(path: Path | str) -> ArrangementConstraints:
    """Read constraints from a JSON object file."""
    with Path(path).open() as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidConstraints(f"{path}: expected a JSON object")
    return ArrangementConstraints.from_mapping(data)
