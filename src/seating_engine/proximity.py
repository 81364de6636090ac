"""Venue proximity preferences per relationship type.

Each rule says whether a relationship prefers to sit close to, far from, or
does not mind a kind of venue element. Scores fall linearly over
``PROXIMITY_RANGE`` layout units.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Position

PROXIMITY_RANGE = 200.0

STAGE = "stage"
DANCE_FLOOR = "dance_floor"
BAR = "bar"

# (element kind, preference, weight)
Rule = Tuple[str, str, float]

PROXIMITY_RULES: Dict[str, List[Rule]] = {
    "bride": [(STAGE, "close", 1.0), (DANCE_FLOOR, "close", 0.8)],
    "groom": [(STAGE, "close", 1.0), (DANCE_FLOOR, "close", 0.8)],
    "parent": [(STAGE, "close", 0.9), (DANCE_FLOOR, "close", 0.6)],
    "sibling": [(STAGE, "close", 0.7), (DANCE_FLOOR, "close", 0.6)],
    "grandparent": [(STAGE, "close", 0.8), (BAR, "far", 0.5), (DANCE_FLOOR, "far", 0.4)],
    "granduncle": [(STAGE, "close", 0.6), (BAR, "neutral", 0.3)],
    "grandaunt": [(STAGE, "close", 0.6), (BAR, "neutral", 0.3)],
    "uncle": [(STAGE, "close", 0.5)],
    "aunt": [(STAGE, "close", 0.5)],
    "cousin": [(DANCE_FLOOR, "close", 0.4)],
    "colleague": [(BAR, "close", 0.5), (STAGE, "neutral", 0.3)],
    "friend": [(DANCE_FLOOR, "close", 0.7), (BAR, "close", 0.6)],
}


@dataclass
class VenueElement:
    """A fixed feature of the venue floor plan (stage, bar, ...)."""

    id: str
    kind: str
    position: Position


def _element_score(preference: str, distance: float) -> float:
    if preference == "close":
        return max(0.0, 1.0 - distance / PROXIMITY_RANGE)
    if preference == "far":
        return min(1.0, distance / PROXIMITY_RANGE)
    return 0.5


def proximity_score(
    relationship_type: str,
    position: Optional[Position],
    elements: Iterable[VenueElement],
) -> float:
    """Weighted preference score in ``[0, 1]``; 1.0 when nothing applies."""
    rules = PROXIMITY_RULES.get((relationship_type or "").strip().lower())
    if not rules or position is None:
        return 1.0
    elements = list(elements)
    total = weight_sum = 0.0
    for kind, preference, weight in rules:
        relevant = [e for e in elements if e.kind == kind]
        if not relevant:
            continue
        nearest = min(position.distance_to(e.position) for e in relevant)
        total += _element_score(preference, nearest) * weight
        weight_sum += weight
    return total / weight_sum if weight_sum else 1.0
