"""Partition eligible guests into groups the planner tries to keep together."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import networkx as nx

from .config import ArrangementConstraints
from .models import Guest

logger = logging.getLogger(__name__)


@dataclass
class GuestGroup:
    """Guests sharing a grouping key, in input order."""

    key: str
    members: List[Guest] = field(default_factory=list)
    is_family: bool = False

    @property
    def seat_demand(self) -> int:
        return sum(g.seat_demand for g in self.members)

    @property
    def guest_ids(self) -> List[str]:
        return [g.id for g in self.members]


def group_key(guest: Guest, constraints: ArrangementConstraints) -> Optional[str]:
    """Relationship / side key for a guest, or ``None`` when it has no usable key."""
    parts: List[str] = []
    if constraints.respect_relationships:
        relationship = (guest.relationship_type or "").strip()
        if not relationship:
            return None
        parts.append(relationship)
    if constraints.balance_bride_groom_sides:
        if guest.side is None:
            return None
        parts.append(guest.side.value)
    if not parts:
        return None
    return "/".join(parts)


def _family_components(guests: List[Guest]) -> List[List[Guest]]:
    """Connected components of guests linked by household or explicit links."""
    by_id = {g.id: g for g in guests}
    graph = nx.Graph()
    graph.add_nodes_from(by_id)

    last_in_household: Dict[str, str] = {}
    for g in guests:
        household = (g.household or "").strip()
        if household:
            previous = last_in_household.get(household)
            if previous is not None:
                graph.add_edge(previous, g.id)
            last_in_household[household] = g.id
        for other in g.linked_guests:
            # links to declined or unknown guests are ignored
            if other in by_id and other != g.id:
                graph.add_edge(g.id, other)

    order = {g.id: i for i, g in enumerate(guests)}
    components = []
    for component in nx.connected_components(graph):
        if len(component) < 2:
            continue
        components.append(sorted((by_id[i] for i in component), key=lambda g: order[g.id]))
    return components


def _family_key(members: List[Guest]) -> str:
    households = sorted({m.household.strip() for m in members if (m.household or "").strip()})
    return "family:" + (households[0] if households else members[0].id)


def build_groups(
    guests: Iterable[Guest], constraints: ArrangementConstraints
) -> List[GuestGroup]:
    """Group accepted guests, largest seat demand first.

    Non-accepted guests are dropped. Guests without a usable key become
    singleton groups. With ``keep_families_together`` a family unit becomes
    one group regardless of how its members would split by relationship.
    """
    eligible = [g for g in guests if g.is_eligible]
    groups: List[GuestGroup] = []
    in_family = set()

    if constraints.keep_families_together:
        for members in _family_components(eligible):
            groups.append(GuestGroup(key=_family_key(members), members=members, is_family=True))
            in_family.update(m.id for m in members)

    by_key: Dict[str, GuestGroup] = {}
    for g in eligible:
        if g.id in in_family:
            continue
        key = group_key(g, constraints)
        if key is None:
            groups.append(GuestGroup(key=f"guest:{g.id}", members=[g]))
            continue
        if key not in by_key:
            by_key[key] = GuestGroup(key=key)
            groups.append(by_key[key])
        by_key[key].members.append(g)

    groups.sort(key=lambda grp: (-grp.seat_demand, grp.key))
    logger.debug(
        "Built %d groups from %d eligible guests (%d family groups)",
        len(groups),
        len(eligible),
        sum(1 for grp in groups if grp.is_family),
    )
    return groups
