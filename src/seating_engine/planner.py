"""
Placement planner: pack guest groups into tables.

Groups arrive largest first. Each group goes whole into the table it fills
most tightly (best fit); ties fall back to more free seats, then venue
proximity when enabled, then table id. Groups that fit nowhere whole are
split across tables in their original member order, keeping the largest
contiguous remainder together. Family groups are never split. A family
larger than every table ceiling goes to the largest table; one that only
lacks room right now goes to the table with the most free seats. Whoever
does not fit stays unplaced.

Shortfalls are reported as warnings on the plan, never raised.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .capacity import capacity_snapshot
from .config import ArrangementConstraints
from .errors import ContractViolation, DuplicateTable
from .grouping import GuestGroup, group_key
from .models import Guest, Table
from .proximity import VenueElement, proximity_score

logger = logging.getLogger(__name__)

GROUP_SPLIT = "group_split"
UNPLACEABLE = "unplaceable"
OVERSIZED_FAMILY = "oversized_family"
FAMILY_OVERFLOW = "family_overflow"
NO_TABLES = "no_tables"


@dataclass
class PlanWarning:
    code: str
    message: str
    guest_ids: List[str] = field(default_factory=list)
    table_ids: List[str] = field(default_factory=list)


@dataclass
class Plan:
    """Proposed guest to table mapping, not yet committed."""

    event_id: str
    assignments: Dict[str, List[str]] = field(default_factory=dict)
    releases: List[str] = field(default_factory=list)
    unplaced: List[str] = field(default_factory=list)
    warnings: List[PlanWarning] = field(default_factory=list)
    split_groups: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    group_of: Dict[str, str] = field(default_factory=dict)
    mixed_tables: List[str] = field(default_factory=list)
    table_versions: Dict[str, Tuple[int, bool]] = field(default_factory=dict)
    guest_tables: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def separation_quality(self) -> int:
        """Number of tables seating more than one group key."""
        return len(self.mixed_tables)

    @property
    def placed_guest_ids(self) -> List[str]:
        return [gid for ids in self.assignments.values() for gid in ids]

    def table_for(self, guest_id: str) -> Optional[str]:
        for table_id, ids in self.assignments.items():
            if guest_id in ids:
                return table_id
        return None


def check_tables(tables: Sequence[Table]) -> None:
    """Reject malformed table input before any planning happens."""
    seen: Set[str] = set()
    for t in tables:
        if t.id in seen:
            raise DuplicateTable(t.id)
        seen.add(t.id)
        if isinstance(t.capacity, bool) or not isinstance(t.capacity, int) or t.capacity < 1:
            raise ContractViolation(f"Table {t.id} has invalid capacity: {t.capacity!r}")


def _check_groups(groups: Sequence[GuestGroup]) -> None:
    seen: Set[str] = set()
    for grp in groups:
        for g in grp.members:
            if g.additional_guests < 0:
                raise ContractViolation(
                    f"Guest {g.id} has negative additional guest count: {g.additional_guests}"
                )
            if g.id in seen:
                raise ContractViolation(f"Guest {g.id} appears in more than one group")
            seen.add(g.id)


def plan_releases(
    guests: Iterable[Guest], tables: Sequence[Table], clear_existing: bool = True
) -> List[str]:
    """Guest ids an arrangement run unassigns before placing.

    Always every non-accepted guest still holding a seat and every guest
    whose back-reference names a table that does not list it; with
    ``clear_existing`` also every guest on an unlocked table.
    """
    holders: Dict[str, Table] = {}
    for t in tables:
        for gid in t.assigned_guests:
            holders.setdefault(gid, t)
    releases: List[str] = []
    for g in guests:
        seated = g.table_assignment is not None or g.id in holders
        if not seated:
            continue
        table = holders.get(g.id)
        if not g.is_eligible or table is None:
            releases.append(g.id)
        elif clear_existing and table is not None and not table.is_locked:
            releases.append(g.id)
    return releases


class _Packer:
    """Mutable free-seat bookkeeping for a single planning pass."""

    def __init__(
        self,
        tables: List[Table],
        free: Dict[str, int],
        constraints: ArrangementConstraints,
        venue_elements: Sequence[VenueElement],
    ) -> None:
        self.tables = {t.id: t for t in tables}
        self.free = free
        self.constraints = constraints
        self.venue_elements = list(venue_elements)
        self.assignments: Dict[str, List[str]] = {}

    def by_free_seats(self) -> List[str]:
        """Table ids, most free seats first, ties by id."""
        return sorted(self.free, key=lambda tid: (-self.free[tid], tid))

    def _proximity(self, table_id: str, group: GuestGroup) -> float:
        if not self.constraints.optimize_venue_proximity or not group.members:
            return 0.0
        return proximity_score(
            group.members[0].relationship_type,
            self.tables[table_id].position,
            self.venue_elements,
        )

    def best_fit(self, demand: int, group: GuestGroup) -> Optional[str]:
        fitting = [tid for tid in self.free if self.free[tid] >= demand]
        if not fitting:
            return None
        return min(
            fitting,
            key=lambda tid: (self.free[tid] - demand, -self._proximity(tid, group), tid),
        )

    def place(self, table_id: str, members: List[Guest]) -> None:
        self.assignments.setdefault(table_id, []).extend(g.id for g in members)
        self.free[table_id] -= sum(g.seat_demand for g in members)


def _unplaceable(guest: Guest) -> PlanWarning:
    return PlanWarning(
        code=UNPLACEABLE,
        message=f"No table has room for {guest.name} ({guest.seat_demand} seats)",
        guest_ids=[guest.id],
    )


def _place_family(
    packer: _Packer, group: GuestGroup, ceilings: Dict[str, int], plan: Plan
) -> None:
    oversized = group.seat_demand > max(ceilings.values())
    if oversized:
        # no table could ever hold it: fill the largest one
        target = min(packer.free, key=lambda tid: (-ceilings[tid], -packer.free[tid], tid))
    else:
        target = packer.by_free_seats()[0]
    seated: List[Guest] = []
    left: List[Guest] = []
    for g in group.members:
        if g.seat_demand <= packer.free[target] - sum(s.seat_demand for s in seated):
            seated.append(g)
        else:
            left.append(g)
    if seated:
        packer.place(target, seated)
    plan.warnings.append(
        PlanWarning(
            code=OVERSIZED_FAMILY if oversized else FAMILY_OVERFLOW,
            message=(
                f"Family group {group.key} needs {group.seat_demand} seats; "
                f"{len(seated)} seated at {packer.tables[target].name}, "
                f"{len(left)} left unplaced"
            ),
            guest_ids=[g.id for g in left],
            table_ids=[target],
        )
    )
    for g in left:
        plan.unplaced.append(g.id)
        plan.warnings.append(_unplaceable(g))


def _place_split(packer: _Packer, group: GuestGroup, plan: Plan) -> None:
    remainder = list(group.members)
    landed: Dict[str, List[str]] = {}
    while remainder:
        demand = sum(g.seat_demand for g in remainder)
        target = packer.best_fit(demand, group)
        if target is not None:
            packer.place(target, remainder)
            landed.setdefault(target, []).extend(g.id for g in remainder)
            break
        target = packer.by_free_seats()[0]
        prefix: List[Guest] = []
        used = 0
        for g in remainder:
            if used + g.seat_demand > packer.free[target]:
                break
            prefix.append(g)
            used += g.seat_demand
        if not prefix:
            # the head guest fits nowhere, even in the emptiest table
            guest = remainder.pop(0)
            plan.unplaced.append(guest.id)
            plan.warnings.append(_unplaceable(guest))
            continue
        packer.place(target, prefix)
        landed.setdefault(target, []).extend(g.id for g in prefix)
        remainder = remainder[len(prefix):]

    if len(landed) > 1:
        plan.split_groups[group.key] = landed
        parts = "; ".join(
            f"{packer.tables[tid].name}: {len(ids)}" for tid, ids in landed.items()
        )
        plan.warnings.append(
            PlanWarning(
                code=GROUP_SPLIT,
                message=f"Group {group.key} split across {len(landed)} tables ({parts})",
                guest_ids=[gid for ids in landed.values() for gid in ids],
                table_ids=list(landed),
            )
        )


def _mixed_tables(
    assignments: Dict[str, List[str]],
    retained: Dict[str, List[Guest]],
    group_of: Dict[str, str],
    constraints: ArrangementConstraints,
) -> List[str]:
    mixed = []
    for table_id in sorted(set(assignments) | set(retained)):
        keys = {group_of[gid] for gid in assignments.get(table_id, [])}
        for g in retained.get(table_id, []):
            keys.add(group_key(g, constraints) or f"guest:{g.id}")
        if len(keys) > 1:
            mixed.append(table_id)
    return mixed


def plan_arrangement(
    event_id: str,
    groups: Sequence[GuestGroup],
    guests: Iterable[Guest],
    tables: Sequence[Table],
    constraints: ArrangementConstraints,
    releases: Sequence[str] = (),
    venue_elements: Sequence[VenueElement] = (),
) -> Plan:
    """Assign ``groups`` to unlocked ``tables``.

    ``guests`` is the full roster and is only read to account for seats
    already taken. Guests listed in ``releases`` are treated as if they had
    been unassigned already. Raises :class:`ContractViolation` for malformed
    input; never raises for lack of room.
    """
    check_tables(tables)
    _check_groups(groups)

    guests_by_id = {g.id: g for g in guests}
    released = set(releases)
    unlocked = [t for t in tables if not t.is_locked]
    plan = Plan(
        event_id=event_id,
        releases=list(releases),
        table_versions={t.id: (t.capacity, t.is_locked) for t in tables},
    )
    for grp in groups:
        for gid in grp.guest_ids:
            plan.group_of[gid] = grp.key
    # placements the plan was computed against, checked again on apply
    for gid in list(releases) + [gid for grp in groups for gid in grp.guest_ids]:
        if gid in guests_by_id:
            plan.guest_tables[gid] = guests_by_id[gid].table_assignment

    if not unlocked:
        pending = [gid for grp in groups for gid in grp.guest_ids]
        plan.unplaced.extend(pending)
        if pending:
            plan.warnings.append(
                PlanWarning(
                    code=NO_TABLES,
                    message=f"No unlocked tables available; {len(pending)} guests left unplaced",
                    guest_ids=pending,
                )
            )
        return plan

    snapshot = capacity_snapshot(unlocked, guests_by_id, ignore=released)
    ceilings: Dict[str, int] = {}
    free: Dict[str, int] = {}
    for t in unlocked:
        ceiling = t.capacity
        if constraints.max_guests_per_table is not None:
            ceiling = min(ceiling, constraints.max_guests_per_table)
        ceilings[t.id] = ceiling
        free[t.id] = max(ceiling - snapshot[t.id].occupied_seats, 0)

    packer = _Packer(unlocked, free, constraints, venue_elements)
    for grp in groups:
        if not grp.members:
            continue
        target = packer.best_fit(grp.seat_demand, grp)
        if target is not None:
            packer.place(target, grp.members)
        elif grp.is_family:
            _place_family(packer, grp, ceilings, plan)
        else:
            _place_split(packer, grp, plan)

    plan.assignments = packer.assignments

    retained: Dict[str, List[Guest]] = {}
    for t in unlocked:
        for gid in t.assigned_guests:
            guest = guests_by_id.get(gid)
            if guest is not None and guest.is_eligible and gid not in released:
                retained.setdefault(t.id, []).append(guest)
    plan.mixed_tables = _mixed_tables(plan.assignments, retained, plan.group_of, constraints)

    logger.info(
        "Planned event %s: %d guests placed on %d tables, %d unplaced, %d split groups",
        event_id,
        len(plan.placed_guest_ids),
        len(plan.assignments),
        len(plan.unplaced),
        len(plan.split_groups),
    )
    return plan
