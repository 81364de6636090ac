"""
Assignment ledger: the only writer of the guest <-> table relation.

Every mutation updates ``Guest.table_assignment`` and ``Table.assigned_guests``
together, under a re-entrant lock shared by all ledgers of the same event.
Reads take no lock.
"""
from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .capacity import TableCapacity, occupied_seats, table_capacity
from .errors import (
    AssignmentRejected,
    CapacityExceeded,
    ContractViolation,
    GuestNotEligible,
    StalePlan,
    UnknownGuest,
    UnknownTable,
)
from .models import Guest, Table
from .planner import Plan, check_tables

logger = logging.getLogger(__name__)

# a lock lives as long as some ledger of its event holds it
_EVENT_LOCKS: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()
_EVENT_LOCKS_GUARD = threading.Lock()


def event_lock(event_id: str) -> threading.RLock:
    """Return the mutation lock for ``event_id``, creating it on first use."""
    with _EVENT_LOCKS_GUARD:
        lock = _EVENT_LOCKS.get(event_id)
        if lock is None:
            lock = _EVENT_LOCKS[event_id] = threading.RLock()
        return lock


@dataclass(frozen=True)
class LedgerSnapshot:
    """Committed table membership at a point in time, used for undo."""

    event_id: str
    tables: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    guest_tables: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def placements(self) -> Dict[str, str]:
        return {gid: tid for tid, ids in self.tables.items() for gid in ids}


class AssignmentLedger:
    """Owns the guest/table relation of one event."""

    def __init__(self, event_id: str, guests: Iterable[Guest], tables: Iterable[Table]) -> None:
        self.event_id = event_id
        tables = list(tables)
        check_tables(tables)
        self.tables: Dict[str, Table] = {t.id: t for t in tables}
        self.guests: Dict[str, Guest] = {}
        for g in guests:
            if g.id in self.guests:
                raise ContractViolation(f"Duplicate guest id: {g.id}")
            self.guests[g.id] = g
        self.lock = event_lock(event_id)

    # ----------------------------- reads -----------------------------
    def guest(self, guest_id: str) -> Guest:
        try:
            return self.guests[guest_id]
        except KeyError:
            raise UnknownGuest(guest_id) from None

    def table(self, table_id: str) -> Table:
        try:
            return self.tables[table_id]
        except KeyError:
            raise UnknownTable(table_id) from None

    def table_of(self, guest_id: str) -> Optional[str]:
        return self.guest(guest_id).table_assignment

    def guests_at(self, table_id: str) -> List[Guest]:
        return [self.guests[gid] for gid in self.table(table_id).assigned_guests if gid in self.guests]

    def occupancy(self, table_id: str) -> TableCapacity:
        return table_capacity(self.table(table_id), self.guests)

    # ----------------------------- internals -----------------------------
    def _detach(self, guest: Guest) -> Optional[str]:
        previous = guest.table_assignment
        for table in self.tables.values():
            if guest.id in table.assigned_guests:
                previous = previous or table.id
                table.assigned_guests = [gid for gid in table.assigned_guests if gid != guest.id]
        guest.table_assignment = None
        return previous

    def _check_assign(self, guest: Guest, table: Table) -> None:
        if not guest.is_eligible:
            raise GuestNotEligible(guest.id, guest.rsvp_status.value)
        taken = occupied_seats(table, self.guests, ignore={guest.id})
        available = table.capacity - taken
        if guest.seat_demand > available:
            raise CapacityExceeded(table.id, guest.seat_demand, max(available, 0))

    def _sync_back_references(self) -> None:
        holder: Dict[str, str] = {}
        for table in self.tables.values():
            for gid in table.assigned_guests:
                holder.setdefault(gid, table.id)
        for guest in self.guests.values():
            guest.table_assignment = holder.get(guest.id)

    # ----------------------------- mutations -----------------------------
    def assign(self, guest_id: str, table_id: str) -> None:
        """Seat a guest at a table, removing it from wherever it sat before.

        Raises :class:`GuestNotEligible` or :class:`CapacityExceeded`; on
        failure the guest keeps its current seat.
        """
        with self.lock:
            guest = self.guest(guest_id)
            table = self.table(table_id)
            try:
                self._check_assign(guest, table)
            except AssignmentRejected as exc:
                logger.info("Rejected assign of %s to %s: %s", guest_id, table_id, exc)
                raise
            previous = self._detach(guest)
            table.assigned_guests.append(guest.id)
            guest.table_assignment = table.id
            logger.debug("Assigned %s to %s (was %s)", guest_id, table_id, previous)

    def unassign(self, guest_id: str) -> Optional[str]:
        """Remove a guest from its table. Returns the table it left, if any."""
        with self.lock:
            guest = self.guest(guest_id)
            previous = self._detach(guest)
            if previous is not None:
                logger.debug("Unassigned %s from %s", guest_id, previous)
            return previous

    def move(self, guest_id: str, table_id: str) -> None:
        """Unassign then assign as one step; a rejected move changes nothing."""
        self.assign(guest_id, table_id)

    def clear_table(self, table_id: str) -> List[str]:
        """Unassign every guest seated at ``table_id``."""
        with self.lock:
            table = self.table(table_id)
            seated = list(dict.fromkeys(table.assigned_guests))
            for guest in self.guests.values():
                if guest.table_assignment == table_id and guest.id not in seated:
                    seated.append(guest.id)
            for gid in seated:
                if gid in self.guests:
                    self._detach(self.guests[gid])
            table.assigned_guests = []
            logger.debug("Cleared table %s (%d guests)", table_id, len(seated))
            return seated

    def unassign_ineligible(self) -> List[str]:
        """Retract every non-accepted guest that still holds a seat."""
        with self.lock:
            retracted = []
            listed = {gid for t in self.tables.values() for gid in t.assigned_guests}
            for guest in self.guests.values():
                if guest.is_eligible:
                    continue
                if guest.table_assignment is not None or guest.id in listed:
                    self._detach(guest)
                    retracted.append(guest.id)
            if retracted:
                logger.info("Retracted %d non-accepted guests", len(retracted))
            return retracted

    def _locked_holder(self, guest_id: str) -> Optional[Table]:
        for table in self.tables.values():
            if table.is_locked and guest_id in table.assigned_guests:
                return table
        return None

    def _check_plan(self, plan: Plan) -> None:
        if plan.event_id != self.event_id:
            raise StalePlan(f"Plan is for event {plan.event_id}, not {self.event_id}")
        for gid in plan.releases:
            if gid not in self.guests:
                raise StalePlan(f"Plan releases unknown guest {gid}")
        for gid, planned_from in plan.guest_tables.items():
            guest = self.guests.get(gid)
            if guest is None:
                raise StalePlan(f"Plan references unknown guest {gid}")
            if guest.table_assignment != planned_from:
                raise StalePlan(
                    f"Guest {guest.name} moved from {planned_from or 'no table'} to "
                    f"{guest.table_assignment or 'no table'} after planning"
                )
        for table_id, guest_ids in plan.assignments.items():
            table = self.tables.get(table_id)
            if table is None:
                raise StalePlan(f"Plan references unknown table {table_id}")
            if table.is_locked:
                raise StalePlan(f"Table {table.name} was locked after planning")
            version = plan.table_versions.get(table_id)
            if version is not None and version[0] != table.capacity:
                raise StalePlan(
                    f"Table {table.name} capacity changed from {version[0]} to {table.capacity}"
                )
            for gid in guest_ids:
                guest = self.guests.get(gid)
                if guest is None:
                    raise StalePlan(f"Plan references unknown guest {gid}")
                if not guest.is_eligible:
                    raise StalePlan(f"Guest {guest.name} is no longer accepted")
                held = self._locked_holder(gid)
                if held is not None:
                    raise StalePlan(f"Guest {guest.name} is seated at locked table {held.name}")

    def apply_plan(self, plan: Plan) -> None:
        """Commit a plan: all of it, or none of it.

        Raises :class:`StalePlan` when the plan no longer fits the live state,
        including guests moved since planning. Guests at locked tables are
        only ever released, never moved.
        """
        with self.lock:
            self._check_plan(plan)
            before = self.snapshot()
            try:
                for gid in plan.releases:
                    self.unassign(gid)
                for table_id, guest_ids in plan.assignments.items():
                    for gid in guest_ids:
                        self.assign(gid, table_id)
            except AssignmentRejected as exc:
                self._reset(before)
                logger.warning("Rolled back plan for event %s: %s", self.event_id, exc)
                raise StalePlan(f"Plan no longer applies: {exc}") from exc
            logger.info(
                "Applied plan for event %s: %d released, %d placed",
                self.event_id,
                len(plan.releases),
                len(plan.placed_guest_ids),
            )

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            event_id=self.event_id,
            tables={tid: tuple(t.assigned_guests) for tid, t in self.tables.items()},
            guest_tables={gid: g.table_assignment for gid, g in self.guests.items()},
        )

    def _reset(self, snapshot: LedgerSnapshot) -> None:
        """Put back both sides of the relation exactly as captured."""
        for tid, table in self.tables.items():
            if tid in snapshot.tables:
                table.assigned_guests = list(snapshot.tables[tid])
        for gid, guest in self.guests.items():
            if gid in snapshot.guest_tables:
                guest.table_assignment = snapshot.guest_tables[gid]

    def restore(self, snapshot: LedgerSnapshot) -> List[str]:
        """Return table membership to ``snapshot`` (undo of an arrangement run).

        Guests who are no longer accepted are left out and returned. Raises
        :class:`ContractViolation` without touching state when a table could
        not hold its snapshot guests any more.
        """
        if snapshot.event_id != self.event_id:
            raise ContractViolation(
                f"Snapshot is for event {snapshot.event_id}, not {self.event_id}"
            )
        with self.lock:
            placed = snapshot.placements
            skipped: List[str] = []
            membership: Dict[str, List[str]] = {}
            for tid, table in self.tables.items():
                if tid not in snapshot.tables:
                    # tables created after the snapshot keep guests it never placed
                    membership[tid] = [gid for gid in table.assigned_guests if gid not in placed]
                    continue
                kept = []
                for gid in snapshot.tables[tid]:
                    guest = self.guests.get(gid)
                    if guest is None:
                        continue
                    if not guest.is_eligible:
                        skipped.append(gid)
                        continue
                    kept.append(gid)
                seats = sum(self.guests[gid].seat_demand for gid in kept)
                if seats > table.capacity:
                    raise ContractViolation(
                        f"Cannot restore {table.name}: snapshot needs {seats} seats, "
                        f"capacity is {table.capacity}"
                    )
                membership[tid] = kept

            for tid, ids in membership.items():
                self.tables[tid].assigned_guests = ids
            self._sync_back_references()
            if skipped:
                logger.info("Left %d non-accepted guests out of the restore", len(skipped))
            logger.info("Restored event %s to snapshot", self.event_id)
            return skipped

    def repair(self) -> List[str]:
        """Rebuild a consistent relation from damaged state.

        Unknown ids and duplicates are dropped; a guest listed by several
        tables stays at the one its back-reference names, else the first.
        Returns a description of every fix. Never called implicitly.
        """
        with self.lock:
            fixes: List[str] = []
            claimed: Dict[str, str] = {}
            for gid, guest in self.guests.items():
                tid = guest.table_assignment
                if tid in self.tables and gid in self.tables[tid].assigned_guests:
                    claimed[gid] = tid
            for tid, table in self.tables.items():
                kept: List[str] = []
                for gid in table.assigned_guests:
                    if gid not in self.guests:
                        fixes.append(f"Removed unknown guest {gid} from {table.name}")
                        continue
                    owner = claimed.setdefault(gid, tid)
                    if owner != tid or gid in kept:
                        fixes.append(f"Removed duplicate {self.guests[gid].name} from {table.name}")
                        continue
                    kept.append(gid)
                table.assigned_guests = kept
            for gid, guest in self.guests.items():
                actual = claimed.get(gid)
                if guest.table_assignment != actual:
                    fixes.append(
                        f"Reset {guest.name} table reference {guest.table_assignment} -> {actual}"
                    )
                    guest.table_assignment = actual
            if fixes:
                logger.warning("Repaired %d inconsistencies for event %s", len(fixes), self.event_id)
            return fixes
