"""Per-table seat accounting."""
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, Mapping

from .models import Guest, Table


@dataclass(frozen=True)
class TableCapacity:
    table_id: str
    capacity: int
    occupied_seats: int
    available_seats: int
    is_over_capacity: bool


def occupied_seats(
    table: Table,
    guests_by_id: Mapping[str, Guest],
    ignore: AbstractSet[str] = frozenset(),
) -> int:
    """Sum of seat demand over the table's assigned, accepted guests.

    Ids that are unknown, not accepted, or listed in ``ignore`` take no seat.
    """
    total = 0
    for guest_id in table.assigned_guests:
        if guest_id in ignore:
            continue
        guest = guests_by_id.get(guest_id)
        if guest is None or not guest.is_eligible:
            continue
        total += guest.seat_demand
    return total


def table_capacity(
    table: Table,
    guests_by_id: Mapping[str, Guest],
    ignore: AbstractSet[str] = frozenset(),
) -> TableCapacity:
    """Seat usage for one table. Over-capacity tables are flagged, never corrected."""
    occupied = occupied_seats(table, guests_by_id, ignore)
    return TableCapacity(
        table_id=table.id,
        capacity=table.capacity,
        occupied_seats=occupied,
        available_seats=max(table.capacity - occupied, 0),
        is_over_capacity=occupied > table.capacity,
    )


def capacity_snapshot(
    tables: Iterable[Table],
    guests_by_id: Mapping[str, Guest],
    ignore: AbstractSet[str] = frozenset(),
) -> Dict[str, TableCapacity]:
    return {t.id: table_capacity(t, guests_by_id, ignore) for t in tables}
