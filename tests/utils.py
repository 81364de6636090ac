"""Invariant helpers shared by the ledger and arrangement tests."""
from __future__ import annotations

from typing import Iterable

from seating_engine.capacity import table_capacity
from seating_engine.models import Guest, Table


def assert_consistent(guests: Iterable[Guest], tables: Iterable[Table]) -> None:
    """Every guest listed at most once, and back-references agree with tables."""
    guests = list(guests)
    tables = list(tables)
    seen = {}
    for t in tables:
        for gid in t.assigned_guests:
            assert gid not in seen, f"{gid} listed at {seen[gid]} and {t.id}"
            seen[gid] = t.id
    for g in guests:
        assert g.table_assignment == seen.get(g.id), g.id


def assert_within_capacity(guests: Iterable[Guest], tables: Iterable[Table]) -> None:
    by_id = {g.id: g for g in guests}
    for t in tables:
        assert not table_capacity(t, by_id).is_over_capacity, t.id
