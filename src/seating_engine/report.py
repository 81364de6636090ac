"""
Per-table seating statistics for export and display.

Tables are graded A to F from seat utilization:
    A: 60% to 90% full
    B: 40% to 60% full
    C: over 90% full
    D: under 40% full
    F: empty or over capacity
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from .capacity import table_capacity
from .config import ArrangementConstraints
from .grouping import group_key
from .models import Guest, Table

if TYPE_CHECKING:
    from .arranger import ArrangementResult


def compute_table_stats(
    table: Table,
    guests_by_id: Mapping[str, Guest],
    group_of: Optional[Mapping[str, str]] = None,
    constraints: Optional[ArrangementConstraints] = None,
) -> Dict[str, int | float | str]:
    """Occupancy, utilization and group mix for one table."""
    cap = table_capacity(table, guests_by_id)
    members = [guests_by_id[gid] for gid in table.assigned_guests if gid in guests_by_id]
    constraints = constraints or ArrangementConstraints()
    keys = set()
    for g in members:
        key = (group_of or {}).get(g.id) or group_key(g, constraints) or f"guest:{g.id}"
        keys.add(key)
    return {
        "table": table.name,
        "table_id": table.id,
        "capacity": table.capacity,
        "occupied_seats": cap.occupied_seats,
        "utilization": cap.occupied_seats / table.capacity if table.capacity else 0.0,
        "guest_count": len(members),
        "group_count": len(keys),
        "locked": "yes" if table.is_locked else "no",
        "members": "|".join(g.name for g in members),
    }


def grade_tables(stats: List[Dict[str, int | float | str]]) -> List[Dict[str, int | float | str]]:
    """Assign A to F based on utilization bands."""
    graded = []
    for s in stats:
        u = float(s["utilization"])
        if s["occupied_seats"] == 0 or u > 1.0:
            g = "F"
        elif 0.6 <= u <= 0.9:
            g = "A"
        elif 0.4 <= u < 0.6:
            g = "B"
        elif u > 0.9:
            g = "C"
        else:
            g = "D"
        out = dict(s)
        out["grade"] = g
        graded.append(out)
    return graded


def table_report(
    guests: Iterable[Guest],
    tables: Iterable[Table],
    group_of: Optional[Mapping[str, str]] = None,
    constraints: Optional[ArrangementConstraints] = None,
) -> List[Dict[str, int | float | str]]:
    guests_by_id = {g.id: g for g in guests}
    stats = [compute_table_stats(t, guests_by_id, group_of, constraints) for t in tables]
    return grade_tables(stats)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def summary_message(placed: int, tables_used: int, unplaced: int, mixed: int, splits: int) -> str:
    """One-line outcome such as 'Arranged 12 guests across 3 tables; 1 guest unplaced'."""
    parts = [f"Arranged {_plural(placed, 'guest')} across {_plural(tables_used, 'table')}"]
    if unplaced:
        parts.append(f"{_plural(unplaced, 'guest')} unplaced")
    if splits:
        parts.append(f"{_plural(splits, 'group')} split")
    if mixed:
        verb = "has" if mixed == 1 else "have"
        parts.append(f"{_plural(mixed, 'table')} {verb} mixed groups")
    return "; ".join(parts)


def summarize(result: ArrangementResult) -> str:
    """Text rendering of an arrangement run: outcome, retractions, then warnings."""
    lines = [result.message]
    if result.retracted:
        lines.append(f"Retracted {_plural(len(result.retracted), 'non-accepted guest')}")
    for w in result.warnings:
        lines.append(f"[WARN] {w.message}")
    return "\n".join(lines)
