"""CSV loading utilities."""
from __future__ import annotations

from pathlib import Path
from typing import IO, Any, List, Tuple

import pandas as pd

from .models import (
    Guest,
    Position,
    Table,
    parse_bool,
    parse_optional,
    parse_pipe_list,
    parse_rsvp,
    parse_side,
)
from .proximity import VenueElement

_GUEST_TEXT_COLUMNS = {
    "id": str,
    "household": str,
    "linked_with": str,
    "table_assignment": str,
}


def _int(value: object, default: int = 0) -> int:
    if parse_optional(value) is None:
        return default
    return int(float(value))


def load_guests(path: Path | str | IO[Any]) -> List[Guest]:
    """Load guests from ``guests.csv``.

    Validates that ids are unique and that ``linked_with`` references exist.
    """
    df = pd.read_csv(path, dtype=_GUEST_TEXT_COLUMNS)
    guests: List[Guest] = []
    for _, row in df.iterrows():
        guest = Guest(
            id=str(row["id"]).strip(),
            name=str(row["name"]).strip(),
            rsvp_status=parse_rsvp(row.get("rsvp_status", "")),
            relationship_type=parse_optional(row.get("relationship_type", "")) or "",
            side=parse_side(row.get("side", "")),
            additional_guests=_int(row.get("additional_guests", 0)),
            household=parse_optional(row.get("household", "")) or "",
            linked_guests=parse_pipe_list(row.get("linked_with", "")),
            dietary_restrictions=parse_pipe_list(row.get("dietary_restrictions", "")),
            table_assignment=parse_optional(row.get("table_assignment", "")),
        )
        guests.append(guest)

    ids = [g.id for g in guests]
    if len(set(ids)) != len(ids):
        raise ValueError("Duplicate guest ids in guests file")
    known = set(ids)
    for g in guests:
        for other in g.linked_guests:
            if other not in known:
                raise ValueError(f"Unknown guest linked by {g.name}: {other}")
    return guests


def load_tables(path: Path | str | IO[Any]) -> List[Table]:
    """Load table definitions."""
    df = pd.read_csv(path, dtype={"id": str})
    tables: List[Table] = []
    for _, row in df.iterrows():
        x = parse_optional(row.get("x", ""))
        y = parse_optional(row.get("y", ""))
        tables.append(
            Table(
                id=str(row["id"]).strip(),
                name=str(row["name"]).strip(),
                capacity=_int(row["capacity"]),
                is_locked=parse_bool(row.get("locked", "false")),
                position=Position(float(x), float(y)) if x is not None and y is not None else None,
            )
        )
    return tables


def load_venue_elements(path: Path | str | IO[Any]) -> List[VenueElement]:
    """Load venue elements (``id,kind,x,y``)."""
    df = pd.read_csv(path, dtype={"id": str})
    return [
        VenueElement(
            id=str(row["id"]).strip(),
            kind=str(row["kind"]).strip().lower(),
            position=Position(float(row["x"]), float(row["y"])),
        )
        for _, row in df.iterrows()
    ]


def load_all(
    guests_path: Path | str | IO[Any], tables_path: Path | str | IO[Any]
) -> Tuple[List[Guest], List[Table]]:
    """Convenience wrapper returning guests and tables.

    Existing ``table_assignment`` values seed both sides of the relation.
    """
    guests = load_guests(guests_path)
    tables = load_tables(tables_path)
    by_id = {t.id: t for t in tables}
    for g in guests:
        if g.table_assignment is None:
            continue
        table = by_id.get(g.table_assignment)
        if table is None:
            raise ValueError(f"Guest {g.name} assigned to unknown table: {g.table_assignment}")
        table.assigned_guests.append(g.id)
    return guests, tables
