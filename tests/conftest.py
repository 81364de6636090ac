"""Pytest configuration and shared fixtures."""
import pathlib
import sys

import pytest

# Ensure src package is on path
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from seating_engine.models import Guest, RsvpStatus, Side, Table


@pytest.fixture
def make_guest():
    def _make(guest_id, relationship="Friend", side=Side.BRIDE, extra=0,
              status=RsvpStatus.ACCEPTED, **kwargs):
        return Guest(
            id=guest_id,
            name=kwargs.pop("name", f"Guest {guest_id}"),
            rsvp_status=status,
            relationship_type=relationship,
            side=side,
            additional_guests=extra,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_table():
    def _make(table_id, capacity, locked=False, **kwargs):
        return Table(
            id=table_id,
            name=kwargs.pop("name", f"Table {table_id}"),
            capacity=capacity,
            is_locked=locked,
            **kwargs,
        )
    return _make


@pytest.fixture
def data_dir():
    return pathlib.Path(__file__).parent / "data"
