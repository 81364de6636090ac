from seating_engine.capacity import capacity_snapshot, table_capacity
from seating_engine.models import RsvpStatus


def test_occupied_seats_include_additional_guests(make_guest, make_table):
    guests = [make_guest("g1", extra=2), make_guest("g2")]
    table = make_table("t1", 6, assigned_guests=["g1", "g2"])
    cap = table_capacity(table, {g.id: g for g in guests})
    assert cap.occupied_seats == 4
    assert cap.available_seats == 2
    assert not cap.is_over_capacity


def test_non_accepted_and_unknown_guests_take_no_seat(make_guest, make_table):
    guests = [make_guest("g1"), make_guest("g2", status=RsvpStatus.DECLINED)]
    table = make_table("t1", 2, assigned_guests=["g1", "g2", "ghost"])
    cap = table_capacity(table, {g.id: g for g in guests})
    assert cap.occupied_seats == 1
    assert cap.available_seats == 1


def test_over_capacity_is_flagged_not_corrected(make_guest, make_table):
    guests = [make_guest("g1", extra=1), make_guest("g2")]
    table = make_table("t1", 2, assigned_guests=["g1", "g2"])
    cap = table_capacity(table, {g.id: g for g in guests})
    assert cap.is_over_capacity
    assert cap.available_seats == 0
    assert table.assigned_guests == ["g1", "g2"]


def test_snapshot_can_ignore_guests(make_guest, make_table):
    guests = [make_guest("g1"), make_guest("g2")]
    tables = [make_table("t1", 4, assigned_guests=["g1"]), make_table("t2", 4, assigned_guests=["g2"])]
    snap = capacity_snapshot(tables, {g.id: g for g in guests}, ignore={"g2"})
    assert snap["t1"].occupied_seats == 1
    assert snap["t2"].occupied_seats == 0
