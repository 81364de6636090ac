import pytest

from seating_engine.arranger import auto_arrange
from seating_engine.config import ArrangementConstraints
from seating_engine.ledger import AssignmentLedger
from seating_engine.models import RsvpStatus
from tests.utils import assert_consistent, assert_within_capacity


def _ledger(guests, tables, event_id="wedding"):
    # seed back-references from the table lists
    for t in tables:
        for gid in t.assigned_guests:
            for g in guests:
                if g.id == gid:
                    g.table_assignment = t.id
    return AssignmentLedger(event_id, guests, tables)


def test_declined_guests_are_retracted(make_guest, make_table):
    guests = [make_guest("a"), make_guest("d", status=RsvpStatus.DECLINED)]
    tables = [make_table("t1", 4, assigned_guests=["d"])]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger)

    assert result.success
    assert result.retracted == ["d"]
    assert ledger.table_of("d") is None
    assert ledger.table_of("a") == "t1"
    assert result.arranged_guests == 1
    assert result.message == "Arranged 1 guest across 1 table"
    assert result.report.is_valid
    assert_consistent(guests, tables)


def test_locked_table_guests_stay(make_guest, make_table):
    guests = [make_guest("b", relationship="Bride"), make_guest("f1"), make_guest("f2")]
    tables = [
        make_table("head", 2, locked=True, assigned_guests=["b"]),
        make_table("t1", 4),
    ]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger)

    assert tables[0].assigned_guests == ["b"]
    assert ledger.table_of("b") == "head"
    assert tables[1].assigned_guests == ["f1", "f2"]
    assert "head" not in result.plan.assignments


def test_every_accepted_guest_placed_or_reported(make_guest, make_table):
    guests = [
        make_guest("p1", relationship="Parent", household="h", extra=1),
        make_guest("p2", relationship="Sibling", household="h"),
        make_guest("c1", relationship="Coworker", side=None),
        make_guest("c2", relationship="Coworker", extra=3),
        make_guest("x", relationship="Friend", extra=9),
        make_guest("n", status=RsvpStatus.NO_RESPONSE),
    ]
    tables = [make_table("t1", 4), make_table("t2", 4), make_table("t3", 2)]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger)

    accepted = {g.id for g in guests if g.is_eligible}
    placed = set(result.plan.placed_guest_ids)
    assert placed | set(result.plan.unplaced) == accepted
    assert result.plan.unplaced == ["x"]
    assert "1 guest unplaced" in result.message
    assert ledger.table_of("p1") == ledger.table_of("p2")
    assert ledger.table_of("n") is None
    assert_consistent(guests, tables)
    assert_within_capacity(guests, tables)


def test_undo_restores_previous_arrangement(make_guest, make_table):
    guests = [make_guest("a"), make_guest("b", relationship="Cousin")]
    tables = [make_table("t1", 2, assigned_guests=["a"]), make_table("t2", 4)]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger)
    assert ledger.table_of("b") is not None

    ledger.restore(result.undo)

    assert ledger.table_of("a") == "t1"
    assert ledger.table_of("b") is None
    assert tables[1].assigned_guests == []
    assert_consistent(guests, tables)


def test_keep_existing_accounts_for_seated_guests(make_guest, make_table):
    guests = [make_guest("old"), make_guest("new", extra=1)]
    tables = [make_table("t1", 2, assigned_guests=["old"]), make_table("t2", 4)]
    ledger = _ledger(guests, tables)

    auto_arrange(ledger, clear_existing=False)

    assert ledger.table_of("old") == "t1"
    assert ledger.table_of("new") == "t2"


def test_clear_existing_replans_unlocked_tables(make_guest, make_table):
    guests = [make_guest("old"), make_guest("new", extra=1)]
    tables = [make_table("t1", 2, assigned_guests=["old"]), make_table("t2", 4)]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger)

    assert tables[0].assigned_guests == []
    assert tables[1].assigned_guests == ["old", "new"]
    assert result.plan.releases == ["old"]
    assert result.retracted == []


def test_no_unlocked_tables(make_guest, make_table):
    guests = [make_guest("a"), make_guest("d", status=RsvpStatus.DECLINED)]
    tables = [make_table("head", 4, locked=True, assigned_guests=["d"])]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger)

    assert not result.success
    assert result.message == "No unlocked tables available for auto-arrangement"
    assert result.retracted == ["d"]
    assert result.plan is None
    assert ledger.table_of("a") is None


def test_no_accepted_guests(make_guest, make_table):
    guests = [make_guest("p", status=RsvpStatus.PENDING)]
    ledger = _ledger(guests, [make_table("t1", 4)])

    result = auto_arrange(ledger)

    assert not result.success
    assert result.message == "No guests with accepted RSVP status to arrange"
    assert result.arranged_guests == 0


def test_constraints_cap_table_fill(make_guest, make_table):
    guests = [make_guest(f"g{i}") for i in range(4)]
    tables = [make_table("t1", 10), make_table("t2", 10)]
    ledger = _ledger(guests, tables)

    result = auto_arrange(ledger, ArrangementConstraints(max_guests_per_table=3))

    assert result.plan.assignments == {"t1": ["g0", "g1", "g2"], "t2": ["g3"]}
    assert "group_split" in [w.code for w in result.warnings]
    assert "1 group split" in result.message


def test_to_dict(make_guest, make_table):
    ledger = _ledger([make_guest("a")], [make_table("t1", 4)])
    body = auto_arrange(ledger).to_dict()
    assert body == {
        "success": True,
        "message": "Arranged 1 guest across 1 table",
        "arrangedGuests": 1,
        "warnings": [],
    }


@pytest.mark.parametrize("clear_existing", [True, False])
def test_repeat_runs_are_stable(make_guest, make_table, clear_existing):
    guests = [make_guest("a"), make_guest("b"), make_guest("c", relationship="Cousin")]
    tables = [make_table("t1", 2), make_table("t2", 2)]
    ledger = _ledger(guests, tables)

    auto_arrange(ledger)
    first = ledger.snapshot()
    auto_arrange(ledger, clear_existing=clear_existing)

    assert ledger.snapshot() == first
    assert_consistent(guests, tables)
