import csv

from seating_engine import cli
from seating_engine.arranger import auto_arrange
from seating_engine.config import load_constraints
from seating_engine.csv_loader import load_all, load_venue_elements
from seating_engine.ledger import AssignmentLedger
from seating_engine.report import summarize, summary_message, table_report
from tests.utils import assert_consistent, assert_within_capacity


def test_csv_flow(data_dir):
    guests, tables = load_all(data_dir / "guests.csv", data_dir / "tables.csv")
    ledger = AssignmentLedger("flow", guests, tables)

    result = auto_arrange(ledger)

    assert result.success
    assert result.retracted == ["g11"]
    assert result.plan.unplaced == []
    assert ledger.guests_at("t4") == [ledger.guest("g01"), ledger.guest("g02")]
    assert ledger.tables["t3"].assigned_guests == ["g13", "g07", "g08"]
    assert ledger.tables["t1"].assigned_guests == ["g03", "g04", "g05", "g06", "g10", "g09"]
    assert ledger.tables["t2"].assigned_guests == ["g14"]
    assert ledger.table_of("g12") is None
    assert result.message == "Arranged 10 guests across 3 tables; 2 tables have mixed groups"
    assert_consistent(guests, tables)
    assert_within_capacity(guests, tables)


def test_report_grades(data_dir):
    guests, tables = load_all(data_dir / "guests.csv", data_dir / "tables.csv")
    ledger = AssignmentLedger("report", guests, tables)
    result = auto_arrange(ledger)

    graded = {s["table_id"]: s for s in table_report(guests, tables, result.plan.group_of)}

    assert graded["t1"]["occupied_seats"] == 8
    assert graded["t1"]["grade"] == "C"
    assert graded["t1"]["group_count"] == 4
    assert graded["t2"]["grade"] == "D"
    assert graded["t3"]["group_count"] == 2
    assert graded["t4"]["grade"] == "B"
    assert graded["t4"]["locked"] == "yes"
    assert graded["t4"]["members"] == "Ana Bride|Tom Groom"


def test_constraints_file_minimum(data_dir):
    guests, tables = load_all(data_dir / "guests.csv", data_dir / "tables.csv")
    venue = load_venue_elements(data_dir / "venue.csv")
    constraints = load_constraints(data_dir / "constraints.json")
    ledger = AssignmentLedger("minimum", guests, tables)

    result = auto_arrange(ledger, constraints, venue)

    assert result.report.is_valid
    under = [w for w in result.warnings if w.code == "under_minimum"]
    assert [w.table_ids for w in under] == [["t2"]]


def test_summary_message():
    assert summary_message(1, 1, 0, 0, 0) == "Arranged 1 guest across 1 table"
    assert summary_message(12, 3, 2, 1, 1) == (
        "Arranged 12 guests across 3 tables; 2 guests unplaced; 1 group split; "
        "1 table has mixed groups"
    )


def test_cli_run(data_dir, tmp_path, capsys):
    out_assign = tmp_path / "assign.csv"
    out_report = tmp_path / "report.csv"
    code = cli.main([
        "--guests", str(data_dir / "guests.csv"),
        "--tables", str(data_dir / "tables.csv"),
        "--venue", str(data_dir / "venue.csv"),
        "--optimize-proximity",
        "--out-assignments", str(out_assign),
        "--out-report", str(out_report),
    ])
    assert code == 0

    printed = capsys.readouterr().out
    assert printed.startswith("Arranged 10 guests")
    assert "Ana Bride,Head Table" in printed
    assert "[REPORT] Head Table grade=B seats=2/4" in printed

    with out_assign.open() as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["guest", "table"]
    assert len(rows) == 13
    assert "Ivy" not in [r[0] for r in rows]

    with out_report.open() as f:
        report_rows = list(csv.DictReader(f))
    assert {r["table"] for r in report_rows} == {"Table 1", "Table 2", "Table 3", "Head Table"}


def test_cli_keep_existing_flags(data_dir, capsys):
    code = cli.main([
        "--guests", str(data_dir / "guests.csv"),
        "--tables", str(data_dir / "tables.csv"),
        "--keep-existing",
        "--max-per-table", "4",
    ])
    assert code == 0
    printed = capsys.readouterr().out
    assert "[WARN]" in printed


def test_summarize_run(data_dir):
    guests, tables = load_all(data_dir / "guests.csv", data_dir / "tables.csv")
    ledger = AssignmentLedger("summary", guests, tables)
    result = auto_arrange(ledger, load_constraints(data_dir / "constraints.json"))

    lines = summarize(result).splitlines()

    assert lines[0] == result.message
    assert lines[1] == "Retracted 1 non-accepted guest"
    assert [line for line in lines if line.startswith("[WARN]")] == [
        f"[WARN] {w.message}" for w in result.warnings
    ]
    assert any("below the minimum of 2" in line for line in lines)
