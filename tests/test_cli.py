import csv
import io
import json

import pytest
from typer.testing import CliRunner

from reconciliation import cli
from reconciliation.cli import app

runner = CliRunner()


def _match_args(company, party, *extra: str) -> list[str]:
    return [
        "match",
        "--company-file",
        str(company),
        "--party-file",
        str(party),
        "--stage-delay",
        "0",
        *extra,
    ]


def test_normalize_json(company_csv):
    result = runner.invoke(app, ["normalize", "--file", str(company_csv), "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert [d["id"] for d in data] == [1, 2, 3]
    assert data[1]["reference"] == "INV-002"
    assert data[1]["amount"] == "250.50"
    assert data[0]["docType"] == "Invoice"


def test_normalize_table_for_party(party_csv):
    result = runner.invoke(app, ["normalize", "--file", str(party_csv), "--side", "party"])

    assert result.exit_code == 0, result.output
    assert "Party Data (2 records)" in result.output
    assert "PAY-10" in result.output


def test_normalize_rejects_unknown_side(company_csv):
    result = runner.invoke(app, ["normalize", "--file", str(company_csv), "--side", "vendor"])

    assert result.exit_code == 1
    assert "unknown side" in result.output


def test_match_end_to_end_with_export(company_csv, party_csv, tmp_path):
    out_path = tmp_path / "results.csv"
    result = runner.invoke(
        app,
        _match_args(company_csv, party_csv, "--export", str(out_path)),
        input="c 1 2\np 1 2\nm\nd\n",
    )

    assert result.exit_code == 0, result.output
    assert "Files Uploaded Successfully" in result.output
    assert "Match Created: INV-001, INV-002 <-> PAY-9, PAY-10 (1 total)" in result.output
    assert "Transaction Matches" in result.output
    assert "Exported 2 row(s)" in result.output

    with out_path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [(r["company_ref"], r["party_ref"], r["amount"], r["confidence"]) for r in rows] == [
        ("INV-001; INV-002", "PAY-9; PAY-10", "350.50", "100"),
        ("INV-003", "-", "75.00", "0"),
    ]


def test_match_search_narrows_results(company_csv, party_csv):
    result = runner.invoke(
        app,
        _match_args(company_csv, party_csv, "--search", "pay-9"),
        input="c 1\np 1\nm\nd\n",
    )

    assert result.exit_code == 0, result.output
    assert "Showing 1 of 3 rows" in result.output


def test_match_quit_exits_cleanly(company_csv, party_csv):
    result = runner.invoke(app, _match_args(company_csv, party_csv), input="q\n")

    assert result.exit_code == 0, result.output
    assert "Matching cancelled." in result.output
    assert "Transaction Matches" not in result.output


def test_match_requires_both_files(company_csv):
    result = runner.invoke(app, ["match", "--company-file", str(company_csv)])

    assert result.exit_code == 1
    assert "Please upload both Company and Party data files" in result.output


def test_match_reports_missing_file(company_csv, tmp_path):
    missing = tmp_path / "nope.csv"
    result = runner.invoke(app, _match_args(company_csv, missing))

    assert result.exit_code == 1
    assert f"Error: File not found: {missing}" in result.output


def test_match_reports_csv_without_header(company_csv, tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("")
    result = runner.invoke(app, _match_args(company_csv, empty))

    assert result.exit_code == 1
    assert "Failed to parse CSV: CSV appears to have no header row" in result.output


def test_dotenv_stage_delay_is_loaded(company_csv, party_csv, tmp_path, monkeypatch):
    # The autouse fixture runs tests from tmp_path/"cwd", where .env is read.
    (tmp_path / "cwd" / ".env").write_text("RECONCILIATION_STAGE_DELAY=0.25\n")
    paused: list[float] = []
    monkeypatch.setattr("reconciliation.workflows.match_flow.pause", lambda s, **_: paused.append(s))

    result = runner.invoke(
        app,
        ["match", "--company-file", str(company_csv), "--party-file", str(party_csv)],
        input="q\n",
    )

    assert result.exit_code == 0, result.output
    assert paused == [0.25]


def test_normalize_table_with_oversized_amount(write_csv):
    path = write_csv("huge.csv", ["reference", "amount"], [["R-1", "1e1000000"], ["R-2", "12.5"]])
    result = runner.invoke(app, ["normalize", "--file", str(path)])

    assert result.exit_code == 0, result.output
    assert "$0.00" in result.output
    assert "$12.50" in result.output


def test_piped_input_uses_plain_reader(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("c 1\n"))
    reader = cli._default_reader()

    assert reader() == "c 1"
    with pytest.raises(EOFError):
        reader()
