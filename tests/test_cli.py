import io
import json

from openpyxl import load_workbook

from receipt_parser.cli.main import main
from receipt_parser.core.database import init_receipts_db, save_receipt
from receipt_parser.core.pipeline import parse


def test_parse_file(tmp_path, capsys):
    src = tmp_path / "shell.txt"
    src.write_text("Shell\nFuel: $55.23\nDate: 03/15/2024", encoding="utf-8")

    assert main(["parse", str(src)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {
        "date": "2024-03-15",
        "merchant": "Shell",
        "category": "Transportation",
        "amount": 55.23,
        "description": "Purchase from Shell - $55.23",
    }


def test_parse_stdin_with_trace(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("Total: R218,040.00"))
    assert main(["parse", "-", "--trace"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["fields"]["amount"] == 218040.0
    assert out["trace"]["amount_selected"]["pattern"] == "labeled_total"


def test_parse_missing_file(tmp_path):
    assert main(["parse", str(tmp_path / "nope.txt")]) == 1


def test_export(tmp_path, capsys):
    db = tmp_path / "receipts.sqlite"
    init_receipts_db(db)
    save_receipt(db, "alice", "shell.png", None, parse("Shell\nFuel: $55.23"))
    out = tmp_path / "alice.xlsx"

    assert main(["export", "--owner", "alice", "--db", str(db), "--out", str(out)]) == 0
    assert "Exported 1 receipt(s)" in capsys.readouterr().out
    assert load_workbook(out)["Receipts Summary"]["C2"].value == "Shell"

    assert main(["export", "--owner", "bob", "--db", str(db), "--out", str(out)]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out
