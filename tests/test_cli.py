import json

from ledgerdesk.cli import main


def _write_entry(tmp_path, lines) -> str:
    path = tmp_path / "entry.json"
    path.write_text(json.dumps({"lines": lines}), encoding="utf-8")
    return str(path)


def test_validate_balanced_entry(tmp_path, capsys) -> None:
    path = _write_entry(
        tmp_path,
        [{"accountCode": "1000", "debit": 100, "credit": 0}, {"accountCode": "4000", "debit": 0, "credit": 100}],
    )
    assert main(["validate", path]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["balanced"] is True
    assert result["difference"] == "0.00"
    assert result["validLineCount"] == 2


def test_validate_unbalanced_entry_exits_nonzero(tmp_path, capsys) -> None:
    path = _write_entry(
        tmp_path,
        [{"account": "1000", "debit": 100}, {"account": "4000", "credit": 50}],
    )
    assert main(["validate", path]) == 1
    result = json.loads(capsys.readouterr().out)
    assert result["message"] == "Unbalanced: difference $50.00"


def test_report_prints_json(capsys) -> None:
    assert main(["report", "trial-balance"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["is_balanced"] is True


def test_report_writes_html(tmp_path) -> None:
    target = tmp_path / "bs.html"
    assert main(["report", "balance-sheet", "--html", str(target)]) == 0
    assert "Balance Sheet" in target.read_text(encoding="utf-8")


def test_validate_reports_difference_in_currency_precision(tmp_path, capsys) -> None:
    path = _write_entry(
        tmp_path,
        [{"account": "1000", "debit": "10.005"}, {"account": "4000", "credit": "10"}],
    )
    assert main(["validate", path, "--currency", "KWD"]) == 1
    result = json.loads(capsys.readouterr().out)
    assert result["difference"] == "0.005"
    assert result["message"] == "Unbalanced: difference KWD 0.005"
