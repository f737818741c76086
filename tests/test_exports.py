import csv
import io
from datetime import date
from decimal import Decimal

import pytest

from ledgerdesk.accounting import AccountingEngine
from ledgerdesk.config import get_settings
from ledgerdesk.exports import (
    JOURNAL_COLUMNS,
    export_journal_csv,
    export_trial_balance_csv,
    format_value,
)
from ledgerdesk.rendering.report import render_html, write_html
from ledgerdesk.validation import LineInput


@pytest.fixture()
def engine() -> AccountingEngine:
    return AccountingEngine(seed_demo_data=True)


def test_journal_csv_has_one_row_per_line(engine: AccountingEngine) -> None:
    rows = list(csv.reader(io.StringIO(export_journal_csv(engine.list_entries()))))
    assert rows[0] == list(JOURNAL_COLUMNS)
    expected = sum(len(entry.lines) for entry in engine.list_entries())
    assert len(rows) - 1 == expected
    first = rows[1]
    assert first[1] == "JE-000001"
    assert first[4] == "1000"
    assert first[5] == "60000.00"
    assert first[6] == "0.00"
    assert "Status" not in rows[0]


def test_trial_balance_csv_ends_with_totals(engine: AccountingEngine) -> None:
    rows = list(csv.reader(io.StringIO(export_trial_balance_csv(engine.trial_balance()))))
    assert rows[-1][1] == "Total"
    assert rows[-1][3] == rows[-1][4]


def test_render_statements(engine: AccountingEngine) -> None:
    settings = get_settings()
    html = render_html(engine.trial_balance(), settings)
    assert "Trial Balance" in html
    assert "$46,000.00" in html
    assert "Balanced" in html

    html = render_html(engine.balance_sheet(), settings)
    assert "Balance sheet is balanced" in html
    assert "Current Earnings" in html

    html = render_html(engine.income_statement(), settings)
    assert "Net income" in html
    assert "$21,000.00" in html


def test_render_rejects_unknown_report() -> None:
    with pytest.raises(TypeError):
        render_html(object())


def test_write_html_creates_parent_directories(engine: AccountingEngine, tmp_path) -> None:
    target = tmp_path / "out" / "tb.html"
    path = write_html(engine.trial_balance(), target)
    assert path.exists()
    assert "Trial Balance" in path.read_text(encoding="utf-8")


def test_amounts_follow_the_currency_minor_unit() -> None:
    engine = AccountingEngine(default_currency="JPY")
    engine.seed_chart_of_accounts()
    entry = engine.record_entry(
        description="Cash sale",
        entry_date=date(2024, 5, 1),
        lines=[LineInput(account="1000", debit="1500"), LineInput(account="4000", credit="1500")],
    )
    engine.post_entry(entry.id)

    rows = list(csv.reader(io.StringIO(export_journal_csv(engine.list_entries()))))
    assert rows[1][5:8] == ["1500", "0", "JPY"]

    rows = list(csv.reader(io.StringIO(export_trial_balance_csv(engine.trial_balance(), "JPY"))))
    assert rows[-1][3:] == ["1500", "1500"]

    assert format_value(Decimal("0.005"), "KWD") == "0.005"
    assert format_value(Decimal("12.5")) == "12.50"
