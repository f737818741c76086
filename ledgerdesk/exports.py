"""CSV export of journal entries and the trial balance."""
from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence

from ledgerdesk.accounting import JournalEntry
from ledgerdesk.models import TrialBalance
from ledgerdesk.validation import minor_units, quantize_amount

JOURNAL_COLUMNS: Sequence[str] = (
    "Date",
    "Entry",
    "Description",
    "Reference",
    "Account",
    "Debit",
    "Credit",
    "Currency",
    "Memo",
)

TRIAL_BALANCE_COLUMNS: Sequence[str] = (
    "Account",
    "Name",
    "Type",
    "Debit",
    "Credit",
)


def format_value(value: Any, currency: Optional[str] = None) -> str:
    """Format a value for export; decimals follow the currency minor unit."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return f"{quantize_amount(value, currency):.{minor_units(currency)}f}"
    return str(value)


def journal_rows(entries: Iterable[JournalEntry]) -> List[List[str]]:
    rows: List[List[str]] = []
    for entry in entries:
        for line in entry.lines:
            rows.append(
                [
                    format_value(entry.entry_date),
                    entry.entry_number,
                    entry.description,
                    format_value(entry.reference),
                    line.account_code,
                    format_value(line.debit, line.currency),
                    format_value(line.credit, line.currency),
                    line.currency,
                    format_value(line.memo),
                ]
            )
    return rows


def export_journal_csv(entries: Iterable[JournalEntry]) -> str:
    """One CSV row per journal line, headed by ``JOURNAL_COLUMNS``."""
    return _to_csv(JOURNAL_COLUMNS, journal_rows(entries))


def export_trial_balance_csv(report: TrialBalance, currency: Optional[str] = None) -> str:
    rows = [
        [
            row.account_code,
            row.account_name,
            row.account_type,
            format_value(row.debit_balance, currency),
            format_value(row.credit_balance, currency),
        ]
        for row in report.rows
    ]
    rows.append(
        [
            "",
            "Total",
            "",
            format_value(report.total_debits, currency),
            format_value(report.total_credits, currency),
        ]
    )
    return _to_csv(TRIAL_BALANCE_COLUMNS, rows)


def _to_csv(columns: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(columns)
    writer.writerows(rows)
    return output.getvalue()


__all__ = [
    "JOURNAL_COLUMNS",
    "TRIAL_BALANCE_COLUMNS",
    "export_journal_csv",
    "export_trial_balance_csv",
    "format_value",
    "journal_rows",
]
