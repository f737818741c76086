"""Editable journal-entry draft held as explicit state.

A draft is what the user is composing before anything reaches the ledger.
Every mutation goes through a method so that the debit/credit exclusivity
rule holds, and ``check()`` re-runs the shared balance rule on demand.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Optional

from ledgerdesk.validation import (
    AmountLike,
    BalanceCheck,
    EntryRejection,
    LineInput,
    MIN_VALID_LINES,
    RejectionReason,
    check_balance,
    is_valid_line,
    prepare_entry,
    set_credit,
    set_debit,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class Notice:
    """A user-facing message produced by the draft (the toast of the UI)."""

    level: str
    message: str


@dataclass
class SubmissionResult:
    accepted: bool
    check: BalanceCheck
    payload: Optional[Dict[str, Any]] = None
    rejection: Optional[EntryRejection] = None

    @property
    def message(self) -> Optional[str]:
        return self.rejection.message if self.rejection else None


@dataclass
class EntryDraft:
    """A journal entry under construction."""

    entry_date: Optional[date] = field(default_factory=date.today)
    description: str = ""
    reference: Optional[str] = None
    currency: str = "USD"
    lines: List[LineInput] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.currency = self.currency.upper()
        while len(self.lines) < MIN_VALID_LINES:
            self.lines.append(self._blank_line())

    # ------------------------------------------------------------------
    # Line editing
    # ------------------------------------------------------------------
    def add_line(self) -> int:
        self.lines.append(self._blank_line())
        return len(self.lines) - 1

    def remove_line(self, index: int) -> bool:
        """Drop a line unless that would leave fewer than two."""
        self._line(index)
        if len(self.lines) <= MIN_VALID_LINES:
            return False
        del self.lines[index]
        return True

    def set_account(self, index: int, account: str) -> None:
        self.lines[index] = replace(self._line(index), account=account.strip())

    def set_debit(self, index: int, value: AmountLike) -> None:
        self.lines[index] = set_debit(self._line(index), value)

    def set_credit(self, index: int, value: AmountLike) -> None:
        self.lines[index] = set_credit(self._line(index), value)

    def set_memo(self, index: int, memo: Optional[str]) -> None:
        self.lines[index] = replace(self._line(index), memo=memo or None)

    def set_currency(self, index: int, currency: str) -> None:
        self.lines[index] = replace(self._line(index), currency=currency.upper())

    # ------------------------------------------------------------------
    # Validation and submission
    # ------------------------------------------------------------------
    def check(self) -> BalanceCheck:
        return check_balance(self.lines)

    def valid_lines(self) -> List[LineInput]:
        return [line for line in self.lines if is_valid_line(line)]

    def submit(self) -> SubmissionResult:
        """Gate submission on the balance rule without raising.

        Header fields are checked first, then the balance rule over the lines
        as entered and over the rounded lines that make up the payload. A
        rejected draft keeps its lines so the user can continue editing.
        """
        check, kept = prepare_entry(self.lines)
        rejection = self._header_rejection() or check.rejection
        if rejection is not None:
            LOGGER.info("Draft rejected: %s", rejection.message)
            self.notices.append(Notice(level="error", message=rejection.message))
            return SubmissionResult(accepted=False, check=check, rejection=rejection)

        payload = {
            "entry_date": self.entry_date,
            "description": self.description.strip(),
            "reference": self.reference or None,
            "lines": [
                {
                    "account": line.account,
                    "debit": line.debit,
                    "credit": line.credit,
                    "currency": line.currency or self.currency,
                    "memo": line.memo,
                }
                for line in kept
            ],
        }
        self.notices.append(Notice(level="success", message="Journal entry ready to post"))
        return SubmissionResult(accepted=True, check=check, payload=payload)

    def reset(self) -> None:
        self.entry_date = date.today()
        self.description = ""
        self.reference = None
        self.lines = [self._blank_line() for _ in range(MIN_VALID_LINES)]
        self.notices.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _blank_line(self) -> LineInput:
        return LineInput(currency=self.currency)

    def _line(self, index: int) -> LineInput:
        try:
            return self.lines[index]
        except IndexError as exc:
            raise IndexError(f"Draft has no line {index}") from exc

    def _header_rejection(self) -> Optional[EntryRejection]:
        if self.entry_date is None:
            return EntryRejection(
                reason=RejectionReason.MISSING_FIELD, message="Date is required"
            )
        if not self.description.strip():
            return EntryRejection(
                reason=RejectionReason.MISSING_FIELD, message="Description is required"
            )
        return None


__all__ = ["EntryDraft", "Notice", "SubmissionResult"]
