"""Report data models produced by the ledger engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass
class TrialBalanceRow:
    """Debit or credit balance of one account."""

    account_code: str
    account_name: str
    account_type: str
    debit_balance: Decimal
    credit_balance: Decimal

    @property
    def net_balance(self) -> Decimal:
        return self.debit_balance - self.credit_balance


@dataclass
class TrialBalance:
    as_of: Optional[date]
    rows: List[TrialBalanceRow]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool


@dataclass
class StatementLine:
    """A single account figure on a financial statement."""

    account_code: str
    account_name: str
    amount: Decimal
    category: Optional[str] = None


@dataclass
class IncomeStatement:
    """Profit and loss for a period."""

    start: Optional[date]
    end: Optional[date]
    revenue: List[StatementLine] = field(default_factory=list)
    expenses: List[StatementLine] = field(default_factory=list)
    total_revenue: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")


@dataclass
class BalanceSheet:
    """Assets, liabilities and equity at a point in time.

    Income and expense accounts are never closed by the engine, so the
    period result appears as a synthetic equity line.
    """

    as_of: Optional[date]
    assets: List[StatementLine] = field(default_factory=list)
    liabilities: List[StatementLine] = field(default_factory=list)
    equity: List[StatementLine] = field(default_factory=list)
    total_assets: Decimal = Decimal("0")
    total_liabilities: Decimal = Decimal("0")
    total_equity: Decimal = Decimal("0")
    is_balanced: bool = True


__all__ = [
    "BalanceSheet",
    "IncomeStatement",
    "StatementLine",
    "TrialBalance",
    "TrialBalanceRow",
]
