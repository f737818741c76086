"""Accounting engine providing double-entry bookkeeping utilities."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from itertools import count
from typing import Dict, Iterable, List, Literal, Optional, Tuple, Union
from uuid import uuid4

from rapidfuzz import fuzz, process, utils

from ledgerdesk.models import (
    BalanceSheet,
    IncomeStatement,
    StatementLine,
    TrialBalance,
    TrialBalanceRow,
)
from ledgerdesk.validation import (
    BalanceCheck,
    LineInput,
    parse_amount,
    prepare_entry,
    quantize_amount,
    tolerance_for,
)

LOGGER = logging.getLogger(__name__)

AccountType = Literal["asset", "liability", "equity", "income", "expense"]
EntryStatus = Literal["draft", "posted"]

ZERO = Decimal("0")

# Default chart of accounts seeded for every new tenant.
DEFAULT_CHART: Tuple[Tuple[str, str, AccountType, Optional[str]], ...] = (
    ("1000", "Cash", "asset", "cash"),
    ("1100", "Accounts Receivable", "asset", None),
    ("1500", "Equipment", "asset", "fixed"),
    ("2000", "Accounts Payable", "liability", None),
    ("2100", "Accrued Expenses", "liability", None),
    ("3000", "Owner's Equity", "equity", None),
    ("3100", "Retained Earnings", "equity", None),
    ("4000", "Sales Revenue", "income", None),
    ("4100", "Service Revenue", "income", None),
    ("5000", "Cost of Goods Sold", "expense", "cogs"),
    ("6000", "Office Rent", "expense", None),
    ("6100", "Salaries", "expense", None),
    ("6200", "Utilities", "expense", None),
)


@dataclass
class Account:
    """Represents a ledger account."""

    code: str
    name: str
    type: AccountType
    currency: str = "USD"
    subtype: Optional[str] = None
    description: Optional[str] = None


@dataclass
class JournalLine:
    """A single debit or credit line in a journal entry."""

    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    currency: str = "USD"
    memo: Optional[str] = None


@dataclass
class JournalEntry:
    """A journal entry grouping multiple lines whose debits equal credits."""

    id: str
    entry_number: str
    description: str
    entry_date: date
    lines: List[JournalLine]
    currency: str = "USD"
    reference: Optional[str] = None
    source: str = "manual"
    status: EntryStatus = "draft"
    created_at: datetime = field(default_factory=datetime.utcnow)
    posted_at: Optional[datetime] = None

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass
class JournalFilters:
    """Criteria for browsing the journal; ``None`` means unfiltered."""

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    account_code: Optional[str] = None
    source: Optional[str] = None
    reference: Optional[str] = None
    status: Optional[EntryStatus] = None

    def matches(self, entry: JournalEntry) -> bool:
        if self.date_from and entry.entry_date < self.date_from:
            return False
        if self.date_to and entry.entry_date > self.date_to:
            return False
        if self.source and entry.source != self.source:
            return False
        if self.status and entry.status != self.status:
            return False
        if self.reference and self.reference.lower() not in (entry.reference or "").lower():
            return False
        if self.account_code and all(
            line.account_code != self.account_code for line in entry.lines
        ):
            return False
        return True


class EntryNotPostable(ValueError):
    """Raised when a journal entry fails the balance rule."""

    def __init__(self, check: BalanceCheck) -> None:
        rejection = check.rejection
        message = rejection.message if rejection else "Journal entry is not postable"
        super().__init__(message)
        self.check = check
        self.reason = rejection.reason if rejection else None


LineLike = Union[JournalLine, LineInput]


class AccountingEngine:
    """In-memory accounting engine used by the application API."""

    def __init__(
        self,
        default_currency: str = "USD",
        fiscal_year_start_month: int = 1,
        seed_demo_data: bool = False,
    ) -> None:
        self._default_currency = default_currency.upper()
        self._fiscal_year_start_month = fiscal_year_start_month
        self._accounts: Dict[str, Account] = {}
        self._entries: Dict[str, JournalEntry] = {}
        self._sequence = count(1)
        if seed_demo_data:
            self._seed_demo_ledger()

    @property
    def default_currency(self) -> str:
        return self._default_currency

    # ------------------------------------------------------------------
    # Account management
    # ------------------------------------------------------------------
    def list_accounts(self) -> List[Account]:
        return sorted(self._accounts.values(), key=lambda account: account.code)

    def get_account(self, code: str) -> Account:
        try:
            return self._accounts[code]
        except KeyError as exc:
            raise KeyError(f"Unknown account '{code}'") from exc

    def add_account(
        self,
        *,
        code: str,
        name: str,
        type: AccountType,
        currency: Optional[str] = None,
        subtype: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Account:
        code = code.strip()
        if not code:
            raise ValueError("Account code must not be empty")
        if code in self._accounts:
            raise ValueError(f"Account '{code}' already exists")
        account = Account(
            code=code,
            name=name,
            type=type,
            currency=(currency or self._default_currency).upper(),
            subtype=subtype,
            description=description,
        )
        self._accounts[code] = account
        return account

    def seed_chart_of_accounts(self) -> None:
        for code, name, account_type, subtype in DEFAULT_CHART:
            if code not in self._accounts:
                self.add_account(code=code, name=name, type=account_type, subtype=subtype)

    def search_accounts(
        self, query: str, *, limit: int = 5, score_cutoff: float = 60.0
    ) -> List[Account]:
        """Fuzzy lookup by code or name for account pickers."""
        query = query.strip()
        if not query:
            return []
        if query in self._accounts:
            return [self._accounts[query]]
        choices = {code: f"{code} {account.name}" for code, account in self._accounts.items()}
        matches = process.extract(
            query,
            choices,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            limit=limit,
            score_cutoff=score_cutoff,
        )
        return [self._accounts[code] for _, _, code in matches]

    # ------------------------------------------------------------------
    # Journal management
    # ------------------------------------------------------------------
    def list_entries(self, filters: Optional[JournalFilters] = None) -> List[JournalEntry]:
        entries = sorted(
            self._entries.values(), key=lambda entry: (entry.entry_date, entry.entry_number)
        )
        if filters is None:
            return entries
        return [entry for entry in entries if filters.matches(entry)]

    def get_entry(self, entry_id: str) -> JournalEntry:
        try:
            return self._entries[entry_id]
        except KeyError as exc:
            raise KeyError(f"Journal entry '{entry_id}' not found") from exc

    def validate_lines(
        self, lines: Iterable[LineLike], *, currency: Optional[str] = None
    ) -> BalanceCheck:
        """Run the balance rule without recording anything."""
        check, _ = prepare_entry(
            [self._as_input(line) for line in lines],
            currency=currency or self._default_currency,
        )
        return check

    def record_entry(
        self,
        *,
        description: str,
        entry_date: date,
        lines: Iterable[LineLike],
        reference: Optional[str] = None,
        source: str = "manual",
        currency: Optional[str] = None,
    ) -> JournalEntry:
        """Validate and store a draft entry; incomplete lines are dropped."""
        if not description.strip():
            raise ValueError("Description is required")
        currency = (currency or self._default_currency).upper()
        inputs = [self._as_input(line) for line in lines]
        check, kept = prepare_entry(inputs, currency=currency)
        if not check.postable:
            LOGGER.info("Rejected journal entry %r: %s", description, check.rejection.message)
            raise EntryNotPostable(check)

        normalized_lines = [self._normalize_line(line, currency) for line in kept]
        entry = JournalEntry(
            id=str(uuid4()),
            entry_number=f"JE-{next(self._sequence):06d}",
            description=description.strip(),
            entry_date=entry_date,
            lines=normalized_lines,
            currency=currency,
            reference=reference or None,
            source=source,
        )
        self._entries[entry.id] = entry
        LOGGER.debug("Recorded %s with %d lines", entry.entry_number, len(entry.lines))
        return entry

    def post_entry(self, entry_id: str) -> JournalEntry:
        entry = self.get_entry(entry_id)
        if entry.status != "draft":
            raise ValueError("Only draft entries can be posted")
        entry.status = "posted"
        entry.posted_at = datetime.utcnow()
        LOGGER.info("Posted %s", entry.entry_number)
        return entry

    def _as_input(self, line: LineLike) -> LineInput:
        if isinstance(line, LineInput):
            return line
        return LineInput(
            account=line.account_code,
            debit=line.debit,
            credit=line.credit,
            currency=line.currency,
            memo=line.memo,
        )

    def _normalize_line(self, line: LineInput, currency: str) -> JournalLine:
        account_code = line.account.strip()
        if account_code not in self._accounts:
            raise KeyError(f"Account '{account_code}' does not exist")
        line_currency = (line.currency or currency).upper()
        debit = self._quantize(parse_amount(line.debit), line_currency)
        credit = self._quantize(parse_amount(line.credit), line_currency)
        if debit > ZERO and credit > ZERO:
            raise ValueError(
                f"Line for account '{account_code}' cannot carry both a debit and a credit"
            )
        return JournalLine(
            account_code=account_code,
            debit=debit,
            credit=credit,
            currency=line_currency,
            memo=line.memo,
        )

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------
    def account_balance(self, code: str, *, as_of: Optional[date] = None) -> Decimal:
        account = self.get_account(code)
        debit_total, credit_total = self._activity(code, end=as_of)
        return self._net_balance(account, debit_total, credit_total)

    def trial_balance(self, *, as_of: Optional[date] = None) -> TrialBalance:
        rows: List[TrialBalanceRow] = []
        for account in self.list_accounts():
            debit_total, credit_total = self._activity(account.code, end=as_of)
            if debit_total == ZERO and credit_total == ZERO:
                continue
            net = debit_total - credit_total
            rows.append(
                TrialBalanceRow(
                    account_code=account.code,
                    account_name=account.name,
                    account_type=account.type,
                    debit_balance=net if net > ZERO else ZERO,
                    credit_balance=-net if net < ZERO else ZERO,
                )
            )
        total_debits = sum((row.debit_balance for row in rows), ZERO)
        total_credits = sum((row.credit_balance for row in rows), ZERO)
        return TrialBalance(
            as_of=as_of,
            rows=rows,
            total_debits=total_debits,
            total_credits=total_credits,
            is_balanced=abs(total_debits - total_credits) < self._tolerance,
        )

    def income_statement(
        self, *, start: Optional[date] = None, end: Optional[date] = None
    ) -> IncomeStatement:
        statement = IncomeStatement(start=start, end=end)
        cost_of_sales = ZERO
        for account in self.list_accounts():
            if account.type not in {"income", "expense"}:
                continue
            debit_total, credit_total = self._activity(account.code, start=start, end=end)
            if debit_total == ZERO and credit_total == ZERO:
                continue
            amount = self._net_balance(account, debit_total, credit_total)
            line = StatementLine(
                account_code=account.code,
                account_name=account.name,
                amount=amount,
                category=account.subtype,
            )
            if account.type == "income":
                statement.revenue.append(line)
                statement.total_revenue += amount
            else:
                statement.expenses.append(line)
                statement.total_expenses += amount
                if (account.subtype or "").lower() == "cogs":
                    cost_of_sales += amount
        statement.gross_profit = statement.total_revenue - cost_of_sales
        statement.net_income = statement.total_revenue - statement.total_expenses
        return statement

    def balance_sheet(self, *, as_of: Optional[date] = None) -> BalanceSheet:
        sheet = BalanceSheet(as_of=as_of)
        for account in self.list_accounts():
            if account.type not in {"asset", "liability", "equity"}:
                continue
            balance = self.account_balance(account.code, as_of=as_of)
            line = StatementLine(
                account_code=account.code,
                account_name=account.name,
                amount=balance,
                category=account.subtype,
            )
            if account.type == "asset":
                sheet.assets.append(line)
                sheet.total_assets += balance
            elif account.type == "liability":
                sheet.liabilities.append(line)
                sheet.total_liabilities += balance
            else:
                sheet.equity.append(line)
                sheet.total_equity += balance

        earnings = self.income_statement(end=as_of).net_income
        if earnings != ZERO:
            sheet.equity.append(
                StatementLine(
                    account_code="",
                    account_name="Current Earnings",
                    amount=earnings,
                    category="earnings",
                )
            )
            sheet.total_equity += earnings
        difference = sheet.total_assets - (sheet.total_liabilities + sheet.total_equity)
        sheet.is_balanced = abs(difference) < self._tolerance
        return sheet

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @property
    def _tolerance(self) -> Decimal:
        return tolerance_for(self._default_currency)

    @staticmethod
    def _normal_balance(account: Account) -> str:
        return "debit" if account.type in {"asset", "expense"} else "credit"

    def _net_balance(
        self, account: Account, debit_total: Decimal, credit_total: Decimal
    ) -> Decimal:
        if self._normal_balance(account) == "debit":
            return debit_total - credit_total
        return credit_total - debit_total

    def _activity(
        self, code: str, *, start: Optional[date] = None, end: Optional[date] = None
    ) -> Tuple[Decimal, Decimal]:
        debit_total = ZERO
        credit_total = ZERO
        for entry in self._entries.values():
            if entry.status != "posted":
                continue
            if start and entry.entry_date < start:
                continue
            if end and entry.entry_date > end:
                continue
            for line in entry.lines:
                if line.account_code != code:
                    continue
                debit_total += line.debit
                credit_total += line.credit
        return debit_total, credit_total

    @staticmethod
    def _quantize(amount: Decimal, currency: str) -> Decimal:
        return quantize_amount(amount, currency)

    def _post(self, **kwargs) -> JournalEntry:
        entry = self.record_entry(**kwargs)
        return self.post_entry(entry.id)

    def _seed_demo_ledger(self) -> None:
        """Populate the ledger with sample accounts and posted entries."""

        self.seed_chart_of_accounts()

        today = date.today()
        opening_balance_date = date(today.year, self._fiscal_year_start_month, 1)
        if opening_balance_date > today:
            opening_balance_date = date(today.year - 1, self._fiscal_year_start_month, 1)

        self._post(
            description="Owner investment",
            entry_date=opening_balance_date,
            lines=[
                JournalLine(account_code="1000", debit=Decimal("60000")),
                JournalLine(account_code="3000", credit=Decimal("60000")),
            ],
            source="opening",
        )
        self._post(
            description="Equipment purchase on account",
            entry_date=opening_balance_date,
            lines=[
                JournalLine(account_code="1500", debit=Decimal("30000")),
                JournalLine(account_code="1000", credit=Decimal("22000")),
                JournalLine(account_code="2000", credit=Decimal("8000")),
            ],
            reference="PO-1001",
        )
        self._post(
            description="Product sales",
            entry_date=opening_balance_date,
            lines=[
                JournalLine(account_code="1000", debit=Decimal("35000")),
                JournalLine(account_code="1100", debit=Decimal("15000")),
                JournalLine(account_code="4000", credit=Decimal("50000")),
            ],
            reference="INV-2001",
        )
        self._post(
            description="Consulting services",
            entry_date=opening_balance_date,
            lines=[
                JournalLine(account_code="1000", debit=Decimal("15000")),
                JournalLine(account_code="4100", credit=Decimal("15000")),
            ],
            reference="INV-2002",
        )
        self._post(
            description="Monthly operating expenses",
            entry_date=opening_balance_date,
            lines=[
                JournalLine(account_code="5000", debit=Decimal("12000")),
                JournalLine(account_code="6000", debit=Decimal("5000")),
                JournalLine(account_code="6100", debit=Decimal("25000")),
                JournalLine(account_code="6200", debit=Decimal("2000")),
                JournalLine(account_code="1000", credit=Decimal("42000")),
                JournalLine(account_code="2100", credit=Decimal("2000")),
            ],
        )
