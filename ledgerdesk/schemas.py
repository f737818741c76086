"""Pydantic schemas for the journal-entry API."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

AccountType = Literal["asset", "liability", "equity", "income", "expense"]
EntryStatus = Literal["draft", "posted"]


class TenantCreate(BaseModel):
    id: str = Field(..., min_length=2, max_length=63)
    name: str
    default_currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    fiscal_year_start_month: Optional[int] = Field(default=None, ge=1, le=12)
    seed_demo_data: bool = False


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    default_currency: str
    fiscal_year_start_month: int
    created_at: datetime


class AccountBase(BaseModel):
    code: str = Field(..., description="Unique account code, e.g. 1000")
    name: str
    type: AccountType
    currency: Optional[str] = Field(default=None, max_length=3)
    subtype: Optional[str] = None
    description: Optional[str] = None


class AccountCreate(AccountBase):
    pass


class AccountResponse(AccountBase):
    model_config = ConfigDict(from_attributes=True)


class JournalLineModel(BaseModel):
    """A line as typed by the user; blanks are allowed and count as zero."""

    account: str = ""
    debit: Optional[Decimal] = Field(default=None, ge=0)
    credit: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, max_length=3)
    memo: Optional[str] = None

    @field_validator("debit", "credit", mode="before")
    @classmethod
    def _blank_amount(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BalanceCheckRequest(BaseModel):
    lines: List[JournalLineModel]
    currency: Optional[str] = Field(default=None, max_length=3)


class BalanceCheckResponse(BaseModel):
    balanced: bool
    difference: Decimal
    valid_line_count: int = Field(serialization_alias="validLineCount")
    debit_total: Decimal
    credit_total: Decimal
    postable: bool
    reasons: List[str]
    message: Optional[str] = None


class JournalEntryCreate(BaseModel):
    description: str = Field(..., min_length=1)
    entry_date: date
    lines: List[JournalLineModel]
    reference: Optional[str] = None
    source: str = "manual"
    currency: Optional[str] = Field(default=None, max_length=3)


class JournalLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_code: str
    debit: Decimal
    credit: Decimal
    currency: str
    memo: Optional[str] = None


class JournalEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    entry_number: str
    description: str
    entry_date: date
    lines: List[JournalLineResponse]
    currency: str
    reference: Optional[str] = None
    source: str
    status: EntryStatus
    total_debit: Decimal
    total_credit: Decimal
    created_at: datetime
    posted_at: Optional[datetime] = None


class TrialBalanceRowModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_code: str
    account_name: str
    account_type: str
    debit_balance: Decimal
    credit_balance: Decimal
    net_balance: Decimal


class TrialBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    as_of: Optional[date] = None
    rows: List[TrialBalanceRowModel]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool


class StatementLineModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_code: str
    account_name: str
    amount: Decimal
    category: Optional[str] = None


class IncomeStatementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: Optional[date] = None
    end: Optional[date] = None
    revenue: List[StatementLineModel]
    expenses: List[StatementLineModel]
    total_revenue: Decimal
    total_expenses: Decimal
    gross_profit: Decimal
    net_income: Decimal


class BalanceSheetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    as_of: Optional[date] = None
    assets: List[StatementLineModel]
    liabilities: List[StatementLineModel]
    equity: List[StatementLineModel]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    is_balanced: bool
