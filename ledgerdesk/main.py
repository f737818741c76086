"""FastAPI application exposing the journal-entry workspace."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ledgerdesk.accounting import AccountingEngine, EntryNotPostable, JournalFilters
from ledgerdesk.config import AppSettings, get_settings
from ledgerdesk.exports import export_journal_csv, export_trial_balance_csv
from ledgerdesk.schemas import (
    AccountCreate,
    AccountResponse,
    BalanceCheckRequest,
    BalanceCheckResponse,
    BalanceSheetResponse,
    EntryStatus,
    IncomeStatementResponse,
    JournalEntryCreate,
    JournalEntryResponse,
    JournalLineModel,
    TenantCreate,
    TenantResponse,
    TrialBalanceResponse,
)
from ledgerdesk.tenants import TenantDirectory
from ledgerdesk.validation import LineInput, quantize_amount

_settings = get_settings()

app = FastAPI(title=_settings.app_name, version="0.1.0")


def get_directory(settings: AppSettings = Depends(get_settings)) -> TenantDirectory:
    directory = getattr(app.state, "directory", None)
    if directory is None:
        directory = TenantDirectory(settings)
        directory.ensure_default()
        app.state.directory = directory
    return directory


def get_engine(
    x_tenant_id: Optional[str] = Header(default=None),
    directory: TenantDirectory = Depends(get_directory),
    settings: AppSettings = Depends(get_settings),
) -> AccountingEngine:
    tenant_id = x_tenant_id or settings.default_tenant_id
    try:
        return directory.engine(tenant_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown tenant '{tenant_id}'") from exc


# ----------------------------------------------------------------------
# Tenants
# ----------------------------------------------------------------------
@app.post("/api/tenants", response_model=TenantResponse, status_code=201)
def onboard_tenant(
    payload: TenantCreate,
    directory: TenantDirectory = Depends(get_directory),
) -> TenantResponse:
    try:
        tenant = directory.onboard(
            tenant_id=payload.id,
            name=payload.name,
            default_currency=payload.default_currency,
            fiscal_year_start_month=payload.fiscal_year_start_month,
            seed_demo_data=payload.seed_demo_data,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TenantResponse.model_validate(tenant)


@app.get("/api/tenants/{tenant_id}", response_model=TenantResponse)
def get_tenant(
    tenant_id: str,
    directory: TenantDirectory = Depends(get_directory),
) -> TenantResponse:
    try:
        return TenantResponse.model_validate(directory.get(tenant_id))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown tenant '{tenant_id}'") from exc


# ----------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------
@app.get("/api/accounts", response_model=List[AccountResponse])
def list_accounts(engine: AccountingEngine = Depends(get_engine)) -> List[AccountResponse]:
    return [AccountResponse.model_validate(account) for account in engine.list_accounts()]


@app.get("/api/accounts/search", response_model=List[AccountResponse])
def search_accounts(
    q: str = Query(..., min_length=1),
    limit: int = Query(default=5, ge=1, le=50),
    engine: AccountingEngine = Depends(get_engine),
) -> List[AccountResponse]:
    return [
        AccountResponse.model_validate(account)
        for account in engine.search_accounts(q, limit=limit)
    ]


@app.post("/api/accounts", response_model=AccountResponse, status_code=201)
def create_account(
    payload: AccountCreate,
    engine: AccountingEngine = Depends(get_engine),
) -> AccountResponse:
    try:
        account = engine.add_account(
            code=payload.code,
            name=payload.name,
            type=payload.type,
            currency=payload.currency,
            subtype=payload.subtype,
            description=payload.description,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AccountResponse.model_validate(account)


# ----------------------------------------------------------------------
# Journal
# ----------------------------------------------------------------------
@app.post("/api/journal/validate", response_model=BalanceCheckResponse)
def validate_journal_entry(
    payload: BalanceCheckRequest,
    engine: AccountingEngine = Depends(get_engine),
) -> BalanceCheckResponse:
    check = engine.validate_lines(_to_inputs(payload.lines), currency=payload.currency)
    rejection = check.rejection
    return BalanceCheckResponse(
        balanced=check.balanced,
        difference=check.difference,
        valid_line_count=check.valid_line_count,
        debit_total=check.debit_total,
        credit_total=check.credit_total,
        postable=check.postable,
        reasons=[reason.value for reason in check.reasons],
        message=rejection.message if rejection else None,
    )


@app.get("/api/journal", response_model=List[JournalEntryResponse])
def list_journal_entries(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    account_code: Optional[str] = None,
    source: Optional[str] = None,
    reference: Optional[str] = None,
    status: Optional[EntryStatus] = None,
    engine: AccountingEngine = Depends(get_engine),
    settings: AppSettings = Depends(get_settings),
) -> List[JournalEntryResponse]:
    filters = JournalFilters(
        date_from=date_from,
        date_to=date_to,
        account_code=account_code,
        source=source,
        reference=reference,
        status=status,
    )
    entries = engine.list_entries(filters)
    if len(entries) > settings.max_entries_returned:
        entries = entries[-settings.max_entries_returned :]
    return [JournalEntryResponse.model_validate(entry) for entry in entries]


@app.post("/api/journal", response_model=JournalEntryResponse, status_code=201)
def create_journal_entry(
    payload: JournalEntryCreate,
    engine: AccountingEngine = Depends(get_engine),
) -> JournalEntryResponse:
    try:
        entry = engine.record_entry(
            description=payload.description,
            entry_date=payload.entry_date,
            lines=_to_inputs(payload.lines),
            reference=payload.reference,
            source=payload.source,
            currency=payload.currency,
        )
    except EntryNotPostable as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "message": str(exc),
                "reason": exc.reason.value if exc.reason else None,
                "difference": str(exc.check.difference),
                "validLineCount": exc.check.valid_line_count,
            },
        ) from exc
    except (ValueError, KeyError) as exc:
        raise HTTPException(status_code=400, detail=_message(exc)) from exc
    return JournalEntryResponse.model_validate(entry)


@app.get("/api/journal/export.csv", response_class=PlainTextResponse)
def export_journal(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    engine: AccountingEngine = Depends(get_engine),
) -> PlainTextResponse:
    entries = engine.list_entries(JournalFilters(date_from=date_from, date_to=date_to))
    return PlainTextResponse(
        export_journal_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="journal-entries.csv"'},
    )


@app.get("/api/journal/{entry_id}", response_model=JournalEntryResponse)
def get_journal_entry(
    entry_id: str,
    engine: AccountingEngine = Depends(get_engine),
) -> JournalEntryResponse:
    try:
        return JournalEntryResponse.model_validate(engine.get_entry(entry_id))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=_message(exc)) from exc


@app.post("/api/journal/{entry_id}/post", response_model=JournalEntryResponse)
def post_journal_entry(
    entry_id: str,
    engine: AccountingEngine = Depends(get_engine),
) -> JournalEntryResponse:
    try:
        entry = engine.post_entry(entry_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=_message(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JournalEntryResponse.model_validate(entry)


# ----------------------------------------------------------------------
# Reports
# ----------------------------------------------------------------------
@app.get("/api/reports/trial-balance", response_model=TrialBalanceResponse)
def trial_balance(
    as_of: Optional[date] = None,
    engine: AccountingEngine = Depends(get_engine),
) -> TrialBalanceResponse:
    return TrialBalanceResponse.model_validate(
        _quantized(engine.trial_balance(as_of=as_of), engine.default_currency)
    )


@app.get("/api/reports/trial-balance.csv", response_class=PlainTextResponse)
def trial_balance_csv(
    as_of: Optional[date] = None,
    engine: AccountingEngine = Depends(get_engine),
) -> PlainTextResponse:
    return PlainTextResponse(
        export_trial_balance_csv(
            engine.trial_balance(as_of=as_of), currency=engine.default_currency
        ),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="trial-balance.csv"'},
    )


@app.get("/api/reports/income-statement", response_model=IncomeStatementResponse)
def income_statement(
    start: Optional[date] = None,
    end: Optional[date] = None,
    engine: AccountingEngine = Depends(get_engine),
) -> IncomeStatementResponse:
    return IncomeStatementResponse.model_validate(
        _quantized(engine.income_statement(start=start, end=end), engine.default_currency)
    )


@app.get("/api/reports/balance-sheet", response_model=BalanceSheetResponse)
def balance_sheet(
    as_of: Optional[date] = None,
    engine: AccountingEngine = Depends(get_engine),
) -> BalanceSheetResponse:
    return BalanceSheetResponse.model_validate(
        _quantized(engine.balance_sheet(as_of=as_of), engine.default_currency)
    )


@app.get("/")
async def index(settings: AppSettings = Depends(get_settings)) -> dict:
    return {"app": settings.app_name, "default_tenant": settings.default_tenant_id}


def _to_inputs(lines: List[JournalLineModel]) -> List[LineInput]:
    return [
        LineInput(
            account=line.account,
            debit=line.debit,
            credit=line.credit,
            currency=line.currency,
            memo=line.memo,
        )
        for line in lines
    ]


def _message(exc: Exception) -> str:
    # KeyError wraps its message in quotes when converted with str().
    return exc.args[0] if exc.args else str(exc)


def _quantized(report, currency: str):
    """Round every Decimal field of a report dataclass in place."""
    for name, value in vars(report).items():
        if isinstance(value, Decimal):
            setattr(report, name, quantize_amount(value, currency))
        elif isinstance(value, list):
            for item in value:
                _quantized(item, currency)
    return report


__all__ = ["app"]
