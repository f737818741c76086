"""Double-entry balance validation shared by every journal-entry caller."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

LOGGER = logging.getLogger(__name__)

AmountLike = Union[Decimal, int, float, str, None]

ZERO = Decimal("0")
DEFAULT_TOLERANCE = Decimal("0.01")
MIN_VALID_LINES = 2

# ISO 4217 minor units for currencies that do not use two decimals.
CURRENCY_MINOR_UNITS: Dict[str, int] = {
    "BHD": 3,
    "CLP": 0,
    "ISK": 0,
    "JOD": 3,
    "JPY": 0,
    "KRW": 0,
    "KWD": 3,
    "OMR": 3,
    "TND": 3,
    "UGX": 0,
    "VND": 0,
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


class RejectionReason(str, Enum):
    """Why a journal entry cannot be posted."""

    INSUFFICIENT_LINES = "insufficient_lines"
    UNBALANCED = "unbalanced"
    # Header fields; only drafts report this one.
    MISSING_FIELD = "missing_field"


@dataclass(frozen=True)
class LineInput:
    """One debit or credit movement as entered by the user."""

    account: str = ""
    debit: AmountLike = None
    credit: AmountLike = None
    currency: Optional[str] = None
    memo: Optional[str] = None


@dataclass(frozen=True)
class EntryRejection:
    """A human-readable explanation of why an entry is not postable."""

    reason: RejectionReason
    message: str
    difference: Decimal = ZERO


@dataclass(frozen=True)
class BalanceCheck:
    """Outcome of running the balance rule over a set of lines."""

    balanced: bool
    difference: Decimal
    valid_line_count: int
    debit_total: Decimal
    credit_total: Decimal
    tolerance: Decimal = DEFAULT_TOLERANCE
    currency: Optional[str] = None

    @property
    def has_enough_lines(self) -> bool:
        return self.valid_line_count >= MIN_VALID_LINES

    @property
    def postable(self) -> bool:
        return self.balanced and self.has_enough_lines

    @property
    def reasons(self) -> Tuple[RejectionReason, ...]:
        """Every failed condition, structural problems first."""
        reasons: List[RejectionReason] = []
        if not self.has_enough_lines:
            reasons.append(RejectionReason.INSUFFICIENT_LINES)
        if not self.balanced:
            reasons.append(RejectionReason.UNBALANCED)
        return tuple(reasons)

    @property
    def rejection(self) -> Optional[EntryRejection]:
        if self.postable:
            return None
        reason = self.reasons[0]
        return EntryRejection(
            reason=reason,
            message=_reason_message(reason, self),
            difference=self.difference,
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "balanced": self.balanced,
            "difference": self.difference,
            "validLineCount": self.valid_line_count,
            "debitTotal": self.debit_total,
            "creditTotal": self.credit_total,
        }


def parse_amount(value: AmountLike) -> Decimal:
    """Coerce user input into a ``Decimal``.

    Blanks, garbage and negative amounts count as zero; the debit and credit
    columns carry the sign of a movement.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        cleaned = str(value).replace(",", "").strip()
        if not cleaned:
            return ZERO
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            LOGGER.debug("Treating unparseable amount %r as zero", value)
            return ZERO
    if not amount.is_finite():
        LOGGER.debug("Treating non-finite amount %r as zero", value)
        return ZERO
    if amount < ZERO:
        LOGGER.debug("Treating negative amount %r as zero", value)
        return ZERO
    return amount


def minor_units(currency: Optional[str]) -> int:
    if not currency:
        return 2
    return CURRENCY_MINOR_UNITS.get(currency.upper(), 2)


def tolerance_for(currency: Optional[str]) -> Decimal:
    """Smallest representable amount in ``currency``; 0.01 when unknown."""
    if not currency:
        return DEFAULT_TOLERANCE
    return Decimal(1).scaleb(-minor_units(currency))


def quantize_amount(value: Decimal, currency: Optional[str] = None) -> Decimal:
    """Round ``value`` half-up to the minor unit of ``currency``."""
    places = minor_units(currency)
    with localcontext() as ctx:
        # Enough digits for the integer part plus the minor unit.
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_amount(value: Decimal, currency: Optional[str] = None) -> str:
    places = minor_units(currency)
    text = f"{quantize_amount(value, currency):,.{places}f}"
    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{text}"
    return f"{code} {text}"


def is_valid_line(line: LineInput) -> bool:
    """A line counts when it names an account and carries a positive amount."""
    if not (line.account or "").strip():
        return False
    return parse_amount(line.debit) > ZERO or parse_amount(line.credit) > ZERO


def check_balance(
    lines: Iterable[LineInput],
    *,
    tolerance: Optional[Decimal] = None,
    currency: Optional[str] = None,
) -> BalanceCheck:
    """Sum debits and credits over ``lines`` and compare within tolerance.

    Totals cover every line, including incomplete ones, so the running
    figures match what the user sees while editing. When neither
    ``tolerance`` nor ``currency`` is given the strictest tolerance among
    the line currencies applies.
    """
    materialized: Sequence[LineInput] = list(lines)
    debit_total = sum((parse_amount(line.debit) for line in materialized), ZERO)
    credit_total = sum((parse_amount(line.credit) for line in materialized), ZERO)
    difference = abs(debit_total - credit_total)

    if tolerance is None:
        tolerance, currency = _resolve_tolerance(materialized, currency)

    valid_line_count = sum(1 for line in materialized if is_valid_line(line))
    return BalanceCheck(
        balanced=difference < tolerance,
        difference=difference,
        valid_line_count=valid_line_count,
        debit_total=debit_total,
        credit_total=credit_total,
        tolerance=tolerance,
        currency=currency,
    )


def evaluate_entry(
    lines: Iterable[LineInput],
    *,
    tolerance: Optional[Decimal] = None,
    currency: Optional[str] = None,
) -> Optional[EntryRejection]:
    """Return ``None`` when the lines are postable, otherwise the rejection."""
    check, _ = prepare_entry(lines, tolerance=tolerance, currency=currency)
    return check.rejection


def prepare_entry(
    lines: Iterable[LineInput],
    *,
    tolerance: Optional[Decimal] = None,
    currency: Optional[str] = None,
) -> Tuple[BalanceCheck, List[LineInput]]:
    """Select the lines that would be stored and check them as stored.

    Incomplete lines are dropped and amounts are rounded to the minor unit of
    the line currency (or ``currency``). The first check covers every line as
    entered; when that passes, the kept lines are checked again so an amount
    on a dropped line, or an imbalance introduced by rounding, cannot slip
    through. The returned check is the one that failed, or the final one.
    """
    materialized: Sequence[LineInput] = list(lines)
    check = check_balance(materialized, tolerance=tolerance, currency=currency)
    kept = [
        _rounded(line, line.currency or currency)
        for line in materialized
        if is_valid_line(line)
    ]
    if check.postable:
        check = check_balance(
            kept, tolerance=check.tolerance, currency=check.currency
        )
    return check, kept


def rejection_message(check: BalanceCheck) -> Optional[str]:
    rejection = check.rejection
    return rejection.message if rejection else None


def set_debit(line: LineInput, value: AmountLike) -> LineInput:
    """Set the debit side; a positive debit clears the credit side."""
    amount = parse_amount(value)
    if amount > ZERO:
        return replace(line, debit=amount, credit=ZERO)
    return replace(line, debit=amount)


def set_credit(line: LineInput, value: AmountLike) -> LineInput:
    """Set the credit side; a positive credit clears the debit side."""
    amount = parse_amount(value)
    if amount > ZERO:
        return replace(line, credit=amount, debit=ZERO)
    return replace(line, credit=amount)


def line_from_mapping(data: Mapping[str, object]) -> LineInput:
    """Build a line from loosely shaped input such as JSON or form data."""
    account = data.get("account", data.get("accountCode", data.get("account_id", "")))
    return LineInput(
        account=str(account or ""),
        debit=data.get("debit", data.get("amountDebit")),  # type: ignore[arg-type]
        credit=data.get("credit", data.get("amountCredit")),  # type: ignore[arg-type]
        currency=data.get("currency") or None,  # type: ignore[arg-type]
        memo=data.get("memo") or None,  # type: ignore[arg-type]
    )


def _resolve_tolerance(
    lines: Sequence[LineInput], currency: Optional[str]
) -> Tuple[Decimal, Optional[str]]:
    if currency:
        return tolerance_for(currency), currency.upper()
    currencies = sorted({line.currency.upper() for line in lines if line.currency})
    if not currencies:
        return DEFAULT_TOLERANCE, None
    strictest = min(currencies, key=tolerance_for)
    return tolerance_for(strictest), strictest


def _rounded(line: LineInput, currency: Optional[str]) -> LineInput:
    return replace(
        line,
        debit=quantize_amount(parse_amount(line.debit), currency),
        credit=quantize_amount(parse_amount(line.credit), currency),
    )


def _reason_message(reason: RejectionReason, check: BalanceCheck) -> str:
    if reason is RejectionReason.INSUFFICIENT_LINES:
        return "At least two lines are required"
    return f"Unbalanced: difference {format_amount(check.difference, check.currency)}"


__all__ = [
    "AmountLike",
    "BalanceCheck",
    "DEFAULT_TOLERANCE",
    "EntryRejection",
    "LineInput",
    "MIN_VALID_LINES",
    "RejectionReason",
    "check_balance",
    "evaluate_entry",
    "format_amount",
    "is_valid_line",
    "line_from_mapping",
    "minor_units",
    "parse_amount",
    "prepare_entry",
    "quantize_amount",
    "rejection_message",
    "set_credit",
    "set_debit",
    "tolerance_for",
]
