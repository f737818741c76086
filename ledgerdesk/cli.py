"""Command line interface for checking journal entries and printing reports."""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from datetime import date
from decimal import Decimal
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional

from ledgerdesk.accounting import AccountingEngine
from ledgerdesk.config import get_settings
from ledgerdesk.rendering.report import write_html
from ledgerdesk.validation import (
    line_from_mapping,
    minor_units,
    prepare_entry,
    quantize_amount,
)

LOGGER = logging.getLogger(__name__)

REPORTS = ("trial-balance", "income-statement", "balance-sheet")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ledgerdesk", description="Journal entry workspace tools")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Check whether an entry is postable")
    validate.add_argument("entry", type=Path, help="JSON file with a 'lines' array (or a bare array)")
    validate.add_argument("--currency", help="Currency whose rounding sets the tolerance")

    report = subparsers.add_parser("report", help="Print a report for the demo ledger")
    report.add_argument("name", choices=REPORTS)
    report.add_argument("--as-of", type=date.fromisoformat, help="Report date (YYYY-MM-DD)")
    report.add_argument("--html", type=Path, help="Write an HTML rendering to this path")
    return parser


def load_lines(path: Path) -> List[Dict[str, Any]]:
    document = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(document, dict):
        document = document.get("lines", [])
    if not isinstance(document, list):
        raise ValueError(f"{path} does not contain a list of lines")
    return document


def run_validate(args: argparse.Namespace) -> int:
    lines = [line_from_mapping(item) for item in load_lines(args.entry)]
    check, _ = prepare_entry(lines, currency=args.currency)
    result = check.as_dict()
    result["postable"] = check.postable
    rejection = check.rejection
    if rejection is not None:
        result["message"] = rejection.message
    default = partial(_json_default, currency=check.currency)
    print(json.dumps(result, indent=2, default=default))
    return 0 if check.postable else 1


def run_report(args: argparse.Namespace) -> int:
    settings = get_settings()
    engine = AccountingEngine(
        default_currency=settings.default_currency,
        fiscal_year_start_month=settings.fiscal_year_start_month,
        seed_demo_data=True,
    )
    if args.name == "trial-balance":
        report = engine.trial_balance(as_of=args.as_of)
    elif args.name == "income-statement":
        report = engine.income_statement(end=args.as_of)
    else:
        report = engine.balance_sheet(as_of=args.as_of)

    if args.html:
        path = write_html(report, args.html, settings=settings, currency=engine.default_currency)
        LOGGER.info("Report written to %s", path)
    else:
        print(
            json.dumps(
                asdict(report),
                indent=2,
                default=partial(_json_default, currency=engine.default_currency),
            )
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    if args.command == "validate":
        return run_validate(args)
    return run_report(args)


def _json_default(value: Any, currency: Optional[str] = None) -> str:
    if isinstance(value, Decimal):
        return f"{quantize_amount(value, currency):.{minor_units(currency)}f}"
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Cannot serialise {type(value).__name__}")


if __name__ == "__main__":
    raise SystemExit(main())
