"""HTML rendering for financial statements."""
from __future__ import annotations

from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ledgerdesk.config import AppSettings, get_settings
from ledgerdesk.models import BalanceSheet, IncomeStatement, TrialBalance
from ledgerdesk.validation import format_amount

Report = Union[TrialBalance, IncomeStatement, BalanceSheet]

_TEMPLATES = {
    TrialBalance: "trial_balance.html.j2",
    IncomeStatement: "income_statement.html.j2",
    BalanceSheet: "balance_sheet.html.j2",
}


def _build_environment(settings: AppSettings) -> Environment:
    loader = FileSystemLoader(str(settings.template_dir))
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml"]))
    env.filters["money"] = format_amount
    return env


def render_html(report: Report, settings: AppSettings | None = None, currency: str = "USD") -> str:
    settings = settings or get_settings()
    try:
        template_name = _TEMPLATES[type(report)]
    except KeyError as exc:
        raise TypeError(f"No template for {type(report).__name__}") from exc
    env = _build_environment(settings)
    template = env.get_template(template_name)
    return template.render(report=report, settings=settings, currency=currency)


def write_html(
    report: Report,
    output_path: Path,
    settings: AppSettings | None = None,
    currency: str = "USD",
) -> Path:
    settings = settings or get_settings()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_html(report, settings, currency=currency), encoding="utf-8")
    return output_path


__all__ = ["render_html", "write_html"]
