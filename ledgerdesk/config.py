"""Application configuration using pydantic-settings."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent


class AppSettings(BaseSettings):
    """Configuration values for the journal-entry workspace."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LEDGERDESK_",
    )

    app_name: str = Field(default="Ledgerdesk")
    default_currency: str = Field(default="USD", min_length=3, max_length=3)
    fiscal_year_start_month: int = Field(default=1, ge=1, le=12)
    seed_demo_data: bool = Field(
        default=True,
        description="Seed the default tenant with illustrative demo data.",
    )
    default_tenant_id: str = Field(default="demo")
    max_entries_returned: int = Field(default=200)
    template_dir: Path = Field(default=_PACKAGE_DIR / "rendering" / "templates")

    @field_validator("default_currency")
    @classmethod
    def _uppercase_currency(cls, value: str) -> str:
        return value.upper()


_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Return a cached instance of the application settings."""

    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


__all__ = ["AppSettings", "get_settings"]
