"""Tenant directory: one isolated ledger per onboarded organisation."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ledgerdesk.accounting import AccountingEngine
from ledgerdesk.config import AppSettings

LOGGER = logging.getLogger(__name__)

_TENANT_ID = re.compile(r"^[a-z0-9][a-z0-9-]{1,62}$")


@dataclass
class Tenant:
    id: str
    name: str
    default_currency: str = "USD"
    fiscal_year_start_month: int = 1
    created_at: datetime = field(default_factory=datetime.utcnow)


class TenantDirectory:
    """Keeps each tenant next to its accounting engine."""

    def __init__(self, settings: AppSettings) -> None:
        self._settings = settings
        self._tenants: Dict[str, Tenant] = {}
        self._engines: Dict[str, AccountingEngine] = {}

    def onboard(
        self,
        *,
        tenant_id: str,
        name: str,
        default_currency: Optional[str] = None,
        fiscal_year_start_month: Optional[int] = None,
        seed_demo_data: bool = False,
    ) -> Tenant:
        tenant_id = tenant_id.strip().lower()
        if not _TENANT_ID.match(tenant_id):
            raise ValueError(
                "Tenant id must be 2-63 lowercase letters, digits or hyphens"
            )
        if tenant_id in self._tenants:
            raise ValueError(f"Tenant '{tenant_id}' already exists")
        tenant = Tenant(
            id=tenant_id,
            name=name.strip() or tenant_id,
            default_currency=(default_currency or self._settings.default_currency).upper(),
            fiscal_year_start_month=(
                fiscal_year_start_month or self._settings.fiscal_year_start_month
            ),
        )
        engine = AccountingEngine(
            default_currency=tenant.default_currency,
            fiscal_year_start_month=tenant.fiscal_year_start_month,
            seed_demo_data=seed_demo_data,
        )
        engine.seed_chart_of_accounts()
        self._tenants[tenant_id] = tenant
        self._engines[tenant_id] = engine
        LOGGER.info("Onboarded tenant %s (%s)", tenant_id, tenant.default_currency)
        return tenant

    def get(self, tenant_id: str) -> Tenant:
        try:
            return self._tenants[tenant_id]
        except KeyError as exc:
            raise KeyError(f"Unknown tenant '{tenant_id}'") from exc

    def engine(self, tenant_id: str) -> AccountingEngine:
        self.get(tenant_id)
        return self._engines[tenant_id]

    def list(self) -> List[Tenant]:
        return list(self._tenants.values())

    def ensure_default(self) -> Tenant:
        """Create the default tenant from settings on first use."""
        tenant_id = self._settings.default_tenant_id
        if tenant_id in self._tenants:
            return self._tenants[tenant_id]
        return self.onboard(
            tenant_id=tenant_id,
            name=self._settings.app_name,
            seed_demo_data=self._settings.seed_demo_data,
        )


__all__ = ["Tenant", "TenantDirectory"]
