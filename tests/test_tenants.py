import pytest

from ledgerdesk.config import AppSettings
from ledgerdesk.tenants import TenantDirectory


@pytest.fixture()
def directory() -> TenantDirectory:
    return TenantDirectory(AppSettings(seed_demo_data=False, default_currency="eur"))


def test_onboarding_seeds_chart_of_accounts(directory: TenantDirectory) -> None:
    tenant = directory.onboard(tenant_id="Acme-Ltd", name="Acme Ltd")
    assert tenant.id == "acme-ltd"
    assert tenant.default_currency == "EUR"
    engine = directory.engine("acme-ltd")
    assert engine.get_account("1000").name == "Cash"
    assert engine.list_entries() == []


def test_tenants_have_isolated_ledgers(directory: TenantDirectory) -> None:
    directory.onboard(tenant_id="north", name="North")
    directory.onboard(tenant_id="south", name="South", default_currency="jpy")
    directory.engine("north").add_account(code="7000", name="Travel", type="expense")
    with pytest.raises(KeyError):
        directory.engine("south").get_account("7000")
    assert directory.engine("south").default_currency == "JPY"


def test_duplicate_and_invalid_ids_are_rejected(directory: TenantDirectory) -> None:
    directory.onboard(tenant_id="acme", name="Acme")
    with pytest.raises(ValueError):
        directory.onboard(tenant_id="acme", name="Again")
    with pytest.raises(ValueError):
        directory.onboard(tenant_id="no spaces", name="Bad")


def test_unknown_tenant_raises_key_error(directory: TenantDirectory) -> None:
    with pytest.raises(KeyError):
        directory.engine("ghost")


def test_ensure_default_is_idempotent(directory: TenantDirectory) -> None:
    first = directory.ensure_default()
    second = directory.ensure_default()
    assert first is second
    assert first.id == "demo"
    assert [tenant.id for tenant in directory.list()] == ["demo"]
