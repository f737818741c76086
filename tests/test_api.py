from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from ledgerdesk.main import app


@pytest.fixture()
def client() -> TestClient:
    app.state.directory = None
    return TestClient(app)


def _balanced_payload(**overrides) -> dict:
    payload = {
        "description": "Office supplies",
        "entry_date": "2024-05-02",
        "reference": "RCPT-88",
        "lines": [
            {"account": "6200", "debit": "125.50"},
            {"account": "1000", "credit": "125.50"},
        ],
    }
    payload.update(overrides)
    return payload


def test_validate_reports_balanced_entry(client: TestClient) -> None:
    resp = client.post(
        "/api/journal/validate",
        json={"lines": [{"account": "1000", "debit": 100}, {"account": "4000", "credit": 100}]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["balanced"] is True
    assert data["postable"] is True
    assert data["validLineCount"] == 2
    assert Decimal(data["difference"]) == Decimal("0")
    assert data["message"] is None


def test_validate_reports_unbalanced_entry_without_error(client: TestClient) -> None:
    resp = client.post(
        "/api/journal/validate",
        json={"lines": [{"account": "1000", "debit": 100}, {"account": "4000", "credit": 50}]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["balanced"] is False
    assert Decimal(data["difference"]) == Decimal("50")
    assert data["reasons"] == ["unbalanced"]
    assert data["message"] == "Unbalanced: difference $50.00"


def test_validate_treats_blank_amounts_as_zero(client: TestClient) -> None:
    resp = client.post(
        "/api/journal/validate",
        json={"lines": [{"account": "1000", "debit": "100"}, {"account": "4000", "credit": ""}]},
    )
    data = resp.json()
    assert data["validLineCount"] == 1
    assert data["reasons"] == ["insufficient_lines", "unbalanced"]
    assert data["message"] == "At least two lines are required"


def test_create_and_post_entry(client: TestClient) -> None:
    resp = client.post("/api/journal", json=_balanced_payload())
    assert resp.status_code == 201
    entry = resp.json()
    assert entry["status"] == "draft"
    assert Decimal(entry["total_debit"]) == Decimal("125.50")

    resp = client.post(f"/api/journal/{entry['id']}/post")
    assert resp.status_code == 200
    assert resp.json()["status"] == "posted"

    resp = client.post(f"/api/journal/{entry['id']}/post")
    assert resp.status_code == 409

    resp = client.get(f"/api/journal/{entry['id']}")
    assert resp.json()["reference"] == "RCPT-88"


def test_unbalanced_entry_is_rejected_with_reason(client: TestClient) -> None:
    payload = _balanced_payload(
        lines=[{"account": "6200", "debit": "100"}, {"account": "1000", "credit": "50"}]
    )
    resp = client.post("/api/journal", json=payload)
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["reason"] == "unbalanced"
    assert detail["message"] == "Unbalanced: difference $50.00"


def test_unknown_account_is_a_bad_request(client: TestClient) -> None:
    payload = _balanced_payload(
        lines=[{"account": "9999", "debit": "10"}, {"account": "1000", "credit": "10"}]
    )
    resp = client.post("/api/journal", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Account '9999' does not exist"


def test_negative_amounts_fail_request_validation(client: TestClient) -> None:
    payload = _balanced_payload(
        lines=[{"account": "6200", "debit": "-10"}, {"account": "1000", "credit": "-10"}]
    )
    assert client.post("/api/journal", json=payload).status_code == 422


def test_list_entries_with_filters(client: TestClient) -> None:
    client.post("/api/journal", json=_balanced_payload())
    resp = client.get("/api/journal", params={"status": "draft"})
    assert [entry["description"] for entry in resp.json()] == ["Office supplies"]

    resp = client.get("/api/journal", params={"account_code": "1500"})
    assert len(resp.json()) == 1


def test_export_csv(client: TestClient) -> None:
    resp = client.get("/api/journal/export.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.splitlines()[0].startswith("Date,Entry,Description")


def test_reports(client: TestClient) -> None:
    tb = client.get("/api/reports/trial-balance").json()
    assert tb["is_balanced"] is True
    assert Decimal(tb["total_debits"]) == Decimal(tb["total_credits"])

    pnl = client.get("/api/reports/income-statement").json()
    assert Decimal(pnl["net_income"]) == Decimal("21000.00")

    sheet = client.get("/api/reports/balance-sheet").json()
    assert sheet["is_balanced"] is True

    resp = client.get("/api/reports/trial-balance.csv")
    assert resp.text.splitlines()[-1].startswith(",Total")


def test_account_search_and_creation(client: TestClient) -> None:
    resp = client.get("/api/accounts/search", params={"q": "salaries"})
    assert resp.json()[0]["code"] == "6100"

    resp = client.post("/api/accounts", json={"code": "6300", "name": "Marketing", "type": "expense"})
    assert resp.status_code == 201
    assert resp.json()["currency"] == "USD"

    resp = client.post("/api/accounts", json={"code": "6300", "name": "Marketing", "type": "expense"})
    assert resp.status_code == 400


def test_tenant_onboarding_and_isolation(client: TestClient) -> None:
    resp = client.post("/api/tenants", json={"id": "acme", "name": "Acme", "default_currency": "EUR"})
    assert resp.status_code == 201
    assert client.get("/api/tenants/acme").json()["default_currency"] == "EUR"

    headers = {"X-Tenant-ID": "acme"}
    assert client.get("/api/journal", headers=headers).json() == []
    resp = client.post(
        "/api/journal/validate",
        headers=headers,
        json={"lines": [{"account": "1000", "debit": 10}, {"account": "4000", "credit": 4}]},
    )
    assert resp.json()["message"] == "Unbalanced: difference €6.00"

    assert client.get("/api/journal", headers={"X-Tenant-ID": "ghost"}).status_code == 404
    assert client.get("/api/tenants/ghost").status_code == 404
    assert client.post("/api/tenants", json={"id": "acme", "name": "Again"}).status_code == 400


def test_amount_on_blank_account_line_is_rejected(client: TestClient) -> None:
    lines = [
        {"account": "6200", "debit": "100"},
        {"account": "1000", "credit": "50"},
        {"account": "", "credit": "50"},
    ]
    resp = client.post("/api/journal/validate", json={"lines": lines})
    assert resp.json()["postable"] is False

    resp = client.post("/api/journal", json=_balanced_payload(lines=lines))
    assert resp.status_code == 422
    assert resp.json()["detail"]["message"] == "Unbalanced: difference $50.00"


def test_reports_round_to_tenant_currency(client: TestClient) -> None:
    client.post("/api/tenants", json={"id": "tokyo", "name": "Tokyo", "default_currency": "JPY"})
    headers = {"X-Tenant-ID": "tokyo"}
    resp = client.post(
        "/api/journal",
        headers=headers,
        json=_balanced_payload(
            lines=[{"account": "6200", "debit": "100.5"}, {"account": "1000", "credit": "100"}]
        ),
    )
    assert resp.status_code == 422

    resp = client.get("/api/reports/trial-balance.csv", headers=headers)
    assert resp.text.splitlines()[-1] == ",Total,,0,0"
