"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from pocket_ledger.infrastructure.database.models import Account, Category


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "pocket-ledger"}


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_duration_seconds" in response.text
    assert "currency_conversions_total" in response.text


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_get_account(client: TestClient, account: Account):
    response = client.get(f"/v1/accounts/{account.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["current_balance"] == 1000.0
    assert data["currency"] == "CAD"

    assert client.get("/v1/accounts/999").status_code == 404


def test_transaction_lifecycle(client: TestClient, account: Account, groceries: Category, household: Category):
    """Create, update and delete a transaction, checking the balance after each step"""
    response = client.post(
        "/v1/transactions",
        json={
            "account_id": account.id,
            "amount": -50.0,
            "transaction_type": "expense",
            "description": "Costco",
            "transaction_date": "2024-06-01T10:00:00",
            "splits": [
                {"category_id": groceries.id, "amount": -30.0},
                {"category_id": household.id, "amount": -20.0},
            ],
        },
    )
    assert response.status_code == 201
    created = response.json()
    assert len(created["splits"]) == 2
    assert client.get(f"/v1/accounts/{account.id}").json()["current_balance"] == pytest.approx(950.0)

    response = client.put(
        f"/v1/transactions/{created['id']}",
        json={"amount": -70.0, "splits": [{"category_id": groceries.id, "amount": -70.0}]},
    )
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]
    assert client.get(f"/v1/accounts/{account.id}").json()["current_balance"] == pytest.approx(930.0)

    assert client.delete(f"/v1/transactions/{created['id']}").status_code == 204
    assert client.get(f"/v1/accounts/{account.id}").json()["current_balance"] == pytest.approx(1000.0)
    assert client.get(f"/v1/transactions/{created['id']}").status_code == 404


def test_transaction_validation_errors(client: TestClient, account: Account, groceries: Category):
    sign_mismatch = client.post(
        "/v1/transactions",
        json={"account_id": account.id, "amount": 10.0, "transaction_type": "expense"},
    )
    assert sign_mismatch.status_code == 422

    bad_split = client.post(
        "/v1/transactions",
        json={
            "account_id": account.id,
            "amount": -50.0,
            "transaction_type": "expense",
            "splits": [{"category_id": groceries.id, "amount": -49.98}],
        },
    )
    assert bad_split.status_code == 422

    missing_account = client.post(
        "/v1/transactions",
        json={"account_id": 999, "amount": 10.0, "transaction_type": "income"},
    )
    assert missing_account.status_code == 404

    assert client.get(f"/v1/accounts/{account.id}").json()["current_balance"] == 1000.0
    assert client.delete("/v1/transactions/999").status_code == 404


def test_rates_and_conversion(client: TestClient):
    for pair in [("USD", "CAD", 1.35), ("US Dollar (USD)", "Euro (EUR)", 0.90)]:
        response = client.post(
            "/v1/rates",
            json={"from_currency": pair[0], "to_currency": pair[1], "rate": pair[2], "rate_date": "2024-06-01T00:00:00"},
        )
        assert response.status_code == 201
        assert response.json()["created"] is True

    duplicate = client.post(
        "/v1/rates",
        json={"from_currency": "usd", "to_currency": "cad", "rate": 1.40, "rate_date": "2024-06-01T00:00:00"},
    )
    assert duplicate.status_code == 200
    assert duplicate.json()["created"] is False
    assert duplicate.json()["rate"] == 1.35

    response = client.get("/v1/rates/convert", params={"amount": 100, "from_currency": "CAD", "to_currency": "EUR"})
    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "triangulated"
    assert data["path"] == ["CAD", "USD", "EUR"]
    assert data["converted_amount"] == pytest.approx(66.67, abs=0.005)

    latest = client.get("/v1/rates/latest", params={"base": "usd"}).json()
    assert latest["base_currency"] == "USD"
    assert [r["to_currency"] for r in latest["rates"]] == ["CAD", "EUR"]


def test_conversion_errors(client: TestClient):
    identity = client.get("/v1/rates/convert", params={"amount": 5, "from_currency": "JPY", "to_currency": "jpy"})
    assert identity.json()["converted_amount"] == 5.0

    no_path = client.get("/v1/rates/convert", params={"amount": 5, "from_currency": "JPY", "to_currency": "CHF"})
    assert no_path.status_code == 404

    bad_code = client.get("/v1/rates/convert", params={"amount": 5, "from_currency": "Japanese yen", "to_currency": "CHF"})
    assert bad_code.status_code == 422

    bad_rate = client.post("/v1/rates", json={"from_currency": "USD", "to_currency": "EUR", "rate": 0})
    assert bad_rate.status_code == 422


def test_recurring_flow(client: TestClient, db: Session, account: Account):
    response = client.post(
        "/v1/recurring",
        json={
            "account_id": account.id,
            "amount": -1500.0,
            "transaction_type": "expense",
            "frequency": "monthly",
            "start_date": "2024-01-31T00:00:00",
            "description": "Rent",
        },
    )
    assert response.status_code == 201
    template = response.json()
    assert template["next_occurrence"] == "2024-01-31T00:00:00"

    report = client.post("/v1/recurring/process", json={"now": "2024-02-01T00:00:00"}).json()
    assert report["processed"] == 1
    assert report["failed"] == 0
    assert len(report["created_transaction_ids"]) == 1

    paused = client.post(f"/v1/recurring/{template['id']}/pause").json()
    assert paused["is_active"] is False
    assert paused["next_occurrence"] == "2024-02-29T00:00:00"

    resumed = client.post(f"/v1/recurring/{template['id']}/resume").json()
    assert resumed["is_active"] is True

    listed = client.get("/v1/recurring", params={"account_id": account.id}).json()
    assert [t["id"] for t in listed] == [template["id"]]

    assert client.delete(f"/v1/recurring/{template['id']}").status_code == 204
    assert client.post(f"/v1/recurring/{template['id']}/pause").status_code == 404


def test_recurring_validation(client: TestClient, account: Account):
    response = client.post(
        "/v1/recurring",
        json={
            "account_id": account.id,
            "amount": 10.0,
            "transaction_type": "income",
            "frequency": "monthly",
            "start_date": "2024-02-01T00:00:00",
            "end_date": "2024-01-01T00:00:00",
        },
    )
    assert response.status_code == 422


def test_nan_transaction_amount_is_422(client: TestClient, account: Account, groceries: Category):
    """The NaN token is valid for Python's json parser but not a usable amount"""
    headers = {"Content-Type": "application/json"}
    response = client.post(
        "/v1/transactions",
        content=f'{{"account_id": {account.id}, "amount": NaN, "transaction_type": "income"}}',
        headers=headers,
    )
    assert response.status_code == 422

    nan_split = client.post(
        "/v1/transactions",
        content=(
            f'{{"account_id": {account.id}, "amount": -10.0, "transaction_type": "expense", '
            f'"splits": [{{"category_id": {groceries.id}, "amount": NaN}}]}}'
        ),
        headers=headers,
    )
    assert nan_split.status_code == 422
    assert client.get(f"/v1/accounts/{account.id}").json()["current_balance"] == 1000.0
