"""Integration tests for API endpoints"""

import pytest
from unittest.mock import patch
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from fincognia_gateway.api.dependencies import get_semantic_parser_client
from fincognia_gateway.domain.exceptions import SemanticParserError
from fincognia_gateway.domain.models import SemanticHint, Transaction
from fincognia_gateway.infrastructure.database.repositories import TransactionRepository
from fincognia_gateway.utils.date_utils import to_epoch_millis


@pytest.fixture
def stored_history(db: Session, sample_transactions: list[Transaction]) -> list[Transaction]:
    repo = TransactionRepository(db)
    for transaction in sample_transactions:
        repo.create_transaction(transaction)
    db.commit()
    return sample_transactions


@pytest.fixture
def netflix_history(db: Session, make_txn) -> None:
    """Four NETFLIX charges 30 days apart, the latest 10 days ago so the next one is still ahead"""
    today = datetime.now().replace(hour=10, minute=0, second=0, microsecond=0)
    repo = TransactionRepository(db)
    for k in range(4):
        when = today - timedelta(days=10 + 30 * k)
        repo.create_transaction(make_txn(when, -649.0, "NETFLIX", category="entertainment"))
    db.commit()


def ingest_payload():
    return {
        "messages": [
            {"id": "m1", "sender": "VK-HDFCBK", "body": "Rs.500 debited from your account for purchase at AMAZON", "received_at": 1_700_000_000_000},
            {"id": "m2", "sender": "AX-SBIINB", "body": "You have received Rs. 2,500 from JOHN DOE", "received_at": 1_700_000_100_000},
            {"id": "m3", "sender": "+919800000000", "body": "See you at 7?", "received_at": 1_700_000_200_000},
        ]
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fincognia_ingested_messages_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/v1/transactions"),
        ("get", "/v1/forecast"),
        ("get", "/v1/buffer"),
        ("get", "/v1/events"),
        ("get", "/v1/money-weather"),
        ("post", "/v1/subscriptions/detect"),
    ],
)
def test_missing_user_is_unauthorized(client: TestClient, method: str, path: str):
    response = getattr(client, method)(path)
    assert response.status_code == 401
    assert response.json()["detail"] == "User not authenticated"


def test_ingest_regex_only(client: TestClient, auth_headers: dict):
    client.app.dependency_overrides[get_semantic_parser_client] = lambda: None

    response = client.post("/v1/ingest", json=ingest_payload(), headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["candidates"] == 2
    assert data["saved"] == 2
    assert data["errors"] == 0

    transactions = client.get("/v1/transactions", headers=auth_headers).json()["transactions"]
    assert [t["amount"] for t in transactions] == [2500.0, -500.0]
    assert transactions[1]["merchant"] == "AMAZON"
    assert all(t["raw_message_id"] for t in transactions)


@patch("fincognia_gateway.infrastructure.clients.semantic_parser.SemanticParserClient.parse_batch")
def test_ingest_with_semantic_hints(mock_parse, client: TestClient, auth_headers: dict):
    mock_parse.return_value = {"m1": SemanticHint(id="m1", should_skip=True)}

    data = client.post("/v1/ingest", json=ingest_payload(), headers=auth_headers).json()

    assert data["hints_received"] == 1
    assert data["skipped_by_llm"] == 1
    assert data["saved"] == 1


@patch("fincognia_gateway.infrastructure.clients.semantic_parser.SemanticParserClient.parse_batch")
def test_ingest_survives_parser_outage(mock_parse, client: TestClient, auth_headers: dict):
    mock_parse.side_effect = SemanticParserError("Semantic parser timeout after 10.0s")

    response = client.post("/v1/ingest", json=ingest_payload(), headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["saved"] == 2


def test_manual_transaction_lifecycle(client: TestClient, auth_headers: dict):
    response = client.post(
        "/v1/transactions",
        json={"amount": 120.5, "type": "debit", "merchant": "Uber", "timestamp": 1_700_000_000_000},
        headers=auth_headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["amount"] == -120.5
    assert created["source"] == "manual"
    assert created["category"] == "transport"

    response = client.patch(
        f"/v1/transactions/{created['id']}",
        json={"category": "travel", "is_recurring": True},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["category"] == "travel"
    assert response.json()["is_recurring"] is True


def test_manual_transaction_validation(client: TestClient, auth_headers: dict):
    response = client.post("/v1/transactions", json={"amount": -5, "type": "debit"}, headers=auth_headers)
    assert response.status_code == 422


def test_manual_transaction_save_failure(client: TestClient, auth_headers: dict):
    with patch.object(TransactionRepository, "create_transaction", side_effect=RuntimeError("db down")):
        response = client.post("/v1/transactions", json={"amount": 10, "type": "credit"}, headers=auth_headers)

    assert response.status_code == 500
    assert "try again" in response.json()["detail"]


def test_other_users_transaction_is_not_found(client: TestClient, auth_headers: dict):
    created = client.post("/v1/transactions", json={"amount": 10, "type": "credit"}, headers=auth_headers).json()

    response = client.patch(
        f"/v1/transactions/{created['id']}",
        json={"category": "gift"},
        headers={"X-User-ID": "someone_else"},
    )
    assert response.status_code == 404

    response = client.patch("/v1/transactions/not-a-uuid", json={"category": "gift"}, headers=auth_headers)
    assert response.status_code == 404


def test_forecast_endpoint(client: TestClient, auth_headers: dict, stored_history):
    response = client.get("/v1/forecast", params={"period": "7d"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["period"] == "7d"
    assert len(data["points"]) == 7
    assert data["risk_level"] in ("low", "medium", "high")
    # net position of the stored history
    assert data["points"][0]["predicted_balance"] == 75000.0


def test_forecast_rejects_unknown_period(client: TestClient, auth_headers: dict):
    response = client.get("/v1/forecast", params={"period": "14d"}, headers=auth_headers)
    assert response.status_code == 422


def test_forecast_for_empty_history(client: TestClient, auth_headers: dict):
    data = client.get("/v1/forecast", headers=auth_headers).json()

    assert len(data["points"]) == 30
    assert all(p["confidence"] == 0.1 for p in data["points"])
    assert data["risk_level"] == "low"
    assert data["zero_date"] == data["points"][0]["date"]


def test_simulate_endpoint(client: TestClient, auth_headers: dict):
    response = client.post("/v1/forecast/simulate", json={"daily_spend": 100, "days": 5}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["daily_spend"] == 100
    assert data["projected_balance"] == [-100.0, -200.0, -300.0, -400.0, -500.0]
    assert data["days_until_zero"] == 0


def test_subscription_detection_is_idempotent(client: TestClient, auth_headers: dict, netflix_history):
    first = client.post("/v1/subscriptions/detect", headers=auth_headers).json()
    second = client.post("/v1/subscriptions/detect", headers=auth_headers).json()

    assert [s["merchant"] for s in first["subscriptions"]] == ["NETFLIX"]
    assert first["subscriptions"][0]["frequency"] == "monthly"
    assert first["monthly_cost"] == pytest.approx(649.0)
    assert second["subscriptions"] == first["subscriptions"]

    transactions = client.get("/v1/transactions", headers=auth_headers).json()["transactions"]
    assert all(t["is_recurring"] for t in transactions)


def test_subscription_status_update(client: TestClient, auth_headers: dict):
    created = client.post(
        "/v1/subscriptions",
        json={"merchant": "Spotify", "amount": 119, "frequency": "monthly", "last_payment": to_epoch_millis(datetime(2024, 1, 31, 9))},
        headers=auth_headers,
    )
    assert created.status_code == 201
    subscription = created.json()
    assert subscription["next_payment"] == to_epoch_millis(datetime(2024, 2, 29, 9))

    duplicate = client.post(
        "/v1/subscriptions",
        json={"merchant": "Spotify", "amount": 119, "frequency": "monthly", "last_payment": 0},
        headers=auth_headers,
    )
    assert duplicate.status_code == 409

    response = client.patch(f"/v1/subscriptions/{subscription['id']}", json={"status": "cancelled"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    listing = client.get("/v1/subscriptions", headers=auth_headers).json()
    assert listing["monthly_cost"] == 0.0


def test_buffer_overrides(client: TestClient, auth_headers: dict, stored_history):
    response = client.put(
        "/v1/buffer",
        json={"custom_buffer_target": 100000, "custom_current_buffer": 25000},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["recommended_buffer"] == 100000
    assert data["current_buffer"] == 25000
    assert data["progress"] == pytest.approx(0.25)

    assert client.put("/v1/buffer", json={"custom_current_buffer": -1}, headers=auth_headers).status_code == 422


def test_events_lifecycle(client: TestClient, auth_headers: dict):
    future = to_epoch_millis(datetime.now() + timedelta(days=3))
    past = to_epoch_millis(datetime.now() - timedelta(days=3))

    created = client.post(
        "/v1/events",
        json={"type": "festival", "date": future, "amount": -5000, "description": "Diwali shopping"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    client.post(
        "/v1/events",
        json={"type": "one-time", "date": past, "amount": -100, "description": "Old"},
        headers=auth_headers,
    )

    events = client.get("/v1/events", headers=auth_headers).json()["events"]
    assert [e["description"] for e in events] == ["Diwali shopping"]

    event_id = created.json()["id"]
    assert client.delete(f"/v1/events/{event_id}", headers=auth_headers).status_code == 204
    assert client.delete(f"/v1/events/{event_id}", headers=auth_headers).status_code == 404


def test_detected_monthly_bill_appears_in_events(client: TestClient, auth_headers: dict, netflix_history):
    events = client.get("/v1/events", headers=auth_headers).json()["events"]

    assert [e["type"] for e in events] == ["bill"]
    assert events[0]["merchant"] == "NETFLIX"
    assert events[0]["amount"] == -649.0


def test_money_weather_snapshot(client: TestClient, auth_headers: dict, netflix_history):
    client.post("/v1/subscriptions/detect", headers=auth_headers)

    response = client.get("/v1/money-weather", params={"period": "7d"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data["forecast"]["points"]) == 7
    assert [s["merchant"] for s in data["subscriptions"]] == ["NETFLIX"]
    assert data["monthly_subscription_cost"] == pytest.approx(649.0)
    assert data["buffer"]["current_buffer"] == -4 * 649.0
    assert data["events"][0]["merchant"] == "NETFLIX"
