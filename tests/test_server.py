import pytest
from fastapi.testclient import TestClient

from app.storage import MemoryStorage
from conftest import FailingStorage, FakePriceClient, make_payload
from web.server import create_app


def _client(app_config, storage=None, price_client=None, logger=None):
    app = create_app(
        config=app_config,
        storage=storage or MemoryStorage(),
        price_client=price_client or FakePriceClient(50000.0),
        logger=logger,
    )
    return TestClient(app)


@pytest.fixture
def client(app_config, test_logger):
    with _client(app_config, logger=test_logger) as test_client:
        yield test_client


def test_webhook_buy(client):
    response = client.post("/api/webhook", json=make_payload())
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Signal processed successfully"
    assert body["action"] == "BUY"
    assert "+DI (30.00) > threshold (25)" in body["explanation"]
    order = body["order"]
    assert order["takeProfitPrice"] == 51000.0
    assert order["stopLossPrice"] == 49500.0
    assert order["entryPrice"] == 50000.0
    assert order["leverage"] == "10x"
    assert order["timeframe"] == "5m"
    assert order["status"] == "ACTIVE"
    assert order["id"].startswith("order_")
    assert order["createdAt"].endswith("+00:00")
    assert "entry_price" not in order

    orders = client.get("/api/orders").json()
    assert [o["id"] for o in orders] == [order["id"]]


def test_webhook_missing_adx_creates_nothing(client):
    payload = make_payload()
    del payload["adx"]
    response = client.post("/api/webhook", json=payload)
    assert response.status_code == 400
    assert response.json() == {
        "error": "Missing required signal parameters",
        "required": ["symbol", "plusDI", "minusDI", "adx", "timeframe"],
    }
    assert client.get("/api/orders").json() == []


def test_webhook_invalid_json_is_malformed(client):
    response = client.post("/api/webhook", content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required signal parameters"


def test_webhook_invalid_signal(client):
    response = client.post("/api/webhook", json=make_payload(plusDI=25, minusDI=20, adx=20))
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid signal"
    assert "does not meet buy or sell criteria" in body["message"].lower()
    assert client.get("/api/orders").json() == []


def test_webhook_price_unavailable(app_config, test_logger):
    failing = FakePriceClient(error=RuntimeError("URLError: offline"))
    with _client(app_config, price_client=failing, logger=test_logger) as test_client:
        response = test_client.post("/api/webhook", json=make_payload())
        assert response.status_code == 503
        assert response.json()["error"] == "Reference price unavailable"
        assert test_client.get("/api/orders").json() == []


def test_webhook_persistence_failure(app_config, test_logger):
    with _client(app_config, storage=FailingStorage(), logger=test_logger) as test_client:
        response = test_client.post("/api/webhook", json=make_payload())
        assert response.status_code == 500
        assert response.json() == {"error": "Error processing webhook"}


def test_config_get_update_reset(client):
    assert client.get("/api/config").json()["plusDIThreshold"] == 25

    response = client.post("/api/config", json={"plusDIThreshold": 30, "leverage": 5})
    assert response.status_code == 200
    body = response.json()
    assert body["plusDIThreshold"] == 30
    assert body["leverage"] == 5
    assert body["minusDIThreshold"] == 20

    reset = client.post("/api/config/reset")
    assert reset.status_code == 200
    assert reset.json()["message"] == "Configuration reset to defaults"
    assert reset.json()["config"]["plusDIThreshold"] == 25
    assert client.get("/api/config").json()["leverage"] == 10


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"leverage": 126}, "Leverage must be between 1 and 125"),
        ({"leverage": 0}, "Leverage must be between 1 and 125"),
        ({"takeProfitPercentage": 0}, "Take Profit and Stop Loss must be positive values"),
        ({"stopLossPercentage": -1}, "Take Profit and Stop Loss must be positive values"),
    ],
)
def test_config_update_validation(client, changes, message):
    response = client.post("/api/config", json=changes)
    assert response.status_code == 400
    assert response.json() == {"error": message}
    assert client.get("/api/config").json()["leverage"] == 10


def test_config_update_rejects_bad_types(client):
    response = client.post("/api/config", json={"adxMinimum": "strong"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid configuration"


def test_updated_config_applies_to_next_signal(client):
    client.post("/api/config", json={"adxMinimum": 30})
    response = client.post("/api/webhook", json=make_payload())
    assert response.json()["action"] == "SELL"


def test_orders_reset(client):
    client.post("/api/webhook", json=make_payload())
    client.post("/api/webhook", json=make_payload(plusDI=10, minusDI=10, adx=10))
    assert len(client.get("/api/orders").json()) == 2
    assert len(client.get("/api/orders", params={"limit": 1}).json()) == 1

    response = client.post("/api/orders/reset")
    assert response.json() == {"message": "All orders have been cleared", "orders": []}
    assert client.get("/api/orders").json() == []


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "OK"
    assert body["storage"] == "OK"
    assert body["price_api"] == "OK"
    assert "timestamp" in body


def test_dashboard_renders(client):
    client.post("/api/webhook", json=make_payload())
    response = client.get("/")
    assert response.status_code == 200
    assert "DMI Signal Bot" in response.text
    assert "51000.00" in response.text
