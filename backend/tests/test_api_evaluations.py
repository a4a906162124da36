import pytest
from fastapi.testclient import TestClient

from app.api.deps import EvaluationContext, get_evaluation_context
from app.main import app
from app.schemas.settings import CostSettings


@pytest.fixture
def client():
    app.dependency_overrides[get_evaluation_context] = lambda: EvaluationContext(
        cost_settings=CostSettings(), rate=4.0
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_quick_evaluation_with_loss(client):
    response = client.post("/v1/evaluations", json={"start_bid": 50000, "market_price_de": 15000})
    assert response.status_code == 200
    body = response.json()

    assert body["costs"]["bid_price"] == pytest.approx(12500)
    assert body["costs"]["total_cost"] == pytest.approx(20162.5)
    assert body["costs"]["profit"] == pytest.approx(-5162.5)
    assert body["costs"]["max_bid"] == 4350
    assert body["ampel"] == {"color": "red", "label": "Nicht empfohlen", "reason": "Negatives Ergebnis"}
    assert body["consensus"]["total"] == 0
    assert body["severity"] is None
    assert body["highest_risk"] is None


def test_quick_evaluation_with_reviews_and_ai_estimate(client):
    payload = {
        "start_bid": 20000,
        "market_price_de": 30000,
        "reviews": [
            {"mechanic_id": "m1", "recommendation": "green", "repair_estimate": 0, "risk": "high"},
            {"mechanic_id": "m2", "recommendation": "green", "repair_estimate": 0, "risk": "low"},
        ],
        "ai_estimated_repair_cost": 1200,
        "ai_severity_score": 8,
    }
    body = client.post("/v1/evaluations", json=payload).json()

    assert body["costs"]["repair_estimate_source"] == "ai"
    assert body["costs"]["repair_buffered"] == pytest.approx(1380)
    assert body["consensus"]["dominant"] == "green"
    assert body["severity"] == "high"
    assert body["highest_risk"] == "high"
    assert body["ampel"]["reason"] == "Hoher Schaden aber guter Profit"


def test_quick_evaluation_overrides(client):
    payload = {
        "start_bid": 45000,
        "market_price_de": 20000,
        "target_profit_pct": 20,
        "safety_deduction": 0,
        "exchange_rate": 4.5,
    }
    body = client.post("/v1/evaluations", json=payload).json()
    assert body["costs"]["bid_price"] == pytest.approx(10000)
    assert body["costs"]["target_profit"] == pytest.approx(4000)
    assert body["costs"]["exchange_rate_used"] == 4.5


def test_quick_evaluation_rejects_bad_input(client):
    assert client.post("/v1/evaluations", json={"start_bid": -1}).status_code == 422
    assert client.post("/v1/evaluations", json={"exchange_rate": 0}).status_code == 422
    assert client.post("/v1/evaluations", json={"ai_severity_score": 11}).status_code == 422


def test_convert_aed_to_eur(client):
    body = client.get("/v1/evaluations/convert", params={"amount": 400}).json()
    assert body == {"amount": 400, "source": "AED", "target": "EUR", "result": 100, "rate": 4.0}


def test_convert_eur_to_aed_with_rate(client):
    body = client.get(
        "/v1/evaluations/convert", params={"amount": 100, "source": "EUR", "rate": 4.2}
    ).json()
    assert body["target"] == "AED"
    assert body["result"] == pytest.approx(420)
    assert body["rate"] == 4.2


def test_convert_rejects_negative_amount(client):
    assert client.get("/v1/evaluations/convert", params={"amount": -5}).status_code == 422
    assert client.get("/v1/evaluations/convert", params={"amount": 5, "source": "USD"}).status_code == 422
