"""Integration tests for API endpoints"""

from dataclasses import replace

import pytest
from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient

pytestmark = pytest.mark.integration


def _payload(application) -> dict:
    return jsonable_encoder(application)


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "credit-risk-engine"}


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "credit_decision_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_credit_score_endpoint(client: TestClient, strong_application):
    response = client.post("/v1/credit-scores", json={"application": _payload(strong_application)})

    assert response.status_code == 200
    data = response.json()
    assert data["rating"] == "A"
    assert data["risk_category"] == "low"
    assert set(data["component_scores"]) == {
        "traditional_credit",
        "financial_health",
        "business_stability",
        "alternative_data",
        "industry_risk",
    }
    assert data["recommendation"]["decision"] == "approve"
    assert len(data["explainability"]["decision_path"]) == 9


def test_credit_score_missing_section_rejected(client: TestClient, strong_application):
    payload = _payload(strong_application)
    del payload["financial_data"]

    response = client.post("/v1/credit-scores", json={"application": payload})
    assert response.status_code == 422


def test_instant_decision_approve(client: TestClient, strong_application):
    response = client.post("/v1/instant-decision", json={"application": _payload(strong_application)})

    assert response.status_code == 200
    data = response.json()
    assert data["decision"] == "approve"
    assert data["approved_amount"] == 50_000
    assert data["terms"]["term"] == 60
    assert data["requires_manual_review"] is False


def test_instant_decision_prequalification_decline(client: TestClient, low_credit_application):
    response = client.post("/v1/instant-decision", json={"application": _payload(low_credit_application)})

    data = response.json()
    assert data["decision"] == "decline"
    assert "550" in data["reason"]
    assert data["score"] is None


def test_instant_decision_malformed_returns_422(client: TestClient, strong_application):
    bad = replace(strong_application, loan_request=replace(strong_application.loan_request, term=0))

    response = client.post("/v1/instant-decision", json={"application": _payload(bad)})

    assert response.status_code == 422
    assert "loan_request.term" in response.json()["detail"]


def test_batch_decisions_isolate_failures(client: TestClient, make_strong_application, make_review_band_application):
    bad = make_strong_application("bad")
    bad = replace(bad, loan_request=replace(bad.loan_request, term=0))
    applications = [make_strong_application("good"), make_review_band_application("review"), bad]

    response = client.post(
        "/v1/instant-decision/batch", json={"applications": [_payload(a) for a in applications]}
    )

    assert response.status_code == 200
    data = response.json()
    assert set(data["decisions"]) == {"good", "review"}
    assert data["decisions"]["good"]["decision"] == "approve"
    assert data["failures"][0]["applicant_id"] == "bad"
    assert data["statistics"]["failed"] == 1
    assert data["statistics"]["approval_rate"] == 0.5


def test_threshold_simulation(client: TestClient, make_strong_application, make_review_band_application):
    applications = [make_strong_application("s1"), make_review_band_application("r1")]

    response = client.post(
        "/v1/instant-decision/simulate",
        json={
            "applications": [_payload(a) for a in applications],
            "auto_approve_threshold": 650,
            "auto_decline_threshold": 500,
        },
    )

    assert response.status_code == 200
    assert response.json()["approval_rate"] == 1.0
    assert response.json()["failed"] == 0


def test_threshold_simulation_skips_malformed_application(client: TestClient, make_strong_application):
    bad = make_strong_application("bad")
    bad = replace(bad, loan_request=replace(bad.loan_request, term=0))

    response = client.post(
        "/v1/instant-decision/simulate",
        json={
            "applications": [_payload(make_strong_application("s1")), _payload(bad)],
            "auto_approve_threshold": 750,
            "auto_decline_threshold": 500,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["failed"] == 1
    assert data["total_volume"] == 2
    assert data["approval_rate"] == 1.0


def test_fraud_detection_endpoint(client: TestClient, fraud_application):
    response = client.post("/v1/fraud-detection", json={"application": _payload(fraud_application)})

    assert response.status_code == 200
    data = response.json()
    assert data["risk_score"] == 65
    assert data["recommendation"] == "reject"
    assert data["is_fraudulent"] is True


def test_credit_limit_endpoint(client: TestClient, strong_application):
    response = client.post("/v1/credit-limit", json={"application": _payload(strong_application)})

    assert response.status_code == 200
    data = response.json()
    assert data["minimum_limit"] < data["recommended_limit"] < data["maximum_limit"]
    assert data["review_period"] == 12


def test_analysis_endpoint(client: TestClient, strong_application):
    response = client.post("/v1/analysis", json={"application": _payload(strong_application)})

    assert response.status_code == 200
    data = response.json()
    assert data["application_id"] == "app_strong"
    assert data["summary"].startswith("Acme Analytics Inc")
    assert data["fraud_assessment"]["recommendation"] == "proceed"
    assert data["next_steps"]


def test_portfolio_analysis_endpoint(client: TestClient, make_strong_application, make_review_band_application):
    applications = [make_strong_application("s1"), make_review_band_application("r1")]

    response = client.post("/v1/portfolio/analyze", json={"applications": [_payload(a) for a in applications]})

    assert response.status_code == 200
    data = response.json()
    assert data["total_applications"] == 2
    assert data["portfolio_risk"]["total_exposure"] == 125_000
    assert data["portfolio_risk"]["industry_exposure"] == {"technology": 50_000, "retail": 75_000}
    assert data["failed_applications"] == []


def test_stress_test_endpoint(client: TestClient, make_strong_application, make_review_band_application):
    applications = [make_strong_application("s1"), make_review_band_application("r1")]

    response = client.post(
        "/v1/portfolio/stress-test",
        json={
            "applications": [_payload(a) for a in applications],
            "scenario": {"economic_downturn": True, "industry_collapse": "retail"},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["stressed_default_rate"] > data["baseline_default_rate"]
    assert data["affected_loans"] == 2


def test_loan_monitoring_endpoint(client: TestClient, strong_application):
    current = replace(strong_application.financial_data, revenue_growth_rate=-0.2)

    response = client.post(
        "/v1/loans/loan-42/monitor",
        json={
            "original_application": _payload(strong_application),
            "current_financials": jsonable_encoder(current),
            "current_alternative_data": jsonable_encoder(strong_application.alternative_data),
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["loan_id"] == "loan-42"
    assert data["action_required"] == "review"
    assert "Request business plan update with recovery strategy" in data["recommendations"]


def test_compare_endpoint(client: TestClient, make_strong_application, make_review_band_application):
    applications = [make_review_band_application("r1"), make_strong_application("s1")]

    response = client.post("/v1/applications/compare", json={"applications": [_payload(a) for a in applications]})

    assert response.status_code == 200
    data = response.json()
    assert data["best_candidate"] == "s1"
    assert [r["rank"] for r in data["rankings"]] == [1, 2]


def test_pricing_endpoint(client: TestClient, strong_application):
    response = client.post(
        "/v1/pricing",
        json={
            "application": _payload(strong_application),
            "market": {"base_rate": 5.0, "competitor_rates": [7.0, 8.0], "demand_level": "high"},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["competitiveness"] == "Highly Competitive"
    assert data["rate_range"]["max"] - data["rate_range"]["min"] == pytest.approx(2.0)


def test_adverse_action_notice_endpoint(client: TestClient, strong_application):
    response = client.post(
        "/v1/adverse-action-notice",
        json={"application": _payload(strong_application), "decision": "declined"},
    )

    assert response.status_code == 200
    data = response.json()
    assert "ADVERSE ACTION NOTICE" in data["notice"]
    assert len(data["rights"]) == 4


def test_fair_lending_endpoint(client: TestClient, make_strong_application, make_review_band_application):
    applications = [make_strong_application("s1"), make_review_band_application("r1")]

    response = client.post(
        "/v1/fair-lending/assessment",
        json={"applications": [_payload(a) for a in applications], "groups": {"s1": "a", "r1": "b"}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["fairness"]["approval_rates"] == {"a": 1.0, "b": 1.0}
    assert data["fairness"]["overall_passed"] is True
    assert data["bias"]["affected_groups"] == ["b"]
    assert data["ecoa"]["compliant"] is True
    assert data["compliance"]["compliant"] is False
