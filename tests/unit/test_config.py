"""Unit tests for engine configuration"""

import pytest
from pydantic import ValidationError

from credit_engine.config import Settings
from credit_engine.domain.models import ComponentKind
from credit_engine.domain.scoring import ScoringEngine


def test_default_weights_sum_to_one():
    weights = Settings().component_weights

    assert set(weights) == set(ComponentKind)
    assert sum(weights.values()) == pytest.approx(1.0, abs=1e-9)
    assert weights[ComponentKind.TRADITIONAL_CREDIT] == 0.35


def test_weights_not_summing_to_one_rejected():
    with pytest.raises(ValidationError):
        Settings(weight_traditional_credit=0.50)


def test_custom_weights_flow_into_scoring(strong_application):
    settings = Settings(
        weight_traditional_credit=0.40,
        weight_financial_health=0.25,
        weight_business_stability=0.20,
        weight_alternative_data=0.10,
        weight_industry_risk=0.05,
    )
    components = ScoringEngine(settings).score_components(strong_application)
    assert components[ComponentKind.TRADITIONAL_CREDIT].weight == 0.40


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("AUTO_APPROVE_THRESHOLD", "720")
    monkeypatch.setenv("BATCH_MAX_CONCURRENCY", "4")

    settings = Settings()

    assert settings.auto_approve_threshold == 720
    assert settings.batch_max_concurrency == 4
