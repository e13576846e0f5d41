"""Unit tests for score explanations"""

from dataclasses import replace

import pytest

from credit_engine.domain.explainability import (
    calculate_feature_importance,
    calculate_shap_value,
    calculate_shap_values,
    extract_key_factors,
    generate_decision_path,
    generate_what_if_scenarios,
)
from credit_engine.domain.results import LoanDecision
from credit_engine.domain.scoring import ScoringEngine


def test_shap_value_midpoint_is_zero():
    assert calculate_shap_value(575, 300, 850, 0.15) == 0


def test_shap_value_degenerate_range():
    assert calculate_shap_value(5, 3, 3, 0.10) == 0


def test_shap_value_extremes():
    assert calculate_shap_value(850, 300, 850, 0.15) == pytest.approx(7.5)
    assert calculate_shap_value(0, 300, 850, 0.15) == pytest.approx(-7.5)


def test_shap_values_with_empty_history(strong_application):
    app = replace(
        strong_application,
        traditional_credit=replace(strong_application.traditional_credit, payment_history=[]),
    )
    values = calculate_shap_values(app)
    assert len(values) == 10
    assert values["payment_history"] == 0


def test_feature_importance_sums_to_one(strong_application):
    importance = calculate_feature_importance(calculate_shap_values(strong_application))
    assert sum(importance.values()) == pytest.approx(1.0)
    assert all(v >= 0 for v in importance.values())


def test_feature_importance_all_zero():
    assert calculate_feature_importance({"a": 0.0, "b": 0.0}) == {"a": 0.0, "b": 0.0}


def test_key_factors_strong_application(strong_application):
    factors = extract_key_factors(strong_application)

    assert [f.factor for f in factors.positive] == [
        "Excellent Personal Credit",
        "Perfect Payment History",
        "Strong Profitability",
        "Established Business",
        "Strong Growth Trajectory",
    ]
    assert factors.negative == []


def test_key_factors_sorted_by_impact(review_band_application):
    weak = replace(
        review_band_application,
        business_info=replace(review_band_application.business_info, years_in_business=1),
        financial_data=replace(review_band_application.financial_data, profit_margin=0.01, revenue_growth_rate=-0.2),
        traditional_credit=replace(review_band_application.traditional_credit, personal_credit_score=580),
    )
    negative = extract_key_factors(weak).negative

    impacts = [f.impact for f in negative]
    assert impacts == sorted(impacts)
    assert negative[0].factor == "Poor Personal Credit"


def test_decision_path_ends_with_outcome(strong_application):
    path = generate_decision_path(strong_application, 783.4, LoanDecision.APPROVE)
    assert len(path) == 9
    assert path[-2] == "Final credit score computed: 783/850"
    assert path[-1] == "Decision: Approved for lending"
    assert "technology" in path[5]


def test_what_if_scenarios_are_real_rescoring(review_band_application):
    engine = ScoringEngine()
    current = engine.overall_score(review_band_application)

    scenarios = generate_what_if_scenarios(review_band_application, current, engine.overall_score)

    assert 0 < len(scenarios) <= 5
    impacts = [s.score_impact for s in scenarios]
    assert impacts == sorted(impacts, reverse=True)
    assert all(i > 0 for i in impacts)

    # Re-deriving the top scenario reproduces its impact
    improve_credit = next(s for s in scenarios if s.change == "Improve personal credit score to 750+")
    modified = replace(
        review_band_application,
        traditional_credit=replace(review_band_application.traditional_credit, personal_credit_score=750),
    )
    assert improve_credit.score_impact == round(engine.overall_score(modified) - current, 1)


def test_what_if_scenarios_empty_for_strong_profile(strong_application):
    engine = ScoringEngine()
    current = engine.overall_score(strong_application)
    assert generate_what_if_scenarios(strong_application, current, engine.overall_score) == []
