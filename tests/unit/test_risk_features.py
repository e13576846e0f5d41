"""Unit tests for fraud screening, limits, portfolio risk, monitoring, pricing and notices"""

from dataclasses import replace
from datetime import date

import pytest

from credit_engine.domain.compliance import APPLICANT_RIGHTS, generate_adverse_action_notice
from credit_engine.domain.credit_limit import calculate_optimal_credit_limit
from credit_engine.domain.fraud import detect_fraud
from credit_engine.domain.models import AlternativeData, BankingBehavior, CustomerBehavior, Industry
from credit_engine.domain.monitoring import generate_early_warnings, severity_for
from credit_engine.domain.portfolio import analyze_portfolio_risk, expected_loss, perform_stress_test
from credit_engine.domain.pricing import optimize_loan_pricing
from credit_engine.domain.results import (
    DemandLevel,
    FraudRecommendation,
    MarketConditions,
    ScoredApplication,
    Severity,
    StressScenario,
)
from credit_engine.domain.scoring import ScoringEngine


class FixedRiskModel:
    """Risk model stub returning a constant probability of default"""

    def __init__(self, probability: float):
        self.probability = probability

    def predict_default_probability(self, application) -> float:
        return self.probability


@pytest.fixture
def scored_portfolio(make_strong_application, make_review_band_application):
    engine = ScoringEngine(risk_model=FixedRiskModel(0.10))
    applications = [
        make_strong_application("tech_1"),
        make_strong_application("tech_2"),
        make_review_band_application("retail_1"),
    ]
    return [ScoredApplication(application=a, score=engine.score(a)) for a in applications]


# ===========================
# FRAUD
# ===========================


def test_fraud_clean_application(strong_application):
    assessment = detect_fraud(strong_application)

    # Only the round revenue and net income
    assert assessment.risk_score == 10
    assert assessment.flags == ["Suspiciously round financial figures"]
    assert assessment.recommendation == FraudRecommendation.PROCEED
    assert not assessment.is_fraudulent


def test_fraud_multiple_flags_reject(fraud_application):
    assessment = detect_fraud(fraud_application)

    # 20 headcount + 10 inquiries + 25 business age + 10 round figures
    assert assessment.risk_score == 65
    assert len(assessment.flags) == 4
    assert assessment.recommendation == FraudRecommendation.REJECT
    assert assessment.is_fraudulent


def test_fraud_investigate_band(strong_application):
    credit = replace(strong_application.traditional_credit, oldest_account_age=60, inquiries=12)
    assessment = detect_fraud(replace(strong_application, traditional_credit=credit))

    assert assessment.risk_score == 45
    assert assessment.recommendation == FraudRecommendation.INVESTIGATE
    assert not assessment.is_fraudulent


def test_fraud_every_heuristic_fires(fraud_application):
    banking = BankingBehavior(deposit_frequency=80, cash_flow_volatility=0.9)
    financials = replace(fraud_application.financial_data, profit_margin=0.5)
    app = replace(
        fraud_application,
        financial_data=financials,
        alternative_data=replace(fraud_application.alternative_data, banking_behavior=banking),
    )
    assessment = detect_fraud(app)
    assert assessment.risk_score == 95
    assert len(assessment.flags) == 6


# ===========================
# CREDIT LIMIT
# ===========================


def test_credit_limit_strong_profile(strong_application):
    score = ScoringEngine().score(strong_application)
    limit = calculate_optimal_credit_limit(strong_application, score)

    assert limit.minimum_limit < limit.recommended_limit < limit.maximum_limit
    assert abs(limit.minimum_limit - limit.recommended_limit * 0.7) <= 2
    assert abs(limit.maximum_limit - limit.recommended_limit * 1.3) <= 2
    assert limit.review_period == 12
    assert "Strong cash reserves support higher limit" in limit.reasoning


def test_credit_limit_review_period_for_lower_rating(review_band_application):
    score = ScoringEngine().score(review_band_application)
    limit = calculate_optimal_credit_limit(review_band_application, score)
    assert limit.review_period == 6


def test_credit_limit_multipliers_compound(strong_application):
    """Two months of revenue, scaled by score then 1.2 x 1.1 x 1.1"""
    score = ScoringEngine().score(strong_application)
    limit = calculate_optimal_credit_limit(strong_application, score)

    base = strong_application.financial_data.monthly_revenue * 2
    expected = base * (0.5 + (score.overall_score - 300) / 550 * 0.5)
    expected *= 1.2
    expected *= 1.1
    expected *= 1.1
    assert limit.recommended_limit == round(expected)


# ===========================
# PORTFOLIO
# ===========================


def test_expected_loss_exact(scored_portfolio):
    analysis = analyze_portfolio_risk(scored_portfolio)
    expected = sum(loan.amount * loan.default_probability * 0.45 for loan in scored_portfolio)

    assert analysis.expected_loss == expected
    assert expected_loss(scored_portfolio) == expected


def test_portfolio_exposure_and_concentration(scored_portfolio):
    analysis = analyze_portfolio_risk(scored_portfolio)

    assert analysis.total_exposure == 175_000
    assert analysis.industry_exposure == {"technology": 100_000, "retail": 75_000}
    assert analysis.concentration_risk == pytest.approx(100_000 / 175_000)
    assert analysis.portfolio_default_probability == pytest.approx(0.10)
    assert analysis.expected_loss_rate == pytest.approx(0.045)
    assert analysis.risk_rating == "High Risk"
    assert "Reduce exposure to technology sector" in analysis.recommendations


def test_portfolio_empty():
    analysis = analyze_portfolio_risk([])

    assert analysis.total_exposure == 0
    assert analysis.expected_loss == 0
    assert analysis.concentration_risk == 0
    assert analysis.industry_exposure == {}


def test_stress_test_downturn(scored_portfolio):
    result = perform_stress_test(scored_portfolio, StressScenario(economic_downturn=True))

    assert result.baseline_default_rate == pytest.approx(0.10)
    assert result.stressed_default_rate == pytest.approx(0.15)
    assert result.additional_losses == pytest.approx(175_000 * 0.05 * 0.45)
    assert result.affected_loans == 3


def test_stress_test_combined_shocks(scored_portfolio):
    result = perform_stress_test(
        scored_portfolio, StressScenario(economic_downturn=True, interest_rate_shock=True)
    )
    assert result.stressed_default_rate == pytest.approx(0.10 * 1.5 * 1.3)


def test_stress_test_industry_collapse(scored_portfolio):
    result = perform_stress_test(scored_portfolio, StressScenario(industry_collapse=Industry.RETAIL))

    assert result.stressed_default_rate == pytest.approx(0.10 + 0.10 / 3)
    assert result.affected_loans == 1


def test_stress_test_capped_at_one(make_strong_application):
    engine = ScoringEngine(risk_model=FixedRiskModel(0.9))
    app = make_strong_application("risky")
    loans = [ScoredApplication(application=app, score=engine.score(app))]

    result = perform_stress_test(loans, StressScenario(economic_downturn=True, interest_rate_shock=True))
    assert result.stressed_default_rate == 1.0


def test_stress_test_empty_portfolio():
    result = perform_stress_test([], StressScenario(economic_downturn=True))
    assert (result.baseline_default_rate, result.stressed_default_rate, result.affected_loans) == (0, 0, 0)


# ===========================
# EARLY WARNINGS
# ===========================


def test_early_warnings_healthy(strong_application):
    report = generate_early_warnings(strong_application.financial_data, strong_application.alternative_data)

    assert report.warnings == []
    assert report.severity == Severity.LOW
    assert report.recommended_action == "Continue standard monitoring procedures"


def test_early_warnings_critical(strong_application):
    financials = replace(
        strong_application.financial_data, revenue_growth_rate=-0.2, profit_margin=0.02, cash_reserves=10_000
    )
    alt = AlternativeData(banking_behavior=BankingBehavior(overdrafts=5))

    report = generate_early_warnings(financials, alt)

    # 3 revenue + 2 margin + 4 runway + 2 overdrafts
    assert len(report.warnings) == 4
    assert report.severity == Severity.CRITICAL
    assert report.recommended_action.startswith("URGENT")


def test_early_warnings_zero_expenses_means_no_runway(strong_application):
    financials = replace(strong_application.financial_data, monthly_expenses=0)
    report = generate_early_warnings(financials, strong_application.alternative_data)
    assert "Cash reserves critically low - less than 2 months runway" in report.warnings


def test_early_warnings_churn(strong_application):
    alt = AlternativeData(customer_behavior=CustomerBehavior(churn_rate=0.4))
    report = generate_early_warnings(strong_application.financial_data, alt)
    assert report.warnings == ["High customer churn rate above 30%"]
    assert report.severity == Severity.LOW


@pytest.mark.parametrize(
    "points,expected",
    [(0, Severity.LOW), (3, Severity.MEDIUM), (5, Severity.HIGH), (8, Severity.CRITICAL)],
)
def test_severity_thresholds(points, expected):
    assert severity_for(points) == expected


# ===========================
# PRICING
# ===========================


def test_pricing_against_competitors(strong_application):
    score = ScoringEngine().score(strong_application)
    pricing = optimize_loan_pricing(strong_application, score, MarketConditions(base_rate=5.0, competitor_rates=[7.0, 8.0]))

    expected_rate = 5.0 + score.default_probability * 10 + (850 - score.overall_score) / 850 * 3
    assert pricing.optimal_rate == round(expected_rate, 2)
    assert pricing.rate_range.min == round(expected_rate - 1, 2)
    assert pricing.rate_range.max == round(expected_rate + 1, 2)
    assert pricing.competitiveness == "Highly Competitive"
    assert pricing.expected_return > 0


def test_pricing_without_competitors_uses_base_rate(strong_application):
    score = ScoringEngine().score(strong_application)
    pricing = optimize_loan_pricing(strong_application, score, MarketConditions(base_rate=5.0))

    assert pricing.competitiveness == "Premium Pricing"
    assert "market average of 5.00%" in pricing.reasoning


def test_pricing_demand_adjustment(strong_application):
    score = ScoringEngine().score(strong_application)
    medium = optimize_loan_pricing(strong_application, score, MarketConditions(base_rate=5.0))
    high = optimize_loan_pricing(
        strong_application, score, MarketConditions(base_rate=5.0, demand_level=DemandLevel.HIGH)
    )
    assert high.optimal_rate - medium.optimal_rate == pytest.approx(0.5, abs=0.011)


# ===========================
# ADVERSE ACTION NOTICE
# ===========================


def test_adverse_action_notice_top_four_reasons(review_band_application):
    weak = replace(
        review_band_application,
        business_info=replace(review_band_application.business_info, years_in_business=1.5),
        financial_data=replace(
            review_band_application.financial_data,
            profit_margin=0.02,
            revenue_growth_rate=-0.1,
            cash_reserves=23_000,
        ),
        traditional_credit=replace(review_band_application.traditional_credit, personal_credit_score=580),
    )
    score = ScoringEngine().score(weak)

    notice = generate_adverse_action_notice(weak, score, "declined", notice_date=date(2024, 3, 1))

    assert notice.reasons == [
        "Poor Personal Credit",
        "Low Profitability",
        "Declining Revenue",
        "Limited Cash Reserves",
    ]
    assert notice.rights == APPLICANT_RIGHTS
    assert "Date: 2024-03-01" in notice.notice
    assert "To: Corner Goods LLC" in notice.notice
    assert "has been declined" in notice.notice
    assert "1. Poor Personal Credit" in notice.notice


def test_adverse_action_notice_without_negative_factors(strong_application):
    score = ScoringEngine().score(strong_application)
    notice = generate_adverse_action_notice(strong_application, score, "approved with conditions")

    assert notice.reasons == []
    assert "1. Overall credit profile did not meet requirements" in notice.notice
