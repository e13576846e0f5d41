"""Portfolio-level risk aggregation and stress testing"""

from typing import Dict, List, Sequence

from credit_engine.config import settings
from credit_engine.domain.results import (
    PortfolioRiskAnalysis,
    ScoredApplication,
    StressScenario,
    StressTestResult,
)

ECONOMIC_DOWNTURN_FACTOR = 1.5
INTEREST_RATE_SHOCK_FACTOR = 1.3


def _industry_key(loan: ScoredApplication) -> str:
    industry = loan.industry
    return getattr(industry, "value", str(industry))


def industry_exposure(loans: Sequence[ScoredApplication]) -> Dict[str, float]:
    exposure: Dict[str, float] = {}
    for loan in loans:
        key = _industry_key(loan)
        exposure[key] = exposure.get(key, 0.0) + loan.amount
    return exposure


def expected_loss(loans: Sequence[ScoredApplication], loss_given_default: float | None = None) -> float:
    """Sum of amount x PD x LGD over the portfolio"""
    lgd = settings.loss_given_default if loss_given_default is None else loss_given_default
    return sum(loan.amount * loan.default_probability * lgd for loan in loans)


def determine_portfolio_rating(default_probability: float, concentration: float) -> str:
    if default_probability < 0.10 and concentration < 0.30:
        return "Low Risk"
    if default_probability < 0.20 and concentration < 0.40:
        return "Moderate Risk"
    if default_probability < 0.30 and concentration < 0.50:
        return "Elevated Risk"
    return "High Risk"


def generate_portfolio_recommendations(
    default_probability: float, concentration: float, exposure: Dict[str, float]
) -> List[str]:
    recommendations = []

    if default_probability > 0.20:
        recommendations.append("Tighten underwriting standards for new loans")
        recommendations.append("Consider increasing interest rates to compensate for risk")
        recommendations.append("Implement enhanced monitoring for high-risk loans")

    if concentration > 0.40:
        top_industry = max(exposure, key=exposure.get)
        recommendations.append("Diversify portfolio across more industries")
        recommendations.append(f"Reduce exposure to {top_industry} sector")
        recommendations.append("Set industry concentration limits")

    if default_probability > 0.15 and concentration > 0.35:
        recommendations.append("Implement enhanced monitoring for high-risk segments")
        recommendations.append("Consider portfolio hedging strategies")

    if default_probability < 0.10:
        recommendations.append("Portfolio performing well - maintain current standards")
        recommendations.append("Consider modest expansion in low-risk segments")

    return recommendations


def analyze_portfolio_risk(
    loans: Sequence[ScoredApplication], loss_given_default: float | None = None
) -> PortfolioRiskAnalysis:
    """
    Aggregate exposure, PD and expected loss across scored loans.

    Portfolio PD is exposure-weighted. Concentration is the share of exposure
    held in the single largest industry. A portfolio with no exposure yields a
    zero analysis.
    """
    total_exposure = sum(loan.amount for loan in loans)
    exposure = industry_exposure(loans)
    loss = expected_loss(loans, loss_given_default)

    if total_exposure <= 0:
        return PortfolioRiskAnalysis(
            total_exposure=0.0,
            portfolio_default_probability=0.0,
            expected_loss=loss,
            expected_loss_rate=0.0,
            concentration_risk=0.0,
            industry_exposure=exposure,
            risk_rating=determine_portfolio_rating(0.0, 0.0),
            recommendations=[],
        )

    weighted_pd = sum(loan.default_probability * loan.amount for loan in loans) / total_exposure
    concentration = max(exposure.values()) / total_exposure

    return PortfolioRiskAnalysis(
        total_exposure=total_exposure,
        portfolio_default_probability=weighted_pd,
        expected_loss=loss,
        expected_loss_rate=loss / total_exposure,
        concentration_risk=concentration,
        industry_exposure=exposure,
        risk_rating=determine_portfolio_rating(weighted_pd, concentration),
        recommendations=generate_portfolio_recommendations(weighted_pd, concentration, exposure),
    )


def perform_stress_test(
    loans: Sequence[ScoredApplication],
    scenario: StressScenario,
    loss_given_default: float | None = None,
) -> StressTestResult:
    """
    Shock the mean portfolio PD.

    Downturn multiplies it by 1.5, a rate shock by 1.3, and an industry
    collapse adds the collapsed industry's loan share times the baseline.
    The stressed rate never exceeds 1.
    """
    if not loans:
        return StressTestResult(0.0, 0.0, 0.0, 0)

    lgd = settings.loss_given_default if loss_given_default is None else loss_given_default
    baseline = sum(loan.default_probability for loan in loans) / len(loans)
    stressed = baseline
    affected = 0

    if scenario.economic_downturn:
        stressed *= ECONOMIC_DOWNTURN_FACTOR
        affected = len(loans)

    if scenario.interest_rate_shock:
        stressed *= INTEREST_RATE_SHOCK_FACTOR
        affected = len(loans)

    if scenario.industry_collapse is not None:
        industry_loans = [loan for loan in loans if loan.industry == scenario.industry_collapse]
        stressed += len(industry_loans) / len(loans) * baseline
        affected = max(affected, len(industry_loans))

    stressed = min(1.0, stressed)
    total_exposure = sum(loan.amount for loan in loans)

    return StressTestResult(
        baseline_default_rate=baseline,
        stressed_default_rate=stressed,
        additional_losses=total_exposure * (stressed - baseline) * lgd,
        affected_loans=affected,
    )
