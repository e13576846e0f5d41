"""Risk-based loan pricing against market conditions"""

from credit_engine.domain.models import CreditApplication
from credit_engine.domain.results import (
    CreditScoreResult,
    DemandLevel,
    LoanPricing,
    MarketConditions,
    RateRange,
)

DEMAND_ADJUSTMENTS = {
    DemandLevel.HIGH: 0.5,
    DemandLevel.MEDIUM: 0.0,
    DemandLevel.LOW: -0.5,
}


def competitiveness_label(rate: float, market_average: float) -> str:
    if rate < market_average - 0.5:
        return "Highly Competitive"
    if rate < market_average:
        return "Competitive"
    if rate < market_average + 0.5:
        return "Market Rate"
    return "Premium Pricing"


def optimize_loan_pricing(
    application: CreditApplication,
    credit_score: CreditScoreResult,
    market: MarketConditions,
) -> LoanPricing:
    """
    Price the loan as base rate + risk premium + credit adjustment, nudged by demand.

    - Risk premium: PD x 10 (up to 10 points)
    - Credit adjustment: (850 - score) / 850 x 3 (up to 3 points)
    - Demand: +0.5 high, -0.5 low

    Without competitor quotes the base rate stands in for the market average.
    """
    risk_premium = credit_score.default_probability * 10
    score_adjustment = (850 - credit_score.overall_score) / 850 * 3
    rate = market.base_rate + risk_premium + score_adjustment + DEMAND_ADJUSTMENTS[market.demand_level]

    if market.competitor_rates:
        market_average = sum(market.competitor_rates) / len(market.competitor_rates)
    else:
        market_average = market.base_rate
    competitiveness = competitiveness_label(rate, market_average)

    loan = application.loan_request
    expected_return = loan.amount * rate / 100 * loan.term / 12 * (1 - credit_score.default_probability)

    reasoning = (
        f"Rate based on {market.base_rate}% base + {risk_premium:.2f}% risk premium + "
        f"{score_adjustment:.2f}% credit adjustment. {competitiveness} compared to market "
        f"average of {market_average:.2f}%."
    )

    return LoanPricing(
        optimal_rate=round(rate, 2),
        rate_range=RateRange(min=round(rate - 1, 2), max=round(rate + 1, 2)),
        expected_return=expected_return,
        competitiveness=competitiveness,
        reasoning=reasoning,
    )
