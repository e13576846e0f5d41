"""Credit limit optimization from revenue, score and balance-sheet strength"""

from credit_engine.domain.models import CreditApplication
from credit_engine.domain.results import CreditLimitRecommendation, CreditScoreResult, Rating

# Ratings that earn the longer annual review cycle
ANNUAL_REVIEW_RATINGS = frozenset({Rating.A_PLUS, Rating.A, Rating.B_PLUS})


def calculate_optimal_credit_limit(
    application: CreditApplication, credit_score: CreditScoreResult
) -> CreditLimitRecommendation:
    """
    Start from two months of revenue and scale it.

    - Score: x(0.5 + 0.5 * (score - 300) / 550)
    - Cash reserves: x1.2 above 3 months of revenue, x0.8 below one month
    - Profit margin: x1.1 above 15%, x0.9 below 5%
    - Tenure: x1.1 above 5 years, x0.85 below 2 years

    The band around the recommendation is 70%-130%.
    """
    financials = application.financial_data
    monthly_revenue = max(0.0, financials.monthly_revenue)
    years = application.business_info.years_in_business

    limit = monthly_revenue * 2
    score_ratio = (credit_score.overall_score - 300) / 550
    limit *= 0.5 + score_ratio * 0.5

    if financials.cash_reserves > monthly_revenue * 3:
        limit *= 1.2
    elif financials.cash_reserves < monthly_revenue:
        limit *= 0.8

    if financials.profit_margin > 0.15:
        limit *= 1.1
    elif financials.profit_margin < 0.05:
        limit *= 0.9

    if years > 5:
        limit *= 1.1
    elif years < 2:
        limit *= 0.85

    return CreditLimitRecommendation(
        recommended_limit=round(limit),
        minimum_limit=round(limit * 0.7),
        maximum_limit=round(limit * 1.3),
        review_period=12 if credit_score.rating in ANNUAL_REVIEW_RATINGS else 6,
        reasoning=_limit_reasoning(application, credit_score),
    )


def _limit_reasoning(application: CreditApplication, credit_score: CreditScoreResult) -> str:
    financials = application.financial_data
    factors = [
        f"Based on monthly revenue of ${financials.monthly_revenue:,.0f}",
        f"Credit score rating: {credit_score.rating.value}",
    ]
    if financials.cash_reserves > financials.monthly_revenue * 3:
        factors.append("Strong cash reserves support higher limit")
    if financials.profit_margin > 0.15:
        factors.append("Healthy profit margins indicate strong repayment capacity")
    if application.business_info.years_in_business > 5:
        factors.append("Established business history reduces risk")
    return ". ".join(factors)
