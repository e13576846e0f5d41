"""Credit scoring engine - core business logic for creditworthiness scores"""

import logging
from typing import Dict, List

from credit_engine.config import Settings, settings as default_settings
from credit_engine.domain import explainability
from credit_engine.domain.models import (
    AlternativeData,
    BankingBehavior,
    BusinessInfo,
    BusinessMetrics,
    BusinessStructure,
    ComponentKind,
    CreditApplication,
    CustomerBehavior,
    DigitalFootprint,
    FinancialData,
    Industry,
    SupplierRelationships,
    TraditionalCredit,
)
from credit_engine.domain.ratios import debt_to_equity, late_payment_count, late_payment_ratio, months_of_runway
from credit_engine.domain.results import (
    ComponentScore,
    CreditScoreResult,
    LoanDecision,
    Rating,
    Recommendation,
    RiskCategory,
)
from credit_engine.domain.risk_model import LogisticRiskModel, RiskModel
from credit_engine.domain.tables import STRUCTURE_SCORES, industry_risk_score
from credit_engine.domain.validation import validate_application
from credit_engine.utils.numbers import clamp

logger = logging.getLogger(__name__)

MIN_SCORE = 300
MAX_SCORE = 850
SCORE_SPAN = MAX_SCORE - MIN_SCORE

RATING_THRESHOLDS = [
    (800, Rating.A_PLUS),
    (750, Rating.A),
    (700, Rating.B_PLUS),
    (650, Rating.B),
    (600, Rating.C_PLUS),
    (550, Rating.C),
    (500, Rating.D),
]

RISK_CATEGORY_THRESHOLDS = [
    (0.05, RiskCategory.VERY_LOW),
    (0.15, RiskCategory.LOW),
    (0.30, RiskCategory.MEDIUM),
    (0.50, RiskCategory.HIGH),
]


def rescale(raw: float) -> float:
    """Map a 0-100 sub-score onto the 300-850 scale"""
    return MIN_SCORE + clamp(raw, 0, 100) / 100 * SCORE_SPAN


def _component(score: float, weight: float, factors: List[str]) -> ComponentScore:
    return ComponentScore(score=score, weight=weight, contribution=score / MAX_SCORE * weight, factors=factors)


# ===========================
# COMPONENT SCORERS
# ===========================


def score_traditional_credit(data: TraditionalCredit, weight: float) -> ComponentScore:
    """
    Bureau-based score built up from a 300 base.

    Shares of the 550-point span:
    - 30%: personal credit score (x/850)
    - 25%: business credit score (x/100), only when reported
    - 35%: share of tradelines paid on time
    - 10%: unused revolving credit
    Derogatory marks subtract, a credit file older than five years adds 25.
    """
    factors = []
    personal = clamp(data.personal_credit_score, MIN_SCORE, MAX_SCORE)
    score = MIN_SCORE + personal / MAX_SCORE * SCORE_SPAN * 0.30

    if personal >= 750:
        factors.append("Excellent personal credit score")
    elif personal < 600:
        factors.append("Poor personal credit score")

    if data.business_credit_score:
        business = clamp(data.business_credit_score, 0, 100)
        score += business / 100 * SCORE_SPAN * 0.25
        if business >= 80:
            factors.append("Strong business credit history")

    score += (1 - late_payment_ratio(data.payment_history)) * SCORE_SPAN * 0.35
    late = late_payment_count(data.payment_history)
    if late == 0:
        factors.append("Perfect payment history")
    elif late > 3:
        factors.append("Multiple late payments")

    utilization = clamp(data.credit_utilization, 0, 100)
    score += (1 - utilization / 100) * SCORE_SPAN * 0.10
    if utilization < 30:
        factors.append("Low credit utilization")
    elif utilization > 70:
        factors.append("High credit utilization")

    if data.bankruptcies > 0:
        score -= 100
        factors.append("Bankruptcy on record")
    if data.foreclosures > 0:
        score -= 75
        factors.append("Foreclosure on record")
    if data.collections > 0:
        score -= 25 * data.collections
        factors.append("Accounts in collections")

    if data.oldest_account_age > 60:
        score += 25
        factors.append("Long credit history")

    return _component(clamp(score, MIN_SCORE, MAX_SCORE), weight, factors)


def score_financial_health(data: FinancialData, weight: float) -> ComponentScore:
    factors = []

    revenue_score = clamp(data.annual_revenue / 1_000_000, 0, 1) * 100
    if data.annual_revenue > 1_000_000:
        factors.append("Strong annual revenue")

    profitability_score = clamp(data.profit_margin, 0, 1) * 100
    if data.profit_margin > 0.15:
        factors.append("Healthy profit margins")
    elif data.profit_margin < 0.05:
        factors.append("Low profit margins")

    runway = months_of_runway(data)
    cash_score = clamp(runway / 6, 0, 1) * 100
    if runway > 6:
        factors.append("Strong cash reserves")
    elif runway < 3:
        factors.append("Limited cash reserves")

    leverage = debt_to_equity(data)
    debt_score = clamp(1 - leverage / 3, 0, 1) * 100
    if leverage < 1:
        factors.append("Low debt-to-equity ratio")
    elif leverage > 2:
        factors.append("High debt burden")

    growth_score = clamp(data.revenue_growth_rate, 0, 1) * 100
    if data.revenue_growth_rate > 0.20:
        factors.append("Strong revenue growth")
    elif data.revenue_growth_rate < 0:
        factors.append("Revenue declining")

    raw = (
        revenue_score * 0.25
        + profitability_score * 0.30
        + cash_score * 0.20
        + debt_score * 0.15
        + growth_score * 0.10
    )
    return _component(rescale(raw), weight, factors)


def score_business_stability(data: BusinessInfo, weight: float) -> ComponentScore:
    factors = []

    years_score = clamp(data.years_in_business / 10, 0, 1) * 100
    if data.years_in_business >= 5:
        factors.append("Established business")
    elif data.years_in_business < 2:
        factors.append("Early-stage business")

    structure_score = STRUCTURE_SCORES.get(
        data.business_structure, STRUCTURE_SCORES[BusinessStructure.SOLE_PROPRIETORSHIP]
    )
    if data.business_structure in (BusinessStructure.CORPORATION, BusinessStructure.S_CORP):
        factors.append("Formal business structure")

    employee_score = clamp(data.number_of_employees / 50, 0, 1) * 100
    location_score = clamp(data.locations / 5, 0, 1) * 100
    scale_score = (employee_score + location_score) / 2
    if data.number_of_employees > 20:
        factors.append("Substantial team size")
    if data.locations > 1:
        factors.append("Multi-location operations")

    ownership_score = clamp(data.ownership_percentage / 100, 0, 1) * 100

    raw = years_score * 0.40 + structure_score * 0.20 + scale_score * 0.20 + ownership_score * 0.20
    return _component(rescale(raw), weight, factors)


def score_banking_behavior(data: BankingBehavior) -> float:
    score = 100.0
    score -= data.overdrafts * 5
    score -= data.nsf * 10
    score += min(20, data.deposit_consistency * 20)
    score -= data.cash_flow_volatility * 30
    if data.average_daily_balance > 10_000:
        score += 10
    if data.minimum_balance > 5_000:
        score += 10
    return clamp(score, 0, 100)


def score_business_metrics(data: BusinessMetrics) -> float:
    score = clamp(data.average_rating / 5, 0, 1) * 40
    score += min(30, data.social_followers / 10_000 * 30)
    score += min(30, data.website_traffic / 100_000 * 30)
    return clamp(score, 0, 100)


def score_digital_footprint(data: DigitalFootprint) -> float:
    score = min(40, data.domain_age / 10 * 40)
    score += clamp(data.website_quality, 0, 1) * 30
    score += 10 if data.ssl_certificate else 0
    score += min(20, data.business_listings / 10 * 20)
    return clamp(score, 0, 100)


def score_supplier_relationships(data: SupplierRelationships) -> float:
    score = 50.0
    score += min(25, data.number_of_suppliers / 10 * 25)
    score += 10 if data.payment_terms_negotiated else 0
    score += min(15, data.trade_references / 5 * 15)
    if data.average_payment_days < 30:
        score += 10
    elif data.average_payment_days > 60:
        score -= 10
    return clamp(score, 0, 100)


def score_customer_behavior(data: CustomerBehavior) -> float:
    score = clamp(data.repeat_customer_rate, 0, 1) * 40
    score += min(30, data.customer_lifetime_value / 10_000 * 30)
    score += clamp(1 - data.churn_rate, 0, 1) * 30
    return clamp(score, 0, 100)


def score_alternative_data(data: AlternativeData, weight: float) -> ComponentScore:
    factors = []
    banking = data.banking_behavior

    if banking.overdrafts == 0 and banking.nsf == 0:
        factors.append("Excellent banking behavior")
    if banking.cash_flow_volatility < 0.2:
        factors.append("Consistent cash flow")
    if data.business_metrics.average_rating > 4.0:
        factors.append("Strong customer satisfaction")
    if data.digital_footprint.domain_age > 3:
        factors.append("Established online presence")
    if data.customer_behavior.repeat_customer_rate > 0.5:
        factors.append("High customer retention")

    raw = (
        score_banking_behavior(banking) * 0.35
        + score_business_metrics(data.business_metrics) * 0.25
        + score_digital_footprint(data.digital_footprint) * 0.20
        + score_supplier_relationships(data.supplier_relationships) * 0.10
        + score_customer_behavior(data.customer_behavior) * 0.10
    )
    return _component(rescale(raw), weight, factors)


def score_industry_risk(industry: Industry, weight: float) -> ComponentScore:
    factors = []
    risk_score = industry_risk_score(industry)
    if risk_score >= 75:
        factors.append("Low-risk industry")
    elif risk_score <= 50:
        factors.append("High-risk industry")
    return _component(rescale(risk_score), weight, factors)


# ===========================
# AGGREGATION & LOOKUPS
# ===========================


def combine_components(components: Dict[ComponentKind, ComponentScore]) -> float:
    """Weighted overall score: 300 + sum(score/850 * weight) * 550"""
    weighted_sum = sum(c.score / MAX_SCORE * c.weight for c in components.values())
    return clamp(MIN_SCORE + weighted_sum * SCORE_SPAN, MIN_SCORE, MAX_SCORE)


def determine_rating(score: float) -> Rating:
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return Rating.F


def determine_risk_category(probability: float) -> RiskCategory:
    for threshold, category in RISK_CATEGORY_THRESHOLDS:
        if probability < threshold:
            return category
    return RiskCategory.VERY_HIGH


def generate_recommendation(
    application: CreditApplication,
    score: float,
    default_probability: float,
    components: Dict[ComponentKind, ComponentScore],
) -> Recommendation:
    """
    Map (score, default probability) to a lending recommendation.

    Tiers:
    - score >= 700 and pd < 0.15: approve, up to 25% of revenue, no collateral
    - score >= 600 and pd < 0.30: approve with conditions, 20%, 50% collateral
    - score >= 500 and pd < 0.50: review, 15%, 80% collateral
    - otherwise: decline
    """
    amount = application.loan_request.amount
    financials = application.financial_data
    revenue = max(0.0, financials.annual_revenue)
    risk_factor = 1 - score / MAX_SCORE
    conditions = []

    if score >= 700 and default_probability < 0.15:
        decision = LoanDecision.APPROVE
        max_loan_amount = min(amount, revenue * 0.25)
        rate = 6.5 + risk_factor * 3
        collateral = 0.0
    elif score >= 600 and default_probability < 0.30:
        decision = LoanDecision.APPROVE_WITH_CONDITIONS
        max_loan_amount = min(amount, revenue * 0.20)
        rate = 8.5 + risk_factor * 4
        collateral = max_loan_amount * 0.5
        conditions.append("Personal guarantee required")
        conditions.append("Quarterly financial reporting")
        if components[ComponentKind.TRADITIONAL_CREDIT].score < 650:
            conditions.append("Improve personal credit score to 650+")
        if financials.cash_reserves < financials.monthly_expenses * 3:
            conditions.append("Maintain 3 months cash reserves")
    elif score >= 500 and default_probability < 0.50:
        decision = LoanDecision.REVIEW
        max_loan_amount = min(amount, revenue * 0.15)
        rate = 12.0 + risk_factor * 5
        collateral = max_loan_amount * 0.8
        conditions.append("Requires manual underwriting review")
        conditions.append("Additional documentation needed")
    else:
        decision = LoanDecision.DECLINE
        max_loan_amount = 0.0
        rate = 0.0
        collateral = 0.0

    return Recommendation(
        decision=decision,
        max_loan_amount=max_loan_amount,
        suggested_interest_rate=rate,
        suggested_term=application.loan_request.term,
        required_collateral=collateral,
        conditions=conditions,
        reasoning=_recommendation_reasoning(decision, score, default_probability, components),
    )


def _recommendation_reasoning(
    decision: LoanDecision,
    score: float,
    default_probability: float,
    components: Dict[ComponentKind, ComponentScore],
) -> str:
    pd_pct = f"{default_probability * 100:.1f}%"
    if decision == LoanDecision.APPROVE:
        reasons = [f"Strong credit profile with score of {round(score)}", f"Low default probability ({pd_pct})"]
        if components[ComponentKind.TRADITIONAL_CREDIT].score >= 750:
            reasons.append("Excellent traditional credit history")
        if components[ComponentKind.FINANCIAL_HEALTH].score >= 700:
            reasons.append("Strong financial health indicators")
    elif decision == LoanDecision.APPROVE_WITH_CONDITIONS:
        reasons = [
            f"Moderate credit profile with score of {round(score)}",
            f"Manageable default risk ({pd_pct})",
            "Conditions will mitigate risk exposure",
        ]
    elif decision == LoanDecision.REVIEW:
        reasons = [
            f"Credit score of {round(score)} requires additional review",
            f"Default probability of {pd_pct} is elevated",
            "Manual underwriting recommended for final decision",
        ]
    else:
        reasons = [
            f"Credit score of {round(score)} falls below minimum threshold",
            f"High default probability ({pd_pct})",
            "Recommend reapplication after addressing key issues",
        ]
    return ". ".join(reasons)


# ===========================
# ENGINE
# ===========================


class ScoringEngine:
    """Pure scorer: every call recomputes from the application alone"""

    def __init__(self, settings: Settings | None = None, risk_model: RiskModel | None = None):
        self.settings = settings or default_settings
        self.weights = self.settings.component_weights
        self.risk_model = risk_model or LogisticRiskModel()

    def score_components(self, application: CreditApplication) -> Dict[ComponentKind, ComponentScore]:
        w = self.weights
        return {
            ComponentKind.TRADITIONAL_CREDIT: score_traditional_credit(
                application.traditional_credit, w[ComponentKind.TRADITIONAL_CREDIT]
            ),
            ComponentKind.FINANCIAL_HEALTH: score_financial_health(
                application.financial_data, w[ComponentKind.FINANCIAL_HEALTH]
            ),
            ComponentKind.BUSINESS_STABILITY: score_business_stability(
                application.business_info, w[ComponentKind.BUSINESS_STABILITY]
            ),
            ComponentKind.ALTERNATIVE_DATA: score_alternative_data(
                application.alternative_data, w[ComponentKind.ALTERNATIVE_DATA]
            ),
            ComponentKind.INDUSTRY_RISK: score_industry_risk(
                application.business_info.industry, w[ComponentKind.INDUSTRY_RISK]
            ),
        }

    def overall_score(self, application: CreditApplication) -> float:
        return combine_components(self.score_components(application))

    def score(self, application: CreditApplication) -> CreditScoreResult:
        """
        Score an application end to end.

        Raises:
            MalformedApplicationError: required numerics missing or not finite
        """
        validate_application(application)

        components = self.score_components(application)
        overall = combine_components(components)
        default_probability = self.risk_model.predict_default_probability(application)
        recommendation = generate_recommendation(application, overall, default_probability, components)

        logger.debug(
            "Application scored",
            extra={
                "applicant_id": application.applicant_id,
                "step": "scoring_complete",
                "score": round(overall, 1),
                "default_probability": round(default_probability, 4),
            },
        )

        return CreditScoreResult(
            overall_score=overall,
            rating=determine_rating(overall),
            default_probability=default_probability,
            risk_category=determine_risk_category(default_probability),
            confidence_level=explainability.calculate_confidence(application),
            component_scores=components,
            key_factors=explainability.extract_key_factors(application),
            recommendation=recommendation,
            explainability=explainability.explain(
                application, overall, recommendation.decision, self.overall_score
            ),
        )
