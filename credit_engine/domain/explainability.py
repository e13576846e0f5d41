"""Explanations for a score: key factors, SHAP-style attributions, what-if scenarios"""

from dataclasses import replace
from typing import Callable, Dict, List

from credit_engine.domain.models import CreditApplication, PaymentStatus
from credit_engine.domain.ratios import debt_to_equity, late_payment_count, months_of_runway
from credit_engine.domain.results import Explainability, Factor, KeyFactors, LoanDecision, WhatIfScenario
from credit_engine.domain.tables import HIGH_RISK_INDUSTRIES
from credit_engine.utils.numbers import clamp

MAX_KEY_FACTORS = 5
MAX_WHAT_IF_SCENARIOS = 5

DECISION_PATH_OUTCOMES = {
    LoanDecision.APPROVE: "Decision: Approved for lending",
    LoanDecision.APPROVE_WITH_CONDITIONS: "Decision: Approved with conditions",
    LoanDecision.REVIEW: "Decision: Requires manual review",
    LoanDecision.DECLINE: "Decision: Declined - recommend improvement plan",
}


def extract_key_factors(application: CreditApplication) -> KeyFactors:
    """Re-examine raw inputs against fixed thresholds; strongest impacts first"""
    credit = application.traditional_credit
    financials = application.financial_data
    years = application.business_info.years_in_business
    positive: List[Factor] = []
    negative: List[Factor] = []

    if credit.personal_credit_score >= 750:
        positive.append(
            Factor(
                "Excellent Personal Credit",
                0.15,
                f"Personal credit score of {credit.personal_credit_score:g} demonstrates strong creditworthiness",
            )
        )
    elif credit.personal_credit_score < 600:
        negative.append(
            Factor(
                "Poor Personal Credit",
                -0.20,
                f"Personal credit score of {credit.personal_credit_score:g} indicates credit risk",
            )
        )

    late = late_payment_count(credit.payment_history)
    if late == 0:
        positive.append(Factor("Perfect Payment History", 0.12, "No late payments across all tradelines"))
    elif late > 3:
        negative.append(Factor("Multiple Late Payments", -0.15, f"{late} accounts with payment delays"))

    margin_pct = financials.profit_margin * 100
    if financials.profit_margin > 0.15:
        positive.append(
            Factor("Strong Profitability", 0.10, f"Profit margin of {margin_pct:.1f}% indicates healthy operations")
        )
    elif financials.profit_margin < 0.05:
        negative.append(
            Factor("Low Profitability", -0.12, f"Profit margin of {margin_pct:.1f}% is below industry standards")
        )

    growth_pct = financials.revenue_growth_rate * 100
    if financials.revenue_growth_rate > 0.20:
        positive.append(
            Factor("Strong Growth Trajectory", 0.08, f"{growth_pct:.0f}% year-over-year revenue growth")
        )
    elif financials.revenue_growth_rate < 0:
        negative.append(Factor("Declining Revenue", -0.10, f"{growth_pct:.0f}% revenue decline year-over-year"))

    runway = months_of_runway(financials)
    if runway > 6:
        positive.append(Factor("Strong Cash Position", 0.08, f"{runway:.1f} months of cash runway"))
    elif runway < 3:
        negative.append(Factor("Limited Cash Reserves", -0.10, f"Only {runway:.1f} months of operating capital"))

    if years >= 5:
        positive.append(Factor("Established Business", 0.10, f"{years:g} years of operating history"))
    elif years < 2:
        negative.append(Factor("Limited Operating History", -0.08, f"Only {years:g} years in business"))

    positive.sort(key=lambda f: f.impact, reverse=True)
    negative.sort(key=lambda f: f.impact)
    return KeyFactors(positive=positive[:MAX_KEY_FACTORS], negative=negative[:MAX_KEY_FACTORS])


def calculate_shap_value(actual: float, minimum: float, maximum: float, weight: float) -> float:
    """Signed contribution of a feature relative to the midpoint of its range"""
    if maximum == minimum:
        return 0.0
    normalized = clamp((actual - minimum) / (maximum - minimum), 0, 1)
    return (normalized - 0.5) * weight * 100


def calculate_shap_values(application: CreditApplication) -> Dict[str, float]:
    credit = application.traditional_credit
    financials = application.financial_data
    alt = application.alternative_data
    history = credit.payment_history
    on_time = sum(1 for p in history if p.payment_status == PaymentStatus.CURRENT)

    return {
        "personal_credit_score": calculate_shap_value(credit.personal_credit_score, 300, 850, 0.15),
        "business_credit_score": calculate_shap_value(credit.business_credit_score or 0, 0, 100, 0.10),
        "payment_history": calculate_shap_value(on_time, 0, len(history), 0.12),
        "profit_margin": calculate_shap_value(financials.profit_margin * 100, 0, 30, 0.10),
        "revenue_growth": calculate_shap_value(financials.revenue_growth_rate * 100, -20, 50, 0.08),
        "years_in_business": calculate_shap_value(application.business_info.years_in_business, 0, 20, 0.08),
        "cash_reserves": calculate_shap_value(months_of_runway(financials), 0, 12, 0.07),
        "debt_to_equity": calculate_shap_value(-debt_to_equity(financials), -5, 0, 0.06),
        "banking_behavior": calculate_shap_value(100 - alt.banking_behavior.overdrafts * 10, 0, 100, 0.05),
        "customer_retention": calculate_shap_value(
            alt.customer_behavior.repeat_customer_rate * 100, 0, 100, 0.04
        ),
    }


def calculate_feature_importance(shap_values: Dict[str, float]) -> Dict[str, float]:
    total = sum(abs(v) for v in shap_values.values())
    if total == 0:
        return {feature: 0.0 for feature in shap_values}
    return {feature: abs(value) / total for feature, value in shap_values.items()}


def generate_decision_path(application: CreditApplication, score: float, decision: LoanDecision) -> List[str]:
    profitability = "Strong" if application.financial_data.profit_margin > 0.10 else "Moderate"
    industry = application.business_info.industry
    industry_name = getattr(industry, "value", industry)
    return [
        "Application received and initial validation completed",
        f"Traditional credit evaluation: Score {application.traditional_credit.personal_credit_score:g}/850",
        f"Financial health assessment: {profitability} profitability",
        f"Business stability check: {application.business_info.years_in_business:g} years operating history",
        "Alternative data analysis: Banking and customer metrics evaluated",
        f"Industry risk assessment: {industry_name} sector analyzed",
        "Default model prediction: Default probability calculated",
        f"Final credit score computed: {round(score)}/850",
        DECISION_PATH_OUTCOMES[decision],
    ]


def _candidate_changes(application: CreditApplication):
    """Yield (change, current, suggested, modified application) for each weak input"""
    credit = application.traditional_credit
    financials = application.financial_data

    if credit.personal_credit_score < 750:
        yield (
            "Improve personal credit score to 750+",
            credit.personal_credit_score,
            750,
            replace(application, traditional_credit=replace(credit, personal_credit_score=750)),
        )

    if late_payment_count(credit.payment_history) > 0:
        current_history = [replace(p, payment_status=PaymentStatus.CURRENT) for p in credit.payment_history]
        yield (
            "Bring all accounts current",
            f"{late_payment_count(credit.payment_history)} late accounts",
            "0 late accounts",
            replace(application, traditional_credit=replace(credit, payment_history=current_history)),
        )

    if (credit.business_credit_score or 0) < 80:
        yield (
            "Establish a business credit score of 80+",
            credit.business_credit_score,
            80,
            replace(application, traditional_credit=replace(credit, business_credit_score=80)),
        )

    if credit.credit_utilization > 30:
        yield (
            "Reduce credit utilization to 30%",
            f"{credit.credit_utilization:g}%",
            "30%",
            replace(application, traditional_credit=replace(credit, credit_utilization=30)),
        )

    if financials.profit_margin < 0.15:
        yield (
            "Increase profit margin to 15%",
            f"{financials.profit_margin * 100:.1f}%",
            "15%",
            replace(application, financial_data=replace(financials, profit_margin=0.15)),
        )

    runway = months_of_runway(financials)
    if runway < 6 and financials.monthly_expenses > 0:
        yield (
            "Build cash reserves to 6 months",
            f"{runway:.1f} months",
            "6 months",
            replace(
                application,
                financial_data=replace(financials, cash_reserves=financials.monthly_expenses * 6),
            ),
        )

    if debt_to_equity(financials) > 1 and financials.assets > 0:
        yield (
            "Reduce debt-to-equity to 1.0",
            f"{debt_to_equity(financials):.2f}",
            "1.00",
            replace(application, financial_data=replace(financials, liabilities=financials.assets / 2)),
        )


def generate_what_if_scenarios(
    application: CreditApplication,
    current_score: float,
    overall_score: Callable[[CreditApplication], float],
) -> List[WhatIfScenario]:
    """Marginal overall-score gain of fixing each weak input, best first"""
    scenarios = []
    for change, current, suggested, modified in _candidate_changes(application):
        impact = round(overall_score(modified) - current_score, 1)
        if impact > 0:
            scenarios.append(WhatIfScenario(change, current, suggested, impact))

    scenarios.sort(key=lambda s: s.score_impact, reverse=True)
    return scenarios[:MAX_WHAT_IF_SCENARIOS]


def explain(
    application: CreditApplication,
    score: float,
    decision: LoanDecision,
    overall_score: Callable[[CreditApplication], float],
) -> Explainability:
    shap_values = calculate_shap_values(application)
    return Explainability(
        shap_values=shap_values,
        feature_importance=calculate_feature_importance(shap_values),
        decision_path=generate_decision_path(application, score, decision),
        what_if_scenarios=generate_what_if_scenarios(application, score, overall_score),
    )


def calculate_confidence(application: CreditApplication) -> float:
    """Start fully confident; thin or volatile data lowers confidence, floor 0.5"""
    credit = application.traditional_credit
    confidence = 1.0

    if not credit.business_credit_score:
        confidence -= 0.05
    if application.business_info.years_in_business < 2:
        confidence -= 0.10
    if len(credit.payment_history) < 3:
        confidence -= 0.05
    if application.alternative_data.banking_behavior.cash_flow_volatility > 0.5:
        confidence -= 0.10
    if application.financial_data.revenue_growth_rate < 0:
        confidence -= 0.05
    if application.business_info.industry in HIGH_RISK_INDUSTRIES:
        confidence -= 0.05

    return clamp(confidence, 0.5, 1.0)
