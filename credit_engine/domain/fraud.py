"""Fraud heuristics - inconsistencies between reported and observed data"""

import logging

from credit_engine.domain.models import CreditApplication
from credit_engine.domain.results import FraudAssessment, FraudRecommendation
from credit_engine.utils.numbers import is_round_number

logger = logging.getLogger(__name__)

FRAUDULENT_THRESHOLD = 50
INVESTIGATE_THRESHOLD = 30

# Revenue above this multiple of (employees x $100k) is implausible
REVENUE_PER_EMPLOYEE = 100_000
REVENUE_PER_EMPLOYEE_MULTIPLE = 3


def detect_fraud(application: CreditApplication) -> FraudAssessment:
    """
    Run six independent heuristics; each adds fixed points to a 0-100 risk score.

    - Revenue far above typical for the headcount: +20
    - More than 50 deposits a month: +15
    - More than 10 recent credit inquiries: +10
    - Business older than the oldest credit account: +25
    - Both revenue and net income are round figures: +10
    - Volatile cash flow alongside a high reported margin: +15

    Over 50 is treated as fraudulent (reject), over 30 as investigate.
    """
    financials = application.financial_data
    business = application.business_info
    credit = application.traditional_credit
    banking = application.alternative_data.banking_behavior
    flags = []
    risk_score = 0

    expected_revenue = business.number_of_employees * REVENUE_PER_EMPLOYEE
    if financials.annual_revenue > expected_revenue * REVENUE_PER_EMPLOYEE_MULTIPLE:
        flags.append("Revenue significantly higher than typical for employee count")
        risk_score += 20

    if banking.deposit_frequency > 50:
        flags.append("Unusually high deposit frequency")
        risk_score += 15

    if credit.inquiries > 10:
        flags.append("Excessive credit inquiries in recent period")
        risk_score += 10

    if business.years_in_business > credit.oldest_account_age / 12:
        flags.append("Business age exceeds oldest credit account age")
        risk_score += 25

    if is_round_number(financials.annual_revenue) and is_round_number(financials.net_income):
        flags.append("Suspiciously round financial figures")
        risk_score += 10

    if banking.cash_flow_volatility > 0.7 and financials.profit_margin > 0.20:
        flags.append("High cash flow volatility inconsistent with reported profitability")
        risk_score += 15

    risk_score = min(risk_score, 100)

    if risk_score > FRAUDULENT_THRESHOLD:
        recommendation = FraudRecommendation.REJECT
    elif risk_score > INVESTIGATE_THRESHOLD:
        recommendation = FraudRecommendation.INVESTIGATE
    else:
        recommendation = FraudRecommendation.PROCEED

    if flags:
        logger.info(
            "Fraud heuristics triggered",
            extra={
                "applicant_id": application.applicant_id,
                "step": "fraud_check",
                "fraud_risk_score": risk_score,
                "flag_count": len(flags),
            },
        )

    return FraudAssessment(
        is_fraudulent=risk_score > FRAUDULENT_THRESHOLD,
        risk_score=risk_score,
        flags=flags,
        recommendation=recommendation,
    )
