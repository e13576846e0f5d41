"""Early-warning detection for loans already on the books"""

from credit_engine.domain.models import AlternativeData, FinancialData
from credit_engine.domain.ratios import months_of_runway
from credit_engine.domain.results import EarlyWarningReport, Severity

RECOMMENDED_ACTIONS = {
    Severity.CRITICAL: "URGENT: Immediate intervention required - consider loan restructuring or acceleration",
    Severity.HIGH: "Schedule immediate meeting with borrower - request updated business plan",
    Severity.MEDIUM: "Increase monitoring frequency - request monthly financials",
    Severity.LOW: "Continue standard monitoring procedures",
}


def severity_for(points: int) -> Severity:
    if points >= 8:
        return Severity.CRITICAL
    if points >= 5:
        return Severity.HIGH
    if points >= 3:
        return Severity.MEDIUM
    return Severity.LOW


def generate_early_warnings(
    current_financials: FinancialData, current_alternative_data: AlternativeData
) -> EarlyWarningReport:
    """
    Score deterioration triggers on the borrower's latest data.

    Triggers and points: revenue down more than 10% (3), margin under 5% (2),
    runway under 2 months (4) or under 3 months (2), more than 3 overdrafts
    (2), cash-flow volatility above 0.6 (2), churn above 30% (2).
    """
    warnings = []
    points = 0

    if current_financials.revenue_growth_rate < -0.10:
        warnings.append("Revenue declining by more than 10%")
        points += 3

    if current_financials.profit_margin < 0.05:
        warnings.append("Profit margins compressed below 5%")
        points += 2

    runway = months_of_runway(current_financials)
    if runway < 2:
        warnings.append("Cash reserves critically low - less than 2 months runway")
        points += 4
    elif runway < 3:
        warnings.append("Cash reserves below 3 months - monitor closely")
        points += 2

    banking = current_alternative_data.banking_behavior
    if banking.overdrafts > 3:
        warnings.append("Multiple overdraft incidents detected")
        points += 2

    if banking.cash_flow_volatility > 0.6:
        warnings.append("High cash flow volatility indicates instability")
        points += 2

    if current_alternative_data.customer_behavior.churn_rate > 0.30:
        warnings.append("High customer churn rate above 30%")
        points += 2

    severity = severity_for(points)
    return EarlyWarningReport(
        warnings=warnings,
        severity=severity,
        recommended_action=RECOMMENDED_ACTIONS[severity],
    )
