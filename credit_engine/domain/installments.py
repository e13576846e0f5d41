"""Amortized repayment terms for approved loans"""

from credit_engine.domain.results import LoanTerms


def calculate_monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """
    Standard annuity payment.

    Args:
        principal: Loan amount
        annual_rate: Annual interest rate in percent (6.5 = 6.5%)
        term_months: Number of monthly payments

    Returns:
        Level monthly payment; straight-line when the rate is zero

    Example:
        $50,000 at 6% over 60 months -> $966.64
    """
    if principal <= 0 or term_months <= 0:
        return 0.0

    monthly_rate = annual_rate / 12 / 100
    if monthly_rate == 0:
        return principal / term_months

    growth = (1 + monthly_rate) ** term_months
    return principal * monthly_rate * growth / (growth - 1)


def build_loan_terms(amount: float, annual_rate: float, term_months: int) -> LoanTerms:
    return LoanTerms(
        amount=amount,
        term=term_months,
        rate=round(annual_rate, 2),
        monthly_payment=round(calculate_monthly_payment(amount, annual_rate, term_months), 2),
    )
