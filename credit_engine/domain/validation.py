"""Pre-scoring validation of required numeric inputs"""

import math
from numbers import Real

from credit_engine.domain.exceptions import MalformedApplicationError
from credit_engine.domain.models import CreditApplication

REQUIRED_NUMERICS = {
    "traditional_credit": ("personal_credit_score", "credit_utilization", "total_debt"),
    "financial_data": (
        "annual_revenue",
        "monthly_revenue",
        "monthly_expenses",
        "net_income",
        "profit_margin",
        "cash_reserves",
        "assets",
        "liabilities",
        "revenue_growth_rate",
    ),
    "business_info": ("years_in_business",),
    "loan_request": ("amount", "term"),
}


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_application(application: CreditApplication) -> None:
    """
    Reject applications whose required numerics are missing or not finite.

    Out-of-range values are left alone; scoring clamps them.

    Raises:
        MalformedApplicationError: listing every offending field
    """
    invalid = []
    for section, names in REQUIRED_NUMERICS.items():
        record = getattr(application, section, None)
        for name in names:
            if not _is_number(getattr(record, name, None)):
                invalid.append(f"{section}.{name}")

    term = getattr(application.loan_request, "term", None)
    if _is_number(term) and term <= 0:
        invalid.append("loan_request.term")

    if invalid:
        raise MalformedApplicationError(invalid)
