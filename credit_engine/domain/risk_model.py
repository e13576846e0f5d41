"""Default-probability models"""

import math
from typing import List, Protocol, Sequence

from credit_engine.domain.models import CreditApplication
from credit_engine.utils.numbers import clamp

MIN_PROBABILITY = 0.01
MAX_PROBABILITY = 0.99

FEATURE_NAMES = (
    "credit_score_ratio",
    "profit_margin",
    "tenure_ratio",
    "inverse_utilization",
    "revenue_growth",
    "cash_flow_volatility",
    "repeat_customer_rate",
)


class RiskModel(Protocol):
    """Anything that maps an application to a probability of default"""

    def predict_default_probability(self, application: CreditApplication) -> float:
        ...


def extract_features(application: CreditApplication) -> List[float]:
    """
    Seven normalized creditworthiness features, in model order:
    credit ratio, profit margin, tenure ratio, inverse utilization,
    revenue growth, cash-flow volatility, repeat-customer rate.
    """
    credit = application.traditional_credit
    financials = application.financial_data
    alt = application.alternative_data
    return [
        clamp(credit.personal_credit_score / 850, 0.0, 1.0),
        clamp(financials.profit_margin, -1.0, 1.0),
        clamp(application.business_info.years_in_business / 10, 0.0, 1.0),
        clamp(1 - credit.credit_utilization / 100, 0.0, 1.0),
        clamp(financials.revenue_growth_rate, -1.0, 1.0),
        clamp(alt.banking_behavior.cash_flow_volatility, 0.0, 1.0),
        clamp(alt.customer_behavior.repeat_customer_rate, 0.0, 1.0),
    ]


class LogisticRiskModel:
    """
    Fixed-weight logistic model.

    Weights score creditworthiness, so the weighted sum is subtracted from the
    bias: a stronger applicant gets lower default log-odds.
    """

    DEFAULT_WEIGHTS = (0.25, 0.20, 0.15, 0.10, 0.10, -0.10, 0.10)
    DEFAULT_BIAS = -2.0

    def __init__(self, weights: Sequence[float] | None = None, bias: float | None = None):
        self.weights = tuple(weights) if weights is not None else self.DEFAULT_WEIGHTS
        self.bias = self.DEFAULT_BIAS if bias is None else bias
        if len(self.weights) != len(FEATURE_NAMES):
            raise ValueError(f"Expected {len(FEATURE_NAMES)} feature weights, got {len(self.weights)}")

    def predict_default_probability(self, application: CreditApplication) -> float:
        features = extract_features(application)
        logit = self.bias - sum(w * x for w, x in zip(self.weights, features))
        probability = 1 / (1 + math.exp(-logit))
        return clamp(probability, MIN_PROBABILITY, MAX_PROBABILITY)
