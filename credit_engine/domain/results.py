"""Domain results - outputs of scoring, risk features and decisions"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from credit_engine.domain.models import ComponentKind, CreditApplication, Industry


class Rating(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C_PLUS = "C+"
    C = "C"
    D = "D"
    F = "F"


class RiskCategory(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class LoanDecision(str, Enum):
    """Scoring-engine recommendation"""

    APPROVE = "approve"
    APPROVE_WITH_CONDITIONS = "approve_with_conditions"
    REVIEW = "review"
    DECLINE = "decline"


class InstantDecision(str, Enum):
    """Terminal states of the instant-decision workflow"""

    APPROVE = "approve"
    DECLINE = "decline"
    REVIEW = "review"


class FraudRecommendation(str, Enum):
    PROCEED = "proceed"
    INVESTIGATE = "investigate"
    REJECT = "reject"


class ReviewPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DemandLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ComponentScore:
    score: float  # 300-850
    weight: float
    contribution: float
    factors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Factor:
    factor: str
    impact: float
    description: str


@dataclass(frozen=True)
class KeyFactors:
    positive: List[Factor] = field(default_factory=list)
    negative: List[Factor] = field(default_factory=list)


@dataclass(frozen=True)
class Recommendation:
    decision: LoanDecision
    max_loan_amount: float
    suggested_interest_rate: float
    suggested_term: int
    required_collateral: float
    conditions: List[str]
    reasoning: str


@dataclass(frozen=True)
class WhatIfScenario:
    change: str
    current_value: Any
    suggested_value: Any
    score_impact: float


@dataclass(frozen=True)
class Explainability:
    shap_values: Dict[str, float]
    feature_importance: Dict[str, float]
    decision_path: List[str]
    what_if_scenarios: List[WhatIfScenario]


@dataclass(frozen=True)
class CreditScoreResult:
    """Output of a full scoring run"""

    overall_score: float
    rating: Rating
    default_probability: float
    risk_category: RiskCategory
    confidence_level: float
    component_scores: Dict[ComponentKind, ComponentScore]
    key_factors: KeyFactors
    recommendation: Recommendation
    explainability: Explainability


@dataclass(frozen=True)
class FraudAssessment:
    is_fraudulent: bool
    risk_score: int
    flags: List[str]
    recommendation: FraudRecommendation


@dataclass(frozen=True)
class CreditLimitRecommendation:
    recommended_limit: float
    minimum_limit: float
    maximum_limit: float
    review_period: int  # months
    reasoning: str


@dataclass(frozen=True)
class ScoredApplication:
    """An application paired with its score; the unit of portfolio analysis"""

    application: CreditApplication
    score: CreditScoreResult

    @property
    def amount(self) -> float:
        return self.application.loan_request.amount

    @property
    def default_probability(self) -> float:
        return self.score.default_probability

    @property
    def industry(self) -> Industry:
        return self.application.business_info.industry


@dataclass(frozen=True)
class PortfolioRiskAnalysis:
    total_exposure: float
    portfolio_default_probability: float
    expected_loss: float
    expected_loss_rate: float
    concentration_risk: float
    industry_exposure: Dict[str, float]
    risk_rating: str
    recommendations: List[str]


@dataclass(frozen=True)
class StressScenario:
    economic_downturn: bool = False
    interest_rate_shock: bool = False
    industry_collapse: Optional[Industry] = None


@dataclass(frozen=True)
class StressTestResult:
    baseline_default_rate: float
    stressed_default_rate: float
    additional_losses: float
    affected_loans: int


@dataclass(frozen=True)
class EarlyWarningReport:
    warnings: List[str]
    severity: Severity
    recommended_action: str


@dataclass(frozen=True)
class MarketConditions:
    base_rate: float
    competitor_rates: List[float] = field(default_factory=list)
    demand_level: DemandLevel = DemandLevel.MEDIUM


@dataclass(frozen=True)
class RateRange:
    min: float
    max: float


@dataclass(frozen=True)
class LoanPricing:
    optimal_rate: float
    rate_range: RateRange
    expected_return: float
    competitiveness: str
    reasoning: str


@dataclass(frozen=True)
class AdverseActionNotice:
    notice: str
    reasons: List[str]
    rights: List[str]


@dataclass(frozen=True)
class FairnessMetric:
    score: float
    passed: bool
    threshold: float
    interpretation: str


@dataclass(frozen=True)
class GroupCalibration:
    calibration_error: float
    sample_size: int


@dataclass(frozen=True)
class FairnessTestResult:
    """
    Group-level fairness of a set of scored applications.

    equal_opportunity and calibration_by_group need repayment outcomes and
    are empty when none were supplied.
    """

    overall_passed: bool
    group_sizes: Dict[str, int]
    approval_rates: Dict[str, float]
    demographic_parity: FairnessMetric
    disparate_impact: FairnessMetric
    equal_opportunity: Optional[FairnessMetric] = None
    calibration_by_group: Dict[str, GroupCalibration] = field(default_factory=dict)
    violations: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class BiasDetectionResult:
    bias_detected: bool
    bias_types: List[str]
    affected_groups: List[str]
    severity: Severity
    mitigation_strategies: List[str]


@dataclass(frozen=True)
class EcoaComplianceCheck:
    compliant: bool
    violations: List[str]
    requirements: List[str]


@dataclass(frozen=True)
class ComplianceReport:
    compliant: bool
    summary: str
    issues: List[str]
    recommendations: List[str]


@dataclass(frozen=True)
class FairLendingReport:
    fairness: FairnessTestResult
    bias: BiasDetectionResult
    ecoa: EcoaComplianceCheck
    compliance: ComplianceReport


@dataclass(frozen=True)
class LoanTerms:
    amount: float
    term: int
    rate: float
    monthly_payment: float


@dataclass(frozen=True)
class InstantDecisionResult:
    decision: InstantDecision
    reason: str
    processing_time_ms: float
    requires_manual_review: bool
    score: Optional[float] = None
    approved_amount: Optional[float] = None
    interest_rate: Optional[float] = None
    terms: Optional[LoanTerms] = None
    improvement_suggestions: Optional[List[str]] = None
    review_priority: Optional[ReviewPriority] = None


@dataclass(frozen=True)
class DecisionStatistics:
    total_applications: int
    approved: int
    declined: int
    requires_review: int
    failed: int
    approval_rate: float
    average_processing_time_ms: float
    average_approved_amount: float


@dataclass(frozen=True)
class ThresholdSimulation:
    auto_approve_threshold: float
    auto_decline_threshold: float
    approval_rate: float
    expected_default_rate: float
    manual_review_rate: float
    total_volume: int
    failed: int = 0
