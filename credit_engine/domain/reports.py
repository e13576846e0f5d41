"""Report models assembled by the credit analyst orchestrator"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from credit_engine.domain.models import ComponentKind
from credit_engine.domain.results import (
    ComponentScore,
    CreditLimitRecommendation,
    Explainability,
    FraudAssessment,
    KeyFactors,
    PortfolioRiskAnalysis,
    Rating,
    Recommendation,
    RiskCategory,
)


class MonitoringAction(str, Enum):
    NONE = "none"
    MONITOR = "monitor"
    REVIEW = "review"
    RESTRUCTURE = "restructure"
    ESCALATE = "escalate"


@dataclass(frozen=True)
class ApplicantSummary:
    business_name: str
    industry: str
    years_in_business: float


@dataclass(frozen=True)
class ScoringSummary:
    overall_score: float
    rating: Rating
    default_probability: float
    risk_category: RiskCategory
    confidence_level: float


@dataclass(frozen=True)
class CreditAnalysisReport:
    application_id: str
    timestamp: str
    applicant: ApplicantSummary
    scoring: ScoringSummary
    components: Dict[ComponentKind, ComponentScore]
    recommendation: Recommendation
    key_factors: KeyFactors
    fraud_assessment: FraudAssessment
    credit_limit: CreditLimitRecommendation
    explainability: Explainability
    summary: str
    next_steps: List[str]


@dataclass(frozen=True)
class PortfolioMetrics:
    average_score: float
    average_default_probability: float
    approval_rate: float


@dataclass(frozen=True)
class TopRisk:
    application_id: str
    business_name: str
    score: float
    default_probability: float
    loan_amount: float


@dataclass(frozen=True)
class PortfolioAnalysisReport:
    total_applications: int
    portfolio_metrics: PortfolioMetrics
    risk_distribution: Dict[RiskCategory, int]
    portfolio_risk: PortfolioRiskAnalysis
    top_risks: List[TopRisk]
    recommendations: List[str]
    failed_applications: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class LoanMonitoringReport:
    loan_id: str
    monitoring_date: str
    current_score: float
    original_score: float
    score_delta: float
    current_risk: float
    original_risk: float
    risk_delta: float
    warnings: List[str]
    action_required: MonitoringAction
    recommendations: List[str]


@dataclass(frozen=True)
class ApplicationRanking:
    application_id: str
    business_name: str
    score: float
    rank: int
    recommendation: str


@dataclass(frozen=True)
class ApplicationComparison:
    rankings: List[ApplicationRanking]
    best_candidate: Optional[str]
    analysis: str
    failed_applications: List[str] = field(default_factory=list)
