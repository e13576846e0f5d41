"""Pydantic schemas for API request/response validation"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from credit_engine.domain.models import AlternativeData, CreditApplication, FinancialData
from credit_engine.domain.results import (
    DecisionStatistics,
    InstantDecisionResult,
    MarketConditions,
    StressScenario,
)


class ApplicationRequest(BaseModel):
    """Request body carrying a single credit application"""

    application: CreditApplication


class ApplicationsRequest(BaseModel):
    """Request body carrying many applications"""

    applications: List[CreditApplication] = Field(..., description="Applications to process")


class BatchItemError(BaseModel):
    """One application that failed inside a batch"""

    applicant_id: str
    error: str


class BatchDecisionResponse(BaseModel):
    """Response for POST /v1/instant-decision/batch"""

    decisions: Dict[str, InstantDecisionResult]
    failures: List[BatchItemError]
    statistics: DecisionStatistics


class StressTestRequest(BaseModel):
    """Request body for POST /v1/portfolio/stress-test"""

    applications: List[CreditApplication]
    scenario: StressScenario = Field(default_factory=StressScenario)


class MonitorRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/monitor"""

    original_application: CreditApplication
    current_financials: FinancialData
    current_alternative_data: AlternativeData = Field(default_factory=AlternativeData)


class PricingRequest(BaseModel):
    """Request body for POST /v1/pricing"""

    application: CreditApplication
    market: MarketConditions


class AdverseActionRequest(BaseModel):
    """Request body for POST /v1/adverse-action-notice"""

    application: CreditApplication
    decision: str = Field("declined", min_length=1, description="Wording of the adverse action taken")


class ThresholdSimulationRequest(BaseModel):
    """Request body for POST /v1/instant-decision/simulate"""

    applications: List[CreditApplication]
    auto_approve_threshold: float = Field(..., ge=300, le=850)
    auto_decline_threshold: float = Field(..., ge=300, le=850)


class FairLendingRequest(BaseModel):
    """Request body for POST /v1/fair-lending/assessment"""

    applications: List[CreditApplication]
    groups: Dict[str, str] = Field(..., description="Protected-group label per applicant id")
    repaid: Optional[Dict[str, bool]] = Field(None, description="Observed repayment per applicant id")
    regions: Optional[Dict[str, str]] = Field(None, description="Geography per applicant id")
