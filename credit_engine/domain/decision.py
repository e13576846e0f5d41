"""Real-time credit decisions - instant approve/decline/review for small loans"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Union

from credit_engine.config import Settings, settings as default_settings
from credit_engine.domain.exceptions import BatchItemFailure
from credit_engine.domain.fraud import detect_fraud
from credit_engine.domain.installments import build_loan_terms
from credit_engine.domain.models import CreditApplication
from credit_engine.domain.results import (
    CreditScoreResult,
    DecisionStatistics,
    FraudAssessment,
    InstantDecision,
    InstantDecisionResult,
    ReviewPriority,
    ThresholdSimulation,
)
from credit_engine.domain.scoring import ScoringEngine
from credit_engine.domain.validation import validate_application
from credit_engine.utils.numbers import safe_ratio

logger = logging.getLogger(__name__)

AUTO_APPROVE_MAX_PROBABILITY = 0.10
AUTO_DECLINE_MIN_PROBABILITY = 0.50
HIGH_PRIORITY_SCORE = 700
HIGH_PRIORITY_AMOUNT = 500_000
MEDIUM_PRIORITY_SCORE = 600

BatchOutcome = Union[InstantDecisionResult, BatchItemFailure]


@dataclass(frozen=True)
class PreQualificationCheck:
    name: str
    fails: Callable[[CreditApplication], bool]
    reason: str


# Evaluated in order; the first failure ends the workflow without scoring
PREQUALIFICATION_CHECKS = [
    PreQualificationCheck(
        "minimum_credit_score",
        lambda a: a.traditional_credit.personal_credit_score < 550,
        "Personal credit score below minimum threshold of 550",
    ),
    PreQualificationCheck(
        "minimum_time_in_business",
        lambda a: a.business_info.years_in_business < 1,
        "Business must be operating for at least 1 year",
    ),
    PreQualificationCheck(
        "bankruptcy",
        lambda a: a.traditional_credit.bankruptcies > 0,
        "Recent bankruptcy on record - not eligible for instant approval",
    ),
    PreQualificationCheck(
        "minimum_revenue",
        lambda a: a.financial_data.annual_revenue < 100_000,
        "Annual revenue below minimum threshold of $100,000",
    ),
    PreQualificationCheck(
        "profitability",
        lambda a: a.financial_data.net_income < 0,
        "Business must demonstrate profitability",
    ),
    PreQualificationCheck(
        "debt_to_revenue",
        lambda a: safe_ratio(a.traditional_credit.total_debt, a.financial_data.annual_revenue) > 2,
        "Debt-to-revenue ratio exceeds maximum threshold of 2x",
    ),
    PreQualificationCheck(
        "collections",
        lambda a: a.traditional_credit.collections > 2,
        "Multiple accounts in collections - requires manual review",
    ),
]


def run_prequalification_checks(application: CreditApplication) -> Optional[PreQualificationCheck]:
    """Return the first failed check, or None when the application pre-qualifies"""
    for check in PREQUALIFICATION_CHECKS:
        if check.fails(application):
            return check
    return None


def calculate_review_priority(score: float, amount: float) -> ReviewPriority:
    if score >= HIGH_PRIORITY_SCORE or amount > HIGH_PRIORITY_AMOUNT:
        return ReviewPriority.HIGH
    if score >= MEDIUM_PRIORITY_SCORE:
        return ReviewPriority.MEDIUM
    return ReviewPriority.LOW


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class DecisionEngine:
    """
    Instant-decision workflow.

    PreQualify -> Scoring + Fraud (concurrent) -> Decide -> approve | decline | review
    """

    def __init__(
        self,
        settings: Settings | None = None,
        scoring_engine: ScoringEngine | None = None,
        fraud_detector: Callable[[CreditApplication], FraudAssessment] = detect_fraud,
    ):
        self.settings = settings or default_settings
        self.scoring_engine = scoring_engine or ScoringEngine(self.settings)
        self.fraud_detector = fraud_detector

    async def _score_and_screen(self, application: CreditApplication) -> tuple[CreditScoreResult, FraudAssessment]:
        score, fraud = await asyncio.gather(
            asyncio.to_thread(self.scoring_engine.score, application),
            asyncio.to_thread(self.fraud_detector, application),
        )
        return score, fraud

    async def instant_decision(self, application: CreditApplication) -> InstantDecisionResult:
        """
        Decide a single application.

        Raises:
            MalformedApplicationError: required numerics missing or not finite
        """
        started = time.perf_counter()
        validate_application(application)

        failed_check = run_prequalification_checks(application)
        if failed_check is not None:
            logger.info(
                "Pre-qualification failed",
                extra={
                    "applicant_id": application.applicant_id,
                    "step": "prequalification",
                    "check": failed_check.name,
                },
            )
            return InstantDecisionResult(
                decision=InstantDecision.DECLINE,
                reason=failed_check.reason,
                processing_time_ms=_elapsed_ms(started),
                requires_manual_review=False,
            )

        score, fraud = await self._score_and_screen(application)
        return self.decide(
            application,
            score,
            fraud,
            started,
            auto_approve_threshold=self.settings.auto_approve_threshold,
            auto_decline_threshold=self.settings.auto_decline_threshold,
        )

    def decide(
        self,
        application: CreditApplication,
        score: CreditScoreResult,
        fraud: FraudAssessment,
        started: float,
        auto_approve_threshold: float,
        auto_decline_threshold: float,
    ) -> InstantDecisionResult:
        """Apply the decision rules to a scored, fraud-screened application"""
        amount = application.loan_request.amount
        overall = score.overall_score

        if fraud.is_fraudulent:
            return InstantDecisionResult(
                decision=InstantDecision.DECLINE,
                reason="Application flagged for fraud review",
                processing_time_ms=_elapsed_ms(started),
                requires_manual_review=True,
                score=overall,
            )

        if (
            overall >= auto_approve_threshold
            and score.default_probability < AUTO_APPROVE_MAX_PROBABILITY
            and amount <= self.settings.max_auto_approve_amount
        ):
            rate = score.recommendation.suggested_interest_rate
            terms = build_loan_terms(amount, rate, application.loan_request.term)
            return InstantDecisionResult(
                decision=InstantDecision.APPROVE,
                reason="Excellent credit profile meets auto-approval criteria",
                processing_time_ms=_elapsed_ms(started),
                requires_manual_review=False,
                score=overall,
                approved_amount=amount,
                interest_rate=terms.rate,
                terms=terms,
            )

        if overall < auto_decline_threshold or score.default_probability > AUTO_DECLINE_MIN_PROBABILITY:
            return InstantDecisionResult(
                decision=InstantDecision.DECLINE,
                reason=score.recommendation.reasoning,
                processing_time_ms=_elapsed_ms(started),
                requires_manual_review=False,
                score=overall,
                improvement_suggestions=[s.change for s in score.explainability.what_if_scenarios],
            )

        return InstantDecisionResult(
            decision=InstantDecision.REVIEW,
            reason="Application requires underwriter review",
            processing_time_ms=_elapsed_ms(started),
            requires_manual_review=True,
            score=overall,
            review_priority=calculate_review_priority(overall, amount),
        )

    async def batch_instant_decisions(
        self, applications: Sequence[CreditApplication]
    ) -> Dict[str, BatchOutcome]:
        """
        Decide many applications concurrently, keyed by applicant id.

        A failing application yields a BatchItemFailure in its slot; the rest
        of the batch still completes. Completion order is not guaranteed.
        """
        semaphore = asyncio.Semaphore(self.settings.batch_max_concurrency)

        async def decide_one(application: CreditApplication) -> InstantDecisionResult:
            async with semaphore:
                return await self.instant_decision(application)

        outcomes = await asyncio.gather(*(decide_one(a) for a in applications), return_exceptions=True)

        results: Dict[str, BatchOutcome] = {}
        for application, outcome in zip(applications, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Batch item failed: {outcome}",
                    extra={"applicant_id": application.applicant_id, "step": "batch_decision"},
                )
                results[application.applicant_id] = BatchItemFailure(application.applicant_id, outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[application.applicant_id] = outcome
        return results

    async def simulate_threshold_impact(
        self,
        applications: Sequence[CreditApplication],
        auto_approve_threshold: float,
        auto_decline_threshold: float,
    ) -> ThresholdSimulation:
        """
        Re-run the decision rules with alternative score thresholds.

        Expected default rate is the mean PD of the loans that would be approved.
        Failing applications are counted in `failed` and left out of the rates.
        """
        semaphore = asyncio.Semaphore(self.settings.batch_max_concurrency)

        async def evaluate(application: CreditApplication) -> tuple[InstantDecisionResult, float | None]:
            async with semaphore:
                started = time.perf_counter()
                validate_application(application)
                failed_check = run_prequalification_checks(application)
                if failed_check is not None:
                    declined = InstantDecisionResult(
                        InstantDecision.DECLINE, failed_check.reason, _elapsed_ms(started), False
                    )
                    return declined, None
                score, fraud = await self._score_and_screen(application)
                result = self.decide(
                    application, score, fraud, started, auto_approve_threshold, auto_decline_threshold
                )
                return result, score.default_probability

        outcomes = await asyncio.gather(*(evaluate(a) for a in applications), return_exceptions=True)

        evaluated = []
        for application, outcome in zip(applications, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Simulation item failed: {outcome}",
                    extra={"applicant_id": application.applicant_id, "step": "threshold_simulation"},
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                evaluated.append(outcome)

        count = len(evaluated)
        approved_pds = [pd for result, pd in evaluated if result.decision == InstantDecision.APPROVE]
        manual = sum(1 for result, _ in evaluated if result.requires_manual_review)

        return ThresholdSimulation(
            auto_approve_threshold=auto_approve_threshold,
            auto_decline_threshold=auto_decline_threshold,
            approval_rate=safe_ratio(len(approved_pds), count),
            expected_default_rate=safe_ratio(sum(approved_pds), len(approved_pds)),
            manual_review_rate=safe_ratio(manual, count),
            total_volume=len(applications),
            failed=len(applications) - count,
        )


def get_decision_statistics(decisions: Mapping[str, BatchOutcome]) -> DecisionStatistics:
    """Summarize a batch; failed items are counted but excluded from the rates"""
    results = [d for d in decisions.values() if isinstance(d, InstantDecisionResult)]
    failed = len(decisions) - len(results)

    approved = [r for r in results if r.decision == InstantDecision.APPROVE]
    declined = sum(1 for r in results if r.decision == InstantDecision.DECLINE)
    review = sum(1 for r in results if r.decision == InstantDecision.REVIEW)
    approved_amounts = [r.approved_amount for r in approved if r.approved_amount]

    return DecisionStatistics(
        total_applications=len(decisions),
        approved=len(approved),
        declined=declined,
        requires_review=review,
        failed=failed,
        approval_rate=safe_ratio(len(approved), len(results)),
        average_processing_time_ms=safe_ratio(sum(r.processing_time_ms for r in results), len(results)),
        average_approved_amount=safe_ratio(sum(approved_amounts), len(approved_amounts)),
    )
