"""Credit analyst orchestration - end-to-end reports built from the engines"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Tuple

from credit_engine.config import Settings, settings as default_settings
from credit_engine.domain.credit_limit import calculate_optimal_credit_limit
from credit_engine.domain.exceptions import BatchItemFailure
from credit_engine.domain.fraud import FRAUDULENT_THRESHOLD, INVESTIGATE_THRESHOLD, detect_fraud
from credit_engine.domain.models import AlternativeData, CreditApplication, FinancialData
from credit_engine.domain.monitoring import generate_early_warnings
from credit_engine.domain.portfolio import analyze_portfolio_risk
from credit_engine.domain.reports import (
    ApplicantSummary,
    ApplicationComparison,
    ApplicationRanking,
    CreditAnalysisReport,
    LoanMonitoringReport,
    MonitoringAction,
    PortfolioAnalysisReport,
    PortfolioMetrics,
    ScoringSummary,
    TopRisk,
)
from credit_engine.domain.results import (
    CreditScoreResult,
    FraudAssessment,
    LoanDecision,
    RiskCategory,
    ScoredApplication,
    Severity,
)
from credit_engine.domain.scoring import ScoringEngine
from credit_engine.domain.validation import validate_application
from credit_engine.utils.numbers import safe_ratio

logger = logging.getLogger(__name__)

TOP_RISK_COUNT = 10

NEXT_STEPS = {
    LoanDecision.APPROVE: [
        "Generate approval letter with terms",
        "Schedule closing appointment",
        "Prepare loan documents",
        "Set up disbursement schedule",
    ],
    LoanDecision.APPROVE_WITH_CONDITIONS: [
        "Send conditional approval letter",
        "Document required conditions clearly",
        "Set timeline for condition fulfillment",
        "Schedule follow-up review",
    ],
    LoanDecision.REVIEW: [
        "Assign to senior underwriter for manual review",
        "Request additional financial documentation",
        "Conduct reference checks",
        "Perform site visit if necessary",
    ],
    LoanDecision.DECLINE: [
        "Send decline letter with specific reasons",
        "Provide improvement recommendations",
        "Offer reapplication timeline",
        "Suggest alternative financing options if applicable",
    ],
}

FRAUD_ESCALATION_STEPS = [
    "IMMEDIATE: Escalate to fraud investigation team",
    "Verify applicant identity and business registration",
    "Request additional documentation",
]

SEVERITY_ACTIONS = {
    Severity.CRITICAL: MonitoringAction.ESCALATE,
    Severity.HIGH: MonitoringAction.RESTRUCTURE,
    Severity.MEDIUM: MonitoringAction.REVIEW,
}

MONITORING_RECOMMENDATIONS = {
    MonitoringAction.NONE: [
        "Continue standard monitoring procedures",
        "Next review in 90 days",
    ],
    MonitoringAction.MONITOR: [
        "Increase monitoring frequency to monthly",
        "Request updated financials next month",
        "Watch for further deterioration",
    ],
    MonitoringAction.REVIEW: [
        "Schedule meeting with borrower within 2 weeks",
        "Request detailed financial projections",
        "Assess need for additional collateral or guarantees",
        "Consider covenant modifications",
    ],
    MonitoringAction.RESTRUCTURE: [
        "PRIORITY: Immediate borrower meeting required",
        "Engage workout team",
        "Evaluate restructuring options",
        "Consider payment plan modifications",
        "Assess collateral liquidation value",
    ],
    MonitoringAction.ESCALATE: [
        "URGENT: Escalate to special assets team",
        "Consider acceleration of loan",
        "Evaluate legal remedies",
        "Begin collection procedures",
        "Update loss reserves",
    ],
}

# Warning keyword -> extra recommendation
WARNING_RECOMMENDATIONS = [
    ("cash reserves", "Require cash injection or additional equity"),
    ("overdraft", "Implement cash management controls"),
    ("revenue declining", "Request business plan update with recovery strategy"),
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_executive_summary(
    application: CreditApplication, score: CreditScoreResult, fraud: FraudAssessment
) -> str:
    recommendation = score.recommendation
    parts = [
        f"{application.business_info.business_name} has received a credit score of "
        f"{round(score.overall_score)}/850 ({score.rating.value}) with a "
        f"{score.default_probability * 100:.1f}% default probability."
    ]

    if fraud.risk_score > FRAUDULENT_THRESHOLD:
        parts.append("ALERT: High fraud risk detected. Manual investigation required.")
    elif fraud.risk_score > INVESTIGATE_THRESHOLD:
        parts.append("CAUTION: Moderate fraud indicators present. Additional verification recommended.")

    if recommendation.decision == LoanDecision.APPROVE:
        parts.append(
            f"Recommended for approval with maximum loan amount of ${recommendation.max_loan_amount:,.0f} "
            f"at {recommendation.suggested_interest_rate:.2f}% interest rate."
        )
    elif recommendation.decision == LoanDecision.APPROVE_WITH_CONDITIONS:
        parts.append(
            f"Conditional approval recommended with {len(recommendation.conditions)} conditions. "
            f"Maximum loan amount: ${recommendation.max_loan_amount:,.0f}."
        )
    elif recommendation.decision == LoanDecision.REVIEW:
        parts.append("Manual underwriting review required before final decision.")
    else:
        parts.append("Application does not meet minimum credit standards at this time.")

    if score.key_factors.positive:
        parts.append(f"Key strength: {score.key_factors.positive[0].factor}.")
    if score.key_factors.negative:
        parts.append(f"Primary concern: {score.key_factors.negative[0].factor}.")

    return " ".join(parts)


def generate_next_steps(score: CreditScoreResult, fraud: FraudAssessment) -> List[str]:
    if fraud.risk_score > FRAUDULENT_THRESHOLD:
        return list(FRAUD_ESCALATION_STEPS)

    decision = score.recommendation.decision
    steps = list(NEXT_STEPS[decision])
    if fraud.risk_score > INVESTIGATE_THRESHOLD:
        steps.insert(0, "Verify flagged financial figures before proceeding")

    if decision in (LoanDecision.APPROVE, LoanDecision.APPROVE_WITH_CONDITIONS) and score.risk_category in (
        RiskCategory.MEDIUM,
        RiskCategory.HIGH,
    ):
        steps.append("Set up enhanced monitoring for this account")
        steps.append("Schedule quarterly portfolio reviews")

    return steps


def determine_monitoring_action(severity: Severity, warning_count: int) -> MonitoringAction:
    if severity in SEVERITY_ACTIONS:
        return SEVERITY_ACTIONS[severity]
    return MonitoringAction.MONITOR if warning_count else MonitoringAction.NONE


def generate_monitoring_recommendations(action: MonitoringAction, warnings: List[str]) -> List[str]:
    recommendations = list(MONITORING_RECOMMENDATIONS[action])
    lowered = [w.lower() for w in warnings]
    for keyword, recommendation in WARNING_RECOMMENDATIONS:
        if any(keyword in w for w in lowered):
            recommendations.append(recommendation)
    return recommendations


class CreditAnalyst:
    """Composes scoring, fraud screening and risk features into reports"""

    def __init__(self, settings: Settings | None = None, scoring_engine: ScoringEngine | None = None):
        self.settings = settings or default_settings
        self.scoring_engine = scoring_engine or ScoringEngine(self.settings)

    async def analyze_application(self, application: CreditApplication) -> CreditAnalysisReport:
        validate_application(application)
        score, fraud = await asyncio.gather(
            asyncio.to_thread(self.scoring_engine.score, application),
            asyncio.to_thread(detect_fraud, application),
        )
        credit_limit = calculate_optimal_credit_limit(application, score)
        business = application.business_info

        return CreditAnalysisReport(
            application_id=application.applicant_id,
            timestamp=_now(),
            applicant=ApplicantSummary(
                business_name=business.business_name,
                industry=getattr(business.industry, "value", str(business.industry)),
                years_in_business=business.years_in_business,
            ),
            scoring=ScoringSummary(
                overall_score=score.overall_score,
                rating=score.rating,
                default_probability=score.default_probability,
                risk_category=score.risk_category,
                confidence_level=score.confidence_level,
            ),
            components=score.component_scores,
            recommendation=score.recommendation,
            key_factors=score.key_factors,
            fraud_assessment=fraud,
            credit_limit=credit_limit,
            explainability=score.explainability,
            summary=generate_executive_summary(application, score, fraud),
            next_steps=generate_next_steps(score, fraud),
        )

    async def score_applications(
        self, applications: Sequence[CreditApplication]
    ) -> Tuple[List[ScoredApplication], List[BatchItemFailure]]:
        """Score concurrently; failures are collected, never raised"""
        semaphore = asyncio.Semaphore(self.settings.batch_max_concurrency)

        async def score_one(application: CreditApplication) -> CreditScoreResult:
            async with semaphore:
                return await asyncio.to_thread(self.scoring_engine.score, application)

        outcomes = await asyncio.gather(*(score_one(a) for a in applications), return_exceptions=True)

        scored, failures = [], []
        for application, outcome in zip(applications, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Scoring failed: {outcome}",
                    extra={"applicant_id": application.applicant_id, "step": "batch_scoring"},
                )
                failures.append(BatchItemFailure(application.applicant_id, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                scored.append(ScoredApplication(application=application, score=outcome))
        return scored, failures

    async def score_portfolio(self, applications: Sequence[CreditApplication]) -> PortfolioAnalysisReport:
        scored, failures = await self.score_applications(applications)
        count = len(scored)

        risk_distribution: Dict[RiskCategory, int] = {category: 0 for category in RiskCategory}
        for item in scored:
            risk_distribution[item.score.risk_category] += 1

        portfolio_risk = analyze_portfolio_risk(scored, self.settings.loss_given_default)
        riskiest = sorted(scored, key=lambda s: s.default_probability, reverse=True)[:TOP_RISK_COUNT]

        return PortfolioAnalysisReport(
            total_applications=len(applications),
            portfolio_metrics=PortfolioMetrics(
                average_score=safe_ratio(sum(s.score.overall_score for s in scored), count),
                average_default_probability=safe_ratio(sum(s.default_probability for s in scored), count),
                approval_rate=safe_ratio(
                    sum(1 for s in scored if s.score.recommendation.decision == LoanDecision.APPROVE), count
                ),
            ),
            risk_distribution=risk_distribution,
            portfolio_risk=portfolio_risk,
            top_risks=[
                TopRisk(
                    application_id=s.application.applicant_id,
                    business_name=s.application.business_info.business_name,
                    score=s.score.overall_score,
                    default_probability=s.default_probability,
                    loan_amount=s.amount,
                )
                for s in riskiest
            ],
            recommendations=portfolio_risk.recommendations,
            failed_applications=[f.applicant_id for f in failures],
        )

    async def monitor_existing_loan(
        self,
        original_application: CreditApplication,
        current_financials: FinancialData,
        current_alternative_data: AlternativeData,
    ) -> LoanMonitoringReport:
        """Re-score a booked loan on fresh data and decide how closely to watch it"""
        updated_application = replace(
            original_application,
            financial_data=current_financials,
            alternative_data=current_alternative_data,
        )
        current, original = await asyncio.gather(
            asyncio.to_thread(self.scoring_engine.score, updated_application),
            asyncio.to_thread(self.scoring_engine.score, original_application),
        )

        early_warnings = generate_early_warnings(current_financials, current_alternative_data)
        action = determine_monitoring_action(early_warnings.severity, len(early_warnings.warnings))

        logger.info(
            "Loan monitored",
            extra={
                "applicant_id": original_application.applicant_id,
                "step": "loan_monitoring",
                "severity": early_warnings.severity.value,
                "action": action.value,
            },
        )

        return LoanMonitoringReport(
            loan_id=original_application.applicant_id,
            monitoring_date=_now(),
            current_score=current.overall_score,
            original_score=original.overall_score,
            score_delta=current.overall_score - original.overall_score,
            current_risk=current.default_probability,
            original_risk=original.default_probability,
            risk_delta=current.default_probability - original.default_probability,
            warnings=early_warnings.warnings,
            action_required=action,
            recommendations=generate_monitoring_recommendations(action, early_warnings.warnings),
        )

    async def compare_applications(self, applications: Sequence[CreditApplication]) -> ApplicationComparison:
        scored, failures = await self.score_applications(applications)
        ranked = sorted(scored, key=lambda s: s.score.overall_score, reverse=True)
        failed_ids = [f.applicant_id for f in failures]

        if not ranked:
            return ApplicationComparison(
                rankings=[], best_candidate=None, analysis="No applications could be scored", failed_applications=failed_ids
            )

        rankings = [
            ApplicationRanking(
                application_id=s.application.applicant_id,
                business_name=s.application.business_info.business_name,
                score=s.score.overall_score,
                rank=rank,
                recommendation=s.score.recommendation.decision.value,
            )
            for rank, s in enumerate(ranked, start=1)
        ]
        best = ranked[0]
        analysis = (
            f"{best.application.business_info.business_name} ranks highest with a score of "
            f"{round(best.score.overall_score)} and {best.score.recommendation.decision.value} recommendation."
        )

        return ApplicationComparison(
            rankings=rankings,
            best_candidate=best.application.applicant_id,
            analysis=analysis,
            failed_applications=failed_ids,
        )
