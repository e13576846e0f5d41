"""Adverse action notices for declined or conditioned applications"""

from datetime import date

from credit_engine.domain.models import CreditApplication
from credit_engine.domain.results import AdverseActionNotice, CreditScoreResult

MAX_NOTICE_REASONS = 4

APPLICANT_RIGHTS = [
    "You have the right to obtain a free copy of your credit report from the credit bureau(s) we used",
    "You have the right to dispute the accuracy or completeness of any information in your credit report",
    "The credit bureau(s) did not make the decision and cannot explain why your application was denied",
    "You have the right to request additional information about the reasons for this decision",
]

NOTICE_TEMPLATE = """ADVERSE ACTION NOTICE

Date: {date}

To: {business_name}

We regret to inform you that your application for credit has been {decision}.

PRIMARY REASONS FOR THIS DECISION:
{reasons}

YOUR RIGHTS UNDER FEDERAL LAW:
{rights}

This notice is provided in compliance with the Equal Credit Opportunity Act and the Fair Credit Reporting Act."""


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def generate_adverse_action_notice(
    application: CreditApplication,
    credit_score: CreditScoreResult,
    decision: str,
    notice_date: date | None = None,
) -> AdverseActionNotice:
    """Build the notice from the strongest negative key factors"""
    reasons = [f.factor for f in credit_score.key_factors.negative[:MAX_NOTICE_REASONS]]
    notice = NOTICE_TEMPLATE.format(
        date=(notice_date or date.today()).isoformat(),
        business_name=application.business_info.business_name,
        decision=decision,
        reasons=_numbered(reasons) if reasons else "1. Overall credit profile did not meet requirements",
        rights=_numbered(APPLICANT_RIGHTS),
    )
    return AdverseActionNotice(notice=notice, reasons=reasons, rights=list(APPLICANT_RIGHTS))
