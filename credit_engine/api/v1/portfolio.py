"""Portfolio endpoints - analysis, stress tests, loan monitoring, comparisons and fair lending"""

from dataclasses import replace

from fastapi import APIRouter, Depends, Request

from credit_engine.api.dependencies import get_credit_analyst, get_request_id
from credit_engine.api.errors import internal_error, malformed_application
from credit_engine.api.v1.schemas import (
    ApplicationsRequest,
    FairLendingRequest,
    MonitorRequest,
    StressTestRequest,
)
from credit_engine.domain.exceptions import MalformedApplicationError
from credit_engine.domain.fairness import assess_fair_lending
from credit_engine.domain.orchestrator import CreditAnalyst
from credit_engine.domain.portfolio import perform_stress_test
from credit_engine.infrastructure.observability.metrics import record_batch_failures

router = APIRouter()


@router.post("/portfolio/analyze")
async def create_portfolio_analysis(
    request_body: ApplicationsRequest,
    request: Request,
    analyst: CreditAnalyst = Depends(get_credit_analyst),
):
    request_id = get_request_id(request)
    try:
        report = await analyst.score_portfolio(request_body.applications)
    except Exception as e:
        raise internal_error(e, request_id)

    record_batch_failures(len(report.failed_applications))
    return report


@router.post("/portfolio/stress-test")
async def create_stress_test(
    request_body: StressTestRequest,
    request: Request,
    analyst: CreditAnalyst = Depends(get_credit_analyst),
):
    """Score the book, then apply the stress scenario to it"""
    request_id = get_request_id(request)
    try:
        scored, failures = await analyst.score_applications(request_body.applications)
        result = perform_stress_test(scored, request_body.scenario, analyst.settings.loss_given_default)
    except Exception as e:
        raise internal_error(e, request_id)

    record_batch_failures(len(failures))
    return result


@router.post("/loans/{loan_id}/monitor")
async def create_loan_monitoring(
    loan_id: str,
    request_body: MonitorRequest,
    request: Request,
    analyst: CreditAnalyst = Depends(get_credit_analyst),
):
    request_id = get_request_id(request)
    try:
        report = await analyst.monitor_existing_loan(
            request_body.original_application,
            request_body.current_financials,
            request_body.current_alternative_data,
        )
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)

    return replace(report, loan_id=loan_id)


@router.post("/applications/compare")
async def create_comparison(
    request_body: ApplicationsRequest,
    request: Request,
    analyst: CreditAnalyst = Depends(get_credit_analyst),
):
    request_id = get_request_id(request)
    try:
        comparison = await analyst.compare_applications(request_body.applications)
    except Exception as e:
        raise internal_error(e, request_id)

    record_batch_failures(len(comparison.failed_applications))
    return comparison


@router.post("/fair-lending/assessment")
async def create_fair_lending_assessment(
    request_body: FairLendingRequest,
    request: Request,
    analyst: CreditAnalyst = Depends(get_credit_analyst),
):
    """Score the applications, then test outcomes across the supplied groups"""
    request_id = get_request_id(request)
    try:
        scored, failures = await analyst.score_applications(request_body.applications)
        report = assess_fair_lending(scored, request_body.groups, request_body.repaid, request_body.regions)
    except Exception as e:
        raise internal_error(e, request_id)

    record_batch_failures(len(failures))
    return report
