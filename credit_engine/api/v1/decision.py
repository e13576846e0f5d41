"""POST /v1/instant-decision - real-time approve/decline/review endpoints"""

import logging
import time

from fastapi import APIRouter, Depends, Request

from credit_engine.api.dependencies import get_decision_engine, get_request_id
from credit_engine.api.errors import internal_error, malformed_application
from credit_engine.api.v1.schemas import (
    ApplicationRequest,
    ApplicationsRequest,
    BatchDecisionResponse,
    BatchItemError,
    ThresholdSimulationRequest,
)
from credit_engine.domain.decision import DecisionEngine, get_decision_statistics
from credit_engine.domain.exceptions import BatchItemFailure, MalformedApplicationError
from credit_engine.domain.results import InstantDecisionResult
from credit_engine.infrastructure.observability.logging import log_decision
from credit_engine.infrastructure.observability.metrics import record_batch_failures, record_decision

router = APIRouter()


@router.post("/instant-decision")
async def create_instant_decision(
    request_body: ApplicationRequest,
    request: Request,
    engine: DecisionEngine = Depends(get_decision_engine),
):
    """
    Instant credit decision for a single application.

    Flow:
    1. Validate required numerics
    2. Pre-qualification checks (decline without scoring on first failure)
    3. Scoring and fraud screening concurrently
    4. Fraud override, auto-approve, auto-decline, otherwise manual review
    """
    start_time = time.time()
    request_id = get_request_id(request)
    application = request_body.application

    try:
        result = await engine.instant_decision(application)
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)

    duration_ms = (time.time() - start_time) * 1000
    record_decision(result.decision.value)
    log_decision(request_id, application.applicant_id, result.decision.value, result.score, duration_ms)

    return result


@router.post("/instant-decision/batch", response_model=BatchDecisionResponse)
async def create_batch_decisions(
    request_body: ApplicationsRequest,
    request: Request,
    engine: DecisionEngine = Depends(get_decision_engine),
):
    """Decide many applications; one bad application never sinks the batch"""
    request_id = get_request_id(request)

    try:
        outcomes = await engine.batch_instant_decisions(request_body.applications)
    except Exception as e:
        raise internal_error(e, request_id)

    decisions = {}
    failures = []
    for applicant_id, outcome in outcomes.items():
        if isinstance(outcome, BatchItemFailure):
            failures.append(BatchItemError(applicant_id=applicant_id, error=str(outcome.cause)))
        elif isinstance(outcome, InstantDecisionResult):
            decisions[applicant_id] = outcome
            record_decision(outcome.decision.value)

    record_batch_failures(len(failures))
    logging.info(
        "Batch decisions completed",
        extra={
            "request_id": request_id,
            "step": "batch_complete",
            "decided": len(decisions),
            "failed": len(failures),
        },
    )

    return BatchDecisionResponse(
        decisions=decisions,
        failures=failures,
        statistics=get_decision_statistics(outcomes),
    )


@router.post("/instant-decision/simulate")
async def create_threshold_simulation(
    request_body: ThresholdSimulationRequest,
    request: Request,
    engine: DecisionEngine = Depends(get_decision_engine),
):
    """Replay the decision rules over the given applications with alternative thresholds"""
    request_id = get_request_id(request)
    try:
        simulation = await engine.simulate_threshold_impact(
            request_body.applications,
            auto_approve_threshold=request_body.auto_approve_threshold,
            auto_decline_threshold=request_body.auto_decline_threshold,
        )
    except Exception as e:
        raise internal_error(e, request_id)

    record_batch_failures(simulation.failed)
    return simulation
