"""Scoring endpoints - credit scores, fraud screening, limits, pricing and notices"""

from fastapi import APIRouter, Depends, Request

from credit_engine.api.dependencies import get_credit_analyst, get_request_id, get_scoring_engine
from credit_engine.api.errors import internal_error, malformed_application
from credit_engine.api.v1.schemas import AdverseActionRequest, ApplicationRequest, PricingRequest
from credit_engine.domain.compliance import generate_adverse_action_notice
from credit_engine.domain.credit_limit import calculate_optimal_credit_limit
from credit_engine.domain.exceptions import MalformedApplicationError
from credit_engine.domain.fraud import detect_fraud
from credit_engine.domain.orchestrator import CreditAnalyst
from credit_engine.domain.pricing import optimize_loan_pricing
from credit_engine.domain.scoring import ScoringEngine
from credit_engine.domain.validation import validate_application
from credit_engine.infrastructure.observability.metrics import record_fraud_screening, scoring_duration_histogram

router = APIRouter()


@router.post("/credit-scores")
def create_credit_score(
    request_body: ApplicationRequest,
    request: Request,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    """Full multi-component score with explainability"""
    request_id = get_request_id(request)
    try:
        with scoring_duration_histogram.time():
            return engine.score(request_body.application)
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)


@router.post("/fraud-detection")
def create_fraud_assessment(request_body: ApplicationRequest, request: Request):
    request_id = get_request_id(request)
    try:
        validate_application(request_body.application)
        assessment = detect_fraud(request_body.application)
        record_fraud_screening(assessment.recommendation.value)
        return assessment
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)


@router.post("/credit-limit")
def create_credit_limit(
    request_body: ApplicationRequest,
    request: Request,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    request_id = get_request_id(request)
    try:
        score = engine.score(request_body.application)
        return calculate_optimal_credit_limit(request_body.application, score)
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)


@router.post("/analysis")
async def create_analysis(
    request_body: ApplicationRequest,
    request: Request,
    analyst: CreditAnalyst = Depends(get_credit_analyst),
):
    """
    Complete analyst report.

    Scoring and fraud screening run concurrently; the credit limit is
    derived from the score afterwards.
    """
    request_id = get_request_id(request)
    try:
        report = await analyst.analyze_application(request_body.application)
        record_fraud_screening(report.fraud_assessment.recommendation.value)
        return report
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)


@router.post("/pricing")
def create_pricing(
    request_body: PricingRequest,
    request: Request,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    request_id = get_request_id(request)
    try:
        score = engine.score(request_body.application)
        return optimize_loan_pricing(request_body.application, score, request_body.market)
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)


@router.post("/adverse-action-notice")
def create_adverse_action_notice(
    request_body: AdverseActionRequest,
    request: Request,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    request_id = get_request_id(request)
    try:
        score = engine.score(request_body.application)
        return generate_adverse_action_notice(request_body.application, score, request_body.decision)
    except MalformedApplicationError as e:
        raise malformed_application(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)
