"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from credit_engine.domain.decision import DecisionEngine
from credit_engine.domain.orchestrator import CreditAnalyst
from credit_engine.domain.scoring import ScoringEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_scoring_engine() -> ScoringEngine:
    """Provide scoring engine instance"""
    return ScoringEngine()


def get_decision_engine() -> DecisionEngine:
    """Provide instant-decision engine instance"""
    return DecisionEngine()


def get_credit_analyst() -> CreditAnalyst:
    """Provide orchestrating analyst instance"""
    return CreditAnalyst()
