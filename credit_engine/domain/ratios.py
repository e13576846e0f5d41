"""Guarded financial ratios used across scoring, fraud and monitoring"""

from typing import Sequence

from credit_engine.domain.models import FinancialData, PaymentRecord, PaymentStatus
from credit_engine.utils.numbers import safe_ratio

# Substituted when equity is zero or negative
INSOLVENT_DEBT_TO_EQUITY = 5.0


def late_payment_count(history: Sequence[PaymentRecord]) -> int:
    return sum(1 for p in history if p.payment_status != PaymentStatus.CURRENT)


def late_payment_ratio(history: Sequence[PaymentRecord]) -> float:
    """Share of tradelines not current; an empty history counts as no lates"""
    return safe_ratio(late_payment_count(history), len(history))


def months_of_runway(financials: FinancialData) -> float:
    """Cash reserves over monthly expenses; zero expenses yields 0"""
    if financials.monthly_expenses <= 0:
        return 0.0
    return max(0.0, financials.cash_reserves / financials.monthly_expenses)


def debt_to_equity(financials: FinancialData) -> float:
    equity = financials.assets - financials.liabilities
    if equity <= 0:
        return INSOLVENT_DEBT_TO_EQUITY
    return financials.liabilities / equity
