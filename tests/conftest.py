"""Pytest fixtures for testing"""

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from credit_engine.api.main import create_app
from credit_engine.domain.models import (
    AlternativeData,
    BankingBehavior,
    BusinessInfo,
    BusinessMetrics,
    BusinessStructure,
    CreditApplication,
    CustomerBehavior,
    DigitalFootprint,
    FinancialData,
    Industry,
    LoanRequest,
    PaymentRecord,
    PaymentStatus,
    SupplierRelationships,
    TraditionalCredit,
)


def build_strong_application(applicant_id: str = "app_strong") -> CreditApplication:
    """Established, profitable technology corporation; scores ~783 with PD ~0.07"""
    return CreditApplication(
        applicant_id=applicant_id,
        business_info=BusinessInfo(
            business_name="Acme Analytics Inc",
            industry=Industry.TECHNOLOGY,
            years_in_business=10,
            business_structure=BusinessStructure.CORPORATION,
            number_of_employees=25,
            locations=2,
            ownership_percentage=100,
        ),
        financial_data=FinancialData(
            annual_revenue=500_000,
            monthly_revenue=500_000 / 12,
            monthly_expenses=33_000,
            net_income=100_000,
            profit_margin=0.20,
            cash_reserves=198_000,
            assets=600_000,
            liabilities=150_000,
            revenue_growth_rate=0.25,
        ),
        traditional_credit=TraditionalCredit(
            personal_credit_score=800,
            business_credit_score=90,
            payment_history=[PaymentRecord(PaymentStatus.CURRENT) for _ in range(6)],
            credit_utilization=10,
            total_debt=50_000,
            inquiries=2,
            accounts_open=6,
            oldest_account_age=120,
        ),
        loan_request=LoanRequest(amount=50_000, term=60, purpose="Equipment"),
        alternative_data=AlternativeData(
            banking_behavior=BankingBehavior(
                average_daily_balance=25_000,
                minimum_balance=8_000,
                deposit_frequency=20,
                deposit_consistency=0.9,
                cash_flow_volatility=0.1,
            ),
            business_metrics=BusinessMetrics(average_rating=4.6, social_followers=5_000, website_traffic=50_000),
            digital_footprint=DigitalFootprint(
                domain_age=8, website_quality=0.85, ssl_certificate=True, business_listings=10
            ),
            supplier_relationships=SupplierRelationships(
                number_of_suppliers=8, payment_terms_negotiated=True, trade_references=5, average_payment_days=25
            ),
            customer_behavior=CustomerBehavior(
                repeat_customer_rate=0.65, customer_lifetime_value=8_000, churn_rate=0.1
            ),
        ),
    )


def build_review_band_application(applicant_id: str = "app_review") -> CreditApplication:
    """Thin-margin retail LLC; scores ~683"""
    history = [PaymentRecord(PaymentStatus.CURRENT) for _ in range(5)] + [PaymentRecord(PaymentStatus.LATE_30)]
    return CreditApplication(
        applicant_id=applicant_id,
        business_info=BusinessInfo(
            business_name="Corner Goods LLC",
            industry=Industry.RETAIL,
            years_in_business=3,
            business_structure=BusinessStructure.LLC,
            number_of_employees=8,
            locations=1,
            ownership_percentage=100,
        ),
        financial_data=FinancialData(
            annual_revenue=300_000,
            monthly_revenue=25_000,
            monthly_expenses=23_000,
            net_income=15_000,
            profit_margin=0.05,
            cash_reserves=69_000,
            assets=200_000,
            liabilities=120_000,
            revenue_growth_rate=0.0,
        ),
        traditional_credit=TraditionalCredit(
            personal_credit_score=650,
            business_credit_score=60,
            payment_history=history,
            credit_utilization=45,
            total_debt=100_000,
            inquiries=3,
            oldest_account_age=48,
        ),
        loan_request=LoanRequest(amount=75_000, term=36, purpose="Inventory"),
        alternative_data=AlternativeData(
            banking_behavior=BankingBehavior(overdrafts=1, deposit_consistency=0.7, cash_flow_volatility=0.3),
            business_metrics=BusinessMetrics(average_rating=4.0, social_followers=2_000, website_traffic=10_000),
            digital_footprint=DigitalFootprint(
                domain_age=3, website_quality=0.6, ssl_certificate=True, business_listings=4
            ),
            supplier_relationships=SupplierRelationships(
                number_of_suppliers=4, trade_references=2, average_payment_days=45
            ),
            customer_behavior=CustomerBehavior(
                repeat_customer_rate=0.4, customer_lifetime_value=3_000, churn_rate=0.2
            ),
        ),
    )


@pytest.fixture
def make_strong_application():
    """Factory for independent strong applications with distinct ids"""
    return build_strong_application


@pytest.fixture
def make_review_band_application():
    return build_review_band_application


@pytest.fixture
def strong_application() -> CreditApplication:
    return build_strong_application()


@pytest.fixture
def review_band_application() -> CreditApplication:
    return build_review_band_application()


@pytest.fixture
def low_credit_application() -> CreditApplication:
    """Strong business, but the owner's credit is below the 550 floor"""
    app = build_strong_application("app_low_credit")
    return replace(app, traditional_credit=replace(app.traditional_credit, personal_credit_score=520))


@pytest.fixture
def fraud_application() -> CreditApplication:
    """
    Good score, but one employee on $500k of round-figure revenue, a credit
    file younger than the business and 12 inquiries: fraud score 65.
    """
    app = build_strong_application("app_fraud")
    return replace(
        app,
        business_info=replace(app.business_info, number_of_employees=1),
        traditional_credit=replace(app.traditional_credit, oldest_account_age=60, inquiries=12),
    )


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())
