"""Domain models - pure Python dataclasses representing a credit application"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Industry(str, Enum):
    """Industries with a known risk profile; anything else falls into OTHER"""

    TECHNOLOGY = "technology"
    HEALTHCARE = "healthcare"
    FINANCIAL_SERVICES = "financial_services"
    RETAIL = "retail"
    FOOD_SERVICE = "food_service"
    CONSTRUCTION = "construction"
    TRANSPORTATION = "transportation"
    MANUFACTURING = "manufacturing"
    PROFESSIONAL_SERVICES = "professional_services"
    EDUCATION = "education"
    REAL_ESTATE = "real_estate"
    HOSPITALITY = "hospitality"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


class BusinessStructure(str, Enum):
    SOLE_PROPRIETORSHIP = "sole_proprietorship"
    LLC = "llc"
    CORPORATION = "corporation"
    S_CORP = "s_corp"
    PARTNERSHIP = "partnership"


class PaymentStatus(str, Enum):
    CURRENT = "current"
    LATE_30 = "late_30"
    LATE_60 = "late_60"
    LATE_90 = "late_90"
    DEFAULT = "default"


class ComponentKind(str, Enum):
    """The five weighted components of the overall score"""

    TRADITIONAL_CREDIT = "traditional_credit"
    FINANCIAL_HEALTH = "financial_health"
    BUSINESS_STABILITY = "business_stability"
    ALTERNATIVE_DATA = "alternative_data"
    INDUSTRY_RISK = "industry_risk"


@dataclass(frozen=True)
class PaymentRecord:
    """Single tradeline from the credit bureau"""

    payment_status: PaymentStatus
    creditor: str = ""
    account_type: str = ""
    balance: float = 0.0
    months_history: int = 0


@dataclass(frozen=True)
class TraditionalCredit:
    """Credit bureau data for the owner and the business"""

    personal_credit_score: float  # 300-850
    credit_utilization: float  # percent, 0-100
    total_debt: float
    payment_history: List[PaymentRecord] = field(default_factory=list)
    business_credit_score: Optional[float] = None  # 0-100
    bankruptcies: int = 0
    foreclosures: int = 0
    collections: int = 0
    inquiries: int = 0
    accounts_open: int = 0
    oldest_account_age: int = 0  # months


@dataclass(frozen=True)
class FinancialData:
    """Reported business financials"""

    annual_revenue: float
    monthly_revenue: float
    monthly_expenses: float
    net_income: float
    profit_margin: float  # fraction, 0.15 = 15%
    cash_reserves: float
    assets: float
    liabilities: float
    revenue_growth_rate: float  # fraction, year over year
    accounts_receivable: float = 0.0
    accounts_payable: float = 0.0
    inventory: float = 0.0


@dataclass(frozen=True)
class BusinessInfo:
    business_name: str
    industry: Industry
    years_in_business: float
    business_structure: BusinessStructure
    number_of_employees: int = 1
    locations: int = 1
    ownership_percentage: float = 100.0


@dataclass(frozen=True)
class BankingBehavior:
    average_daily_balance: float = 0.0
    minimum_balance: float = 0.0
    overdrafts: int = 0
    nsf: int = 0  # non-sufficient funds events
    deposit_frequency: float = 0.0  # deposits per month
    deposit_consistency: float = 0.0  # 0-1
    cash_flow_volatility: float = 0.0  # 0-1


@dataclass(frozen=True)
class BusinessMetrics:
    average_rating: float = 0.0  # out of 5
    total_reviews: int = 0
    review_response_rate: float = 0.0
    social_followers: int = 0
    engagement_rate: float = 0.0
    active_channels: int = 0
    website_traffic: int = 0  # monthly visits
    conversion_rate: float = 0.0


@dataclass(frozen=True)
class DigitalFootprint:
    domain_age: float = 0.0  # years
    website_quality: float = 0.0  # 0-1
    ssl_certificate: bool = False
    business_listings: int = 0
    media_presence: int = 0


@dataclass(frozen=True)
class SupplierRelationships:
    number_of_suppliers: int = 0
    payment_terms_negotiated: bool = False
    trade_references: int = 0
    average_payment_days: float = 0.0


@dataclass(frozen=True)
class CustomerBehavior:
    repeat_customer_rate: float = 0.0  # 0-1
    average_transaction_value: float = 0.0
    customer_lifetime_value: float = 0.0
    churn_rate: float = 0.0  # 0-1


@dataclass(frozen=True)
class AlternativeData:
    """Non-bureau signals; every part defaults to an empty (thin) file"""

    banking_behavior: BankingBehavior = field(default_factory=BankingBehavior)
    business_metrics: BusinessMetrics = field(default_factory=BusinessMetrics)
    digital_footprint: DigitalFootprint = field(default_factory=DigitalFootprint)
    supplier_relationships: SupplierRelationships = field(default_factory=SupplierRelationships)
    customer_behavior: CustomerBehavior = field(default_factory=CustomerBehavior)


@dataclass(frozen=True)
class Collateral:
    type: str
    value: float
    description: str = ""


@dataclass(frozen=True)
class LoanRequest:
    amount: float
    term: int  # months
    purpose: str = ""
    collateral: Optional[Collateral] = None


@dataclass(frozen=True)
class CreditApplication:
    """Complete applicant file submitted for scoring"""

    applicant_id: str
    business_info: BusinessInfo
    financial_data: FinancialData
    traditional_credit: TraditionalCredit
    loan_request: LoanRequest
    alternative_data: AlternativeData = field(default_factory=AlternativeData)
