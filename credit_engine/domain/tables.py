"""Fixed lookup tables keyed by domain enums"""

from typing import Dict

from credit_engine.domain.models import BusinessStructure, Industry

# Industry risk on a 0-100 scale (lower = riskier). OTHER is the default bucket.
INDUSTRY_RISK_SCORES: Dict[Industry, float] = {
    Industry.TECHNOLOGY: 75,
    Industry.HEALTHCARE: 80,
    Industry.FINANCIAL_SERVICES: 70,
    Industry.RETAIL: 55,
    Industry.FOOD_SERVICE: 50,
    Industry.CONSTRUCTION: 45,
    Industry.TRANSPORTATION: 60,
    Industry.MANUFACTURING: 65,
    Industry.PROFESSIONAL_SERVICES: 85,
    Industry.EDUCATION: 80,
    Industry.REAL_ESTATE: 55,
    Industry.HOSPITALITY: 40,
    Industry.OTHER: 60,
}

HIGH_RISK_INDUSTRIES = frozenset(
    {Industry.FOOD_SERVICE, Industry.HOSPITALITY, Industry.RETAIL, Industry.CONSTRUCTION}
)

STRUCTURE_SCORES: Dict[BusinessStructure, float] = {
    BusinessStructure.CORPORATION: 100,
    BusinessStructure.S_CORP: 90,
    BusinessStructure.LLC: 80,
    BusinessStructure.PARTNERSHIP: 60,
    BusinessStructure.SOLE_PROPRIETORSHIP: 40,
}


def industry_risk_score(industry: Industry) -> float:
    return INDUSTRY_RISK_SCORES.get(industry, INDUSTRY_RISK_SCORES[Industry.OTHER])
