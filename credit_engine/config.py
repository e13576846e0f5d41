"""Configuration management using Pydantic Settings"""

import math
from typing import Dict

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from credit_engine.domain.models import ComponentKind


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Component weights (must sum to 1.0)
    weight_traditional_credit: float = 0.35
    weight_financial_health: float = 0.30
    weight_business_stability: float = 0.20
    weight_alternative_data: float = 0.10
    weight_industry_risk: float = 0.05

    # Instant decision thresholds
    auto_approve_threshold: float = 750
    auto_decline_threshold: float = 500
    max_auto_approve_amount: float = 100_000

    # Portfolio
    loss_given_default: float = 0.45

    # Batch fan-out width
    batch_max_concurrency: int = 16

    # Service
    service_name: str = "credit-risk-engine"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_weights(self) -> "Settings":
        total = sum(self.component_weights.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Component weights must sum to 1.0, got {total}")
        return self

    @property
    def component_weights(self) -> Dict[ComponentKind, float]:
        return {
            ComponentKind.TRADITIONAL_CREDIT: self.weight_traditional_credit,
            ComponentKind.FINANCIAL_HEALTH: self.weight_financial_health,
            ComponentKind.BUSINESS_STABILITY: self.weight_business_stability,
            ComponentKind.ALTERNATIVE_DATA: self.weight_alternative_data,
            ComponentKind.INDUSTRY_RISK: self.weight_industry_risk,
        }


settings = Settings()
