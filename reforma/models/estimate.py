from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LineDeviation(BaseModel):
    contract_line_item_id: int | None = None
    description: str
    category: str = ""
    budgeted: int  # centavos
    billed: int  # centavos
    deviation: int  # centavos
    deviation_pct: float
    sort_order: int = 0


class CostSummary(BaseModel):
    """Deterministic snapshot of a project's numbers handed to the estimator."""

    project_name: str
    project_status: str
    total_budget: int
    total_billed: int
    unmapped_billed: int
    total_paid: int
    deviations: list[LineDeviation] = []

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


class CostEstimate(BaseModel):
    """Estimator answer. Numbers must arrive as JSON numbers, never as text."""

    model_config = ConfigDict(extra="ignore")

    estimated_final_cost: float = Field(strict=True, allow_inf_nan=False)
    confidence_low: float = Field(strict=True, allow_inf_nan=False)
    confidence_high: float = Field(strict=True, allow_inf_nan=False)
    risk_level: RiskLevel
    key_observations: list[str]
    recommendations: list[str]
    summary: str = Field(min_length=1)

    @model_validator(mode="after")
    def _ordered_range(self) -> CostEstimate:
        if self.confidence_low > self.confidence_high:
            raise ValueError("confidence_low must not exceed confidence_high")
        return self
