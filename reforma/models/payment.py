from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class Payment(BaseModel):
    id: int | None = None
    uuid: str = ""
    project_id: int | None = None
    mortgage_id: int | None = None
    paid_by: str  # payer reference
    amount: int = Field(gt=0)  # centavos
    payment_date: str  # 'YYYY-MM-DD'
    payment_method: str = ""
    notes: str = ""
    proof_file_id: str | None = None
    proof_url: str | None = None
    created_at: datetime | None = None

    @model_validator(mode="after")
    def _single_target(self) -> Payment:
        if (self.project_id is None) == (self.mortgage_id is None):
            raise ValueError("A payment belongs to exactly one project or mortgage")
        return self


class MonthlyBucket(BaseModel):
    month: str  # 'YYYY-MM'
    amount: int  # centavos
