from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from reforma.models.payment import Payment


class MortgageLoan(BaseModel):
    id: int | None = None
    property_name: str = "Our Home"
    purchase_price: int = 0  # centavos
    principal: int = Field(gt=0)  # centavos
    annual_interest_rate_pct: float = Field(ge=0)
    term_months: int = Field(gt=0)
    start_date: str | None = None  # 'YYYY-MM-DD'
    monthly_payment: int = Field(gt=0)  # centavos
    updated_at: datetime | None = None


class AmortizationRow(BaseModel):
    month: int
    interest: float
    principal: float
    balance: float


class ReconciledInstallment(BaseModel):
    """A recorded payment paired with the schedule row at the same position."""

    payment: Payment
    row: AmortizationRow | None


class BalancePoint(BaseModel):
    year: int
    balance: float


class MortgageSummary(BaseModel):
    total_paid: int  # centavos
    payments_count: int
    interest_paid: float
    current_balance: float
    balance_by_year: list[BalancePoint] = []
