from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class BillStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    DISPUTED = "disputed"


class BillLineItem(BaseModel):
    id: int | None = None
    bill_id: int | None = None
    contract_line_item_id: int | None = None
    description: str
    amount: int  # centavos
    is_deviation: bool = False
    deviation_reason: str | None = None
    sort_order: int = 0


class Bill(BaseModel):
    id: int | None = None
    uuid: str = ""
    project_id: int
    bill_number: str | None = None
    contractor_name: str = ""
    issue_date: str | None = None  # 'YYYY-MM-DD'
    due_date: str | None = None  # 'YYYY-MM-DD'
    total_amount: int = 0  # centavos
    status: BillStatus = BillStatus.PENDING
    notes: str = ""
    line_items: list[BillLineItem] = []
    created_at: datetime | None = None

    @property
    def billed_amount(self) -> int:
        """Line items win over the flat total when present."""
        if self.line_items:
            return sum(li.amount for li in self.line_items)
        return self.total_amount
