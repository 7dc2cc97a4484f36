from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ExtractedContractItem(BaseModel):
    description: str
    category: str = "Other"
    amount: float


class ContractExtraction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    contractor_name: str = ""
    contract_date: str | None = None
    total_amount: float = 0
    currency: str | None = None
    line_items: list[ExtractedContractItem] = []
    notes: str | None = None


class ExtractedBillItem(BaseModel):
    description: str
    amount: float
    contract_line_item_id: int | None = None
    is_deviation: bool = False
    deviation_reason: str | None = None


class BillExtraction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bill_number: str | None = None
    contractor_name: str = ""
    issue_date: str | None = None
    due_date: str | None = None
    total_amount: float = 0
    line_items: list[ExtractedBillItem] = []
    notes: str | None = None
