from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from reforma.constants import STATUS_NOT_DUE


class CandidateFile(BaseModel):
    """An uploaded document that may belong to an obligation."""

    model_config = ConfigDict(frozen=True)

    name: str
    ref: Any = None  # path, drive id, upload handle...


class ObligationRecord(BaseModel):
    protocol_number: str | None = None
    sheet_name: str
    supplier: str
    invoice_number: str | None = None
    due_date: str | None = None  # 'YYYY-MM-DD'
    amount: int  # centavos
    category: str | None = None
    status: str = STATUS_NOT_DUE
    payment_method: str | None = None
    assigned_to: str | None = None
    payment_code: str | None = None  # boleto "linha digitável"
    slip_file: CandidateFile | None = None
    invoice_file: CandidateFile | None = None


class ParseIssue(BaseModel):
    sheet_name: str
    row_number: int  # 1-based, as shown by spreadsheet apps
    reason: str
