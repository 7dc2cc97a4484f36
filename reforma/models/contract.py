from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ContractLineItem(BaseModel):
    """A budgeted line of a renovation contract. Immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    project_id: int | None = None
    description: str
    category: str = ""
    budgeted_amount: int = 0  # centavos
    sort_order: int | None = None
