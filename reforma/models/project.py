from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Project(BaseModel):
    id: int | None = None
    uuid: str = ""
    name: str
    status: ProjectStatus = ProjectStatus.PLANNING
    contractor_name: str = ""
    contract_amount: int = Field(default=0, ge=0)  # centavos
    created_at: datetime | None = None
