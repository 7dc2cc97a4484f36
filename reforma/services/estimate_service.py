from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from reforma.clients.claude import ClaudeClient, parse_json_answer
from reforma.errors import ExternalCollaboratorError
from reforma.models.bill import Bill
from reforma.models.contract import ContractLineItem
from reforma.models.estimate import CostEstimate, CostSummary
from reforma.models.payment import Payment
from reforma.models.project import Project
from reforma.services.ledger_service import compute_deviation, total_billed, total_budget, unmapped_billed

logger = logging.getLogger(__name__)

ESTIMATE_SYSTEM_PROMPT = """You are a construction cost analyst with expertise in residential renovation projects.
Analyze the project data and provide a cost estimate. Amounts are integer centavos; answer in the same unit.
Return ONLY valid JSON, no markdown:
{
  "estimated_final_cost": number,
  "confidence_low": number,
  "confidence_high": number,
  "risk_level": "low|medium|high",
  "key_observations": ["string", "string"],
  "recommendations": ["string", "string"],
  "summary": "2-3 sentence plain language summary"
}"""


def build_summary(
    project: Project,
    line_items: list[ContractLineItem],
    bills: list[Bill],
    payments: list[Payment],
) -> CostSummary:
    return CostSummary(
        project_name=project.name,
        project_status=project.status.value,
        total_budget=total_budget(project, line_items),
        total_billed=total_billed(bills),
        unmapped_billed=unmapped_billed(bills),
        total_paid=sum(p.amount for p in payments),
        deviations=compute_deviation(line_items, bills),
    )


def build_estimate_prompt(summary: CostSummary) -> str:
    return (
        f"Project snapshot:\n{json.dumps(summary.to_payload(), indent=2, ensure_ascii=False)}\n\n"
        "Based on the deviation patterns observed, construction cost trends, and typical "
        "renovation project overruns, provide a final cost estimate."
    )


def validate_estimate(payload: Any) -> CostEstimate:
    """Check the estimator's answer against the expected shape."""
    if isinstance(payload, str):
        payload = parse_json_answer(payload)
    if not isinstance(payload, dict):
        raise ExternalCollaboratorError("Estimator answer must be a JSON object")
    try:
        return CostEstimate.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "(root)" for err in exc.errors()})
        logger.warning("Malformed estimate rejected: fields=%s", fields)
        raise ExternalCollaboratorError(f"Malformed estimate: {', '.join(fields)}") from exc


class EstimateService:
    def __init__(self, client: ClaudeClient) -> None:
        self.client = client

    def request_estimate(
        self,
        project: Project,
        line_items: list[ContractLineItem],
        bills: list[Bill],
        payments: list[Payment],
    ) -> CostEstimate:
        """Ask the estimator for a final cost. Raises ``ExternalCollaboratorError`` on any failure."""
        summary = build_summary(project, line_items, bills, payments)
        logger.info(
            "Requesting estimate: project=%s budget=%d billed=%d paid=%d",
            project.id,
            summary.total_budget,
            summary.total_billed,
            summary.total_paid,
        )
        answer = self.client.complete(ESTIMATE_SYSTEM_PROMPT, build_estimate_prompt(summary))
        estimate = validate_estimate(answer)
        logger.info(
            "Estimate received: project=%s final=%.0f risk=%s",
            project.id,
            estimate.estimated_final_cost,
            estimate.risk_level.value,
        )
        return estimate
