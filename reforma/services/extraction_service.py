"""Contract and bill extraction through the reasoning collaborator.

Extraction only returns a value; saving it is up to the caller
(``LedgerService.save_contract_extraction`` / ``save_bill_extraction``).
"""

from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from reforma.clients.claude import ClaudeClient, document_block, parse_json_answer
from reforma.errors import ExternalCollaboratorError
from reforma.models.contract import ContractLineItem
from reforma.models.extraction import BillExtraction, ContractExtraction
from reforma.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

CONTRACT_SCHEMAS = {
    1: """{
  "contractor_name": "string",
  "contract_date": "YYYY-MM-DD or null",
  "total_amount": number,
  "currency": "EUR or USD or BRL or other",
  "line_items": [
    {
      "description": "string",
      "category": "string (e.g. Labor, Materials, Equipment, Permits, Other)",
      "amount": number
    }
  ],
  "notes": "any important conditions or observations"
}""",
}

BILL_SCHEMAS = {
    1: """{
  "bill_number": "string or null",
  "contractor_name": "string",
  "issue_date": "YYYY-MM-DD or null",
  "due_date": "YYYY-MM-DD or null",
  "total_amount": number,
  "line_items": [
    {
      "description": "string",
      "amount": number,
      "contract_line_item_id": "ID from list or null if no match",
      "is_deviation": boolean,
      "deviation_reason": "string explaining why this deviates, or null"
    }
  ],
  "notes": "any observations about this bill"
}""",
}

LANGUAGE_BY_LOCALE = {
    "en": "English",
    "pt-BR": "Brazilian Portuguese",
    "de": "German",
}

DEFAULT_TEMPLATE = """You are a construction {role}. {task}
Write free-text fields in {language}.
Return ONLY valid JSON with this exact structure, no markdown:
{schema}{context}"""


class ExtractionStrategy(BaseModel):
    """Prompt configuration shared by every extraction."""

    locale: str = "en"
    schema_version: int = 1
    template: str = DEFAULT_TEMPLATE

    @classmethod
    def from_settings(cls) -> ExtractionStrategy:
        return cls(locale=settings.extraction_locale, schema_version=settings.extraction_schema_version)

    def _schema(self, schemas: dict[int, str]) -> str:
        try:
            return schemas[self.schema_version]
        except KeyError:
            raise ValueError(f"Unknown extraction schema version: {self.schema_version}") from None

    def _render(self, role: str, task: str, schema: str, context: str = "") -> str:
        return self.template.format(
            role=role,
            task=task,
            language=LANGUAGE_BY_LOCALE.get(self.locale, self.locale),
            schema=schema,
            context=context,
        )

    def contract_prompt(self) -> str:
        return self._render(
            "contract analyst",
            "Extract all line items from the contract.",
            self._schema(CONTRACT_SCHEMAS),
        )

    def bill_prompt(self, contract_line_items: list[ContractLineItem]) -> str:
        listing = "\n".join(
            f"{i}. [ID: {item.id}] {item.description} - Budget: {item.budgeted_amount / 100:.2f}"
            for i, item in enumerate(contract_line_items, start=1)
        )
        return self._render(
            "billing analyst",
            "Extract all data from this bill/invoice. Then map each bill line item to the most "
            "relevant contract line item from the provided list.",
            self._schema(BILL_SCHEMAS),
            f"\n\nContract line items for mapping:\n{listing}",
        )


class DocumentExtractor:
    def __init__(self, client: ClaudeClient, strategy: ExtractionStrategy | None = None) -> None:
        self.client = client
        self.strategy = strategy or ExtractionStrategy()

    def _ask(self, system: str, data: bytes, media_type: str, instruction: str, model: type[T]) -> T:
        content = [document_block(data, media_type), {"type": "text", "text": instruction}]
        answer = parse_json_answer(self.client.complete(system, content))
        try:
            return model.model_validate(answer)
        except ValidationError as exc:
            logger.warning("Malformed %s rejected: %d errors", model.__name__, exc.error_count())
            raise ExternalCollaboratorError(f"Malformed {model.__name__}") from exc

    def extract_contract(self, data: bytes, media_type: str) -> ContractExtraction:
        result = self._ask(
            self.strategy.contract_prompt(),
            data,
            media_type,
            "Extract all line items from this contract document.",
            ContractExtraction,
        )
        logger.info("Contract extracted: contractor=%s items=%d", result.contractor_name, len(result.line_items))
        return result

    def extract_bill(
        self, data: bytes, media_type: str, contract_line_items: list[ContractLineItem]
    ) -> BillExtraction:
        result = self._ask(
            self.strategy.bill_prompt(contract_line_items),
            data,
            media_type,
            "Extract and map all items from this bill.",
            BillExtraction,
        )
        logger.info("Bill extracted: number=%s items=%d", result.bill_number, len(result.line_items))
        return result
