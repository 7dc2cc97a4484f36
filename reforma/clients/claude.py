"""Claude (Anthropic) client used for cost estimates and document extraction."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any

import anthropic

from reforma.errors import ExternalCollaboratorError
from reforma.settings import settings

logger = logging.getLogger(__name__)


def document_block(data: bytes, media_type: str) -> dict[str, Any]:
    """Build an image or PDF content block from raw file bytes."""
    encoded = base64.b64encode(data).decode("ascii")
    block_type = "image" if media_type.startswith("image/") else "document"
    if block_type == "document":
        media_type = "application/pdf"
    return {"type": block_type, "source": {"type": "base64", "media_type": media_type, "data": encoded}}


class ClaudeClient:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        client: anthropic.Anthropic | None = None,
    ) -> None:
        self.model = model or settings.estimator_model
        self.max_tokens = max_tokens or settings.estimator_max_tokens
        self.timeout = timeout or settings.estimator_timeout
        self._client = client or anthropic.Anthropic(
            api_key=api_key or settings.anthropic_api_key,
            timeout=self.timeout,
            max_retries=1,
        )

    def complete(self, system: str, content: str | list[dict[str, Any]]) -> str:
        """Send one user turn and return the text of the answer."""
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APITimeoutError as exc:
            logger.warning("Claude request timed out after %ss", self.timeout)
            raise ExternalCollaboratorError("Estimator timed out") from exc
        except anthropic.APIError as exc:
            logger.warning("Claude request failed: %s", exc)
            raise ExternalCollaboratorError(f"Estimator request failed: {exc}") from exc

        text = "".join(block.text for block in response.content if block.type == "text")
        logger.debug(
            "Claude answered: model=%s stop=%s in=%s out=%s",
            self.model,
            response.stop_reason,
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
        if not text.strip():
            raise ExternalCollaboratorError("Estimator returned an empty answer")
        return text


def parse_json_answer(text: str) -> Any:
    """Decode a JSON answer, tolerating a surrounding markdown code fence."""
    body = text.strip()
    if body.startswith("```"):
        body = body.split("\n", 1)[1] if "\n" in body else ""
        body = body.rsplit("```", 1)[0]
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        logger.warning("Estimator answer is not valid JSON: %s", exc)
        raise ExternalCollaboratorError("Estimator answer is not valid JSON") from exc
