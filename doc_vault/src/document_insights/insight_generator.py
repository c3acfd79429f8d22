from __future__ import annotations

import asyncio
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from doc_vault.exception.custom_exception import AIServiceError, ValidationError
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.prompts.prompt_library import PROMPT_REGISTRY
from doc_vault.utils.model_loader import ModelLoader
from doc_vault.utils.settings import InsightSettings

MOCK_SUMMARY = "This is a mock summary. The AI processed the file successfully."
MOCK_MARKDOWN = "# Mock Markdown\n\nThis content was generated without an API key."


class InsightResult(BaseModel):
    summary: str = Field(
        ...,
        min_length=50,
        max_length=1000,
        description="Plain-text summary of the document, 50 to 1000 characters.",
    )
    markdown: str = Field(..., description="Markdown rendition of the document content.")


class InsightGenerator:
    """
    Turns extracted text into an InsightResult.

    Mode is fixed at construction: with an API key in `settings` the text goes
    to the configured chat model through structured output (live), otherwise
    a fixed placeholder is returned after `mock_delay_seconds` (mock).
    """

    def __init__(self, settings: InsightSettings, llm: Optional[Any] = None):
        self.settings = settings
        self.prompt = PROMPT_REGISTRY["document_insights"]
        self.chain = None

        if llm is None and settings.live:
            llm = ModelLoader(settings).load_llm()

        if llm is not None:
            self.chain = self.prompt | llm.with_structured_output(InsightResult)

        log.info("InsightGenerator initialized | mode=%s", self.mode)

    @property
    def mode(self) -> str:
        return "live" if self.chain is not None else "mock"

    async def generate_insights(self, text: str) -> InsightResult:
        if not text or not text.strip():
            raise ValidationError("Cannot generate insights from empty text")

        if self.chain is None:
            return await self._mock_insights()
        return await self._live_insights(text)

    async def _mock_insights(self) -> InsightResult:
        log.warning("No API key. Using mock insights.")
        if self.settings.mock_delay_seconds:
            await asyncio.sleep(self.settings.mock_delay_seconds)
        return InsightResult(summary=MOCK_SUMMARY, markdown=MOCK_MARKDOWN)

    async def _live_insights(self, text: str) -> InsightResult:
        bounded = text[: self.settings.max_input_chars]
        if len(bounded) < len(text):
            log.info(
                "Input truncated for insight generation | original_chars=%d | sent_chars=%d",
                len(text),
                len(bounded),
            )

        try:
            payload = await self.chain.ainvoke({"document": bounded})
        except PydanticValidationError as e:
            raise AIServiceError("Model response failed schema validation", e) from e
        except Exception as e:
            log.error("Insight generation call failed | error=%s", str(e))
            raise AIServiceError("Insight generation call failed", e) from e

        return self._validate_payload(payload)

    @staticmethod
    def _validate_payload(payload: Any) -> InsightResult:
        if payload is None:
            raise AIServiceError("Model returned no usable payload")

        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        if not isinstance(payload, dict):
            raise AIServiceError(f"Unexpected model payload type: {type(payload).__name__}")

        try:
            return InsightResult.model_validate(payload)
        except PydanticValidationError as e:
            raise AIServiceError("Model response failed schema validation", e) from e
