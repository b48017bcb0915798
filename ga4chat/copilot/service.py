"""
Chat service -- orchestrates interpret -> execute -> format.

Each stage makes one blocking call; nothing is retried.  Interpretation and
formatting never raise.  Execution failures are caught here once, logged in
full, and replaced by a generic message (detail only in development mode).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ga4chat.analytics.client import AnalyticsClient
from ga4chat.analytics.executor import execute
from ga4chat.catalog.loader import FieldCatalog, load_catalog
from ga4chat.copilot.formatter import format_response
from ga4chat.copilot.interpreter import interpret
from ga4chat.copilot.llm_client import LLMClient, build_llm_client
from ga4chat.copilot.spec import ChatMessage, ErrorResult, TextResult
from ga4chat.core.config import Settings, get_settings
from ga4chat.core.logging import get_logger
from ga4chat.core.utils import timer

logger = get_logger(__name__)

GENERIC_FAILURE = "Failed to process your query. Please try again."


class ChatAnswer(BaseModel):
    """What a chat request resolves to: plain text, an analytics answer, or an error."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["text", "analytics", "error"]
    content: str
    raw_data: dict[str, Any] | None = Field(None, alias="rawData")
    query: dict[str, Any] | None = None
    details: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass
class ChatPipeline:
    """The two shared client handles plus the catalog; safe to share across requests."""

    llm: LLMClient
    analytics: AnalyticsClient
    catalog: FieldCatalog = field(default_factory=load_catalog)
    debug: bool = False

    def answer(self, message: str, history: Sequence[ChatMessage] = ()) -> ChatAnswer:
        """End-to-end: message (+ history) -> ChatAnswer."""
        with timer() as t:
            answer = self._answer(message, history)
        logger.info("Chat answered  type=%s  elapsed_ms=%d", answer.type, t["elapsed_ms"])
        return answer

    def _answer(self, message: str, history: Sequence[ChatMessage]) -> ChatAnswer:
        logger.info("Query: %s", message)

        # 1. Interpret
        interpreted = interpret(message, history, self.llm, self.catalog)
        if isinstance(interpreted, ErrorResult):
            return ChatAnswer(type="text", content=interpreted.message)
        if isinstance(interpreted, TextResult):
            return ChatAnswer(type="text", content=interpreted.content)

        spec = interpreted.spec.resolved()

        # 2. Execute
        try:
            data = execute(spec, self.analytics)
        except Exception as exc:
            logger.exception("GA4 execution failed")
            return ChatAnswer(
                type="error",
                content=GENERIC_FAILURE,
                details=str(exc) if self.debug else None,
            )

        # 3. Format
        content = format_response(spec, data, message, self.llm, self.catalog)
        return ChatAnswer(
            type="analytics",
            content=content,
            raw_data=data.to_wire(),
            query=spec.to_wire(),
        )


def build_pipeline(settings: Settings | None = None) -> ChatPipeline:
    """Construct the completion and GA4 clients once and wire them together."""
    settings = settings or get_settings()
    return ChatPipeline(
        llm=build_llm_client(settings),
        analytics=AnalyticsClient.from_settings(settings),
        debug=settings.debug,
    )


@lru_cache
def get_pipeline() -> ChatPipeline:
    """Process-wide pipeline used by the API (override the dependency in tests)."""
    return build_pipeline()
