"""
LLM client abstraction -- provider-agnostic completion wrapper.

Supported providers:
  mock      -- offline marker; the interpreter and formatter see it and use
               the keyword planner and template table instead of a completion
  openai    -- OpenAI Chat Completions (gpt-4o-mini default)
  anthropic -- Anthropic Messages (claude-3-haiku default)
  gemini    -- Google Gen AI (gemini-2.0-flash default)
  groq      -- Groq, through its OpenAI-compatible endpoint (llama-3.3-70b default)

Each client builds its SDK handle lazily on first use and keeps it for the
life of the process.  Construct one client at startup and pass it to the
interpreter and formatter.
"""
from __future__ import annotations

import threading
from typing import Any, Sequence

from ga4chat.copilot.spec import ChatMessage
from ga4chat.core.config import Settings, get_settings
from ga4chat.core.logging import get_logger

logger = get_logger(__name__)

_GROQ_BASE_URL = "https://api.groq.com/openai/v1"

_AUTH_MARKERS = ("api_key", "api key", "apikey", "authentication", "unauthorized", "401", "invalid x-api-key")

GENERIC_LLM_FAILURE = "AI processing failed. Please try again."


class LLMClient:
    """Base class: one ``complete`` call == one request to the provider."""

    provider = "base"
    display_name = "LLM"
    env_var = ""

    def __init__(
        self,
        api_key: str = "",
        model: str = "",
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = None
        self._lock = threading.Lock()

    def complete(self, system: str, messages: Sequence[ChatMessage]) -> str:
        """Send *system* plus *messages* (oldest first) and return the reply text."""
        prompt_len = len(system) + sum(len(m.content) for m in messages)
        logger.info(
            "Calling LLM provider=%s  turns=%d  prompt_len=%d",
            self.provider, len(messages), prompt_len,
        )
        text = self._complete(system, list(messages))
        logger.info("%s response (%d chars)", self.display_name, len(text))
        return text

    def _sdk(self) -> Any:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._build_sdk_client()
        return self._client

    def _require_key(self) -> str:
        if not self.api_key:
            raise RuntimeError(
                f"{self.provider}_api_key is not set.  "
                f"Set {self.env_var} in your .env file or environment."
            )
        return self.api_key

    def _build_sdk_client(self) -> Any:
        raise NotImplementedError

    def _complete(self, system: str, messages: list[ChatMessage]) -> str:
        raise NotImplementedError


class MockLLMClient(LLMClient):
    """No-network provider.

    ``interpret`` and ``format_response`` check for ``provider == "mock"`` and
    answer with the keyword planner and the template table, so the pipeline
    never calls ``complete`` on it.  A direct call echoes the last turn.
    """

    provider = "mock"
    display_name = "Mock"

    def _complete(self, system: str, messages: list[ChatMessage]) -> str:
        logger.info("LLM mock mode -- returning echo")
        last = messages[-1].content if messages else ""
        return f"[MOCK] {last[:200]}"


class OpenAIClient(LLMClient):
    provider = "openai"
    display_name = "OpenAI"
    env_var = "OPENAI_API_KEY"
    base_url: str | None = None

    def _build_sdk_client(self) -> Any:
        api_key = self._require_key()
        try:
            import openai  # type: ignore[import-untyped]
        except ImportError as exc:
            raise RuntimeError(
                "The 'openai' package is not installed.  "
                "Run: pip install openai"
            ) from exc
        return openai.OpenAI(api_key=api_key, base_url=self.base_url)

    def _complete(self, system: str, messages: list[ChatMessage]) -> str:
        client = self._sdk()
        response = client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": system}]
            + [{"role": m.role, "content": m.content} for m in messages],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""


class GroqClient(OpenAIClient):
    provider = "groq"
    display_name = "Groq"
    env_var = "GROQ_API_KEY"
    base_url = _GROQ_BASE_URL


class AnthropicClient(LLMClient):
    provider = "anthropic"
    display_name = "Anthropic"
    env_var = "ANTHROPIC_API_KEY"

    def _build_sdk_client(self) -> Any:
        api_key = self._require_key()
        try:
            import anthropic  # type: ignore[import-untyped]
        except ImportError as exc:
            raise RuntimeError(
                "The 'anthropic' package is not installed.  "
                "Run: pip install anthropic"
            ) from exc
        return anthropic.Anthropic(api_key=api_key)

    def _complete(self, system: str, messages: list[ChatMessage]) -> str:
        client = self._sdk()
        response = client.messages.create(
            model=self.model,
            system=system,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[{"role": m.role, "content": m.content} for m in messages],
        )
        return response.content[0].text if response.content else ""


class GeminiClient(LLMClient):
    provider = "gemini"
    display_name = "Gemini"
    env_var = "GEMINI_API_KEY"

    def _build_sdk_client(self) -> Any:
        api_key = self._require_key()
        try:
            from google import genai
        except ImportError as exc:
            raise RuntimeError(
                "The 'google-genai' package is not installed.  "
                "Run: pip install google-genai"
            ) from exc
        return genai.Client(api_key=api_key)

    def _complete(self, system: str, messages: list[ChatMessage]) -> str:
        from google.genai import types

        client = self._sdk()
        contents = [
            types.Content(
                role="user" if m.role == "user" else "model",
                parts=[types.Part(text=m.content)],
            )
            for m in messages
        ]
        response = client.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system,
                max_output_tokens=self.max_tokens,
                temperature=self.temperature,
            ),
        )
        return response.text or ""


_PROVIDERS: dict[str, type[LLMClient]] = {
    "mock": MockLLMClient,
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
    "gemini": GeminiClient,
    "groq": GroqClient,
}


def build_llm_client(settings: Settings | None = None, provider: str | None = None) -> LLMClient:
    """Construct the completion client for the configured (or overridden) provider."""
    settings = settings or get_settings()
    if provider is None:
        provider = settings.llm_provider.lower()

    cls = _PROVIDERS.get(provider)
    if cls is None:
        raise NotImplementedError(
            f"LLM provider '{provider}' is not supported.  "
            f"Choose from: {', '.join(_PROVIDERS)}"
        )

    client = cls(
        api_key=getattr(settings, f"{provider}_api_key", ""),
        model=getattr(settings, f"{provider}_model", ""),
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )
    logger.info("LLM client ready  provider=%s  model=%s", provider, client.model or "-")
    return client


def classify_llm_error(exc: Exception, client: LLMClient) -> str:
    """Map a provider failure to a short, user-safe message.

    The raw exception text is never part of the result.
    """
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    text = str(exc).lower()
    if status in (401, 403) or any(marker in text for marker in _AUTH_MARKERS):
        if client.env_var:
            return (
                f"{client.display_name} API key not configured. "
                f"Please set {client.env_var} in .env"
            )
        return f"{client.display_name} API key not configured."
    return GENERIC_LLM_FAILURE
