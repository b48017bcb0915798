"""
Interpreter -- converts a natural-language question into an InterpreterResult.

Two modes:
  mock     -> deterministic keyword extraction (no API key needed, great for tests)
  any LLM  -> one completion call, then lenient JSON extraction

Model output never makes this module raise: anything that is not a usable
query degrades to a plain-text answer carrying the raw response.
"""
from __future__ import annotations

import json
import re
from typing import Any, Sequence

from pydantic import ValidationError

from ga4chat.catalog.loader import FieldCatalog, load_catalog
from ga4chat.copilot.llm_client import LLMClient, classify_llm_error
from ga4chat.copilot.prompts import build_interpret_prompt
from ga4chat.copilot.spec import (
    AnalyticsQuerySpec,
    ChatMessage,
    ErrorResult,
    InterpreterResult,
    QueryResult,
    TextResult,
)
from ga4chat.core.logging import get_logger

logger = get_logger(__name__)

HISTORY_WINDOW = 8
MAX_MOCK_LIMIT = 100

# Greedy: first "{" through last "}".
_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")

_QUERY_KEYS = {"metrics", "dimensions"}

# ── Keyword maps for mock mode ───────────────────────────

_METRIC_KEYWORDS: dict[str, list[str]] = {
    "activeUsers":            ["active users", "active"],
    "newUsers":               ["new users", "new visitors"],
    "totalUsers":             ["users", "visitors", "people"],
    "sessions":               ["sessions", "traffic", "visits"],
    "screenPageViews":        ["page views", "pageviews", "views"],
    "bounceRate":             ["bounce rate", "bounce"],
    "engagementRate":         ["engagement rate", "engagement"],
    "averageSessionDuration": ["session duration", "time on site"],
    "conversions":            ["conversions", "conversion"],
    "eventCount":             ["events", "event count"],
    "totalRevenue":           ["revenue", "sales"],
}

_DIMENSION_KEYWORDS: dict[str, list[str]] = {
    "date":                       ["daily", "by day", "per day", "trend", "over time"],
    "country":                    ["country", "countries"],
    "city":                       ["city", "cities"],
    "deviceCategory":             ["device category", "device", "devices", "mobile vs desktop"],
    "browser":                    ["browser", "browsers"],
    "landingPage":                ["landing page", "landing pages"],
    "pagePath":                   ["pages", "by page", "per page"],
    "source":                     ["source", "sources", "referrer", "referrers"],
    "sessionDefaultChannelGroup": ["channel", "channels"],
    "newVsReturning":             ["new vs returning", "returning"],
}

_RELATIVE_RANGES: list[tuple[str, int]] = [
    # (regex pattern, days per unit)
    (r"(?:last|past)\s+(\d+)\s+days?",   1),
    (r"(?:last|past)\s+(\d+)\s+weeks?",  7),
    (r"(?:last|past)\s+(\d+)\s+months?", 30),
]

_NAMED_RANGES: list[tuple[str, str, str]] = [
    # (regex pattern, startDate, endDate)
    (r"\btoday\b",                          "today",      "today"),
    (r"\byesterday\b",                      "yesterday",  "yesterday"),
    (r"(?:this|last|past)\s+week",          "7daysAgo",   "yesterday"),
    (r"(?:this|last|past)\s+month",         "30daysAgo",  "yesterday"),
    (r"(?:this|last|past)\s+year",          "365daysAgo", "yesterday"),
]


def _match_keywords(question: str, keyword_map: dict[str, list[str]]) -> list[str]:
    """Field names whose keywords occur in *question*, ordered by first position.

    Longer keywords win: a matched span is blanked before shorter keywords are
    tried, so "new users" does not also count as "users".
    """
    text = question
    found: list[tuple[int, str]] = []
    pairs = sorted(
        ((kw, name) for name, kws in keyword_map.items() for kw in kws),
        key=lambda p: -len(p[0]),
    )
    for kw, name in pairs:
        m = re.search(rf"\b{re.escape(kw)}\b", text)
        if m is None:
            continue
        text = text[: m.start()] + " " * len(kw) + text[m.end():]
        if all(name != n for _, n in found):
            found.append((m.start(), name))
    return [name for _, name in sorted(found)]


def _extract_dates(question: str) -> tuple[str | None, str | None]:
    for pattern, unit_days in _RELATIVE_RANGES:
        m = re.search(pattern, question)
        if m:
            return f"{int(m.group(1)) * unit_days}daysAgo", "yesterday"
    for pattern, start, end in _NAMED_RANGES:
        if re.search(pattern, question):
            return start, end
    return None, None


def _plan_mock(question: str, catalog: FieldCatalog) -> InterpreterResult:
    """Deterministic keyword-based NL -> query parser."""
    q = question.lower().strip()

    metrics = _match_keywords(q, _METRIC_KEYWORDS)
    dims = _match_keywords(q, _DIMENSION_KEYWORDS)

    if not metrics and not dims:
        return TextResult(
            "[MOCK] I could not map that question to GA4 data. Try for example: "
            + "; ".join(catalog.example_queries[:3])
        )

    start_date, end_date = _extract_dates(q)

    limit: int | None = None
    limit_match = re.search(r"(?:top|limit)\s+(\d+)", q)
    if limit_match:
        limit = max(1, min(int(limit_match.group(1)), MAX_MOCK_LIMIT))

    spec = AnalyticsQuerySpec(
        dimensions=dims or None,
        metrics=metrics or None,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )
    logger.info("Interpreter[mock] -> %s", json.dumps(spec.to_wire()))
    return QueryResult(spec)


# ── LLM interpretation ───────────────────────────────────

def recent_history(history: Sequence[ChatMessage]) -> list[ChatMessage]:
    """The last HISTORY_WINDOW turns, oldest first."""
    return list(history)[-HISTORY_WINDOW:]


def parse_model_output(text: str, catalog: FieldCatalog | None = None) -> InterpreterResult:
    """Turn raw model text into a QueryResult or a TextResult. Never raises."""
    match = _JSON_BLOCK_RE.search(text)
    if match is None:
        return TextResult(text)

    try:
        data: Any = json.loads(match.group(0))
    except (ValueError, RecursionError) as exc:
        logger.warning("Model returned invalid JSON, passing text through: %s", exc)
        return TextResult(text)

    if not isinstance(data, dict):
        return TextResult(text)

    kind = data.get("type")
    if kind == "text":
        content = data.get("content")
        return TextResult(content) if isinstance(content, str) else TextResult(text)

    if kind != "ga4_query" and not _QUERY_KEYS & data.keys():
        logger.warning("Model JSON is neither a query nor text (type=%r), passing text through", kind)
        return TextResult(text)

    try:
        spec = AnalyticsQuerySpec.model_validate(data)
    except ValidationError as exc:
        logger.warning("Model query failed validation, passing text through: %s", exc.errors())
        return TextResult(text)

    catalog = catalog or load_catalog()
    unknown = catalog.unknown_fields(spec.dimensions or [], spec.metrics or [])
    if unknown:
        logger.warning("Model used fields outside the catalog: %s", ", ".join(unknown))

    return QueryResult(spec)


def interpret(
    message: str,
    history: Sequence[ChatMessage],
    client: LLMClient,
    catalog: FieldCatalog | None = None,
) -> InterpreterResult:
    """Interpret *message* in the context of *history*.

    Only the most recent HISTORY_WINDOW history entries are sent, oldest first,
    followed by *message* as the final user turn.
    """
    catalog = catalog or load_catalog()

    if client.provider == "mock":
        return _plan_mock(message, catalog)

    turns = recent_history(history) + [ChatMessage(role="user", content=message)]
    try:
        raw = client.complete(build_interpret_prompt(catalog), turns)
    except Exception as exc:
        logger.error("Interpretation call failed  provider=%s  error=%s", client.provider, exc)
        return ErrorResult(classify_llm_error(exc, client))

    result = parse_model_output(raw, catalog)
    logger.info("Interpreter[%s] -> %s", client.provider, type(result).__name__)
    return result
