"""
LLM-based response formatter.

Turns an AnalyticsResult into a markdown answer for the user.

Works in both ``mock`` mode (template-based table, no API key needed) and
LLM mode (one single-turn completion whose text is returned verbatim).  When
the LLM call fails the user gets the classified error message followed by the
template table, so the data still reaches them.
"""
from __future__ import annotations

import json
from typing import Any

from ga4chat.catalog.loader import FieldCatalog, load_catalog
from ga4chat.copilot.llm_client import LLMClient, classify_llm_error
from ga4chat.copilot.prompts import build_format_prompt, build_format_request
from ga4chat.copilot.spec import AnalyticsQuerySpec, AnalyticsResult, ChatMessage
from ga4chat.core.logging import get_logger

logger = get_logger(__name__)

MAX_TABLE_ROWS = 20


# ── Template-based rendering (mock / fallback) ──────────


def _format_value(name: str, value: Any, catalog: FieldCatalog) -> str:
    if not isinstance(value, (int, float)):
        return str(value)
    if name in catalog.rate_metrics:
        return f"{value * 100:.1f}%"
    if name in catalog.duration_metrics:
        minutes, seconds = divmod(int(round(value)), 60)
        return f"{minutes}m {seconds}s"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.2f}"
    return f"{int(value):,}"


def render_table(result: AnalyticsResult, catalog: FieldCatalog | None = None) -> str:
    """Render *result* as a markdown table (first MAX_TABLE_ROWS rows) plus totals."""
    catalog = catalog or load_catalog()
    meta = result.metadata
    columns = meta.dimensions + meta.metrics

    if not result.rows:
        return (
            f"No data returned for {meta.date_range.start_date} to "
            f"{meta.date_range.end_date}."
        )

    lines = [
        "| " + " | ".join(columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    for row in result.rows[:MAX_TABLE_ROWS]:
        cells = [_format_value(c, row.get(c, ""), catalog) for c in columns]
        lines.append("| " + " | ".join(cells) + " |")

    if len(result.rows) > MAX_TABLE_ROWS:
        lines.append(f"\n_Showing {MAX_TABLE_ROWS} of {meta.row_count} rows._")

    if result.totals:
        totals = ", ".join(
            f"{name}: **{_format_value(name, value, catalog)}**"
            for name, value in result.totals.items()
        )
        lines.append(f"\n**Totals** ({meta.date_range.start_date} to {meta.date_range.end_date}): {totals}")

    return "\n".join(lines)


# ── LLM formatting ──────────────────────────────────────


def format_response(
    spec: AnalyticsQuerySpec,
    result: AnalyticsResult,
    question: str,
    client: LLMClient,
    catalog: FieldCatalog | None = None,
) -> str:
    """Ask the LLM to present *result* as an answer to *question*.

    Parameters
    ----------
    spec : AnalyticsQuerySpec
        The query that produced *result* (sent as context).
    result : AnalyticsResult
        Normalised GA4 data.
    question : str
        The user's original message.
    client : LLMClient
        Completion client; ``mock`` renders a template instead.
    """
    catalog = catalog or load_catalog()

    if client.provider == "mock":
        return render_table(result, catalog)

    request = build_format_request(
        question,
        json.dumps(spec.to_wire()),
        json.dumps(result.to_wire()),
    )
    try:
        return client.complete(
            build_format_prompt(catalog),
            [ChatMessage(role="user", content=request)],
        )
    except Exception as exc:
        logger.warning("LLM formatting failed, falling back to template: %s", exc)
        return f"{classify_llm_error(exc, client)}\n\n{render_table(result, catalog)}"
