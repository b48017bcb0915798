"""
Unit tests -- response formatter: prompt content, verbatim output, fallback table.
"""
import json

from ga4chat.copilot.formatter import format_response, render_table
from ga4chat.copilot.llm_client import MockLLMClient
from ga4chat.copilot.spec import (
    AnalyticsQuerySpec,
    AnalyticsResult,
    DateRange,
    ResultMetadata,
)


def _result(rows=None, totals=None) -> AnalyticsResult:
    return AnalyticsResult(
        rows=rows if rows is not None else [
            {"deviceCategory": "mobile", "sessions": 1234, "bounceRate": 0.4567, "averageSessionDuration": 154.23},
            {"deviceCategory": "desktop", "sessions": 800, "bounceRate": 0.3, "averageSessionDuration": 61},
        ],
        totals=totals or {},
        metadata=ResultMetadata(
            row_count=2,
            dimensions=["deviceCategory"],
            metrics=["sessions", "bounceRate", "averageSessionDuration"],
            date_range=DateRange(start_date="7daysAgo", end_date="yesterday"),
            property_id="123",
        ),
    )


SPEC = AnalyticsQuerySpec(
    dimensions=["deviceCategory"],
    metrics=["sessions", "bounceRate", "averageSessionDuration"],
).resolved()


def test_returns_model_text_verbatim(llm):
    llm.reply = "  **Mobile** leads with 1,234 sessions.\n"
    text = format_response(SPEC, _result(), "Sessions by device?", llm)
    assert text == "  **Mobile** leads with 1,234 sessions.\n"


def test_single_turn_with_question_and_data(llm):
    llm.reply = "ok"
    format_response(SPEC, _result(), "Sessions by device?", llm)
    assert len(llm.calls) == 1
    system, turns = llm.calls[0]
    assert len(turns) == 1
    assert turns[0].role == "user"
    assert "Sessions by device?" in turns[0].content
    assert json.dumps(SPEC.to_wire()) in turns[0].content
    assert '"rowCount": 2' in turns[0].content
    assert "tables" in system
    assert "bounceRate" in system
    assert "2-3 follow-up questions" in system


def test_llm_failure_falls_back_to_table(llm):
    llm.error = RuntimeError("401 invalid api key sk-zzz")
    text = format_response(SPEC, _result(), "q", llm)
    assert "API key not configured" in text
    assert "sk-zzz" not in text
    assert "| deviceCategory | sessions |" in text


def test_mock_renders_table():
    text = format_response(SPEC, _result(), "q", MockLLMClient())
    assert text.splitlines()[0] == "| deviceCategory | sessions | bounceRate | averageSessionDuration |"
    assert "| mobile | 1,234 | 45.7% | 2m 34s |" in text
    assert "| desktop | 800 | 30.0% | 1m 1s |" in text


def test_table_totals_line():
    text = render_table(_result(totals={"sessions": 2034}))
    assert "**Totals**" in text
    assert "sessions: **2,034**" in text


def test_table_empty_result():
    text = render_table(_result(rows=[]))
    assert text == "No data returned for 7daysAgo to yesterday."


def test_mock_formatting_does_not_call_complete():
    class Silent(MockLLMClient):
        def _complete(self, system, messages):
            raise AssertionError("mock provider should not be called")

    text = format_response(SPEC, _result(), "q", Silent())
    assert text.startswith("| deviceCategory |")
