"""
Shared fixtures: a scripted completion client and a fake GA4 transport
that returns real ``google-analytics-data`` response messages.
"""
from __future__ import annotations

from typing import Any

import pytest
from google.analytics.data_v1beta import types as ga4

from ga4chat.analytics.client import AnalyticsClient
from ga4chat.api.deps import limiter
from ga4chat.copilot.llm_client import LLMClient

PROPERTY_ID = "123456789"


class ScriptedLLM(LLMClient):
    """Returns ``reply`` (or raises ``error``) and records every call."""

    provider = "scripted"
    display_name = "Scripted"
    env_var = "SCRIPTED_API_KEY"

    def __init__(self, reply: str = "", error: Exception | None = None):
        super().__init__(model="scripted-1")
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, list]] = []

    def _complete(self, system, messages):
        self.calls.append((system, messages))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeGA4Api:
    """Stands in for BetaAnalyticsDataClient.run_report."""

    def __init__(self, response: ga4.RunReportResponse | None = None, error: Exception | None = None):
        self.response = response or ga4.RunReportResponse()
        self.error = error
        self.requests: list[ga4.RunReportRequest] = []

    def run_report(self, request: ga4.RunReportRequest) -> ga4.RunReportResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def make_report(
    rows: list[tuple[list[str], list[str]]],
    totals: list[str] | None = None,
    row_count: int | None = None,
) -> ga4.RunReportResponse:
    """Build a RunReportResponse from (dimension values, metric values) tuples."""
    kwargs: dict[str, Any] = {
        "rows": [
            ga4.Row(
                dimension_values=[ga4.DimensionValue(value=v) for v in dims],
                metric_values=[ga4.MetricValue(value=v) for v in mets],
            )
            for dims, mets in rows
        ],
    }
    if totals is not None:
        kwargs["totals"] = [ga4.Row(metric_values=[ga4.MetricValue(value=v) for v in totals])]
    if row_count is not None:
        kwargs["row_count"] = row_count
    return ga4.RunReportResponse(**kwargs)


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def ga4_api() -> FakeGA4Api:
    return FakeGA4Api()


@pytest.fixture
def analytics(ga4_api: FakeGA4Api) -> AnalyticsClient:
    return AnalyticsClient(property_id=PROPERTY_ID, api_client=ga4_api)


@pytest.fixture
def report():
    return make_report


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()
