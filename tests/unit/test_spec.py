"""
Unit tests -- AnalyticsQuerySpec defaults, wire shape, OrderBy parsing.
"""
import pytest
from pydantic import ValidationError

from ga4chat.copilot.spec import AnalyticsQuerySpec, ChatMessage, OrderBy


def test_spec_all_fields_optional():
    spec = AnalyticsQuerySpec()
    assert spec.metrics is None
    assert spec.dimensions is None
    assert spec.limit is None


def test_resolved_fills_every_default():
    spec = AnalyticsQuerySpec(metrics=["sessions"]).resolved()
    assert spec.dimensions == ["date"]
    assert spec.metrics == ["sessions"]
    assert spec.start_date == "7daysAgo"
    assert spec.end_date == "yesterday"
    assert spec.limit == 100
    assert spec.order_bys == [OrderBy(metric_name="sessions", desc=True)]


def test_resolved_default_metrics_and_ordering():
    spec = AnalyticsQuerySpec().resolved()
    assert spec.metrics == ["totalUsers", "sessions"]
    assert spec.order_bys[0].metric_name == "totalUsers"
    assert spec.order_bys[0].desc is True


def test_resolved_keeps_explicit_values():
    spec = AnalyticsQuerySpec(
        dimensions=["country"],
        metrics=["activeUsers"],
        start_date="2026-01-01",
        end_date="2026-01-31",
        limit=5,
        order_bys=[OrderBy(dimension_name="country")],
    ).resolved()
    assert spec.dimensions == ["country"]
    assert spec.start_date == "2026-01-01"
    assert spec.limit == 5
    assert spec.order_bys == [OrderBy(dimension_name="country", desc=False)]


def test_empty_lists_count_as_unset():
    spec = AnalyticsQuerySpec(dimensions=[], metrics=[], order_bys=[]).resolved()
    assert spec.dimensions == ["date"]
    assert spec.metrics == ["totalUsers", "sessions"]
    assert spec.order_bys[0].metric_name == "totalUsers"


def test_parse_camel_case_model_output():
    spec = AnalyticsQuerySpec.model_validate({
        "type": "ga4_query",
        "dimensions": ["country"],
        "metrics": ["sessions"],
        "startDate": "30daysAgo",
        "endDate": "yesterday",
        "limit": 20,
        "orderBys": [{"metric": {"metricName": "sessions"}, "desc": True}],
    })
    assert spec.start_date == "30daysAgo"
    assert spec.order_bys[0].metric_name == "sessions"
    assert spec.order_bys[0].desc is True


def test_order_by_flat_shape():
    order = OrderBy.model_validate({"metricName": "sessions", "descending": True})
    assert order.metric_name == "sessions"
    assert order.desc is True


def test_order_by_dimension_shape():
    order = OrderBy.model_validate({"dimension": {"dimensionName": "date"}})
    assert order.dimension_name == "date"
    assert order.desc is False


def test_order_by_needs_a_target():
    with pytest.raises(ValidationError):
        OrderBy.model_validate({"desc": True})


def test_wire_shape_is_camel_case():
    wire = AnalyticsQuerySpec(metrics=["sessions"]).resolved().to_wire()
    assert wire["startDate"] == "7daysAgo"
    assert wire["endDate"] == "yesterday"
    assert wire["orderBys"] == [{"metric": {"metricName": "sessions"}, "desc": True}]
    assert "dimensionFilter" not in wire


def test_limit_must_be_positive():
    with pytest.raises(ValidationError):
        AnalyticsQuerySpec(limit=0)


def test_chat_message_is_immutable():
    msg = ChatMessage(role="user", content="hi")
    with pytest.raises(ValidationError):
        msg.content = "changed"


def test_chat_message_rejects_unknown_role():
    with pytest.raises(ValidationError):
        ChatMessage(role="system", content="hi")
