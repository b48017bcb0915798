"""
GA4 report executor.

Every interpreted query runs through `execute`, which:
  1. Fills unset fields of the spec with defaults
  2. Builds exactly one RunReportRequest (one date range, TOTAL aggregation)
  3. Zips dimension / metric values into named fields by position
  4. Classifies failures into ConfigError / Upstream*Error
"""
from __future__ import annotations

import json
from typing import Any, Sequence

from google.analytics.data_v1beta import types as ga4
from google.api_core import exceptions as google_exceptions

from ga4chat.analytics.client import AnalyticsClient
from ga4chat.copilot.spec import (
    AnalyticsQuerySpec,
    AnalyticsResult,
    DateRange,
    OrderBy,
    ResultMetadata,
)
from ga4chat.core.errors import (
    ConfigError,
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamOtherError,
    UpstreamPermissionError,
)
from ga4chat.core.logging import get_logger
from ga4chat.core.utils import parse_number

logger = get_logger(__name__)


def _to_ga4_order_by(order: OrderBy) -> ga4.OrderBy:
    if order.metric_name:
        return ga4.OrderBy(
            metric=ga4.OrderBy.MetricOrderBy(metric_name=order.metric_name),
            desc=order.desc,
        )
    return ga4.OrderBy(
        dimension=ga4.OrderBy.DimensionOrderBy(dimension_name=order.dimension_name),
        desc=order.desc,
    )


def build_request(spec: AnalyticsQuerySpec, property_id: str) -> ga4.RunReportRequest:
    """Build the RunReportRequest for an already-resolved *spec*."""
    request = ga4.RunReportRequest(
        property=f"properties/{property_id}",
        date_ranges=[ga4.DateRange(start_date=spec.start_date, end_date=spec.end_date)],
        dimensions=[ga4.Dimension(name=d) for d in spec.dimensions],
        metrics=[ga4.Metric(name=m) for m in spec.metrics],
        limit=spec.limit,
        order_bys=[_to_ga4_order_by(o) for o in spec.order_bys],
        metric_aggregations=[ga4.MetricAggregation.TOTAL],
    )
    if spec.dimension_filter:
        try:
            request.dimension_filter = ga4.FilterExpression.from_json(json.dumps(spec.dimension_filter))
        except Exception as exc:
            raise UpstreamOtherError(f"Invalid dimensionFilter: {exc}") from exc
    return request


def _zip_dimensions(values: Sequence[Any], names: list[str]) -> dict[str, Any]:
    return {
        name: (values[i].value if i < len(values) else "") or ""
        for i, name in enumerate(names)
    }


def _zip_metrics(values: Sequence[Any], names: list[str]) -> dict[str, Any]:
    return {
        name: parse_number((values[i].value if i < len(values) else "") or "0")
        for i, name in enumerate(names)
    }


def normalize_response(
    response: ga4.RunReportResponse,
    spec: AnalyticsQuerySpec,
    property_id: str,
) -> AnalyticsResult:
    """Convert a RunReportResponse into an AnalyticsResult for a resolved *spec*."""
    rows: list[dict[str, Any]] = []
    for row in response.rows:
        parsed = _zip_dimensions(row.dimension_values, spec.dimensions)
        parsed.update(_zip_metrics(row.metric_values, spec.metrics))
        rows.append(parsed)

    totals: dict[str, Any] = {}
    if response.totals:
        totals = _zip_metrics(response.totals[0].metric_values, spec.metrics)

    return AnalyticsResult(
        rows=rows,
        totals=totals,
        metadata=ResultMetadata(
            row_count=response.row_count or len(rows),
            dimensions=list(spec.dimensions),
            metrics=list(spec.metrics),
            date_range=DateRange(start_date=spec.start_date, end_date=spec.end_date),
            property_id=property_id,
        ),
    )


def classify_upstream_error(exc: Exception, property_id: str) -> UpstreamError:
    """Sort a GA4 failure into permission / not-found / other.

    Structured google.api_core codes are checked first, then the message text
    (case-insensitive) for clients that only surface strings.
    """
    if isinstance(exc, UpstreamError):
        return exc
    text = str(exc).lower()
    if isinstance(exc, (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)) or "permission" in text:
        return UpstreamPermissionError("Permission denied. Check service account access in GA4.")
    if isinstance(exc, google_exceptions.NotFound) or "not found" in text:
        return UpstreamNotFoundError(f"Property {property_id} not found. Check your GA4_PROPERTY_ID.")
    return UpstreamOtherError(str(exc))


def execute(spec: AnalyticsQuerySpec, client: AnalyticsClient) -> AnalyticsResult:
    """Run *spec* against GA4 and return the normalised result.

    Raises
    ------
    ConfigError
        If the property id or the credentials are not configured.
    UpstreamError
        If the GA4 API call fails (permission / not found / other).
    """
    property_id = client.property_id
    if not property_id:
        raise ConfigError("GA4_PROPERTY_ID environment variable not set")

    resolved = spec.resolved()
    request = build_request(resolved, property_id)
    logger.info(
        "GA4 runReport  property=%s  dimensions=%s  metrics=%s  range=%s..%s  limit=%d",
        property_id, ",".join(resolved.dimensions), ",".join(resolved.metrics),
        resolved.start_date, resolved.end_date, resolved.limit,
    )

    try:
        response = client.run_report(request)
    except ConfigError:
        raise
    except Exception as exc:
        logger.error("[GA4 Error] %s", exc)
        raise classify_upstream_error(exc, property_id) from exc

    result = normalize_response(response, resolved, property_id)
    logger.info("Returned %d rows (rowCount=%d)", len(result.rows), result.metadata.row_count)
    return result
