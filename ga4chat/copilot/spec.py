"""
AnalyticsQuerySpec -- the structured intermediate representation between
natural language and the GA4 Data API -- plus the result and message types
that flow through the chat pipeline.

Wire names are camelCase (what the model emits and the API returns);
Python attributes are snake_case.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

DEFAULT_DIMENSIONS = ["date"]
DEFAULT_METRICS = ["totalUsers", "sessions"]
DEFAULT_START_DATE = "7daysAgo"
DEFAULT_END_DATE = "yesterday"
DEFAULT_LIMIT = 100


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """JSON-safe dict with camelCase keys and unset fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChatMessage(_WireModel):
    """One prior turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class OrderBy(_WireModel):
    """A single ordering clause, by metric or by dimension.

    Accepts the GA4 shape ``{"metric": {"metricName": "sessions"}, "desc": true}``
    as well as the flat ``{"metricName": "sessions", "descending": true}``.
    """

    metric_name: str | None = Field(None, alias="metricName")
    dimension_name: str | None = Field(None, alias="dimensionName")
    desc: bool = False

    @model_validator(mode="before")
    @classmethod
    def _flatten_ga4_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        metric = data.pop("metric", None)
        if isinstance(metric, dict):
            data.setdefault("metricName", metric.get("metricName") or metric.get("metric_name"))
        dimension = data.pop("dimension", None)
        if isinstance(dimension, dict):
            data.setdefault(
                "dimensionName", dimension.get("dimensionName") or dimension.get("dimension_name")
            )
        if "descending" in data:
            data.setdefault("desc", data.pop("descending"))
        return data

    @model_validator(mode="after")
    def _exactly_one_target(self) -> OrderBy:
        if bool(self.metric_name) == bool(self.dimension_name):
            raise ValueError("orderBy needs exactly one of metricName or dimensionName")
        return self

    @model_serializer(mode="plain")
    def _to_ga4_shape(self) -> dict[str, Any]:
        if self.metric_name:
            return {"metric": {"metricName": self.metric_name}, "desc": self.desc}
        return {"dimension": {"dimensionName": self.dimension_name}, "desc": self.desc}


class AnalyticsQuerySpec(_WireModel):
    """Parsed representation of an analytics question.

    Every field is optional here; ``resolved()`` fills the defaults.
    """

    dimensions: list[str] | None = Field(None, description="GA4 dimension names, in order")
    metrics: list[str] | None = Field(None, description="GA4 metric names, in order")
    start_date: str | None = Field(None, alias="startDate", description="YYYY-MM-DD, today, yesterday or NdaysAgo")
    end_date: str | None = Field(None, alias="endDate")
    limit: int | None = Field(None, ge=1, description="Maximum rows to return")
    dimension_filter: dict[str, Any] | None = Field(
        None, alias="dimensionFilter", description="GA4 FilterExpression in JSON form, passed through"
    )
    order_bys: list[OrderBy] | None = Field(None, alias="orderBys")

    def resolved(self) -> AnalyticsQuerySpec:
        """Return a copy with every unset (or empty) field defaulted."""
        metrics = list(self.metrics or DEFAULT_METRICS)
        order_bys = list(self.order_bys or [OrderBy(metric_name=metrics[0], desc=True)])
        return AnalyticsQuerySpec(
            dimensions=list(self.dimensions or DEFAULT_DIMENSIONS),
            metrics=metrics,
            start_date=self.start_date or DEFAULT_START_DATE,
            end_date=self.end_date or DEFAULT_END_DATE,
            limit=self.limit if self.limit is not None else DEFAULT_LIMIT,
            dimension_filter=self.dimension_filter,
            order_bys=order_bys,
        )


class DateRange(_WireModel):
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")


class ResultMetadata(_WireModel):
    row_count: int = Field(..., alias="rowCount")
    dimensions: list[str]
    metrics: list[str]
    date_range: DateRange = Field(..., alias="dateRange")
    property_id: str = Field(..., alias="propertyId")


class AnalyticsResult(_WireModel):
    """Normalised GA4 report: one dict per row, metric totals, request metadata."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    totals: dict[str, Any] = Field(default_factory=dict)
    metadata: ResultMetadata


# ── Interpreter outcome (sum type) ──────────────────────

@dataclass(frozen=True)
class QueryResult:
    spec: AnalyticsQuerySpec


@dataclass(frozen=True)
class TextResult:
    content: str


@dataclass(frozen=True)
class ErrorResult:
    message: str


InterpreterResult = Union[QueryResult, TextResult, ErrorResult]
