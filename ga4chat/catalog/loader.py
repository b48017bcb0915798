"""
Loads and caches the GA4 field catalog YAML into a typed object.

The catalog is the single source of truth for:
  - the dimension and metric names the interpreter prompt advertises
  - which metrics are ratios / durations (formatting hints)
  - the common fields and example questions served by /api/schema
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache
from typing import Any

import yaml

_CATALOG_PATH = Path(__file__).resolve().parent / "ga4_catalog.yml"


@dataclass(frozen=True)
class FieldCatalog:
    """Parsed GA4 field catalog."""

    version: int
    dimension_groups: dict[str, list[str]]
    metric_groups: dict[str, list[str]]
    rate_metrics: list[str] = field(default_factory=list)
    duration_metrics: list[str] = field(default_factory=list)
    common_metrics: list[str] = field(default_factory=list)
    common_dimensions: list[str] = field(default_factory=list)
    example_queries: list[str] = field(default_factory=list)

    def get_dimension_names(self) -> list[str]:
        return [name for group in self.dimension_groups.values() for name in group]

    def get_metric_names(self) -> list[str]:
        return [name for group in self.metric_groups.values() for name in group]

    def is_dimension(self, name: str) -> bool:
        return name in self.get_dimension_names()

    def is_metric(self, name: str) -> bool:
        return name in self.get_metric_names()

    def unknown_fields(self, dimensions: list[str], metrics: list[str]) -> list[str]:
        """Names not present in the catalog, dimensions first."""
        unknown = [d for d in dimensions if not self.is_dimension(d)]
        unknown += [m for m in metrics if not self.is_metric(m)]
        return unknown


def _parse_groups(raw: dict[str, Any] | None) -> dict[str, list[str]]:
    if not raw:
        return {}
    return {str(group): [str(n) for n in names or []] for group, names in raw.items()}


def _parse_catalog(raw_yaml: dict[str, Any]) -> FieldCatalog:
    return FieldCatalog(
        version=raw_yaml.get("version", 1),
        dimension_groups=_parse_groups(raw_yaml.get("dimensions")),
        metric_groups=_parse_groups(raw_yaml.get("metrics")),
        rate_metrics=raw_yaml.get("rate_metrics") or [],
        duration_metrics=raw_yaml.get("duration_metrics") or [],
        common_metrics=raw_yaml.get("common_metrics") or [],
        common_dimensions=raw_yaml.get("common_dimensions") or [],
        example_queries=raw_yaml.get("example_queries") or [],
    )


@lru_cache
def load_catalog() -> FieldCatalog:
    """Load and cache the field catalog from YAML."""
    with open(_CATALOG_PATH) as f:
        raw = yaml.safe_load(f)
    return _parse_catalog(raw)
