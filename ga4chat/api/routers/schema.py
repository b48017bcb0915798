"""
GET /api/schema -- the GA4 fields and example questions the UI can offer.
"""
from fastapi import APIRouter, Depends, Request

from ga4chat.api.deps import RATE_LIMIT, limiter, require_team_token
from ga4chat.catalog.loader import load_catalog

router = APIRouter(dependencies=[Depends(require_team_token)])


@router.get("/schema")
@limiter.limit(RATE_LIMIT)
def schema_endpoint(request: Request) -> dict:
    """Return common metrics/dimensions, the full catalog and example queries."""
    catalog = load_catalog()
    return {
        "commonMetrics": catalog.common_metrics,
        "commonDimensions": catalog.common_dimensions,
        "metrics": catalog.get_metric_names(),
        "dimensions": catalog.get_dimension_names(),
        "exampleQueries": catalog.example_queries,
    }
