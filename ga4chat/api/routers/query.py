"""POST /api/query -- direct GA4 query for advanced users (no LLM involved)."""
from fastapi import APIRouter, Depends, HTTPException, Request

from ga4chat.analytics.executor import execute
from ga4chat.api.deps import RATE_LIMIT, limiter, require_team_token
from ga4chat.copilot.service import ChatPipeline, get_pipeline
from ga4chat.copilot.spec import DEFAULT_LIMIT, AnalyticsQuerySpec
from ga4chat.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_team_token)])

MAX_DIRECT_LIMIT = 1000


@router.post("/query")
@limiter.limit(RATE_LIMIT)
def query_endpoint(
    request: Request,
    spec: AnalyticsQuerySpec,
    pipeline: ChatPipeline = Depends(get_pipeline),
):
    """Run a structured query as-is; defaults fill anything left out."""
    if not spec.metrics:
        raise HTTPException(status_code=400, detail="At least one metric is required")

    spec = spec.model_copy(update={"limit": min(spec.limit or DEFAULT_LIMIT, MAX_DIRECT_LIMIT)})

    try:
        result = execute(spec, pipeline.analytics)
    except Exception:
        logger.exception("Direct GA4 query failed")
        raise HTTPException(status_code=500, detail="Failed to query GA4")

    return result.to_wire()
