"""
FastAPI application entry-point.
"""
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from ga4chat.api.deps import RATE_LIMIT, limiter, rate_limit_exceeded_handler, require_team_token
from ga4chat.api.routers import chat, query, schema
from ga4chat.core.config import Settings, get_settings

app = FastAPI(
    title="GA4 Team Chat",
    version="0.1.0",
    description="Natural-language questions answered from the GA4 Data API",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router, prefix="/api", tags=["Chat"])
app.include_router(query.router, prefix="/api", tags=["Query"])
app.include_router(schema.router, prefix="/api", tags=["Schema"])


@app.get("/api/health", dependencies=[Depends(require_team_token)])
@limiter.limit(RATE_LIMIT)
def health(request: Request, settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "property": settings.ga4_property_id or "not set",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().api_port)
