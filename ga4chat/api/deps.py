"""Shared API dependencies: team-token auth and the rate limiter."""
from __future__ import annotations

import secrets

from fastapi import Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ga4chat.core.config import Settings, get_settings
from ga4chat.core.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT = f"{get_settings().rate_limit_per_minute}/minute"

limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded  client=%s  path=%s", get_remote_address(request), request.url.path)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "Too many requests. Please wait a moment."},
    )


def require_team_token(
    authorization: str | None = Header(None),
    token: str | None = Query(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Bearer token (or ?token=) check; open access when no token is configured."""
    expected = settings.team_access_token
    if not expected:
        return

    provided = (authorization or "").strip().removeprefix("Bearer").strip() or (token or "")

    if not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Invalid access token.",
        )
