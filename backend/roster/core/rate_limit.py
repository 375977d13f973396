"""Per-client request rate limiting for the API router."""

from __future__ import annotations

import logging
import math
import time

from fastapi import HTTPException, Request
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from roster.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

storage = MemoryStorage()
limiter = FixedWindowRateLimiter(storage)


def client_key(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


async def enforce_rate_limit(request: Request) -> None:
    if not settings.RATE_LIMIT_ENABLED:
        return

    item = parse(settings.RATE_LIMIT)
    key = client_key(request)
    if limiter.hit(item, key):
        return

    reset_at = limiter.get_window_stats(item, key).reset_time
    retry_after = max(0, math.ceil(reset_at - time.time()))
    logger.warning("Rate limit %s exceeded for %s", settings.RATE_LIMIT, key)
    raise HTTPException(
        status_code=429,
        detail=RATE_LIMIT_MESSAGE,
        headers={"Retry-After": str(retry_after)},
    )
