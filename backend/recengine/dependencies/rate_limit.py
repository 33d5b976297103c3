"""Per-client request rate limiting.

Counts live in process memory, so each worker enforces its own window.
"""

import logging
import time

from fastapi import HTTPException, Request, status

from recengine.config import get_settings

logger = logging.getLogger(__name__)

_RATE_LIMIT_STORE: dict[str, list[float]] = {}


def client_identifier(request: Request) -> str:
    """First forwarded address, then the proxy's real-ip header, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(action: str, request: Request, limit: int, window_seconds: int) -> None:
    now = time.time()
    key = f"{action}:{client_identifier(request)}"
    entries = [ts for ts in _RATE_LIMIT_STORE.get(key, []) if now - ts < window_seconds]
    if len(entries) >= limit:
        _RATE_LIMIT_STORE[key] = entries
        logger.warning("Rate limit exceeded for %s", key)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
    entries.append(now)
    _RATE_LIMIT_STORE[key] = entries


def limit_tracking_requests(request: Request) -> None:
    settings = get_settings()
    enforce_rate_limit(
        "tracking",
        request,
        limit=settings.tracking_rate_limit,
        window_seconds=settings.tracking_rate_window_seconds,
    )
