from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from stampbook.core.exceptions import error_body

logger = logging.getLogger("stampbook.api.rate_limit")


@dataclass(frozen=True)
class RateLimitRule:
    key_prefix: str
    limit: int
    window_seconds: int
    method: str
    path: str


# The shared admin password is the only secret, so login attempts are throttled per client.
AUTH_RULES: tuple[RateLimitRule, ...] = (
    RateLimitRule(key_prefix="login", limit=10, window_seconds=300, method="POST", path="/auth/login"),
    RateLimitRule(key_prefix="setup", limit=5, window_seconds=300, method="POST", path="/auth/setup"),
)


def _extract_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _matching_rule(request: Request) -> RateLimitRule | None:
    method = request.method.upper()
    for rule in AUTH_RULES:
        if rule.method == method and rule.path == request.url.path:
            return rule
    return None


async def _increment_and_check(redis: Redis, *, rule: RateLimitRule, ip: str) -> bool:
    key = f"stampbook:rate:{rule.key_prefix}:{ip}"
    value = await redis.incr(key)
    if value == 1:
        await redis.expire(key, rule.window_seconds)
    return int(value) <= rule.limit


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rule = _matching_rule(request)
        redis: Redis | None = getattr(request.app.state, "redis", None)
        if rule is None or redis is None:
            return await call_next(request)

        try:
            allowed = await _increment_and_check(redis, rule=rule, ip=_extract_ip(request))
        except RedisError:
            # Fail open: an unavailable Redis must not lock parents out.
            logger.warning("rate_limit.unavailable", extra={"route": request.url.path})
            return await call_next(request)

        if not allowed:
            return JSONResponse(
                status_code=429,
                content=error_body("RATE_LIMIT", "Too many attempts, try again later"),
            )
        return await call_next(request)
