"""Redis-backed rate limiting middleware."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from farmops.auth.dependencies import extract_identity_hint
from farmops.config import get_settings

_BYPASS_PREFIXES = ("/docs", "/redoc", "/openapi", "/health")


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-identity request quota using one Redis counter per minute bucket.

	Signed-in users are keyed by token subject, everyone else by client IP.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if request.url.path.startswith(_BYPASS_PREFIXES):
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		settings = get_settings()
		identity = extract_identity_hint(request)
		quota = (
			settings.rate_limit_user_per_minute
			if identity.startswith("user:")
			else settings.rate_limit_anonymous_per_minute
		)

		bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:{identity}:{bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Request quota exceeded, retry next minute",
						"quota": quota,
					}
				},
				headers={"retry-after": "60"},
			)
		return await call_next(request)
