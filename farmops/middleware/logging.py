"""structlog setup and per-request logging with x-request-id propagation."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from farmops.config import LogFormat, Settings, get_settings

REQUEST_ID_HEADER = "x-request-id"

_configured = False


def configure_structured_logging(settings: Settings | None = None) -> None:
	"""Route stdlib and structlog output through one renderer; idempotent."""
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	level = logging.getLevelName(settings.log_level.upper())
	if not isinstance(level, int):
		level = logging.INFO

	if settings.log_format == LogFormat.json:
		renderer: Any = structlog.processors.JSONRenderer()
		logging.basicConfig(level=level, format="%(message)s")
	else:
		renderer = structlog.dev.ConsoleRenderer()
		logging.basicConfig(level=level)

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def _elapsed_ms(started: float) -> float:
	return round((time.perf_counter() - started) * 1000.0, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id to the log context and log one line per request.

	4xx responses log at warning, 5xx at error, everything else at info.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)
		logger = structlog.get_logger("farmops.request")
		started = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=_elapsed_ms(started),
				error=str(exc),
			)
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		if response.status_code >= 500:
			log = logger.error
		elif response.status_code >= 400:
			log = logger.warning
		else:
			log = logger.info
		log(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=_elapsed_ms(started),
		)
		return response
