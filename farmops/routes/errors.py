"""Exception → HTTP mapping shared by the routers."""

from __future__ import annotations

import structlog
from fastapi import HTTPException, status

from farmops.errors import DomainError

_logger = structlog.get_logger("farmops.routes")


def map_service_error(exc: Exception, failure_detail: str) -> HTTPException:
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, DomainError):
		_logger.info("domain_error_rejected", error=exc.code, message=exc.message)
		return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	_logger.exception("service_failure", error=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail=failure_detail,
	)
