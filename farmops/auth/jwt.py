"""JWT access/refresh tokens for FarmOps users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError, jwt

from farmops.config import get_settings

TokenType = Literal["access", "refresh"]


@dataclass(slots=True)
class AuthError(Exception):
	"""Authentication failure carrying the ``error`` code returned to clients."""

	code: str
	detail: str
	status_code: int = 401


def _encode(subject: str, token_type: TokenType, ttl: timedelta, extra: dict[str, Any] | None = None) -> str:
	settings = get_settings()
	issued = datetime.now(UTC)
	claims: dict[str, Any] = {
		"sub": subject,
		"typ": token_type,
		"iat": int(issued.timestamp()),
		"exp": int((issued + ttl).timestamp()),
	}
	if extra:
		claims.update(extra)
	return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, role: str | None = None, expires_minutes: int | None = None) -> str:
	minutes = expires_minutes or get_settings().jwt_access_token_expire_minutes
	return _encode(subject, "access", timedelta(minutes=minutes), {"role": role} if role else None)


def create_refresh_token(subject: str, expires_minutes: int | None = None) -> str:
	minutes = expires_minutes or get_settings().jwt_refresh_token_expire_minutes
	return _encode(subject, "refresh", timedelta(minutes=minutes))


def decode_token(token: str, expected_type: TokenType | None = None) -> dict[str, Any]:
	"""Verify signature, subject, type and expiry; raise :class:`AuthError` otherwise."""
	settings = get_settings()
	try:
		claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
	except ExpiredSignatureError as exc:
		raise AuthError(code="token_expired", detail="Authentication token has expired") from exc
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	subject = claims.get("sub")
	if not isinstance(subject, str) or not subject:
		raise AuthError(code="token_invalid", detail="Token subject is missing")

	if expected_type is not None and claims.get("typ") != expected_type:
		raise AuthError(code="token_type_invalid", detail=f"Expected {expected_type} token")

	expires = claims.get("exp")
	if not isinstance(expires, int):
		raise AuthError(code="token_invalid", detail="Token expiration is missing")
	if datetime.now(UTC).timestamp() >= expires:
		raise AuthError(code="token_expired", detail="Authentication token has expired")
	return claims
