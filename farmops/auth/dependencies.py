"""Authentication dependencies: get_current_user, require_role."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.jwt import AuthError, decode_token
from farmops.database import get_db
from farmops.models.enums import UserRoleEnum
from farmops.models.users import User

bearer_scheme = HTTPBearer(auto_error=False)

# Role groups used by the routers.
MANAGE_ROLES = (UserRoleEnum.admin, UserRoleEnum.manager)
FIELD_ROLES = (UserRoleEnum.admin, UserRoleEnum.manager, UserRoleEnum.field_worker)
READ_ROLES = (
	UserRoleEnum.admin,
	UserRoleEnum.manager,
	UserRoleEnum.field_worker,
	UserRoleEnum.viewer,
)


def auth_http_error(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def extract_identity_hint(request: Request) -> str:
	"""Rate-limit identity: the token subject when one decodes, else client IP."""
	auth_header = request.headers.get("authorization", "")
	if auth_header.lower().startswith("bearer "):
		try:
			claims = decode_token(auth_header[7:].strip(), expected_type="access")
		except AuthError:
			claims = None
		if claims is not None:
			return f"user:{claims['sub']}"
	client = request.client.host if request.client else "unknown"
	return f"ip:{client}"


async def _resolve_user_from_token(
	db: AsyncSession,
	credentials: HTTPAuthorizationCredentials | None,
) -> User:
	if credentials is None or credentials.scheme.lower() != "bearer":
		raise auth_http_error(AuthError(code="auth_required", detail="Bearer token is required"))

	try:
		claims = decode_token(credentials.credentials, expected_type="access")
		user_id = uuid.UUID(str(claims["sub"]))
	except AuthError as exc:
		raise auth_http_error(exc) from exc
	except (ValueError, KeyError) as exc:
		raise auth_http_error(AuthError(code="token_invalid", detail="Token subject is invalid")) from exc

	row = await db.execute(select(User).where(User.id == user_id))
	user = row.scalar_one_or_none()
	if user is None or not user.is_active:
		raise auth_http_error(AuthError(code="user_invalid", detail="User is not active"))
	return user


async def get_current_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User:
	credentials = await bearer_scheme(request)
	return await _resolve_user_from_token(db, credentials)


def require_role(*allowed: UserRoleEnum) -> Callable[..., object]:
	allowed_set = set(allowed)

	async def dependency(current_user: User = Depends(get_current_user)) -> User:
		if current_user.role not in allowed_set:
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail={"error": "forbidden", "message": "Insufficient role"},
			)
		return current_user

	return dependency
