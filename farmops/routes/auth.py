"""Registration, login and token refresh routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import auth_http_error, get_current_user
from farmops.auth.jwt import AuthError
from farmops.database import get_db
from farmops.models.users import User
from farmops.routes.errors import map_service_error
from farmops.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenPair, UserRead
from farmops.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, AuthError):
		return auth_http_error(exc)
	if isinstance(exc, ValueError):
		return HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail={"error": "email_taken", "message": str(exc)},
		)
	return map_service_error(exc, "Unexpected authentication failure")


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)) -> UserRead:
	try:
		user = await AuthService(db).register(payload.name, payload.email, payload.password)
	except Exception as exc:
		raise _map_error(exc) from exc
	return UserRead.model_validate(user)


@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenPair:
	service = AuthService(db)
	try:
		user = await service.authenticate(payload.email, payload.password)
	except Exception as exc:
		raise _map_error(exc) from exc
	return service.issue_tokens(user)


@router.post("/refresh", response_model=TokenPair)
async def refresh(payload: RefreshRequest, db: AsyncSession = Depends(get_db)) -> TokenPair:
	try:
		return await AuthService(db).refresh(payload.refresh_token)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/me", response_model=UserRead)
async def me(current_user: User = Depends(get_current_user)) -> UserRead:
	return UserRead.model_validate(current_user)
