"""User registration and credential checks."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.jwt import AuthError, create_access_token, create_refresh_token, decode_token
from farmops.auth.passwords import hash_password, verify_password
from farmops.models.enums import UserRoleEnum
from farmops.models.users import User
from farmops.schemas.auth import TokenPair

_logger = structlog.get_logger("farmops.auth")


class AuthService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def register(
		self,
		name: str,
		email: str,
		password: str,
		role: UserRoleEnum = UserRoleEnum.viewer,
	) -> User:
		email = email.strip().lower()
		existing = await self.db.execute(select(User.id).where(func.lower(User.email) == email))
		if existing.scalar_one_or_none() is not None:
			raise ValueError("Email is already registered")

		user = User(name=name, email=email, hashed_password=hash_password(password), role=role)
		self.db.add(user)
		await self.db.flush()
		await self.db.refresh(user)
		_logger.info("user_registered", user_id=str(user.id), role=str(user.role))
		return user

	async def authenticate(self, email: str, password: str) -> User:
		row = await self.db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
		user = row.scalar_one_or_none()
		if user is None or not verify_password(password, user.hashed_password):
			_logger.info("login_failed", email=email)
			raise AuthError(code="invalid_credentials", detail="Invalid email or password")
		if not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")
		return user

	async def refresh(self, refresh_token: str) -> TokenPair:
		claims = decode_token(refresh_token, expected_type="refresh")
		try:
			user_id = uuid.UUID(claims["sub"])
		except ValueError as exc:
			raise AuthError(code="token_invalid", detail="Token subject is invalid") from exc
		row = await self.db.execute(select(User).where(User.id == user_id))
		user = row.scalar_one_or_none()
		if user is None or not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")
		return self.issue_tokens(user)

	@staticmethod
	def issue_tokens(user: User) -> TokenPair:
		subject = str(user.id)
		return TokenPair(
			access_token=create_access_token(subject, role=str(user.role)),
			refresh_token=create_refresh_token(subject),
		)
