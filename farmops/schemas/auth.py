"""Pydantic schemas for registration, login and token exchange."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from farmops.models.enums import UserRoleEnum


class RegisterRequest(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
	password: str = Field(min_length=8, max_length=128)


class LoginRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	password: str = Field(min_length=1, max_length=128)


class RefreshRequest(BaseModel):
	refresh_token: str = Field(min_length=1)


class TokenPair(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	email: str
	role: UserRoleEnum
	is_active: bool
	created_at: datetime
