"""Shared pytest fixtures: async test client, in-memory database, seed data."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from farmops.auth.dependencies import get_current_user
from farmops.auth.jwt import create_access_token
from farmops.database import get_db
from farmops.main import app
from farmops.models import Base
from farmops.models.cycles import CropCycle
from farmops.models.enums import (
	ActivityCategoryEnum,
	CropCategoryEnum,
	LandTypeEnum,
	UnitTypeEnum,
	UserRoleEnum,
)
from farmops.models.parcels import LandParcel
from farmops.models.reference import ActivityType, CropType, UnitOfMeasure
from farmops.schemas.crop_cycles import CropCycleCreate
from farmops.services.crop_cycle_service import CropCycleService


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


class FakeRedis:
	def __init__(self) -> None:
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)
		self.ping = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	def reset_counters(self) -> None:
		self._counter.clear()


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@asynccontextmanager
async def _noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
	yield


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, DB mocked and an admin signed in."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async def override_current_user() -> Any:
		return SimpleNamespace(
			id=uuid.uuid4(),
			role=UserRoleEnum.admin,
			is_active=True,
			email="admin@test.local",
		)

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_current_user] = override_current_user
	original_lifespan = app.router.lifespan_context
	app.router.lifespan_context = _noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with DB override only (real auth dependencies active)."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context
	app.router.lifespan_context = _noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
def auth_user_id() -> uuid.UUID:
	return uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def access_token(auth_user_id: uuid.UUID) -> str:
	return create_access_token(str(auth_user_id), expires_minutes=30)


# ── In-memory database for service tests ────────────────────────────────────


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
	"""Fresh SQLite schema per test; services run against it unchanged."""
	engine = create_async_engine("sqlite+aiosqlite:///:memory:")
	async with engine.begin() as connection:
		await connection.run_sync(Base.metadata.create_all)

	factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
	async with factory() as session:
		yield session
	await engine.dispose()


@pytest.fixture
async def seed(db_session: AsyncSession) -> SimpleNamespace:
	"""Units, one crop type, one activity type and one active rice field."""
	hectare = UnitOfMeasure(name="Hectare", abbreviation="ha", unit_type=UnitTypeEnum.area, is_base_unit=True)
	kilogram = UnitOfMeasure(
		name="Kilogram",
		abbreviation="kg",
		unit_type=UnitTypeEnum.weight,
		is_base_unit=True,
	)
	db_session.add_all([hectare, kilogram])
	await db_session.flush()

	rice = CropType(
		name="Rice",
		code="RICE",
		category=CropCategoryEnum.grain,
		typical_grow_duration_days=110,
		default_yield_unit_id=kilogram.id,
	)
	irrigation = ActivityType(name="Irrigation", code="IRR", category=ActivityCategoryEnum.irrigation)
	parcel = LandParcel(
		name="North rice field",
		code="rf01",
		land_type=LandTypeEnum.rice_field,
		area_value=Decimal("1.50"),
		area_unit_id=hectare.id,
	)
	db_session.add_all([rice, irrigation, parcel])
	await db_session.flush()

	return SimpleNamespace(
		hectare=hectare,
		kilogram=kilogram,
		crop_type=rice,
		activity_type=irrigation,
		parcel=parcel,
	)


@pytest.fixture
def plan_cycle(db_session: AsyncSession, seed: SimpleNamespace):
	"""Create a planned cycle on the seeded parcel for the given date range."""

	async def _plan(start: date, end: date, **overrides: Any) -> CropCycle:
		payload = CropCycleCreate(
			land_parcel_id=overrides.pop("land_parcel_id", seed.parcel.id),
			crop_type_id=overrides.pop("crop_type_id", seed.crop_type.id),
			planned_start_date=start,
			planned_end_date=end,
			**overrides,
		)
		return await CropCycleService(db_session).create_crop_cycle(payload)

	return _plan
