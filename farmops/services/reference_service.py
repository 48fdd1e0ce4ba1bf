"""Lookup-table services: units, activity/crop types, seasons, water sources."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.models.reference import Season, SeasonDefinition
from farmops.schemas.reference import SeasonCreate, SeasonUpdate
from farmops.services.lookups import label_for, require_row


class ReferenceService:
	"""List/get/create/update for one reference model.

	Filters passed to :meth:`list_items` are matched by column equality.
	"""

	def __init__(self, db: AsyncSession, model: Any):
		self.db = db
		self.model = model
		self.label = label_for(model)

	async def list_items(self, active_only: bool = False, **filters: Any) -> list[Any]:
		stmt = select(self.model)
		if active_only and hasattr(self.model, "is_active"):
			stmt = stmt.where(self.model.is_active.is_(True))
		for name, value in filters.items():
			if value is None:
				continue
			column = getattr(self.model, name)
			enum_class = getattr(column.type, "enum_class", None)
			if enum_class is not None:
				value = enum_class(value)
			stmt = stmt.where(column == value)
		rows = await self.db.execute(stmt.order_by(self.model.name.asc()))
		return list(rows.scalars().all())

	async def get_item(self, item_id: uuid.UUID) -> Any:
		return await require_row(self.db, self.model, item_id, self.label)

	async def create_item(self, payload: BaseModel) -> Any:
		item = self.model(**payload.model_dump())
		self.db.add(item)
		await self._flush()
		await self.db.refresh(item)
		return item

	async def update_item(self, item_id: uuid.UUID, payload: BaseModel) -> Any:
		item = await self.get_item(item_id)
		for field, value in payload.model_dump(exclude_unset=True).items():
			setattr(item, field, value)
		await self._flush()
		await self.db.refresh(item)
		return item

	async def _flush(self) -> None:
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ValueError(f"{self.label} conflicts with an existing record") from exc


class SeasonService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_seasons(
		self,
		year: int | None = None,
		season_definition_id: uuid.UUID | None = None,
	) -> list[Season]:
		stmt = select(Season)
		if year is not None:
			stmt = stmt.where(Season.year == year)
		if season_definition_id is not None:
			stmt = stmt.where(Season.season_definition_id == season_definition_id)
		rows = await self.db.execute(stmt.order_by(Season.year.desc(), Season.created_at.asc()))
		return list(rows.scalars().all())

	async def get_season(self, season_id: uuid.UUID) -> Season:
		return await require_row(self.db, Season, season_id, "Season")

	async def create_season(self, payload: SeasonCreate) -> Season:
		await require_row(self.db, SeasonDefinition, payload.season_definition_id, "Season definition")
		existing = await self.db.execute(
			select(Season.id).where(
				Season.season_definition_id == payload.season_definition_id,
				Season.year == payload.year,
			)
		)
		if existing.scalar_one_or_none() is not None:
			raise ValueError(f"Season already exists for year {payload.year}")

		season = Season(**payload.model_dump())
		self.db.add(season)
		await self.db.flush()
		await self.db.refresh(season)
		return season

	async def update_season(self, season_id: uuid.UUID, payload: SeasonUpdate) -> Season:
		season = await self.get_season(season_id)
		changes = payload.model_dump(exclude_unset=True)
		start = changes.get("actual_start_date", season.actual_start_date)
		end = changes.get("actual_end_date", season.actual_end_date)
		if start is not None and end is not None and end < start:
			raise ValueError("actual_end_date must not be before actual_start_date")
		for field, value in changes.items():
			setattr(season, field, value)
		await self.db.flush()
		await self.db.refresh(season)
		return season
