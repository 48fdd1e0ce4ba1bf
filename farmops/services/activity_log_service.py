"""Append-only activity log service.

Logs are recorded and read; there is no update or delete path.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Any

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.config import get_settings
from farmops.models.activity import ActivityLog
from farmops.models.cycles import CropCycle
from farmops.models.parcels import LandParcel
from farmops.models.reference import ActivityType, UnitOfMeasure, WaterSource
from farmops.schemas.activity import ActivityLogCreate
from farmops.services.lookups import require_row

_logger = structlog.get_logger("farmops.activity_logs")


class ActivityLogService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_activity_log(self, payload: ActivityLogCreate, today: date | None = None) -> ActivityLog:
		today = today or date.today()
		if payload.activity_date > today:
			raise ValueError("activity_date cannot be in the future")

		await require_row(self.db, ActivityType, payload.activity_type_id, "Activity type")
		land_parcel_id = payload.land_parcel_id
		if payload.crop_cycle_id is not None:
			cycle = await require_row(self.db, CropCycle, payload.crop_cycle_id, "Crop cycle")
			if land_parcel_id is None:
				land_parcel_id = cycle.land_parcel_id
			elif land_parcel_id != cycle.land_parcel_id:
				raise ValueError("crop_cycle_id does not belong to land_parcel_id")
		if payload.land_parcel_id is not None:
			await require_row(self.db, LandParcel, payload.land_parcel_id, "Land parcel")
		if payload.water_source_id is not None:
			await require_row(self.db, WaterSource, payload.water_source_id, "Water source")
		for unit_id in (payload.quantity_unit_id, payload.cost_unit_id):
			if unit_id is not None:
				await require_row(self.db, UnitOfMeasure, unit_id, "Unit of measure")

		log = ActivityLog(**payload.model_dump(exclude={"land_parcel_id"}), land_parcel_id=land_parcel_id)
		self.db.add(log)
		await self.db.flush()
		await self.db.refresh(log)
		_logger.info(
			"activity_log_recorded",
			activity_log_id=str(log.id),
			activity_type_id=str(log.activity_type_id),
			crop_cycle_id=str(log.crop_cycle_id) if log.crop_cycle_id else None,
			land_parcel_id=str(log.land_parcel_id) if log.land_parcel_id else None,
			activity_date=log.activity_date.isoformat(),
		)
		return log

	async def get_activity_log(self, log_id: uuid.UUID) -> ActivityLog:
		return await require_row(self.db, ActivityLog, log_id, "Activity log")

	async def list_activity_logs(
		self,
		*,
		activity_type_id: uuid.UUID | None = None,
		crop_cycle_id: uuid.UUID | None = None,
		land_parcel_id: uuid.UUID | None = None,
		performed_by: str | None = None,
		date_from: date | None = None,
		date_to: date | None = None,
		page: int = 1,
		per_page: int | None = None,
	) -> dict[str, Any]:
		"""One page of logs (newest first) plus the total matching count."""
		settings = get_settings()
		per_page = per_page or settings.activity_log_page_size
		per_page = max(1, min(per_page, settings.activity_log_max_page_size))
		page = max(1, page)
		if date_from is not None and date_to is not None and date_to < date_from:
			raise ValueError("date_to must be on or after date_from")

		filters: list[Any] = []
		if activity_type_id is not None:
			filters.append(ActivityLog.activity_type_id == activity_type_id)
		if crop_cycle_id is not None:
			filters.append(ActivityLog.crop_cycle_id == crop_cycle_id)
		if land_parcel_id is not None:
			filters.append(ActivityLog.land_parcel_id == land_parcel_id)
		if performed_by:
			filters.append(ActivityLog.performed_by.ilike(f"%{performed_by}%"))
		if date_from is not None:
			filters.append(ActivityLog.activity_date >= date_from)
		if date_to is not None:
			filters.append(ActivityLog.activity_date <= date_to)

		total_row = await self.db.execute(select(func.count()).select_from(ActivityLog).where(*filters))
		total = int(total_row.scalar_one())

		stmt = self._newest_first(select(ActivityLog).where(*filters))
		rows = await self.db.execute(stmt.offset((page - 1) * per_page).limit(per_page))
		return {
			"items": list(rows.scalars().all()),
			"total": total,
			"page": page,
			"per_page": per_page,
		}

	async def logs_for_date(self, activity_date: date) -> list[ActivityLog]:
		return await self._fetch(select(ActivityLog).where(ActivityLog.activity_date == activity_date))

	async def logs_by_performer(self, performed_by: str) -> list[ActivityLog]:
		return await self._fetch(select(ActivityLog).where(ActivityLog.performed_by == performed_by))

	async def recent_logs(self, days: int | None = None, today: date | None = None) -> list[ActivityLog]:
		days = days if days is not None else get_settings().recent_activity_days
		if days < 1:
			raise ValueError("days must be at least 1")
		since = (today or date.today()) - timedelta(days=days)
		return await self._fetch(select(ActivityLog).where(ActivityLog.activity_date >= since))

	async def logs_for_cycle(self, cycle_id: uuid.UUID) -> list[ActivityLog]:
		await require_row(self.db, CropCycle, cycle_id, "Crop cycle")
		return await self._fetch(select(ActivityLog).where(ActivityLog.crop_cycle_id == cycle_id))

	async def logs_for_parcel(self, land_parcel_id: uuid.UUID) -> list[ActivityLog]:
		await require_row(self.db, LandParcel, land_parcel_id, "Land parcel")
		return await self._fetch(select(ActivityLog).where(ActivityLog.land_parcel_id == land_parcel_id))

	@staticmethod
	def _newest_first(stmt: Select[Any]) -> Select[Any]:
		return stmt.order_by(ActivityLog.activity_date.desc(), ActivityLog.created_at.desc())

	async def _fetch(self, stmt: Select[Any]) -> list[ActivityLog]:
		rows = await self.db.execute(self._newest_first(stmt))
		return list(rows.scalars().all())
