"""Aggregate counts for the dashboard."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.models.activity import ActivityLog
from farmops.models.cycles import CropCycle
from farmops.models.enums import CropCycleStatusEnum
from farmops.models.parcels import LandParcel

RECENT_ACTIVITY_LIMIT = 10


class DashboardService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def summary(self) -> dict[str, Any]:
		by_status = await self._cycle_counts()
		active_parcels = await self._count(
			select(func.count()).select_from(LandParcel).where(LandParcel.is_active.is_(True))
		)
		rows = await self.db.execute(
			select(ActivityLog)
			.order_by(ActivityLog.activity_date.desc(), ActivityLog.created_at.desc())
			.limit(RECENT_ACTIVITY_LIMIT)
		)
		return {
			"active_cycles": by_status[CropCycleStatusEnum.active],
			"planned_cycles": by_status[CropCycleStatusEnum.planned],
			"active_land_parcels": active_parcels,
			"recent_activities": list(rows.scalars().all()),
		}

	async def statistics(self, today: date | None = None) -> dict[str, Any]:
		today = today or date.today()
		week_start = today - timedelta(days=today.weekday())
		month_start = today.replace(day=1)

		by_status = await self._cycle_counts()
		parcels_total = await self._count(select(func.count()).select_from(LandParcel))
		parcels_active = await self._count(
			select(func.count()).select_from(LandParcel).where(LandParcel.is_active.is_(True))
		)
		with_active = await self._count(
			select(func.count(func.distinct(CropCycle.land_parcel_id))).where(
				CropCycle.status == CropCycleStatusEnum.active
			)
		)
		activities_total = await self._count(select(func.count()).select_from(ActivityLog))
		this_week = await self._count(
			select(func.count()).select_from(ActivityLog).where(ActivityLog.activity_date >= week_start)
		)
		this_month = await self._count(
			select(func.count()).select_from(ActivityLog).where(ActivityLog.activity_date >= month_start)
		)
		return {
			"crop_cycles": {str(status): count for status, count in by_status.items()},
			"land_parcels": {
				"total": parcels_total,
				"active": parcels_active,
				"with_active_cycle": with_active,
			},
			"activities": {
				"total": activities_total,
				"this_week": this_week,
				"this_month": this_month,
			},
		}

	async def _cycle_counts(self) -> dict[CropCycleStatusEnum, int]:
		rows = await self.db.execute(
			select(CropCycle.status, func.count()).group_by(CropCycle.status)
		)
		counts = {status: 0 for status in CropCycleStatusEnum}
		for status, count in rows.all():
			counts[CropCycleStatusEnum(status)] = int(count)
		return counts

	async def _count(self, stmt: Any) -> int:
		row = await self.db.execute(stmt)
		return int(row.scalar_one())
