"""Pydantic schemas for the dashboard overview."""

from __future__ import annotations

from pydantic import BaseModel

from farmops.schemas.activity import ActivityLogRead


class DashboardSummaryRead(BaseModel):
	active_cycles: int
	planned_cycles: int
	active_land_parcels: int
	recent_activities: list[ActivityLogRead]


class CycleStatusCounts(BaseModel):
	planned: int = 0
	active: int = 0
	completed: int = 0
	failed: int = 0
	abandoned: int = 0


class ParcelCounts(BaseModel):
	total: int
	active: int
	with_active_cycle: int


class ActivityCounts(BaseModel):
	total: int
	this_week: int
	this_month: int


class DashboardStatisticsRead(BaseModel):
	crop_cycles: CycleStatusCounts
	land_parcels: ParcelCounts
	activities: ActivityCounts
