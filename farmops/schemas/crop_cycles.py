"""Pydantic request/response schemas for crop cycles and their stages."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from farmops.models.enums import CropCycleStatusEnum, QualityRatingEnum, StageStatusEnum

# ── Crop cycles ─────────────────────────────────────────────────────────────


class CropCycleCreate(BaseModel):
	land_parcel_id: uuid.UUID
	crop_type_id: uuid.UUID
	season_id: uuid.UUID | None = None
	planned_start_date: date
	planned_end_date: date
	notes: str | None = Field(default=None, max_length=1000)

	@model_validator(mode="after")
	def _end_after_start(self) -> CropCycleCreate:
		if self.planned_end_date <= self.planned_start_date:
			raise ValueError("planned_end_date must be after planned_start_date")
		return self


class CropCycleUpdate(BaseModel):
	"""Plan changes; only fields present in the request body are applied."""

	season_id: uuid.UUID | None = None
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)

	@model_validator(mode="after")
	def _end_after_start(self) -> CropCycleUpdate:
		if (
			self.planned_start_date is not None
			and self.planned_end_date is not None
			and self.planned_end_date <= self.planned_start_date
		):
			raise ValueError("planned_end_date must be after planned_start_date")
		return self


class CropCycleActivate(BaseModel):
	actual_start_date: date | None = None


class CropCycleComplete(BaseModel):
	actual_end_date: date | None = None
	yield_value: Decimal | None = Field(default=None, ge=0, le=Decimal("999999.99"))
	yield_unit_id: uuid.UUID | None = None
	quality_rating: QualityRatingEnum | None = None
	notes: str | None = Field(default=None, max_length=1000)


class CropCycleClose(BaseModel):
	"""Body for fail / abandon."""

	actual_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class CropCycleRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	cycle_code: str
	land_parcel_id: uuid.UUID
	crop_type_id: uuid.UUID
	season_id: uuid.UUID | None = None
	status: CropCycleStatusEnum
	planned_start_date: date
	planned_end_date: date
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	yield_value: Decimal | None = None
	yield_unit_id: uuid.UUID | None = None
	quality_rating: QualityRatingEnum | None = None
	notes: str | None = None
	duration_days: int | None = None
	is_overdue: bool = False
	created_at: datetime
	updated_at: datetime


class CropCycleListRead(BaseModel):
	items: list[CropCycleRead]


class ParcelCycleStatisticsRead(BaseModel):
	land_parcel_id: uuid.UUID
	total_cycles: int
	planned_cycles: int
	active_cycles: int
	completed_cycles: int
	failed_cycles: int
	abandoned_cycles: int
	average_yield: Decimal | None = None


# ── Stages ──────────────────────────────────────────────────────────────────


class StageCreate(BaseModel):
	stage_name: str = Field(min_length=1, max_length=100)
	sequence_order: int = Field(ge=1, le=20)
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)

	@model_validator(mode="after")
	def _end_not_before_start(self) -> StageCreate:
		if (
			self.planned_start_date is not None
			and self.planned_end_date is not None
			and self.planned_end_date < self.planned_start_date
		):
			raise ValueError("planned_end_date must be on or after planned_start_date")
		return self


class StageUpdate(BaseModel):
	stage_name: str | None = Field(default=None, min_length=1, max_length=100)
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class StageStart(BaseModel):
	actual_start_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class StageComplete(BaseModel):
	actual_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class StageSkip(BaseModel):
	notes: str | None = Field(default=None, max_length=1000)


class StageRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	crop_cycle_id: uuid.UUID
	stage_name: str
	sequence_order: int
	planned_start_date: date | None = None
	planned_end_date: date | None = None
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	status: StageStatusEnum
	notes: str | None = None
	created_at: datetime
	updated_at: datetime


class StageListRead(BaseModel):
	items: list[StageRead]


class CropCycleDetailRead(CropCycleRead):
	stages: list[StageRead] = Field(default_factory=list)
	current_stage: StageRead | None = None
