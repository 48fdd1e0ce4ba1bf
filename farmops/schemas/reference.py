"""Pydantic schemas for reference/lookup data."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from farmops.models.enums import (
	ActivityCategoryEnum,
	CropCategoryEnum,
	UnitTypeEnum,
	WaterQualityEnum,
	WaterReliabilityEnum,
	WaterSourceTypeEnum,
)

_CODE_PATTERN = r"^[A-Za-z0-9_\-]+$"


# ── Units of measure ─────────────────────────────────────────────────────────


class UnitOfMeasureCreate(BaseModel):
	name: str = Field(min_length=1, max_length=50)
	abbreviation: str = Field(min_length=1, max_length=20)
	unit_type: UnitTypeEnum
	conversion_factor_to_base: Decimal = Field(default=Decimal("1"), gt=0)
	is_base_unit: bool = False


class UnitOfMeasureUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=50)
	abbreviation: str | None = Field(default=None, min_length=1, max_length=20)
	conversion_factor_to_base: Decimal | None = Field(default=None, gt=0)
	is_base_unit: bool | None = None
	is_active: bool | None = None


class UnitOfMeasureRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	abbreviation: str
	unit_type: UnitTypeEnum
	conversion_factor_to_base: Decimal
	is_base_unit: bool
	is_active: bool
	created_at: datetime


# ── Activity types ───────────────────────────────────────────────────────────


class ActivityTypeCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str = Field(min_length=1, max_length=30, pattern=_CODE_PATTERN)
	category: ActivityCategoryEnum
	description: str | None = None


class ActivityTypeUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	category: ActivityCategoryEnum | None = None
	description: str | None = None
	is_active: bool | None = None


class ActivityTypeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	code: str
	category: ActivityCategoryEnum
	description: str | None = None
	is_active: bool
	created_at: datetime


# ── Crop types ───────────────────────────────────────────────────────────────


class CropTypeCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str = Field(min_length=1, max_length=30, pattern=_CODE_PATTERN)
	scientific_name: str | None = Field(default=None, max_length=150)
	variety: str | None = Field(default=None, max_length=100)
	category: CropCategoryEnum
	description: str | None = None
	typical_grow_duration_days: int | None = Field(default=None, ge=1, le=3650)
	default_yield_unit_id: uuid.UUID | None = None


class CropTypeUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	scientific_name: str | None = Field(default=None, max_length=150)
	variety: str | None = Field(default=None, max_length=100)
	category: CropCategoryEnum | None = None
	description: str | None = None
	typical_grow_duration_days: int | None = Field(default=None, ge=1, le=3650)
	default_yield_unit_id: uuid.UUID | None = None
	is_active: bool | None = None


class CropTypeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	code: str
	scientific_name: str | None = None
	variety: str | None = None
	category: CropCategoryEnum
	description: str | None = None
	typical_grow_duration_days: int | None = None
	default_yield_unit_id: uuid.UUID | None = None
	is_active: bool
	created_at: datetime


# ── Seasons ──────────────────────────────────────────────────────────────────


class SeasonDefinitionCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str = Field(min_length=1, max_length=30, pattern=_CODE_PATTERN)
	description: str | None = None
	typical_start_month: int = Field(ge=1, le=12)
	typical_end_month: int = Field(ge=1, le=12)


class SeasonDefinitionUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	description: str | None = None
	typical_start_month: int | None = Field(default=None, ge=1, le=12)
	typical_end_month: int | None = Field(default=None, ge=1, le=12)
	is_active: bool | None = None


class SeasonDefinitionRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	code: str
	description: str | None = None
	typical_start_month: int
	typical_end_month: int
	is_active: bool
	created_at: datetime


class SeasonCreate(BaseModel):
	season_definition_id: uuid.UUID
	year: int = Field(ge=1900, le=2200)
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)

	@model_validator(mode="after")
	def _dates_ordered(self) -> SeasonCreate:
		if (
			self.actual_start_date is not None
			and self.actual_end_date is not None
			and self.actual_end_date < self.actual_start_date
		):
			raise ValueError("actual_end_date must not be before actual_start_date")
		return self


class SeasonUpdate(BaseModel):
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	notes: str | None = Field(default=None, max_length=1000)


class SeasonRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	season_definition_id: uuid.UUID
	year: int
	actual_start_date: date | None = None
	actual_end_date: date | None = None
	notes: str | None = None
	created_at: datetime


# ── Water sources ────────────────────────────────────────────────────────────


class WaterSourceCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str = Field(min_length=1, max_length=30, pattern=_CODE_PATTERN)
	source_type: WaterSourceTypeEnum
	description: str | None = None
	latitude: Decimal | None = Field(default=None, ge=-90, le=90)
	longitude: Decimal | None = Field(default=None, ge=-180, le=180)
	reliability: WaterReliabilityEnum = WaterReliabilityEnum.permanent
	water_quality: WaterQualityEnum | None = None


class WaterSourceUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	source_type: WaterSourceTypeEnum | None = None
	description: str | None = None
	latitude: Decimal | None = Field(default=None, ge=-90, le=90)
	longitude: Decimal | None = Field(default=None, ge=-180, le=180)
	reliability: WaterReliabilityEnum | None = None
	water_quality: WaterQualityEnum | None = None
	is_active: bool | None = None


class WaterSourceRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	code: str
	source_type: WaterSourceTypeEnum
	description: str | None = None
	latitude: Decimal | None = None
	longitude: Decimal | None = None
	reliability: WaterReliabilityEnum
	water_quality: WaterQualityEnum | None = None
	is_active: bool
	created_at: datetime
