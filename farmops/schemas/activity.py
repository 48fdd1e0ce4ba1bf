"""Pydantic schemas for activity logs (create + read only)."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActivityLogCreate(BaseModel):
	activity_type_id: uuid.UUID
	crop_cycle_id: uuid.UUID | None = None
	land_parcel_id: uuid.UUID | None = None
	water_source_id: uuid.UUID | None = None
	activity_date: date
	start_time: time | None = None
	end_time: time | None = None
	description: str | None = Field(default=None, max_length=1000)
	quantity_value: Decimal | None = Field(default=None, ge=0, le=Decimal("999999.99"))
	quantity_unit_id: uuid.UUID | None = None
	cost_value: Decimal | None = Field(default=None, ge=0, le=Decimal("9999999999.99"))
	cost_unit_id: uuid.UUID | None = None
	performed_by: str | None = Field(default=None, max_length=100)
	weather_conditions: str | None = Field(default=None, max_length=100)

	@model_validator(mode="after")
	def _consistent(self) -> ActivityLogCreate:
		if self.crop_cycle_id is None and self.land_parcel_id is None:
			raise ValueError("either crop_cycle_id or land_parcel_id is required")
		if self.quantity_value is not None and self.quantity_unit_id is None:
			raise ValueError("quantity_unit_id is required when quantity_value is given")
		if self.cost_value is not None and self.cost_unit_id is None:
			raise ValueError("cost_unit_id is required when cost_value is given")
		if self.start_time is not None and self.end_time is not None and self.end_time <= self.start_time:
			raise ValueError("end_time must be after start_time")
		return self


class ActivityLogRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	activity_type_id: uuid.UUID
	crop_cycle_id: uuid.UUID | None = None
	land_parcel_id: uuid.UUID | None = None
	water_source_id: uuid.UUID | None = None
	activity_date: date
	start_time: time | None = None
	end_time: time | None = None
	description: str | None = None
	quantity_value: Decimal | None = None
	quantity_unit_id: uuid.UUID | None = None
	cost_value: Decimal | None = None
	cost_unit_id: uuid.UUID | None = None
	performed_by: str | None = None
	weather_conditions: str | None = None
	created_at: datetime


class ActivityLogListRead(BaseModel):
	items: list[ActivityLogRead]


class ActivityLogPage(BaseModel):
	items: list[ActivityLogRead]
	total: int
	page: int
	per_page: int
