"""Pydantic schemas for land parcels and water-source attachments."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from farmops.models.enums import (
	LandTypeEnum,
	SoilTypeEnum,
	TerrainTypeEnum,
	WaterAccessibilityEnum,
)
from farmops.schemas.reference import WaterSourceRead


class LandParcelCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	code: str = Field(min_length=1, max_length=30, pattern=r"^[A-Za-z0-9_\-]+$")
	description: str | None = None
	land_type: LandTypeEnum
	area_value: Decimal = Field(gt=0, le=Decimal("99999999.99"))
	area_unit_id: uuid.UUID
	terrain_type: TerrainTypeEnum | None = None
	soil_type: SoilTypeEnum | None = None
	latitude: Decimal | None = Field(default=None, ge=-90, le=90)
	longitude: Decimal | None = Field(default=None, ge=-180, le=180)


class LandParcelUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	description: str | None = None
	land_type: LandTypeEnum | None = None
	area_value: Decimal | None = Field(default=None, gt=0, le=Decimal("99999999.99"))
	area_unit_id: uuid.UUID | None = None
	terrain_type: TerrainTypeEnum | None = None
	soil_type: SoilTypeEnum | None = None
	latitude: Decimal | None = Field(default=None, ge=-90, le=90)
	longitude: Decimal | None = Field(default=None, ge=-180, le=180)
	is_active: bool | None = None


class LandParcelRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	code: str
	description: str | None = None
	land_type: LandTypeEnum
	area_value: Decimal
	area_unit_id: uuid.UUID
	terrain_type: TerrainTypeEnum | None = None
	soil_type: SoilTypeEnum | None = None
	latitude: Decimal | None = None
	longitude: Decimal | None = None
	is_active: bool
	created_at: datetime
	updated_at: datetime


class LandParcelListRead(BaseModel):
	items: list[LandParcelRead]


class WaterSourceAttach(BaseModel):
	water_source_id: uuid.UUID
	accessibility: WaterAccessibilityEnum = WaterAccessibilityEnum.direct
	is_primary_source: bool = False
	notes: str | None = Field(default=None, max_length=1000)


class AttachedWaterSourceRead(BaseModel):
	water_source: WaterSourceRead
	accessibility: WaterAccessibilityEnum
	is_primary_source: bool
	notes: str | None = None


class AttachedWaterSourceListRead(BaseModel):
	items: list[AttachedWaterSourceRead]
