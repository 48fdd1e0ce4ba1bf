"""Land parcel CRUD and water-source attachments."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.errors import ParcelHasActiveCycleError
from farmops.models.cycles import CropCycle
from farmops.models.enums import LandTypeEnum, UnitTypeEnum
from farmops.models.parcels import LandParcel, LandParcelWaterSource
from farmops.models.reference import UnitOfMeasure, WaterSource
from farmops.schemas.parcels import LandParcelCreate, LandParcelUpdate, WaterSourceAttach
from farmops.services.crop_cycle_service import CropCycleService
from farmops.services.lookups import require_row

_logger = structlog.get_logger("farmops.land_parcels")


class LandParcelService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_land_parcels(
		self,
		land_type: LandTypeEnum | None = None,
		active_only: bool = True,
	) -> list[LandParcel]:
		stmt = select(LandParcel)
		if land_type is not None:
			stmt = stmt.where(LandParcel.land_type == land_type)
		if active_only:
			stmt = stmt.where(LandParcel.is_active.is_(True))
		rows = await self.db.execute(stmt.order_by(LandParcel.code.asc()))
		return list(rows.scalars().all())

	async def get_land_parcel(self, land_parcel_id: uuid.UUID) -> LandParcel:
		return await require_row(self.db, LandParcel, land_parcel_id, "Land parcel")

	async def create_land_parcel(self, payload: LandParcelCreate) -> LandParcel:
		await self._require_area_unit(payload.area_unit_id)
		existing = await self.db.execute(select(LandParcel.id).where(LandParcel.code == payload.code))
		if existing.scalar_one_or_none() is not None:
			raise ValueError(f"Land parcel code {payload.code} is already in use")

		parcel = LandParcel(**payload.model_dump(), is_active=True)
		self.db.add(parcel)
		await self.db.flush()
		await self.db.refresh(parcel)
		_logger.info("land_parcel_created", land_parcel_id=str(parcel.id), code=parcel.code)
		return parcel

	async def update_land_parcel(self, land_parcel_id: uuid.UUID, payload: LandParcelUpdate) -> LandParcel:
		parcel = await self.get_land_parcel(land_parcel_id)
		changes = payload.model_dump(exclude_unset=True)
		if changes.get("area_unit_id") is not None:
			await self._require_area_unit(changes["area_unit_id"])
		if changes.get("is_active") is False and parcel.is_active:
			await self._ensure_no_active_cycle(parcel)

		for field, value in changes.items():
			if value is None and field in {"name", "land_type", "area_value", "area_unit_id", "is_active"}:
				continue
			setattr(parcel, field, value)
		await self.db.flush()
		await self.db.refresh(parcel)
		return parcel

	async def deactivate_land_parcel(self, land_parcel_id: uuid.UUID) -> LandParcel:
		"""Soft delete: parcels referenced by history are never removed."""
		parcel = await self.get_land_parcel(land_parcel_id)
		await self._ensure_no_active_cycle(parcel)
		parcel.is_active = False
		await self.db.flush()
		await self.db.refresh(parcel)
		_logger.info("land_parcel_deactivated", land_parcel_id=str(parcel.id), code=parcel.code)
		return parcel

	async def list_crop_cycles(self, land_parcel_id: uuid.UUID) -> list[CropCycle]:
		await self.get_land_parcel(land_parcel_id)
		return await CropCycleService(self.db).list_crop_cycles(land_parcel_id=land_parcel_id)

	# ── Water sources ────────────────────────────────────────────────────

	async def list_water_sources(
		self,
		land_parcel_id: uuid.UUID,
	) -> list[tuple[LandParcelWaterSource, WaterSource]]:
		await self.get_land_parcel(land_parcel_id)
		rows = await self.db.execute(
			select(LandParcelWaterSource, WaterSource)
			.join(WaterSource, WaterSource.id == LandParcelWaterSource.water_source_id)
			.where(LandParcelWaterSource.land_parcel_id == land_parcel_id)
			.order_by(LandParcelWaterSource.is_primary_source.desc(), WaterSource.code.asc())
		)
		return [(link, source) for link, source in rows.all()]

	async def attach_water_source(
		self,
		land_parcel_id: uuid.UUID,
		payload: WaterSourceAttach,
	) -> tuple[LandParcelWaterSource, WaterSource]:
		parcel = await self.get_land_parcel(land_parcel_id)
		source = await require_row(self.db, WaterSource, payload.water_source_id, "Water source")
		if await self._find_link(parcel.id, source.id) is not None:
			raise ValueError("Water source is already attached to this land parcel")

		link = LandParcelWaterSource(
			land_parcel_id=parcel.id,
			water_source_id=source.id,
			accessibility=payload.accessibility,
			is_primary_source=payload.is_primary_source,
			notes=payload.notes,
		)
		self.db.add(link)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ValueError("Water source is already attached to this land parcel") from exc
		await self.db.refresh(link)
		return link, source

	async def detach_water_source(self, land_parcel_id: uuid.UUID, water_source_id: uuid.UUID) -> None:
		await self.get_land_parcel(land_parcel_id)
		link = await self._find_link(land_parcel_id, water_source_id)
		if link is None:
			raise LookupError("Water source is not attached to this land parcel")
		await self.db.delete(link)
		await self.db.flush()

	async def _find_link(
		self,
		land_parcel_id: uuid.UUID,
		water_source_id: uuid.UUID,
	) -> LandParcelWaterSource | None:
		row = await self.db.execute(
			select(LandParcelWaterSource).where(
				LandParcelWaterSource.land_parcel_id == land_parcel_id,
				LandParcelWaterSource.water_source_id == water_source_id,
			)
		)
		return row.scalar_one_or_none()

	async def _ensure_no_active_cycle(self, parcel: LandParcel) -> None:
		if await CropCycleService(self.db).find_active_cycle(parcel.id) is not None:
			raise ParcelHasActiveCycleError(parcel.id)

	async def _require_area_unit(self, unit_id: uuid.UUID) -> UnitOfMeasure:
		unit = await require_row(self.db, UnitOfMeasure, unit_id, "Unit of measure")
		if unit.unit_type != UnitTypeEnum.area:
			raise ValueError(f"Unit {unit.abbreviation} is not an area unit")
		return unit
