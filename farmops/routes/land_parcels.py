"""Land parcel routes, including water sources and per-parcel history."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import MANAGE_ROLES, READ_ROLES, require_role
from farmops.database import get_db
from farmops.models.enums import LandTypeEnum
from farmops.routes.crop_cycles import to_cycle_read
from farmops.routes.errors import map_service_error
from farmops.schemas.activity import ActivityLogListRead, ActivityLogRead
from farmops.schemas.crop_cycles import CropCycleListRead, ParcelCycleStatisticsRead
from farmops.schemas.parcels import (
	AttachedWaterSourceListRead,
	AttachedWaterSourceRead,
	LandParcelCreate,
	LandParcelListRead,
	LandParcelRead,
	LandParcelUpdate,
	WaterSourceAttach,
)
from farmops.schemas.reference import WaterSourceRead
from farmops.services.activity_log_service import ActivityLogService
from farmops.services.crop_cycle_service import CropCycleService
from farmops.services.land_parcel_service import LandParcelService

router = APIRouter(prefix="/land-parcels", tags=["land-parcels"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected land parcel service failure")


def _to_attached(link: Any, source: Any) -> AttachedWaterSourceRead:
	return AttachedWaterSourceRead(
		water_source=WaterSourceRead.model_validate(source),
		accessibility=link.accessibility,
		is_primary_source=link.is_primary_source,
		notes=link.notes,
	)


@router.get("", response_model=LandParcelListRead)
async def list_land_parcels(
	land_type: LandTypeEnum | None = None,
	active_only: bool = True,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> LandParcelListRead:
	try:
		parcels = await LandParcelService(db).list_land_parcels(land_type, active_only)
	except Exception as exc:
		raise _map_error(exc) from exc
	return LandParcelListRead(items=[LandParcelRead.model_validate(parcel) for parcel in parcels])


@router.post("", response_model=LandParcelRead, status_code=status.HTTP_201_CREATED)
async def create_land_parcel(
	payload: LandParcelCreate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> LandParcelRead:
	try:
		parcel = await LandParcelService(db).create_land_parcel(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return LandParcelRead.model_validate(parcel)


@router.get("/{land_parcel_id}", response_model=LandParcelRead)
async def get_land_parcel(
	land_parcel_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> LandParcelRead:
	try:
		parcel = await LandParcelService(db).get_land_parcel(land_parcel_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return LandParcelRead.model_validate(parcel)


@router.patch("/{land_parcel_id}", response_model=LandParcelRead)
async def update_land_parcel(
	land_parcel_id: uuid.UUID,
	payload: LandParcelUpdate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> LandParcelRead:
	try:
		parcel = await LandParcelService(db).update_land_parcel(land_parcel_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return LandParcelRead.model_validate(parcel)


@router.delete("/{land_parcel_id}", response_model=LandParcelRead)
async def deactivate_land_parcel(
	land_parcel_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> LandParcelRead:
	try:
		parcel = await LandParcelService(db).deactivate_land_parcel(land_parcel_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return LandParcelRead.model_validate(parcel)


# ── Water sources ────────────────────────────────────────────────────────────


@router.get("/{land_parcel_id}/water-sources", response_model=AttachedWaterSourceListRead)
async def list_water_sources(
	land_parcel_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> AttachedWaterSourceListRead:
	try:
		pairs = await LandParcelService(db).list_water_sources(land_parcel_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return AttachedWaterSourceListRead(items=[_to_attached(link, source) for link, source in pairs])


@router.post(
	"/{land_parcel_id}/water-sources",
	response_model=AttachedWaterSourceRead,
	status_code=status.HTTP_201_CREATED,
)
async def attach_water_source(
	land_parcel_id: uuid.UUID,
	payload: WaterSourceAttach,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> AttachedWaterSourceRead:
	try:
		link, source = await LandParcelService(db).attach_water_source(land_parcel_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_attached(link, source)


@router.delete("/{land_parcel_id}/water-sources/{water_source_id}", status_code=status.HTTP_204_NO_CONTENT)
async def detach_water_source(
	land_parcel_id: uuid.UUID,
	water_source_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> Response:
	try:
		await LandParcelService(db).detach_water_source(land_parcel_id, water_source_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── History ──────────────────────────────────────────────────────────────────


@router.get("/{land_parcel_id}/crop-cycles", response_model=CropCycleListRead)
async def list_parcel_crop_cycles(
	land_parcel_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> CropCycleListRead:
	try:
		cycles = await LandParcelService(db).list_crop_cycles(land_parcel_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CropCycleListRead(items=[to_cycle_read(cycle) for cycle in cycles])


@router.get("/{land_parcel_id}/activity-logs", response_model=ActivityLogListRead)
async def list_parcel_activity_logs(
	land_parcel_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogListRead:
	try:
		logs = await ActivityLogService(db).logs_for_parcel(land_parcel_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityLogListRead(items=[ActivityLogRead.model_validate(log) for log in logs])


@router.get("/{land_parcel_id}/statistics", response_model=ParcelCycleStatisticsRead)
async def land_parcel_statistics(
	land_parcel_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ParcelCycleStatisticsRead:
	try:
		stats = await CropCycleService(db).land_parcel_statistics(land_parcel_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ParcelCycleStatisticsRead(**stats)
