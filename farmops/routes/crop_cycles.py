"""Crop cycle lifecycle routes."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import MANAGE_ROLES, READ_ROLES, require_role
from farmops.database import get_db
from farmops.models.enums import CropCycleStatusEnum
from farmops.routes.errors import map_service_error
from farmops.schemas.activity import ActivityLogListRead, ActivityLogRead
from farmops.schemas.crop_cycles import (
	CropCycleActivate,
	CropCycleClose,
	CropCycleComplete,
	CropCycleCreate,
	CropCycleDetailRead,
	CropCycleListRead,
	CropCycleRead,
	CropCycleUpdate,
	StageCreate,
	StageListRead,
	StageRead,
)
from farmops.services.activity_log_service import ActivityLogService
from farmops.services.crop_cycle_service import CropCycleService
from farmops.services.stage_service import CropCycleStageService

router = APIRouter(prefix="/crop-cycles", tags=["crop-cycles"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected crop cycle service failure")


def to_cycle_read(cycle: Any, today: date | None = None) -> CropCycleRead:
	return CropCycleRead(
		id=cycle.id,
		cycle_code=cycle.cycle_code,
		land_parcel_id=cycle.land_parcel_id,
		crop_type_id=cycle.crop_type_id,
		season_id=cycle.season_id,
		status=cycle.status,
		planned_start_date=cycle.planned_start_date,
		planned_end_date=cycle.planned_end_date,
		actual_start_date=cycle.actual_start_date,
		actual_end_date=cycle.actual_end_date,
		yield_value=cycle.yield_value,
		yield_unit_id=cycle.yield_unit_id,
		quality_rating=cycle.quality_rating,
		notes=cycle.notes,
		duration_days=cycle.duration_days(today),
		is_overdue=cycle.is_overdue(today),
		created_at=cycle.created_at,
		updated_at=cycle.updated_at,
	)


def to_stage_read(stage: Any) -> StageRead:
	return StageRead.model_validate(stage)


@router.get("", response_model=CropCycleListRead)
async def list_crop_cycles(
	status_filter: CropCycleStatusEnum | None = Query(default=None, alias="status"),
	land_parcel_id: uuid.UUID | None = None,
	crop_type_id: uuid.UUID | None = None,
	season_id: uuid.UUID | None = None,
	search: str | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> CropCycleListRead:
	service = CropCycleService(db)
	try:
		cycles = await service.list_crop_cycles(
			status=status_filter,
			land_parcel_id=land_parcel_id,
			crop_type_id=crop_type_id,
			season_id=season_id,
			search=search,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CropCycleListRead(items=[to_cycle_read(cycle) for cycle in cycles])


@router.post("", response_model=CropCycleRead, status_code=status.HTTP_201_CREATED)
async def create_crop_cycle(
	payload: CropCycleCreate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> CropCycleRead:
	service = CropCycleService(db)
	try:
		cycle = await service.create_crop_cycle(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_cycle_read(cycle)


@router.get("/{cycle_id}", response_model=CropCycleDetailRead)
async def get_crop_cycle(
	cycle_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> CropCycleDetailRead:
	stages = CropCycleStageService(db)
	try:
		cycle = await CropCycleService(db).get_crop_cycle(cycle_id)
		stage_rows = await stages.list_stages(cycle_id)
		current = await stages.current_stage(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc

	return CropCycleDetailRead(
		**to_cycle_read(cycle).model_dump(),
		stages=[to_stage_read(stage) for stage in stage_rows],
		current_stage=None if current is None else to_stage_read(current),
	)


@router.patch("/{cycle_id}", response_model=CropCycleRead)
async def update_crop_cycle(
	cycle_id: uuid.UUID,
	payload: CropCycleUpdate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> CropCycleRead:
	service = CropCycleService(db)
	try:
		cycle = await service.update_crop_cycle_plan(cycle_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_cycle_read(cycle)


@router.delete("/{cycle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_crop_cycle(
	cycle_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> Response:
	service = CropCycleService(db)
	try:
		await service.delete_crop_cycle(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Transitions ──────────────────────────────────────────────────────────────


@router.post("/{cycle_id}/activate", response_model=CropCycleRead)
async def activate_crop_cycle(
	cycle_id: uuid.UUID,
	payload: CropCycleActivate | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> CropCycleRead:
	service = CropCycleService(db)
	on = payload.actual_start_date if payload is not None else None
	try:
		cycle = await service.activate_crop_cycle(cycle_id, on)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_cycle_read(cycle)


@router.post("/{cycle_id}/complete", response_model=CropCycleRead)
async def complete_crop_cycle(
	cycle_id: uuid.UUID,
	payload: CropCycleComplete | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> CropCycleRead:
	service = CropCycleService(db)
	try:
		cycle = await service.complete_crop_cycle(cycle_id, payload or CropCycleComplete())
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_cycle_read(cycle)


@router.post("/{cycle_id}/fail", response_model=CropCycleRead)
async def fail_crop_cycle(
	cycle_id: uuid.UUID,
	payload: CropCycleClose | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> CropCycleRead:
	service = CropCycleService(db)
	body = payload or CropCycleClose()
	try:
		cycle = await service.fail_crop_cycle(cycle_id, body.notes, body.actual_end_date)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_cycle_read(cycle)


@router.post("/{cycle_id}/abandon", response_model=CropCycleRead)
async def abandon_crop_cycle(
	cycle_id: uuid.UUID,
	payload: CropCycleClose | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> CropCycleRead:
	service = CropCycleService(db)
	body = payload or CropCycleClose()
	try:
		cycle = await service.abandon_crop_cycle(cycle_id, body.notes, body.actual_end_date)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_cycle_read(cycle)


# ── Nested collections ───────────────────────────────────────────────────────


@router.get("/{cycle_id}/activity-logs", response_model=ActivityLogListRead)
async def list_cycle_activity_logs(
	cycle_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogListRead:
	try:
		logs = await ActivityLogService(db).logs_for_cycle(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityLogListRead(items=[ActivityLogRead.model_validate(log) for log in logs])


@router.get("/{cycle_id}/stages", response_model=StageListRead)
async def list_stages(
	cycle_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> StageListRead:
	try:
		stages = await CropCycleStageService(db).list_stages(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return StageListRead(items=[to_stage_read(stage) for stage in stages])


@router.post("/{cycle_id}/stages", response_model=StageRead, status_code=status.HTTP_201_CREATED)
async def create_stage(
	cycle_id: uuid.UUID,
	payload: StageCreate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> StageRead:
	try:
		stage = await CropCycleStageService(db).create_stage(cycle_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_stage_read(stage)
