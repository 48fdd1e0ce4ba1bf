"""Stage edit and progress routes (stages are created under a crop cycle)."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import FIELD_ROLES, MANAGE_ROLES, require_role
from farmops.database import get_db
from farmops.routes.crop_cycles import to_stage_read
from farmops.routes.errors import map_service_error
from farmops.schemas.crop_cycles import StageComplete, StageRead, StageSkip, StageStart, StageUpdate
from farmops.services.stage_service import CropCycleStageService

router = APIRouter(prefix="/stages", tags=["stages"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected stage service failure")


@router.patch("/{stage_id}", response_model=StageRead)
async def update_stage(
	stage_id: uuid.UUID,
	payload: StageUpdate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> StageRead:
	try:
		stage = await CropCycleStageService(db).update_stage(stage_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_stage_read(stage)


@router.delete("/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stage(
	stage_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> Response:
	try:
		await CropCycleStageService(db).delete_stage(stage_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{stage_id}/start", response_model=StageRead)
async def start_stage(
	stage_id: uuid.UUID,
	payload: StageStart | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*FIELD_ROLES)),
) -> StageRead:
	try:
		stage = await CropCycleStageService(db).start_stage(stage_id, payload or StageStart())
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_stage_read(stage)


@router.post("/{stage_id}/complete", response_model=StageRead)
async def complete_stage(
	stage_id: uuid.UUID,
	payload: StageComplete | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*FIELD_ROLES)),
) -> StageRead:
	try:
		stage = await CropCycleStageService(db).complete_stage(stage_id, payload or StageComplete())
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_stage_read(stage)


@router.post("/{stage_id}/skip", response_model=StageRead)
async def skip_stage(
	stage_id: uuid.UUID,
	payload: StageSkip | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*FIELD_ROLES)),
) -> StageRead:
	try:
		stage = await CropCycleStageService(db).skip_stage(stage_id, payload or StageSkip())
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_stage_read(stage)
