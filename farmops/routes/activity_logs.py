"""Activity log routes: record and read only."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import FIELD_ROLES, READ_ROLES, require_role
from farmops.database import get_db
from farmops.routes.errors import map_service_error
from farmops.schemas.activity import (
	ActivityLogCreate,
	ActivityLogListRead,
	ActivityLogPage,
	ActivityLogRead,
)
from farmops.services.activity_log_service import ActivityLogService

router = APIRouter(prefix="/activity-logs", tags=["activity-logs"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected activity log service failure")


def _to_list(logs: list) -> ActivityLogListRead:
	return ActivityLogListRead(items=[ActivityLogRead.model_validate(log) for log in logs])


@router.get("", response_model=ActivityLogPage)
async def list_activity_logs(
	activity_type_id: uuid.UUID | None = None,
	crop_cycle_id: uuid.UUID | None = None,
	land_parcel_id: uuid.UUID | None = None,
	performed_by: str | None = None,
	date_from: date | None = None,
	date_to: date | None = None,
	page: int = Query(default=1, ge=1),
	per_page: int | None = Query(default=None, ge=1),
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogPage:
	service = ActivityLogService(db)
	try:
		result = await service.list_activity_logs(
			activity_type_id=activity_type_id,
			crop_cycle_id=crop_cycle_id,
			land_parcel_id=land_parcel_id,
			performed_by=performed_by,
			date_from=date_from,
			date_to=date_to,
			page=page,
			per_page=per_page,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityLogPage(
		items=[ActivityLogRead.model_validate(log) for log in result["items"]],
		total=result["total"],
		page=result["page"],
		per_page=result["per_page"],
	)


@router.post("", response_model=ActivityLogRead, status_code=status.HTTP_201_CREATED)
async def create_activity_log(
	payload: ActivityLogCreate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*FIELD_ROLES)),
) -> ActivityLogRead:
	service = ActivityLogService(db)
	try:
		log = await service.create_activity_log(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityLogRead.model_validate(log)


@router.get("/recent", response_model=ActivityLogListRead)
async def recent_activity_logs(
	days: int | None = Query(default=None, ge=1, le=366),
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogListRead:
	try:
		logs = await ActivityLogService(db).recent_logs(days)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_list(logs)


@router.get("/date/{activity_date}", response_model=ActivityLogListRead)
async def activity_logs_for_date(
	activity_date: date,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogListRead:
	try:
		logs = await ActivityLogService(db).logs_for_date(activity_date)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_list(logs)


@router.get("/performer/{performed_by}", response_model=ActivityLogListRead)
async def activity_logs_by_performer(
	performed_by: str,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogListRead:
	try:
		logs = await ActivityLogService(db).logs_by_performer(performed_by)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_list(logs)


@router.get("/{log_id}", response_model=ActivityLogRead)
async def get_activity_log(
	log_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> ActivityLogRead:
	try:
		log = await ActivityLogService(db).get_activity_log(log_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ActivityLogRead.model_validate(log)
