"""Reference-data routes built from one router factory, plus seasons.

This module does not use postponed annotations: the factory closes over
the schema classes and FastAPI must see them as real types.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import MANAGE_ROLES, READ_ROLES, require_role
from farmops.database import get_db
from farmops.models.reference import (
	ActivityType,
	CropType,
	SeasonDefinition,
	UnitOfMeasure,
	WaterSource,
)
from farmops.routes.errors import map_service_error
from farmops.schemas.reference import (
	ActivityTypeCreate,
	ActivityTypeRead,
	ActivityTypeUpdate,
	CropTypeCreate,
	CropTypeRead,
	CropTypeUpdate,
	SeasonCreate,
	SeasonDefinitionCreate,
	SeasonDefinitionRead,
	SeasonDefinitionUpdate,
	SeasonRead,
	SeasonUpdate,
	UnitOfMeasureCreate,
	UnitOfMeasureRead,
	UnitOfMeasureUpdate,
	WaterSourceCreate,
	WaterSourceRead,
	WaterSourceUpdate,
)
from farmops.services.reference_service import ReferenceService, SeasonService


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected reference data failure")


def build_reference_router(
	prefix: str,
	model: Any,
	create_schema: type[BaseModel],
	update_schema: type[BaseModel],
	read_schema: type[BaseModel],
	filters: tuple[str, ...] = (),
) -> APIRouter:
	"""List/create/get/patch routes for one lookup table.

	``filters`` names columns accepted as optional equality query params.
	"""
	router = APIRouter(prefix=prefix, tags=["reference"])

	@router.get("", response_model=list[read_schema])
	async def list_items(
		request: Request,
		active_only: bool = False,
		db: AsyncSession = Depends(get_db),
		_user: object = Depends(require_role(*READ_ROLES)),
	) -> list[Any]:
		column_filters = {name: request.query_params.get(name) for name in filters}
		try:
			items = await ReferenceService(db, model).list_items(active_only, **column_filters)
		except Exception as exc:
			raise _map_error(exc) from exc
		return [read_schema.model_validate(item) for item in items]

	@router.post("", response_model=read_schema, status_code=status.HTTP_201_CREATED)
	async def create_item(
		payload: create_schema,  # type: ignore[valid-type]
		db: AsyncSession = Depends(get_db),
		_user: object = Depends(require_role(*MANAGE_ROLES)),
	) -> Any:
		try:
			item = await ReferenceService(db, model).create_item(payload)
		except Exception as exc:
			raise _map_error(exc) from exc
		return read_schema.model_validate(item)

	@router.get("/{item_id}", response_model=read_schema)
	async def get_item(
		item_id: uuid.UUID,
		db: AsyncSession = Depends(get_db),
		_user: object = Depends(require_role(*READ_ROLES)),
	) -> Any:
		try:
			item = await ReferenceService(db, model).get_item(item_id)
		except Exception as exc:
			raise _map_error(exc) from exc
		return read_schema.model_validate(item)

	@router.patch("/{item_id}", response_model=read_schema)
	async def update_item(
		item_id: uuid.UUID,
		payload: update_schema,  # type: ignore[valid-type]
		db: AsyncSession = Depends(get_db),
		_user: object = Depends(require_role(*MANAGE_ROLES)),
	) -> Any:
		try:
			item = await ReferenceService(db, model).update_item(item_id, payload)
		except Exception as exc:
			raise _map_error(exc) from exc
		return read_schema.model_validate(item)

	return router


units_router = build_reference_router(
	"/units-of-measure",
	UnitOfMeasure,
	UnitOfMeasureCreate,
	UnitOfMeasureUpdate,
	UnitOfMeasureRead,
	filters=("unit_type",),
)
activity_types_router = build_reference_router(
	"/activity-types",
	ActivityType,
	ActivityTypeCreate,
	ActivityTypeUpdate,
	ActivityTypeRead,
	filters=("category",),
)
crop_types_router = build_reference_router(
	"/crop-types",
	CropType,
	CropTypeCreate,
	CropTypeUpdate,
	CropTypeRead,
	filters=("category",),
)
season_definitions_router = build_reference_router(
	"/season-definitions",
	SeasonDefinition,
	SeasonDefinitionCreate,
	SeasonDefinitionUpdate,
	SeasonDefinitionRead,
)
water_sources_router = build_reference_router(
	"/water-sources",
	WaterSource,
	WaterSourceCreate,
	WaterSourceUpdate,
	WaterSourceRead,
	filters=("source_type",),
)

# ── Seasons ──────────────────────────────────────────────────────────────────

seasons_router = APIRouter(prefix="/seasons", tags=["reference"])


@seasons_router.get("", response_model=list[SeasonRead])
async def list_seasons(
	year: int | None = None,
	season_definition_id: uuid.UUID | None = None,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> list[SeasonRead]:
	try:
		seasons = await SeasonService(db).list_seasons(year, season_definition_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [SeasonRead.model_validate(season) for season in seasons]


@seasons_router.post("", response_model=SeasonRead, status_code=status.HTTP_201_CREATED)
async def create_season(
	payload: SeasonCreate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> SeasonRead:
	try:
		season = await SeasonService(db).create_season(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SeasonRead.model_validate(season)


@seasons_router.get("/{season_id}", response_model=SeasonRead)
async def get_season(
	season_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> SeasonRead:
	try:
		season = await SeasonService(db).get_season(season_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SeasonRead.model_validate(season)


@seasons_router.patch("/{season_id}", response_model=SeasonRead)
async def update_season(
	season_id: uuid.UUID,
	payload: SeasonUpdate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*MANAGE_ROLES)),
) -> SeasonRead:
	try:
		season = await SeasonService(db).update_season(season_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SeasonRead.model_validate(season)


reference_routers = (
	units_router,
	activity_types_router,
	crop_types_router,
	season_definitions_router,
	water_sources_router,
	seasons_router,
)
