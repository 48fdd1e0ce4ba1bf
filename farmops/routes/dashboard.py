"""Dashboard overview routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.auth.dependencies import READ_ROLES, require_role
from farmops.database import get_db
from farmops.routes.errors import map_service_error
from farmops.schemas.activity import ActivityLogRead
from farmops.schemas.dashboard import DashboardStatisticsRead, DashboardSummaryRead
from farmops.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _map_error(exc: Exception) -> HTTPException:
	return map_service_error(exc, "Unexpected dashboard failure")


@router.get("", response_model=DashboardSummaryRead)
async def dashboard_summary(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> DashboardSummaryRead:
	try:
		summary = await DashboardService(db).summary()
	except Exception as exc:
		raise _map_error(exc) from exc
	return DashboardSummaryRead(
		active_cycles=summary["active_cycles"],
		planned_cycles=summary["planned_cycles"],
		active_land_parcels=summary["active_land_parcels"],
		recent_activities=[ActivityLogRead.model_validate(log) for log in summary["recent_activities"]],
	)


@router.get("/statistics", response_model=DashboardStatisticsRead)
async def dashboard_statistics(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(require_role(*READ_ROLES)),
) -> DashboardStatisticsRead:
	try:
		stats = await DashboardService(db).statistics()
	except Exception as exc:
		raise _map_error(exc) from exc
	return DashboardStatisticsRead.model_validate(stats)
