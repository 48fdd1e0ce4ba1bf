from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.errors import ParcelHasActiveCycleError
from farmops.models.enums import (
    LandTypeEnum,
    UnitTypeEnum,
    WaterAccessibilityEnum,
    WaterSourceTypeEnum,
)
from farmops.models.reference import SeasonDefinition, UnitOfMeasure, WaterSource
from farmops.schemas.activity import ActivityLogCreate
from farmops.schemas.parcels import LandParcelCreate, LandParcelUpdate, WaterSourceAttach
from farmops.schemas.reference import SeasonCreate, SeasonUpdate, UnitOfMeasureCreate
from farmops.services.activity_log_service import ActivityLogService
from farmops.services.crop_cycle_service import CropCycleService
from farmops.services.dashboard_service import DashboardService
from farmops.services.land_parcel_service import LandParcelService
from farmops.services.reference_service import ReferenceService, SeasonService


def _parcel_payload(seed: SimpleNamespace, **fields: object) -> LandParcelCreate:
    values: dict[str, object] = {
        "name": "Home garden",
        "code": "GD01",
        "land_type": LandTypeEnum.garden,
        "area_value": Decimal("0.25"),
        "area_unit_id": seed.hectare.id,
    }
    values.update(fields)
    return LandParcelCreate(**values)


@pytest.mark.asyncio
async def test_create_and_list_parcels(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = LandParcelService(db_session)
    garden = await service.create_land_parcel(_parcel_payload(seed))

    assert garden.is_active is True
    gardens = await service.list_land_parcels(land_type=LandTypeEnum.garden)
    assert [parcel.code for parcel in gardens] == ["GD01"]
    assert len(await service.list_land_parcels()) == 2


@pytest.mark.asyncio
async def test_parcel_code_and_area_unit_checks(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = LandParcelService(db_session)
    with pytest.raises(ValueError, match="already in use"):
        await service.create_land_parcel(_parcel_payload(seed, code="rf01"))
    with pytest.raises(ValueError, match="not an area unit"):
        await service.create_land_parcel(_parcel_payload(seed, area_unit_id=seed.kilogram.id))
    with pytest.raises(LookupError):
        await service.create_land_parcel(_parcel_payload(seed, area_unit_id=uuid4()))


@pytest.mark.asyncio
async def test_parcel_with_active_cycle_cannot_be_deactivated(
    plan_cycle,
    db_session: AsyncSession,
    seed: SimpleNamespace,
) -> None:
    service = LandParcelService(db_session)
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await CropCycleService(db_session).activate_crop_cycle(cycle.id, date(2025, 1, 10))

    with pytest.raises(ParcelHasActiveCycleError):
        await service.deactivate_land_parcel(seed.parcel.id)
    with pytest.raises(ParcelHasActiveCycleError):
        await service.update_land_parcel(seed.parcel.id, LandParcelUpdate(is_active=False))

    await CropCycleService(db_session).abandon_crop_cycle(cycle.id, "Drought", on=date(2025, 2, 1))
    deactivated = await service.deactivate_land_parcel(seed.parcel.id)
    assert deactivated.is_active is False
    assert await service.list_land_parcels() == []
    assert len(await service.list_crop_cycles(seed.parcel.id)) == 1


@pytest.mark.asyncio
async def test_water_source_attachments(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    well = WaterSource(name="Village well", code="WELL1", source_type=WaterSourceTypeEnum.well)
    canal = WaterSource(name="East canal", code="CAN1", source_type=WaterSourceTypeEnum.irrigation_canal)
    db_session.add_all([well, canal])
    await db_session.flush()
    service = LandParcelService(db_session)

    await service.attach_water_source(seed.parcel.id, WaterSourceAttach(water_source_id=well.id))
    await service.attach_water_source(
        seed.parcel.id,
        WaterSourceAttach(
            water_source_id=canal.id,
            accessibility=WaterAccessibilityEnum.gravity_fed,
            is_primary_source=True,
        ),
    )
    with pytest.raises(ValueError):
        await service.attach_water_source(seed.parcel.id, WaterSourceAttach(water_source_id=well.id))

    attached = await service.list_water_sources(seed.parcel.id)
    assert [source.code for _, source in attached] == ["CAN1", "WELL1"]
    assert attached[0][0].accessibility == WaterAccessibilityEnum.gravity_fed

    await service.detach_water_source(seed.parcel.id, well.id)
    with pytest.raises(LookupError):
        await service.detach_water_source(seed.parcel.id, well.id)
    assert len(await service.list_water_sources(seed.parcel.id)) == 1


@pytest.mark.asyncio
async def test_reference_service_filters_by_enum(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    units = ReferenceService(db_session, UnitOfMeasure)
    created = await units.create_item(
        UnitOfMeasureCreate(
            name="Square metre",
            abbreviation="m2",
            unit_type=UnitTypeEnum.area,
            conversion_factor_to_base=Decimal("0.0001"),
        )
    )
    assert units.label == "Unit of measure"

    areas = await units.list_items(unit_type="area")
    assert [unit.abbreviation for unit in areas] == ["ha", "m2"]
    assert created.conversion_factor_to_base == Decimal("0.0001")

    with pytest.raises(ValueError):
        await units.list_items(unit_type="furlong")
    with pytest.raises(ValueError):
        await units.create_item(UnitOfMeasureCreate(name="Hectare", abbreviation="ha2", unit_type=UnitTypeEnum.area))


@pytest.mark.asyncio
async def test_seasons_are_unique_per_year(db_session: AsyncSession) -> None:
    definition = SeasonDefinition(name="Winter-spring", code="WS", typical_start_month=11, typical_end_month=4)
    db_session.add(definition)
    await db_session.flush()
    service = SeasonService(db_session)

    season = await service.create_season(SeasonCreate(season_definition_id=definition.id, year=2025))
    with pytest.raises(ValueError):
        await service.create_season(SeasonCreate(season_definition_id=definition.id, year=2025))

    updated = await service.update_season(season.id, SeasonUpdate(actual_start_date=date(2024, 11, 20)))
    assert updated.actual_start_date == date(2024, 11, 20)
    with pytest.raises(ValueError):
        await service.update_season(season.id, SeasonUpdate(actual_end_date=date(2024, 11, 1)))

    assert [item.year for item in await service.list_seasons(year=2025)] == [2025]


@pytest.mark.asyncio
async def test_dashboard_statistics(plan_cycle, db_session: AsyncSession, seed: SimpleNamespace) -> None:
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await plan_cycle(date(2025, 4, 1), date(2025, 6, 1))
    await CropCycleService(db_session).activate_crop_cycle(cycle.id, date(2025, 1, 10))
    logs = ActivityLogService(db_session)
    for day in (1, 20, 29):
        await logs.create_activity_log(
            ActivityLogCreate(
                activity_type_id=seed.activity_type.id,
                crop_cycle_id=cycle.id,
                activity_date=date(2025, 1, day),
            ),
            today=date(2025, 1, 30),
        )

    stats = await DashboardService(db_session).statistics(today=date(2025, 1, 30))

    assert stats["crop_cycles"]["active"] == 1
    assert stats["crop_cycles"]["planned"] == 1
    assert stats["crop_cycles"]["completed"] == 0
    assert stats["land_parcels"] == {"total": 1, "active": 1, "with_active_cycle": 1}
    assert stats["activities"] == {"total": 3, "this_week": 1, "this_month": 3}

    summary = await DashboardService(db_session).summary()
    assert summary["active_cycles"] == 1
    assert [log.activity_date.day for log in summary["recent_activities"]] == [29, 20, 1]
