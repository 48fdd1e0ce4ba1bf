from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from httpx import AsyncClient
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.errors import ImmutableRecordError
from farmops.schemas.activity import ActivityLogCreate
from farmops.services.activity_log_service import ActivityLogService

TODAY = date(2025, 2, 1)


def _payload(seed: SimpleNamespace, **fields: object) -> ActivityLogCreate:
    values: dict[str, object] = {
        "activity_type_id": seed.activity_type.id,
        "land_parcel_id": seed.parcel.id,
        "activity_date": date(2025, 1, 20),
    }
    values.update(fields)
    return ActivityLogCreate(**values)


def test_log_needs_cycle_or_parcel() -> None:
    with pytest.raises(ValidationError):
        ActivityLogCreate(activity_type_id=uuid4(), activity_date=TODAY)


def test_quantity_needs_unit_and_times_are_ordered() -> None:
    with pytest.raises(ValidationError):
        ActivityLogCreate(
            activity_type_id=uuid4(),
            land_parcel_id=uuid4(),
            activity_date=TODAY,
            quantity_value=Decimal("10"),
        )
    with pytest.raises(ValidationError):
        ActivityLogCreate(
            activity_type_id=uuid4(),
            land_parcel_id=uuid4(),
            activity_date=TODAY,
            start_time=time(9, 0),
            end_time=time(8, 0),
        )


@pytest.mark.asyncio
async def test_record_log_for_parcel(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = ActivityLogService(db_session)
    log = await service.create_activity_log(
        _payload(
            seed,
            quantity_value=Decimal("120"),
            quantity_unit_id=seed.kilogram.id,
            performed_by="Lan",
            start_time=time(6, 30),
            end_time=time(8, 0),
        ),
        today=TODAY,
    )

    assert log.land_parcel_id == seed.parcel.id
    assert log.crop_cycle_id is None
    assert log.quantity_value == Decimal("120")
    assert (await service.get_activity_log(log.id)).performed_by == "Lan"


@pytest.mark.asyncio
async def test_cycle_log_inherits_parcel(plan_cycle, db_session: AsyncSession, seed: SimpleNamespace) -> None:
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    log = await ActivityLogService(db_session).create_activity_log(
        _payload(seed, land_parcel_id=None, crop_cycle_id=cycle.id),
        today=TODAY,
    )
    assert log.crop_cycle_id == cycle.id
    assert log.land_parcel_id == seed.parcel.id


@pytest.mark.asyncio
async def test_future_dated_log_is_rejected(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    with pytest.raises(ValueError, match="future"):
        await ActivityLogService(db_session).create_activity_log(
            _payload(seed, activity_date=date(2025, 2, 2)),
            today=TODAY,
        )


@pytest.mark.asyncio
async def test_unknown_references_are_rejected(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = ActivityLogService(db_session)
    with pytest.raises(LookupError):
        await service.create_activity_log(_payload(seed, activity_type_id=uuid4()), today=TODAY)
    with pytest.raises(LookupError):
        await service.create_activity_log(_payload(seed, water_source_id=uuid4()), today=TODAY)


@pytest.mark.asyncio
async def test_logs_cannot_be_updated(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = ActivityLogService(db_session)
    log = await service.create_activity_log(_payload(seed, description="Flooded the field"), today=TODAY)
    await db_session.commit()
    log_id = log.id

    log.description = "rewritten"
    log.activity_date = date(2025, 1, 1)
    with pytest.raises(ImmutableRecordError):
        await db_session.flush()
    await db_session.rollback()

    stored = await service.get_activity_log(log_id)
    assert stored.description == "Flooded the field"
    assert stored.activity_date == date(2025, 1, 20)


@pytest.mark.asyncio
async def test_logs_cannot_be_deleted(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = ActivityLogService(db_session)
    log = await service.create_activity_log(_payload(seed, description="Weeded"), today=TODAY)
    await db_session.commit()
    log_id = log.id
    parcel_id = seed.parcel.id

    await db_session.delete(log)
    with pytest.raises(ImmutableRecordError):
        await db_session.flush()
    await db_session.rollback()

    stored = await service.get_activity_log(log_id)
    assert stored.description == "Weeded"
    assert stored.land_parcel_id == parcel_id


@pytest.mark.asyncio
async def test_pagination_and_filters(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = ActivityLogService(db_session)
    for day, performer in ((18, "Lan"), (19, "Minh"), (20, "Lan")):
        await service.create_activity_log(
            _payload(seed, activity_date=date(2025, 1, day), performed_by=performer),
            today=TODAY,
        )

    first_page = await service.list_activity_logs(page=1, per_page=2)
    assert first_page["total"] == 3
    assert first_page["per_page"] == 2
    assert [log.activity_date.day for log in first_page["items"]] == [20, 19]

    second_page = await service.list_activity_logs(page=2, per_page=2)
    assert [log.activity_date.day for log in second_page["items"]] == [18]

    by_lan = await service.list_activity_logs(performed_by="lan")
    assert by_lan["total"] == 2

    ranged = await service.list_activity_logs(date_from=date(2025, 1, 19), date_to=date(2025, 1, 19))
    assert [log.performed_by for log in ranged["items"]] == ["Minh"]

    with pytest.raises(ValueError):
        await service.list_activity_logs(date_from=date(2025, 1, 20), date_to=date(2025, 1, 1))


@pytest.mark.asyncio
async def test_per_page_is_capped(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    result = await ActivityLogService(db_session).list_activity_logs(per_page=10_000)
    assert result["per_page"] == 100
    assert result["total"] == 0


@pytest.mark.asyncio
async def test_convenience_queries(db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = ActivityLogService(db_session)
    await service.create_activity_log(_payload(seed, activity_date=date(2025, 1, 2), performed_by="Lan"), today=TODAY)
    await service.create_activity_log(_payload(seed, activity_date=date(2025, 1, 30), performed_by="Minh"), today=TODAY)

    assert len(await service.logs_for_date(date(2025, 1, 2))) == 1
    assert [log.performed_by for log in await service.logs_by_performer("Minh")] == ["Minh"]
    assert [log.activity_date for log in await service.recent_logs(7, today=TODAY)] == [date(2025, 1, 30)]
    assert len(await service.logs_for_parcel(seed.parcel.id)) == 2
    with pytest.raises(ValueError):
        await service.recent_logs(0, today=TODAY)


@pytest.mark.asyncio
async def test_no_update_or_delete_routes(client: AsyncClient) -> None:
    log_id = uuid4()

    put_response = await client.put(f"/api/v1/activity-logs/{log_id}", json={"description": "x"})
    patch_response = await client.patch(f"/api/v1/activity-logs/{log_id}", json={"description": "x"})
    delete_response = await client.delete(f"/api/v1/activity-logs/{log_id}")

    assert put_response.status_code == 405
    assert patch_response.status_code == 405
    assert delete_response.status_code == 405
