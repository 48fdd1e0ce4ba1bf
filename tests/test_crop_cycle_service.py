from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.errors import (
    ActiveCycleExistsError,
    InvalidTransitionError,
    NotDeletableError,
    NotEditableError,
    OverlapError,
)
from farmops.models.activity import ActivityLog
from farmops.models.enums import CropCycleStatusEnum, QualityRatingEnum
from farmops.schemas.crop_cycles import CropCycleComplete, CropCycleUpdate
from farmops.services.crop_cycle_service import CropCycleService


@pytest.mark.asyncio
async def test_create_generates_sequential_codes(plan_cycle, db_session: AsyncSession) -> None:
    first = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    second = await plan_cycle(date(2025, 6, 1), date(2025, 9, 1))
    next_year = await plan_cycle(date(2026, 1, 10), date(2026, 3, 1))

    assert first.status == CropCycleStatusEnum.planned
    assert first.cycle_code == "RF01-2025-01"
    assert second.cycle_code == "RF01-2025-02"
    assert next_year.cycle_code == "RF01-2026-01"

    db_session.expire_all()
    fetched = await CropCycleService(db_session).get_crop_cycle(first.id)
    assert fetched.planned_start_date == date(2025, 1, 10)
    assert fetched.planned_end_date == date(2025, 3, 1)


@pytest.mark.asyncio
async def test_overlapping_plan_is_rejected(plan_cycle) -> None:
    existing = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))

    with pytest.raises(OverlapError) as exc_info:
        await plan_cycle(date(2025, 2, 1), date(2025, 2, 15))
    assert exc_info.value.conflicting_cycle_id == existing.id
    assert exc_info.value.to_detail()["conflicting_start"] == "2025-01-10"


@pytest.mark.asyncio
async def test_shared_endpoint_counts_as_overlap(plan_cycle) -> None:
    await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))

    with pytest.raises(OverlapError):
        await plan_cycle(date(2025, 3, 1), date(2025, 3, 20))


@pytest.mark.asyncio
async def test_adjacent_plan_is_accepted(plan_cycle) -> None:
    await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    follow_up = await plan_cycle(date(2025, 3, 2), date(2025, 4, 1))
    assert follow_up.status == CropCycleStatusEnum.planned


@pytest.mark.asyncio
async def test_closed_cycles_do_not_block_the_calendar(plan_cycle, db_session: AsyncSession) -> None:
    abandoned = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await CropCycleService(db_session).abandon_crop_cycle(abandoned.id, "Seed shortage")

    replacement = await plan_cycle(date(2025, 1, 15), date(2025, 3, 10))
    assert replacement.cycle_code == "RF01-2025-02"


@pytest.mark.asyncio
async def test_create_rejected_while_parcel_has_active_cycle(plan_cycle, db_session: AsyncSession) -> None:
    current = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await CropCycleService(db_session).activate_crop_cycle(current.id, date(2025, 1, 10))

    with pytest.raises(ActiveCycleExistsError) as exc_info:
        await plan_cycle(date(2025, 6, 1), date(2025, 9, 1))
    assert exc_info.value.active_cycle_id == current.id


@pytest.mark.asyncio
async def test_create_requires_existing_active_parcel(plan_cycle, seed: SimpleNamespace) -> None:
    with pytest.raises(LookupError):
        await plan_cycle(date(2025, 1, 10), date(2025, 3, 1), land_parcel_id=uuid4())

    seed.parcel.is_active = False
    with pytest.raises(ValueError, match="inactive"):
        await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))


@pytest.mark.asyncio
async def test_activate_twice_is_invalid(plan_cycle, db_session: AsyncSession) -> None:
    service = CropCycleService(db_session)
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))

    activated = await service.activate_crop_cycle(cycle.id, date(2025, 1, 11))
    assert activated.status == CropCycleStatusEnum.active
    assert activated.actual_start_date == date(2025, 1, 11)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await service.activate_crop_cycle(cycle.id)
    assert exc_info.value.from_status == "active"
    assert exc_info.value.to_status == "active"


@pytest.mark.asyncio
async def test_complete_records_harvest(plan_cycle, db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = CropCycleService(db_session)
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await service.activate_crop_cycle(cycle.id, date(2025, 1, 10))

    completed = await service.complete_crop_cycle(
        cycle.id,
        CropCycleComplete(
            actual_end_date=date(2025, 3, 4),
            yield_value=Decimal("500"),
            yield_unit_id=seed.kilogram.id,
            quality_rating=QualityRatingEnum.good,
            notes="Good grain fill",
        ),
    )

    assert completed.status == CropCycleStatusEnum.completed
    assert completed.yield_value == Decimal("500")
    assert completed.yield_unit_id == seed.kilogram.id
    assert completed.actual_end_date == date(2025, 3, 4)
    assert completed.notes == "Good grain fill"


@pytest.mark.asyncio
async def test_complete_requires_active_cycle(plan_cycle, db_session: AsyncSession) -> None:
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    with pytest.raises(InvalidTransitionError):
        await CropCycleService(db_session).complete_crop_cycle(cycle.id, CropCycleComplete())


@pytest.mark.asyncio
async def test_end_date_cannot_precede_start(plan_cycle, db_session: AsyncSession) -> None:
    service = CropCycleService(db_session)
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await service.activate_crop_cycle(cycle.id, date(2025, 1, 20))

    with pytest.raises(ValueError):
        await service.fail_crop_cycle(cycle.id, "Pests", on=date(2025, 1, 19))

    failed = await service.fail_crop_cycle(cycle.id, "Pests", on=date(2025, 1, 20))
    assert failed.status == CropCycleStatusEnum.failed
    assert failed.notes == "Pests"


@pytest.mark.asyncio
async def test_code_after_delete_skips_taken_codes(plan_cycle, db_session: AsyncSession) -> None:
    first = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await plan_cycle(date(2025, 4, 1), date(2025, 6, 1))
    await CropCycleService(db_session).delete_crop_cycle(first.id)

    third = await plan_cycle(date(2025, 7, 1), date(2025, 9, 1))
    fourth = await plan_cycle(date(2025, 10, 1), date(2025, 11, 30))

    assert third.cycle_code == "RF01-2025-03"
    assert fourth.cycle_code == "RF01-2025-04"


@pytest.mark.asyncio
async def test_closed_cycle_reports_transition_before_payload_checks(
    plan_cycle,
    db_session: AsyncSession,
) -> None:
    service = CropCycleService(db_session)
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await service.activate_crop_cycle(cycle.id, date(2025, 1, 20))
    await service.fail_crop_cycle(cycle.id, "Flooded", on=date(2025, 2, 1))

    with pytest.raises(InvalidTransitionError) as exc_info:
        await service.complete_crop_cycle(cycle.id, CropCycleComplete(yield_unit_id=uuid4()))
    assert exc_info.value.to_status == "completed"

    with pytest.raises(InvalidTransitionError):
        await service.fail_crop_cycle(cycle.id, on=date(2025, 1, 1))
    with pytest.raises(InvalidTransitionError):
        await service.abandon_crop_cycle(cycle.id, on=date(2025, 1, 1))


@pytest.mark.asyncio
async def test_plan_update_checks_overlap_and_status(plan_cycle, db_session: AsyncSession) -> None:
    service = CropCycleService(db_session)
    early = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    late = await plan_cycle(date(2025, 4, 1), date(2025, 6, 1))

    with pytest.raises(OverlapError):
        await service.update_crop_cycle_plan(late.id, CropCycleUpdate(planned_start_date=date(2025, 2, 20)))

    moved = await service.update_crop_cycle_plan(
        late.id,
        CropCycleUpdate(planned_start_date=date(2025, 3, 15), notes="Moved up"),
    )
    assert moved.planned_start_date == date(2025, 3, 15)
    assert moved.planned_end_date == date(2025, 6, 1)
    assert moved.notes == "Moved up"

    shifted = await service.update_crop_cycle_plan(early.id, CropCycleUpdate(planned_end_date=date(2025, 3, 10)))
    assert shifted.planned_end_date == date(2025, 3, 10)

    with pytest.raises(ValueError):
        await service.update_crop_cycle_plan(early.id, CropCycleUpdate(planned_end_date=date(2025, 1, 1)))

    await service.abandon_crop_cycle(early.id)
    with pytest.raises(NotEditableError):
        await service.update_crop_cycle_plan(early.id, CropCycleUpdate(notes="too late"))


@pytest.mark.asyncio
async def test_delete_only_planned(plan_cycle, db_session: AsyncSession) -> None:
    service = CropCycleService(db_session)
    draft = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await service.delete_crop_cycle(draft.id)
    with pytest.raises(LookupError):
        await service.get_crop_cycle(draft.id)

    running = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await service.activate_crop_cycle(running.id, date(2025, 1, 10))
    with pytest.raises(NotDeletableError):
        await service.delete_crop_cycle(running.id)


@pytest.mark.asyncio
async def test_delete_refused_when_logs_exist(
    plan_cycle,
    db_session: AsyncSession,
    seed: SimpleNamespace,
) -> None:
    cycle = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    db_session.add(
        ActivityLog(
            activity_type_id=seed.activity_type.id,
            crop_cycle_id=cycle.id,
            land_parcel_id=seed.parcel.id,
            activity_date=date(2025, 1, 5),
        )
    )
    await db_session.flush()

    with pytest.raises(ValueError):
        await CropCycleService(db_session).delete_crop_cycle(cycle.id)


@pytest.mark.asyncio
async def test_list_filters(plan_cycle, db_session: AsyncSession) -> None:
    service = CropCycleService(db_session)
    first = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    second = await plan_cycle(date(2025, 6, 1), date(2025, 9, 1))
    await service.activate_crop_cycle(first.id, date(2025, 1, 10))

    everything = await service.list_crop_cycles()
    assert [cycle.id for cycle in everything] == [second.id, first.id]

    active = await service.list_crop_cycles(status=CropCycleStatusEnum.active)
    assert [cycle.id for cycle in active] == [first.id]

    searched = await service.list_crop_cycles(search="2025-02")
    assert [cycle.cycle_code for cycle in searched] == ["RF01-2025-02"]


@pytest.mark.asyncio
async def test_parcel_statistics(plan_cycle, db_session: AsyncSession, seed: SimpleNamespace) -> None:
    service = CropCycleService(db_session)
    first = await plan_cycle(date(2025, 1, 10), date(2025, 3, 1))
    await service.activate_crop_cycle(first.id, date(2025, 1, 10))
    await service.complete_crop_cycle(
        first.id,
        CropCycleComplete(actual_end_date=date(2025, 3, 1), yield_value=Decimal("500"), yield_unit_id=seed.kilogram.id),
    )
    second = await plan_cycle(date(2025, 4, 1), date(2025, 6, 1))
    await service.activate_crop_cycle(second.id, date(2025, 4, 1))
    await service.complete_crop_cycle(
        second.id,
        CropCycleComplete(actual_end_date=date(2025, 6, 1), yield_value=Decimal("300"), yield_unit_id=seed.kilogram.id),
    )
    await plan_cycle(date(2025, 7, 1), date(2025, 9, 1))

    stats = await service.land_parcel_statistics(seed.parcel.id)

    assert stats["total_cycles"] == 3
    assert stats["completed_cycles"] == 2
    assert stats["planned_cycles"] == 1
    assert stats["active_cycles"] == 0
    assert stats["average_yield"] == Decimal("400.00")
