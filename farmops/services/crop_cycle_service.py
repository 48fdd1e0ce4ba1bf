"""Crop cycle lifecycle service: creation, planning, transitions, statistics."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.domain.scheduling import append_note, build_cycle_code, cycle_code_prefix
from farmops.errors import (
	ActiveCycleExistsError,
	CycleCodeConflictError,
	DomainError,
	InvalidTransitionError,
	NotDeletableError,
	NotEditableError,
	OverlapError,
)
from farmops.models.activity import ActivityLog
from farmops.models.cycles import OPEN_CYCLE_STATUSES, CropCycle, CropCycleStage
from farmops.models.enums import CropCycleStatusEnum
from farmops.models.parcels import LandParcel
from farmops.models.reference import CropType, Season, UnitOfMeasure
from farmops.schemas.crop_cycles import CropCycleComplete, CropCycleCreate, CropCycleUpdate
from farmops.services.lookups import require_row

_logger = structlog.get_logger("farmops.crop_cycles")

_OVERLAP_CONSTRAINT = "ex_crop_cycles_parcel_planned_range"
_ONE_ACTIVE_INDEX = "uq_crop_cycles_one_active_per_parcel"
_CYCLE_CODE_CONSTRAINTS = ("uq_crop_cycles_cycle_code", "crop_cycles.cycle_code")


class CropCycleService:
	"""Owns every write to ``crop_cycles`` and the invariants guarding them."""

	def __init__(self, db: AsyncSession):
		self.db = db

	# ── Queries ──────────────────────────────────────────────────────────

	async def list_crop_cycles(
		self,
		status: CropCycleStatusEnum | None = None,
		land_parcel_id: uuid.UUID | None = None,
		crop_type_id: uuid.UUID | None = None,
		season_id: uuid.UUID | None = None,
		search: str | None = None,
	) -> list[CropCycle]:
		stmt = select(CropCycle)
		if status is not None:
			stmt = stmt.where(CropCycle.status == status)
		if land_parcel_id is not None:
			stmt = stmt.where(CropCycle.land_parcel_id == land_parcel_id)
		if crop_type_id is not None:
			stmt = stmt.where(CropCycle.crop_type_id == crop_type_id)
		if season_id is not None:
			stmt = stmt.where(CropCycle.season_id == season_id)
		if search:
			stmt = stmt.where(CropCycle.cycle_code.ilike(f"%{search}%"))
		stmt = stmt.order_by(CropCycle.planned_start_date.desc(), CropCycle.cycle_code.desc())
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_crop_cycle(self, cycle_id: uuid.UUID) -> CropCycle:
		row = await self.db.execute(select(CropCycle).where(CropCycle.id == cycle_id))
		cycle = row.scalar_one_or_none()
		if cycle is None:
			raise LookupError(f"Crop cycle {cycle_id} not found")
		return cycle

	async def find_overlapping_cycle(
		self,
		land_parcel_id: uuid.UUID,
		start: date,
		end: date,
		exclude_id: uuid.UUID | None = None,
	) -> CropCycle | None:
		"""First open cycle on the parcel whose planned range meets ``[start, end]``."""
		stmt = select(CropCycle).where(
			CropCycle.land_parcel_id == land_parcel_id,
			CropCycle.status.in_(OPEN_CYCLE_STATUSES),
			CropCycle.planned_start_date <= end,
			CropCycle.planned_end_date >= start,
		)
		if exclude_id is not None:
			stmt = stmt.where(CropCycle.id != exclude_id)
		stmt = stmt.order_by(CropCycle.planned_start_date.asc()).limit(1)
		row = await self.db.execute(stmt)
		return row.scalar_one_or_none()

	async def find_active_cycle(
		self,
		land_parcel_id: uuid.UUID,
		exclude_id: uuid.UUID | None = None,
	) -> CropCycle | None:
		stmt = select(CropCycle).where(
			CropCycle.land_parcel_id == land_parcel_id,
			CropCycle.status == CropCycleStatusEnum.active,
		)
		if exclude_id is not None:
			stmt = stmt.where(CropCycle.id != exclude_id)
		row = await self.db.execute(stmt.limit(1))
		return row.scalar_one_or_none()

	async def generate_cycle_code(self, parcel: LandParcel, year: int) -> str:
		"""Next free code for the parcel and year; skips codes left behind by deletes."""
		prefix = cycle_code_prefix(parcel.code, year)
		rows = await self.db.execute(select(CropCycle.cycle_code).where(CropCycle.cycle_code.like(f"{prefix}%")))
		taken = set(rows.scalars().all())
		sequence = len(taken)
		code = build_cycle_code(parcel.code, year, sequence)
		while code in taken:
			sequence += 1
			code = build_cycle_code(parcel.code, year, sequence)
		return code

	async def land_parcel_statistics(self, land_parcel_id: uuid.UUID) -> dict[str, Any]:
		await self._get_parcel(land_parcel_id)
		rows = await self.db.execute(
			select(CropCycle.status, func.count())
			.where(CropCycle.land_parcel_id == land_parcel_id)
			.group_by(CropCycle.status)
		)
		counts = {status: 0 for status in CropCycleStatusEnum}
		for status, count in rows.all():
			counts[CropCycleStatusEnum(status)] = int(count)

		avg_row = await self.db.execute(
			select(func.avg(CropCycle.yield_value)).where(
				CropCycle.land_parcel_id == land_parcel_id,
				CropCycle.status == CropCycleStatusEnum.completed,
			)
		)
		average = avg_row.scalar_one_or_none()
		return {
			"land_parcel_id": land_parcel_id,
			"total_cycles": sum(counts.values()),
			"planned_cycles": counts[CropCycleStatusEnum.planned],
			"active_cycles": counts[CropCycleStatusEnum.active],
			"completed_cycles": counts[CropCycleStatusEnum.completed],
			"failed_cycles": counts[CropCycleStatusEnum.failed],
			"abandoned_cycles": counts[CropCycleStatusEnum.abandoned],
			"average_yield": None if average is None else Decimal(str(average)).quantize(Decimal("0.01")),
		}

	# ── Writes ───────────────────────────────────────────────────────────

	async def create_crop_cycle(self, payload: CropCycleCreate) -> CropCycle:
		parcel = await self._lock_parcel(payload.land_parcel_id)
		if not parcel.is_active:
			raise ValueError(f"Land parcel {parcel.code} is inactive")
		await self._require_crop_type(payload.crop_type_id)
		if payload.season_id is not None:
			await require_row(self.db, Season, payload.season_id, "Season")

		active = await self.find_active_cycle(parcel.id)
		if active is not None:
			raise ActiveCycleExistsError(parcel.id, active.id)
		await self._ensure_no_overlap(parcel.id, payload.planned_start_date, payload.planned_end_date)

		cycle = CropCycle(
			cycle_code=await self.generate_cycle_code(parcel, payload.planned_start_date.year),
			land_parcel_id=parcel.id,
			crop_type_id=payload.crop_type_id,
			season_id=payload.season_id,
			status=CropCycleStatusEnum.planned,
			planned_start_date=payload.planned_start_date,
			planned_end_date=payload.planned_end_date,
			notes=payload.notes,
		)
		self.db.add(cycle)
		await self._flush(cycle)
		await self.db.refresh(cycle)
		_logger.info(
			"crop_cycle_created",
			crop_cycle_id=str(cycle.id),
			cycle_code=cycle.cycle_code,
			land_parcel_id=str(parcel.id),
		)
		return cycle

	async def update_crop_cycle_plan(self, cycle_id: uuid.UUID, payload: CropCycleUpdate) -> CropCycle:
		cycle = await self.get_crop_cycle(cycle_id)
		if cycle.status not in OPEN_CYCLE_STATUSES:
			raise NotEditableError(cycle.status)

		changes = payload.model_dump(exclude_unset=True)
		start = changes.get("planned_start_date") or cycle.planned_start_date
		end = changes.get("planned_end_date") or cycle.planned_end_date
		if end <= start:
			raise ValueError("planned_end_date must be after planned_start_date")

		if start != cycle.planned_start_date or end != cycle.planned_end_date:
			await self._lock_parcel(cycle.land_parcel_id)
			await self._ensure_no_overlap(cycle.land_parcel_id, start, end, exclude_id=cycle.id)
		if changes.get("season_id") is not None:
			await require_row(self.db, Season, changes["season_id"], "Season")

		cycle.planned_start_date = start
		cycle.planned_end_date = end
		if "season_id" in changes:
			cycle.season_id = changes["season_id"]
		if "notes" in changes:
			cycle.notes = changes["notes"]
		await self._flush(cycle)
		await self.db.refresh(cycle)
		return cycle

	async def activate_crop_cycle(self, cycle_id: uuid.UUID, on: date | None = None) -> CropCycle:
		cycle = await self.get_crop_cycle(cycle_id)
		if cycle.status == CropCycleStatusEnum.planned:
			await self._lock_parcel(cycle.land_parcel_id)
			active = await self.find_active_cycle(cycle.land_parcel_id, exclude_id=cycle.id)
			if active is not None:
				raise ActiveCycleExistsError(cycle.land_parcel_id, active.id)
		previous = cycle.status
		self._raise_if_error(cycle.activate(on))
		return await self._persist_transition(cycle, previous)

	async def complete_crop_cycle(
		self,
		cycle_id: uuid.UUID,
		payload: CropCycleComplete,
	) -> CropCycle:
		cycle = await self.get_crop_cycle(cycle_id)
		self._ensure_transition_allowed(cycle, CropCycleStatusEnum.completed)
		if payload.yield_unit_id is not None:
			await require_row(self.db, UnitOfMeasure, payload.yield_unit_id, "Unit of measure")
		self._ensure_end_not_before_start(cycle, payload.actual_end_date)
		previous = cycle.status
		self._raise_if_error(
			cycle.complete(
				yield_value=payload.yield_value,
				yield_unit_id=payload.yield_unit_id,
				quality_rating=payload.quality_rating,
				on=payload.actual_end_date,
			)
		)
		cycle.notes = append_note(cycle.notes, payload.notes)
		return await self._persist_transition(cycle, previous)

	async def fail_crop_cycle(
		self,
		cycle_id: uuid.UUID,
		notes: str | None = None,
		on: date | None = None,
	) -> CropCycle:
		cycle = await self.get_crop_cycle(cycle_id)
		self._ensure_transition_allowed(cycle, CropCycleStatusEnum.failed)
		self._ensure_end_not_before_start(cycle, on)
		previous = cycle.status
		self._raise_if_error(cycle.fail(notes, on))
		return await self._persist_transition(cycle, previous)

	async def abandon_crop_cycle(
		self,
		cycle_id: uuid.UUID,
		notes: str | None = None,
		on: date | None = None,
	) -> CropCycle:
		cycle = await self.get_crop_cycle(cycle_id)
		self._ensure_transition_allowed(cycle, CropCycleStatusEnum.abandoned)
		self._ensure_end_not_before_start(cycle, on)
		previous = cycle.status
		self._raise_if_error(cycle.abandon(notes, on))
		return await self._persist_transition(cycle, previous)

	async def delete_crop_cycle(self, cycle_id: uuid.UUID) -> None:
		cycle = await self.get_crop_cycle(cycle_id)
		if cycle.status != CropCycleStatusEnum.planned:
			raise NotDeletableError(cycle.status)

		logged = await self.db.execute(
			select(func.count()).select_from(ActivityLog).where(ActivityLog.crop_cycle_id == cycle.id)
		)
		if int(logged.scalar_one()):
			raise ValueError("Crop cycle has recorded activity logs and cannot be deleted")

		await self.db.execute(delete(CropCycleStage).where(CropCycleStage.crop_cycle_id == cycle.id))
		await self.db.delete(cycle)
		await self.db.flush()
		_logger.info("crop_cycle_deleted", crop_cycle_id=str(cycle_id), cycle_code=cycle.cycle_code)

	# ── Helpers ──────────────────────────────────────────────────────────

	@staticmethod
	def _ensure_transition_allowed(cycle: CropCycle, target: CropCycleStatusEnum) -> None:
		if not cycle.can_transition_to(target):
			raise InvalidTransitionError(str(cycle.status), str(target))

	@staticmethod
	def _ensure_end_not_before_start(cycle: CropCycle, on: date | None) -> None:
		if on is not None and cycle.actual_start_date is not None and on < cycle.actual_start_date:
			raise ValueError("actual_end_date must be on or after actual_start_date")

	@staticmethod
	def _raise_if_error(error: DomainError | None) -> None:
		if error is not None:
			raise error

	async def _persist_transition(self, cycle: CropCycle, previous: CropCycleStatusEnum) -> CropCycle:
		await self._flush(cycle)
		await self.db.refresh(cycle)
		_logger.info(
			"crop_cycle_transitioned",
			crop_cycle_id=str(cycle.id),
			cycle_code=cycle.cycle_code,
			from_status=str(previous),
			to_status=str(cycle.status),
		)
		return cycle

	async def _ensure_no_overlap(
		self,
		land_parcel_id: uuid.UUID,
		start: date,
		end: date,
		exclude_id: uuid.UUID | None = None,
	) -> None:
		conflict = await self.find_overlapping_cycle(land_parcel_id, start, end, exclude_id)
		if conflict is not None:
			raise OverlapError(conflict.id, conflict.planned_start_date, conflict.planned_end_date)

	async def _flush(self, cycle: CropCycle) -> None:
		try:
			await self.db.flush()
		except IntegrityError as exc:
			error = self._translate_integrity_error(exc, cycle)
			if error is None:
				raise
			raise error from exc

	@staticmethod
	def _translate_integrity_error(exc: IntegrityError, cycle: CropCycle) -> DomainError | None:
		message = str(exc.orig)
		if _OVERLAP_CONSTRAINT in message:
			return OverlapError(None)
		if _ONE_ACTIVE_INDEX in message:
			return ActiveCycleExistsError(cycle.land_parcel_id)
		if any(name in message for name in _CYCLE_CODE_CONSTRAINTS):
			_logger.warning("crop_cycle_code_conflict", cycle_code=cycle.cycle_code)
			return CycleCodeConflictError(cycle.cycle_code)
		return None

	async def _lock_parcel(self, land_parcel_id: uuid.UUID) -> LandParcel:
		"""Row-lock the parcel so overlap checks on it serialize."""
		row = await self.db.execute(
			select(LandParcel).where(LandParcel.id == land_parcel_id).with_for_update()
		)
		parcel = row.scalar_one_or_none()
		if parcel is None:
			raise LookupError(f"Land parcel {land_parcel_id} not found")
		return parcel

	async def _get_parcel(self, land_parcel_id: uuid.UUID) -> LandParcel:
		return await require_row(self.db, LandParcel, land_parcel_id, "Land parcel")

	async def _require_crop_type(self, crop_type_id: uuid.UUID) -> CropType:
		crop_type = await require_row(self.db, CropType, crop_type_id, "Crop type")
		if not crop_type.is_active:
			raise ValueError(f"Crop type {crop_type.code} is inactive")
		return crop_type
