"""Crop cycle stage service: ordered sub-phases and their sequencing guard."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from farmops.errors import (
	CycleNotActiveError,
	DuplicateStageOrderError,
	NotDeletableError,
	NotEditableError,
	PreviousStageIncompleteError,
)
from farmops.models.cycles import (
	OPEN_CYCLE_STATUSES,
	SATISFIED_STAGE_STATUSES,
	CropCycleStage,
)
from farmops.models.enums import CropCycleStatusEnum, StageStatusEnum
from farmops.schemas.crop_cycles import StageComplete, StageCreate, StageSkip, StageStart, StageUpdate
from farmops.services.crop_cycle_service import CropCycleService

_logger = structlog.get_logger("farmops.stages")


class CropCycleStageService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_stages(self, cycle_id: uuid.UUID) -> list[CropCycleStage]:
		await CropCycleService(self.db).get_crop_cycle(cycle_id)
		return await self._stages_for(cycle_id)

	async def get_stage(self, stage_id: uuid.UUID) -> CropCycleStage:
		row = await self.db.execute(select(CropCycleStage).where(CropCycleStage.id == stage_id))
		stage = row.scalar_one_or_none()
		if stage is None:
			raise LookupError(f"Stage {stage_id} not found")
		return stage

	async def current_stage(self, cycle_id: uuid.UUID) -> CropCycleStage | None:
		row = await self.db.execute(
			select(CropCycleStage)
			.where(
				CropCycleStage.crop_cycle_id == cycle_id,
				CropCycleStage.status == StageStatusEnum.in_progress,
			)
			.order_by(CropCycleStage.sequence_order.asc())
			.limit(1)
		)
		return row.scalar_one_or_none()

	async def create_stage(self, cycle_id: uuid.UUID, payload: StageCreate) -> CropCycleStage:
		cycle = await CropCycleService(self.db).get_crop_cycle(cycle_id)
		if cycle.status not in OPEN_CYCLE_STATUSES:
			raise NotEditableError(cycle.status)
		await self._ensure_order_free(cycle.id, payload.sequence_order)

		stage = CropCycleStage(
			crop_cycle_id=cycle.id,
			stage_name=payload.stage_name,
			sequence_order=payload.sequence_order,
			planned_start_date=payload.planned_start_date,
			planned_end_date=payload.planned_end_date,
			status=StageStatusEnum.pending,
			notes=payload.notes,
		)
		self.db.add(stage)
		await self.db.flush()
		await self.db.refresh(stage)
		return stage

	async def update_stage(self, stage_id: uuid.UUID, payload: StageUpdate) -> CropCycleStage:
		stage = await self.get_stage(stage_id)
		if stage.status in SATISFIED_STAGE_STATUSES:
			raise NotEditableError(stage.status, what="stage")

		changes = payload.model_dump(exclude_unset=True)
		start = changes.get("planned_start_date", stage.planned_start_date)
		end = changes.get("planned_end_date", stage.planned_end_date)
		if start is not None and end is not None and end < start:
			raise ValueError("planned_end_date must be on or after planned_start_date")

		for field, value in changes.items():
			if field == "stage_name" and value is None:
				continue
			setattr(stage, field, value)
		await self.db.flush()
		await self.db.refresh(stage)
		return stage

	async def delete_stage(self, stage_id: uuid.UUID) -> None:
		stage = await self.get_stage(stage_id)
		if stage.status != StageStatusEnum.pending:
			raise NotDeletableError(stage.status, what="stage")
		await self.db.delete(stage)
		await self.db.flush()

	async def start_stage(self, stage_id: uuid.UUID, payload: StageStart) -> CropCycleStage:
		"""Begin a stage once its cycle is active and the prior stage is done."""
		stage = await self.get_stage(stage_id)
		cycle = await CropCycleService(self.db).get_crop_cycle(stage.crop_cycle_id)
		if cycle.status != CropCycleStatusEnum.active:
			raise CycleNotActiveError(cycle.id, cycle.status)

		if stage.status == StageStatusEnum.pending:
			previous = await self._previous_stage(stage)
			if previous is not None and previous.status not in SATISFIED_STAGE_STATUSES:
				raise PreviousStageIncompleteError(previous.id, previous.status)

		before = stage.status
		error = stage.start(payload.actual_start_date, payload.notes)
		if error is not None:
			raise error
		return await self._persist_transition(stage, before)

	async def complete_stage(self, stage_id: uuid.UUID, payload: StageComplete) -> CropCycleStage:
		stage = await self.get_stage(stage_id)
		if (
			payload.actual_end_date is not None
			and stage.actual_start_date is not None
			and payload.actual_end_date < stage.actual_start_date
		):
			raise ValueError("actual_end_date must be on or after actual_start_date")

		before = stage.status
		error = stage.complete(payload.actual_end_date, payload.notes)
		if error is not None:
			raise error
		return await self._persist_transition(stage, before)

	async def skip_stage(self, stage_id: uuid.UUID, payload: StageSkip) -> CropCycleStage:
		stage = await self.get_stage(stage_id)
		before = stage.status
		error = stage.skip(payload.notes)
		if error is not None:
			raise error
		return await self._persist_transition(stage, before)

	async def _persist_transition(self, stage: CropCycleStage, before: StageStatusEnum) -> CropCycleStage:
		await self.db.flush()
		await self.db.refresh(stage)
		_logger.info(
			"stage_transitioned",
			stage_id=str(stage.id),
			crop_cycle_id=str(stage.crop_cycle_id),
			sequence_order=stage.sequence_order,
			from_status=str(before),
			to_status=str(stage.status),
		)
		return stage

	async def _stages_for(self, cycle_id: uuid.UUID) -> list[CropCycleStage]:
		rows = await self.db.execute(
			select(CropCycleStage)
			.where(CropCycleStage.crop_cycle_id == cycle_id)
			.order_by(CropCycleStage.sequence_order.asc())
		)
		return list(rows.scalars().all())

	async def _previous_stage(self, stage: CropCycleStage) -> CropCycleStage | None:
		row = await self.db.execute(
			select(CropCycleStage)
			.where(
				CropCycleStage.crop_cycle_id == stage.crop_cycle_id,
				CropCycleStage.sequence_order < stage.sequence_order,
			)
			.order_by(CropCycleStage.sequence_order.desc())
			.limit(1)
		)
		return row.scalar_one_or_none()

	async def _ensure_order_free(self, cycle_id: uuid.UUID, sequence_order: int) -> None:
		row = await self.db.execute(
			select(CropCycleStage.id).where(
				CropCycleStage.crop_cycle_id == cycle_id,
				CropCycleStage.sequence_order == sequence_order,
			)
		)
		if row.scalar_one_or_none() is not None:
			raise DuplicateStageOrderError(sequence_order)
