"""CropCycle and CropCycleStage ORM models: the lifecycle core.

Status changes go through the entity methods below.  Each one returns
``None`` on success or an :class:`~farmops.errors.InvalidTransitionError`
without touching any field; persisting the result is the caller's job.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import ClassVar

from sqlalchemy import (
    Date,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from farmops.domain.lifecycle import can_transition, is_terminal, plan_transition
from farmops.domain.scheduling import append_note
from farmops.errors import InvalidTransitionError
from farmops.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from farmops.models.enums import (
    CropCycleStatusEnum,
    QualityRatingEnum,
    StageStatusEnum,
)

CROP_CYCLE_TRANSITIONS: Mapping[CropCycleStatusEnum, frozenset[CropCycleStatusEnum]] = MappingProxyType(
    {
        CropCycleStatusEnum.planned: frozenset(
            {CropCycleStatusEnum.active, CropCycleStatusEnum.abandoned}
        ),
        CropCycleStatusEnum.active: frozenset(
            {
                CropCycleStatusEnum.completed,
                CropCycleStatusEnum.failed,
                CropCycleStatusEnum.abandoned,
            }
        ),
        CropCycleStatusEnum.completed: frozenset(),
        CropCycleStatusEnum.failed: frozenset(),
        CropCycleStatusEnum.abandoned: frozenset(),
    }
)

STAGE_TRANSITIONS: Mapping[StageStatusEnum, frozenset[StageStatusEnum]] = MappingProxyType(
    {
        StageStatusEnum.pending: frozenset(
            {StageStatusEnum.in_progress, StageStatusEnum.skipped}
        ),
        StageStatusEnum.in_progress: frozenset({StageStatusEnum.completed}),
        StageStatusEnum.completed: frozenset(),
        StageStatusEnum.skipped: frozenset(),
    }
)

# Open cycles still hold a claim on the parcel's calendar.
OPEN_CYCLE_STATUSES: frozenset[CropCycleStatusEnum] = frozenset(
    status for status in CropCycleStatusEnum if not is_terminal(CROP_CYCLE_TRANSITIONS, status)
)
SATISFIED_STAGE_STATUSES: frozenset[StageStatusEnum] = frozenset(
    status for status in StageStatusEnum if is_terminal(STAGE_TRANSITIONS, status)
)

# ═══════════════════════════════════════════════════════════════════════════
# CropCycle
# ═══════════════════════════════════════════════════════════════════════════


class CropCycle(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One planting-to-harvest episode of a crop type on a land parcel.

    ``cycle_code`` is unique at the storage layer.  The PostgreSQL schema
    also carries an exclusion constraint over the planned date range of
    open (planned/active) cycles per parcel and a partial unique index
    allowing a single active cycle per parcel; see the initial migration.
    """

    __tablename__ = "crop_cycles"
    __table_args__ = (
        UniqueConstraint("cycle_code", name="uq_crop_cycles_cycle_code"),
        Index("ix_crop_cycles_parcel_status", "land_parcel_id", "status"),
        Index("ix_crop_cycles_planned_start_date", "planned_start_date"),
        Index("ix_crop_cycles_planned_end_date", "planned_end_date"),
    )

    cycle_code: Mapped[str] = mapped_column(String(50), nullable=False)
    land_parcel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("land_parcels.id", ondelete="RESTRICT"),
        nullable=False,
    )
    crop_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("crop_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    season_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("seasons.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[CropCycleStatusEnum] = mapped_column(
        Enum(
            CropCycleStatusEnum,
            name="crop_cycle_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=CropCycleStatusEnum.planned,
        server_default=CropCycleStatusEnum.planned.value,
    )
    planned_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    planned_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    yield_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    yield_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("units_of_measure.id", ondelete="SET NULL"),
        nullable=True,
    )
    quality_rating: Mapped[QualityRatingEnum | None] = mapped_column(
        Enum(
            QualityRatingEnum,
            name="quality_rating",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    TRANSITIONS: ClassVar[Mapping[CropCycleStatusEnum, frozenset[CropCycleStatusEnum]]] = (
        CROP_CYCLE_TRANSITIONS
    )

    # ── Status transitions ───────────────────────────────────────────────

    def can_transition_to(self, status: CropCycleStatusEnum) -> bool:
        return can_transition(self.TRANSITIONS, self.status, status)

    def transition_to(self, status: CropCycleStatusEnum) -> InvalidTransitionError | None:
        """Move to ``status`` in memory only, or return why that is illegal."""
        error = plan_transition(self.TRANSITIONS, self.status, status)
        if error is None:
            self.status = status
        return error

    def activate(self, on: date | None = None) -> InvalidTransitionError | None:
        error = self.transition_to(CropCycleStatusEnum.active)
        if error is None:
            self.actual_start_date = on or date.today()
        return error

    def complete(
        self,
        yield_value: Decimal | None = None,
        yield_unit_id: uuid.UUID | None = None,
        quality_rating: QualityRatingEnum | None = None,
        on: date | None = None,
    ) -> InvalidTransitionError | None:
        error = self.transition_to(CropCycleStatusEnum.completed)
        if error is not None:
            return error
        self.actual_end_date = on or date.today()
        if yield_value is not None:
            self.yield_value = yield_value
        if yield_unit_id is not None:
            self.yield_unit_id = yield_unit_id
        if quality_rating is not None:
            self.quality_rating = quality_rating
        return None

    def fail(self, notes: str | None = None, on: date | None = None) -> InvalidTransitionError | None:
        return self._close(CropCycleStatusEnum.failed, notes, on)

    def abandon(self, notes: str | None = None, on: date | None = None) -> InvalidTransitionError | None:
        return self._close(CropCycleStatusEnum.abandoned, notes, on)

    def _close(
        self,
        status: CropCycleStatusEnum,
        notes: str | None,
        on: date | None,
    ) -> InvalidTransitionError | None:
        error = self.transition_to(status)
        if error is None:
            self.actual_end_date = on or date.today()
            self.notes = append_note(self.notes, notes)
        return error

    # ── Derived values ───────────────────────────────────────────────────

    def duration_days(self, today: date | None = None) -> int | None:
        today = today or date.today()
        start = self.actual_start_date or self.planned_start_date
        if self.actual_end_date is not None:
            end = self.actual_end_date
        elif self.status == CropCycleStatusEnum.active:
            end = today
        else:
            end = self.planned_end_date
        if start is None or end is None:
            return None
        return abs((end - start).days)

    def is_overdue(self, today: date | None = None) -> bool:
        if self.status != CropCycleStatusEnum.active:
            return False
        return (today or date.today()) > self.planned_end_date

    def __repr__(self) -> str:
        return f"<CropCycle id={self.id} code={self.cycle_code!r} status={self.status}>"


# ═══════════════════════════════════════════════════════════════════════════
# CropCycleStage
# ═══════════════════════════════════════════════════════════════════════════


class CropCycleStage(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """An ordered sub-phase of a crop cycle (land prep, planting, harvest, …).

    The sequencing guard (previous stage satisfied, parent cycle active)
    needs sibling rows and lives in ``CropCycleStageService``; the methods
    here only enforce the stage's own transition table.
    """

    __tablename__ = "crop_cycle_stages"
    __table_args__ = (
        UniqueConstraint(
            "crop_cycle_id",
            "sequence_order",
            name="uq_crop_cycle_stages_cycle_sequence",
        ),
        Index("ix_crop_cycle_stages_status", "status"),
    )

    crop_cycle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("crop_cycles.id", ondelete="CASCADE"),
        nullable=False,
    )
    stage_name: Mapped[str] = mapped_column(String(100), nullable=False)
    sequence_order: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    planned_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    planned_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[StageStatusEnum] = mapped_column(
        Enum(
            StageStatusEnum,
            name="stage_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=StageStatusEnum.pending,
        server_default=StageStatusEnum.pending.value,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    TRANSITIONS: ClassVar[Mapping[StageStatusEnum, frozenset[StageStatusEnum]]] = STAGE_TRANSITIONS

    def _move(self, status: StageStatusEnum) -> InvalidTransitionError | None:
        error = plan_transition(self.TRANSITIONS, self.status, status)
        if error is None:
            self.status = status
        return error

    def start(self, on: date | None = None, notes: str | None = None) -> InvalidTransitionError | None:
        error = self._move(StageStatusEnum.in_progress)
        if error is None:
            self.actual_start_date = on or date.today()
            self.notes = append_note(self.notes, notes)
        return error

    def complete(self, on: date | None = None, notes: str | None = None) -> InvalidTransitionError | None:
        error = self._move(StageStatusEnum.completed)
        if error is None:
            self.actual_end_date = on or date.today()
            self.notes = append_note(self.notes, notes)
        return error

    def skip(self, notes: str | None = None) -> InvalidTransitionError | None:
        error = self._move(StageStatusEnum.skipped)
        if error is None:
            self.notes = append_note(self.notes, notes)
        return error

    def __repr__(self) -> str:
        return (
            f"<CropCycleStage id={self.id} cycle={self.crop_cycle_id} "
            f"order={self.sequence_order} status={self.status}>"
        )
