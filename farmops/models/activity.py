"""ActivityLog ORM model: append-only record of field work.

No service or route ever updates or deletes a log.  The mapper events at
the bottom are a storage-level backstop: any flush that would UPDATE or
DELETE an ``activity_logs`` row through the ORM raises
:class:`~farmops.errors.ImmutableRecordError` before SQL is emitted.
"""

from __future__ import annotations

import uuid
from datetime import date, time
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Time,
    Uuid,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from farmops.errors import ImmutableRecordError
from farmops.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ActivityLog(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A real-world farming action performed on a date.

    Must reference a crop cycle, a land parcel, or both.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        CheckConstraint(
            "crop_cycle_id IS NOT NULL OR land_parcel_id IS NOT NULL",
            name="ck_activity_logs_has_subject",
        ),
        Index("ix_activity_logs_activity_date", "activity_date"),
        Index("ix_activity_logs_parcel_date", "land_parcel_id", "activity_date"),
        Index("ix_activity_logs_cycle_date", "crop_cycle_id", "activity_date"),
    )

    activity_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("activity_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    crop_cycle_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("crop_cycles.id", ondelete="SET NULL"),
        nullable=True,
    )
    land_parcel_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("land_parcels.id", ondelete="SET NULL"),
        nullable=True,
    )
    water_source_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("water_sources.id", ondelete="SET NULL"),
        nullable=True,
    )
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    quantity_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("units_of_measure.id", ondelete="SET NULL"),
        nullable=True,
    )
    cost_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    cost_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("units_of_measure.id", ondelete="SET NULL"),
        nullable=True,
    )
    performed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    weather_conditions: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ActivityLog id={self.id} date={self.activity_date} "
            f"cycle={self.crop_cycle_id} parcel={self.land_parcel_id}>"
        )


@event.listens_for(ActivityLog, "before_update")
def _reject_update(_mapper: Any, _connection: Any, _target: ActivityLog) -> None:
    raise ImmutableRecordError()


@event.listens_for(ActivityLog, "before_delete")
def _reject_delete(_mapper: Any, _connection: Any, _target: ActivityLog) -> None:
    raise ImmutableRecordError()
