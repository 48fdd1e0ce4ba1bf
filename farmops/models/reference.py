"""Reference/lookup tables: units, crop and activity types, seasons, water sources.

These rows carry no behaviour of their own; crop cycles, parcels and
activity logs point at them by id.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from farmops.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from farmops.models.enums import (
    ActivityCategoryEnum,
    CropCategoryEnum,
    UnitTypeEnum,
    WaterQualityEnum,
    WaterReliabilityEnum,
    WaterSourceTypeEnum,
)


class _ActiveFlagMixin:
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=text("true"),
        nullable=False,
    )


class UnitOfMeasure(Base, UUIDPrimaryKeyMixin, TimestampMixin, _ActiveFlagMixin):
    """A unit such as ``ha``, ``kg`` or ``VND`` with a factor to its base unit."""

    __tablename__ = "units_of_measure"
    __table_args__ = (
        UniqueConstraint("name", "unit_type", name="uq_units_of_measure_name_type"),
        Index("ix_units_of_measure_unit_type", "unit_type"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    abbreviation: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_type: Mapped[UnitTypeEnum] = mapped_column(
        Enum(
            UnitTypeEnum,
            name="unit_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    conversion_factor_to_base: Mapped[Decimal] = mapped_column(
        Numeric(15, 6),
        nullable=False,
        default=Decimal("1"),
        server_default=text("1"),
    )
    is_base_unit: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UnitOfMeasure id={self.id} abbr={self.abbreviation!r} type={self.unit_type}>"


class ActivityType(Base, UUIDPrimaryKeyMixin, TimestampMixin, _ActiveFlagMixin):
    __tablename__ = "activity_types"
    __table_args__ = (
        UniqueConstraint("code", name="uq_activity_types_code"),
        Index("ix_activity_types_category", "category"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    category: Mapped[ActivityCategoryEnum] = mapped_column(
        Enum(
            ActivityCategoryEnum,
            name="activity_category",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ActivityType id={self.id} code={self.code!r}>"


class CropType(Base, UUIDPrimaryKeyMixin, TimestampMixin, _ActiveFlagMixin):
    __tablename__ = "crop_types"
    __table_args__ = (
        UniqueConstraint("code", name="uq_crop_types_code"),
        Index("ix_crop_types_category", "category"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    scientific_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    variety: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[CropCategoryEnum] = mapped_column(
        Enum(
            CropCategoryEnum,
            name="crop_category",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    typical_grow_duration_days: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    default_yield_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("units_of_measure.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<CropType id={self.id} code={self.code!r} category={self.category}>"


class SeasonDefinition(Base, UUIDPrimaryKeyMixin, TimestampMixin, _ActiveFlagMixin):
    """A recurring named season (e.g. winter-spring rice) in month terms."""

    __tablename__ = "season_definitions"
    __table_args__ = (UniqueConstraint("code", name="uq_season_definitions_code"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    typical_start_month: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    typical_end_month: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<SeasonDefinition id={self.id} code={self.code!r}>"


class Season(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A season definition bound to one calendar year."""

    __tablename__ = "seasons"
    __table_args__ = (
        UniqueConstraint("season_definition_id", "year", name="uq_seasons_definition_year"),
        Index("ix_seasons_year", "year"),
    )

    season_definition_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("season_definitions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Season id={self.id} definition={self.season_definition_id} year={self.year}>"


class WaterSource(Base, UUIDPrimaryKeyMixin, TimestampMixin, _ActiveFlagMixin):
    __tablename__ = "water_sources"
    __table_args__ = (
        UniqueConstraint("code", name="uq_water_sources_code"),
        Index("ix_water_sources_source_type", "source_type"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    source_type: Mapped[WaterSourceTypeEnum] = mapped_column(
        Enum(
            WaterSourceTypeEnum,
            name="water_source_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 8), nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(11, 8), nullable=True)
    reliability: Mapped[WaterReliabilityEnum] = mapped_column(
        Enum(
            WaterReliabilityEnum,
            name="water_reliability",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=WaterReliabilityEnum.permanent,
        server_default=WaterReliabilityEnum.permanent.value,
    )
    water_quality: Mapped[WaterQualityEnum | None] = mapped_column(
        Enum(
            WaterQualityEnum,
            name="water_quality",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<WaterSource id={self.id} code={self.code!r} type={self.source_type}>"
