"""LandParcel and its water-source attachments."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from farmops.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from farmops.models.enums import (
    LandTypeEnum,
    SoilTypeEnum,
    TerrainTypeEnum,
    WaterAccessibilityEnum,
)


class LandParcel(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A physical plot of farmland tracked as a distinct unit.

    Parcels are never hard-deleted; ``is_active`` is cleared instead.  The
    short ``code`` prefixes every crop cycle code generated on the parcel.
    """

    __tablename__ = "land_parcels"
    __table_args__ = (
        UniqueConstraint("code", name="uq_land_parcels_code"),
        Index("ix_land_parcels_land_type", "land_type"),
        Index("ix_land_parcels_is_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    land_type: Mapped[LandTypeEnum] = mapped_column(
        Enum(
            LandTypeEnum,
            name="land_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    area_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    area_unit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("units_of_measure.id", ondelete="RESTRICT"),
        nullable=False,
    )
    terrain_type: Mapped[TerrainTypeEnum | None] = mapped_column(
        Enum(
            TerrainTypeEnum,
            name="terrain_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    soil_type: Mapped[SoilTypeEnum | None] = mapped_column(
        Enum(
            SoilTypeEnum,
            name="soil_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 8), nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(11, 8), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=text("true"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LandParcel id={self.id} code={self.code!r} active={self.is_active}>"


class LandParcelWaterSource(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Pivot row attaching a water source to a parcel."""

    __tablename__ = "land_parcel_water_sources"
    __table_args__ = (
        UniqueConstraint(
            "land_parcel_id",
            "water_source_id",
            name="uq_land_parcel_water_sources_pair",
        ),
    )

    land_parcel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("land_parcels.id", ondelete="CASCADE"),
        nullable=False,
    )
    water_source_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("water_sources.id", ondelete="CASCADE"),
        nullable=False,
    )
    accessibility: Mapped[WaterAccessibilityEnum] = mapped_column(
        Enum(
            WaterAccessibilityEnum,
            name="water_accessibility",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=WaterAccessibilityEnum.direct,
        server_default=WaterAccessibilityEnum.direct.value,
    )
    is_primary_source: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<LandParcelWaterSource parcel={self.land_parcel_id} "
            f"source={self.water_source_id} primary={self.is_primary_source}>"
        )
