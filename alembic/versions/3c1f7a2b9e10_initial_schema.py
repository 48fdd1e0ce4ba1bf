"""initial_schema

Revision ID: 3c1f7a2b9e10
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the FarmOps schema on PostgreSQL 16: reference tables, land
parcels, crop cycles and stages, activity logs and users.  Besides the
ORM-declared constraints it installs two guards on ``crop_cycles``:

* ``ex_crop_cycles_parcel_planned_range`` rejects two planned/active
  cycles on one parcel whose inclusive planned date ranges intersect
  (needs ``btree_gist`` for the ``=`` operator on uuid);
* ``uq_crop_cycles_one_active_per_parcel`` allows at most one active
  cycle per parcel.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1f7a2b9e10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_CROP_CYCLE_STATUS = _enum(
    "crop_cycle_status", "planned", "active", "completed", "failed", "abandoned"
)
ENUM_STAGE_STATUS = _enum("stage_status", "pending", "in_progress", "completed", "skipped")
ENUM_QUALITY_RATING = _enum(
    "quality_rating", "excellent", "good", "average", "below_average", "poor"
)
ENUM_UNIT_TYPE = _enum("unit_type", "area", "weight", "volume", "quantity", "currency", "time")
ENUM_LAND_TYPE = _enum(
    "land_type", "rice_field", "garden", "fish_pond", "mixed", "fallow", "other"
)
ENUM_TERRAIN_TYPE = _enum("terrain_type", "flat", "sloped", "terraced", "lowland")
ENUM_SOIL_TYPE = _enum("soil_type", "clay", "sandy", "loamy", "alluvial", "mixed")
ENUM_WATER_SOURCE_TYPE = _enum(
    "water_source_type",
    "well",
    "river",
    "stream",
    "pond",
    "irrigation_canal",
    "rainwater",
    "municipal",
)
ENUM_WATER_RELIABILITY = _enum("water_reliability", "permanent", "seasonal", "intermittent")
ENUM_WATER_QUALITY = _enum("water_quality", "excellent", "good", "fair", "poor")
ENUM_WATER_ACCESSIBILITY = _enum(
    "water_accessibility", "direct", "pumped", "gravity_fed", "manual"
)
ENUM_CROP_CATEGORY = _enum(
    "crop_category",
    "grain",
    "vegetable",
    "fruit",
    "legume",
    "tuber",
    "herb",
    "flower",
    "fodder",
    "other",
)
ENUM_ACTIVITY_CATEGORY = _enum(
    "activity_category",
    "land_preparation",
    "planting",
    "irrigation",
    "fertilizing",
    "pest_control",
    "harvesting",
    "maintenance",
    "observation",
    "other",
)
ENUM_USER_ROLE = _enum("user_role", "admin", "manager", "field_worker", "viewer")

ALL_ENUMS = (
    ENUM_CROP_CYCLE_STATUS,
    ENUM_STAGE_STATUS,
    ENUM_QUALITY_RATING,
    ENUM_UNIT_TYPE,
    ENUM_LAND_TYPE,
    ENUM_TERRAIN_TYPE,
    ENUM_SOIL_TYPE,
    ENUM_WATER_SOURCE_TYPE,
    ENUM_WATER_RELIABILITY,
    ENUM_WATER_QUALITY,
    ENUM_WATER_ACCESSIBILITY,
    ENUM_CROP_CATEGORY,
    ENUM_ACTIVITY_CATEGORY,
    ENUM_USER_ROLE,
)


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _fk(name: str) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=True)


def _is_active() -> sa.Column:
    return sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False)


def upgrade() -> None:
    # ── 1. Extensions and enum types ────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    for enum_type in ALL_ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    # ── 2. Users ────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column("role", ENUM_USER_ROLE, server_default="viewer", nullable=False),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── 3. Reference tables ─────────────────────────────────────────────
    op.create_table(
        "units_of_measure",
        _id(),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("abbreviation", sa.String(20), nullable=False),
        sa.Column("unit_type", ENUM_UNIT_TYPE, nullable=False),
        sa.Column(
            "conversion_factor_to_base",
            sa.Numeric(15, 6),
            server_default=sa.text("1"),
            nullable=False,
        ),
        sa.Column("is_base_unit", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "unit_type", name="uq_units_of_measure_name_type"),
    )
    op.create_index("ix_units_of_measure_unit_type", "units_of_measure", ["unit_type"])

    op.create_table(
        "activity_types",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("category", ENUM_ACTIVITY_CATEGORY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_activity_types_code"),
    )
    op.create_index("ix_activity_types_category", "activity_types", ["category"])

    op.create_table(
        "crop_types",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("scientific_name", sa.String(150), nullable=True),
        sa.Column("variety", sa.String(100), nullable=True),
        sa.Column("category", ENUM_CROP_CATEGORY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("typical_grow_duration_days", sa.SmallInteger(), nullable=True),
        _fk("default_yield_unit_id"),
        _is_active(),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["default_yield_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_crop_types_code"),
    )
    op.create_index("ix_crop_types_category", "crop_types", ["category"])

    op.create_table(
        "season_definitions",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("typical_start_month", sa.SmallInteger(), nullable=False),
        sa.Column("typical_end_month", sa.SmallInteger(), nullable=False),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_season_definitions_code"),
    )

    op.create_table(
        "seasons",
        _id(),
        sa.Column("season_definition_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["season_definition_id"], ["season_definitions.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("season_definition_id", "year", name="uq_seasons_definition_year"),
    )
    op.create_index("ix_seasons_year", "seasons", ["year"])

    op.create_table(
        "water_sources",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("source_type", ENUM_WATER_SOURCE_TYPE, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column(
            "reliability",
            ENUM_WATER_RELIABILITY,
            server_default="permanent",
            nullable=False,
        ),
        sa.Column("water_quality", ENUM_WATER_QUALITY, nullable=True),
        _is_active(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_water_sources_code"),
    )
    op.create_index("ix_water_sources_source_type", "water_sources", ["source_type"])

    # ── 4. Land parcels ─────────────────────────────────────────────────
    op.create_table(
        "land_parcels",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("land_type", ENUM_LAND_TYPE, nullable=False),
        sa.Column("area_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("area_unit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("terrain_type", ENUM_TERRAIN_TYPE, nullable=True),
        sa.Column("soil_type", ENUM_SOIL_TYPE, nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        _is_active(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["area_unit_id"], ["units_of_measure.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_land_parcels_code"),
    )
    op.create_index("ix_land_parcels_land_type", "land_parcels", ["land_type"])
    op.create_index("ix_land_parcels_is_active", "land_parcels", ["is_active"])

    op.create_table(
        "land_parcel_water_sources",
        _id(),
        sa.Column("land_parcel_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("water_source_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "accessibility",
            ENUM_WATER_ACCESSIBILITY,
            server_default="direct",
            nullable=False,
        ),
        sa.Column(
            "is_primary_source", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["land_parcel_id"], ["land_parcels.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["water_source_id"], ["water_sources.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "land_parcel_id", "water_source_id", name="uq_land_parcel_water_sources_pair"
        ),
    )

    # ── 5. Crop cycles and stages ───────────────────────────────────────
    op.create_table(
        "crop_cycles",
        _id(),
        sa.Column("cycle_code", sa.String(50), nullable=False),
        sa.Column("land_parcel_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("crop_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        _fk("season_id"),
        sa.Column("status", ENUM_CROP_CYCLE_STATUS, server_default="planned", nullable=False),
        sa.Column("planned_start_date", sa.Date(), nullable=False),
        sa.Column("planned_end_date", sa.Date(), nullable=False),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("yield_value", sa.Numeric(12, 2), nullable=True),
        _fk("yield_unit_id"),
        sa.Column("quality_rating", ENUM_QUALITY_RATING, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["land_parcel_id"], ["land_parcels.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["crop_type_id"], ["crop_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["season_id"], ["seasons.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["yield_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cycle_code", name="uq_crop_cycles_cycle_code"),
        sa.CheckConstraint(
            "planned_end_date > planned_start_date",
            name="ck_crop_cycles_planned_range",
        ),
    )
    op.create_index("ix_crop_cycles_parcel_status", "crop_cycles", ["land_parcel_id", "status"])
    op.create_index("ix_crop_cycles_planned_start_date", "crop_cycles", ["planned_start_date"])
    op.create_index("ix_crop_cycles_planned_end_date", "crop_cycles", ["planned_end_date"])
    op.execute(
        """
        ALTER TABLE crop_cycles
        ADD CONSTRAINT ex_crop_cycles_parcel_planned_range
        EXCLUDE USING gist (
            land_parcel_id WITH =,
            daterange(planned_start_date, planned_end_date, '[]') WITH &&
        )
        WHERE (status IN ('planned', 'active'))
        """
    )
    op.create_index(
        "uq_crop_cycles_one_active_per_parcel",
        "crop_cycles",
        ["land_parcel_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "crop_cycle_stages",
        _id(),
        sa.Column("crop_cycle_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("stage_name", sa.String(100), nullable=False),
        sa.Column("sequence_order", sa.SmallInteger(), nullable=False),
        sa.Column("planned_start_date", sa.Date(), nullable=True),
        sa.Column("planned_end_date", sa.Date(), nullable=True),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("status", ENUM_STAGE_STATUS, server_default="pending", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crop_cycle_id"], ["crop_cycles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "crop_cycle_id", "sequence_order", name="uq_crop_cycle_stages_cycle_sequence"
        ),
    )
    op.create_index("ix_crop_cycle_stages_status", "crop_cycle_stages", ["status"])

    # ── 6. Activity logs ────────────────────────────────────────────────
    op.create_table(
        "activity_logs",
        _id(),
        sa.Column("activity_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        _fk("crop_cycle_id"),
        _fk("land_parcel_id"),
        _fk("water_source_id"),
        sa.Column("activity_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity_value", sa.Numeric(12, 2), nullable=True),
        _fk("quantity_unit_id"),
        sa.Column("cost_value", sa.Numeric(12, 2), nullable=True),
        _fk("cost_unit_id"),
        sa.Column("performed_by", sa.String(100), nullable=True),
        sa.Column("weather_conditions", sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["activity_type_id"], ["activity_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["crop_cycle_id"], ["crop_cycles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["land_parcel_id"], ["land_parcels.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["water_source_id"], ["water_sources.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["quantity_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cost_unit_id"], ["units_of_measure.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "crop_cycle_id IS NOT NULL OR land_parcel_id IS NOT NULL",
            name="ck_activity_logs_has_subject",
        ),
    )
    op.create_index("ix_activity_logs_activity_date", "activity_logs", ["activity_date"])
    op.create_index(
        "ix_activity_logs_parcel_date", "activity_logs", ["land_parcel_id", "activity_date"]
    )
    op.create_index(
        "ix_activity_logs_cycle_date", "activity_logs", ["crop_cycle_id", "activity_date"]
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("activity_logs")
    op.drop_table("crop_cycle_stages")
    op.drop_table("crop_cycles")
    op.drop_table("land_parcel_water_sources")
    op.drop_table("land_parcels")
    op.drop_table("water_sources")
    op.drop_table("seasons")
    op.drop_table("season_definitions")
    op.drop_table("crop_types")
    op.drop_table("activity_types")
    op.drop_table("units_of_measure")
    op.drop_table("users")

    # ── Drop enum types ─────────────────────────────────────────────────
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
