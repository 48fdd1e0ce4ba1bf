"""Enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.  Member
names equal their values so SQLAlchemy's name-based persistence and the
JSON representation agree.
"""

from enum import StrEnum

# ── Lifecycle enums ─────────────────────────────────────────────────────────


class CropCycleStatusEnum(StrEnum):
    """Crop cycle lifecycle state (see ``farmops.domain.lifecycle``)."""

    planned = "planned"
    active = "active"
    completed = "completed"
    failed = "failed"
    abandoned = "abandoned"


class StageStatusEnum(StrEnum):
    """Progress state of one ordered stage within a crop cycle."""

    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    skipped = "skipped"


class QualityRatingEnum(StrEnum):
    """Harvest quality recorded when a cycle completes."""

    excellent = "excellent"
    good = "good"
    average = "average"
    below_average = "below_average"
    poor = "poor"


# ── Reference data enums ────────────────────────────────────────────────────


class UnitTypeEnum(StrEnum):
    area = "area"
    weight = "weight"
    volume = "volume"
    quantity = "quantity"
    currency = "currency"
    time = "time"


class LandTypeEnum(StrEnum):
    rice_field = "rice_field"
    garden = "garden"
    fish_pond = "fish_pond"
    mixed = "mixed"
    fallow = "fallow"
    other = "other"


class TerrainTypeEnum(StrEnum):
    flat = "flat"
    sloped = "sloped"
    terraced = "terraced"
    lowland = "lowland"


class SoilTypeEnum(StrEnum):
    clay = "clay"
    sandy = "sandy"
    loamy = "loamy"
    alluvial = "alluvial"
    mixed = "mixed"


class WaterSourceTypeEnum(StrEnum):
    well = "well"
    river = "river"
    stream = "stream"
    pond = "pond"
    irrigation_canal = "irrigation_canal"
    rainwater = "rainwater"
    municipal = "municipal"


class WaterReliabilityEnum(StrEnum):
    permanent = "permanent"
    seasonal = "seasonal"
    intermittent = "intermittent"


class WaterQualityEnum(StrEnum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


class WaterAccessibilityEnum(StrEnum):
    """How a parcel draws from an attached water source."""

    direct = "direct"
    pumped = "pumped"
    gravity_fed = "gravity_fed"
    manual = "manual"


class CropCategoryEnum(StrEnum):
    grain = "grain"
    vegetable = "vegetable"
    fruit = "fruit"
    legume = "legume"
    tuber = "tuber"
    herb = "herb"
    flower = "flower"
    fodder = "fodder"
    other = "other"


class ActivityCategoryEnum(StrEnum):
    land_preparation = "land_preparation"
    planting = "planting"
    irrigation = "irrigation"
    fertilizing = "fertilizing"
    pest_control = "pest_control"
    harvesting = "harvesting"
    maintenance = "maintenance"
    observation = "observation"
    other = "other"


# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles for RBAC."""

    admin = "admin"
    manager = "manager"
    field_worker = "field_worker"
    viewer = "viewer"
