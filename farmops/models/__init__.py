"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from farmops.models import CropCycle, LandParcel, ActivityLog, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from farmops.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Activity log ────────────────────────────────────────────────────────────
from farmops.models.activity import ActivityLog

# ── Crop cycle core ─────────────────────────────────────────────────────────
from farmops.models.cycles import CropCycle, CropCycleStage

# ── Enums ───────────────────────────────────────────────────────────────────
from farmops.models.enums import (
    ActivityCategoryEnum,
    CropCategoryEnum,
    CropCycleStatusEnum,
    LandTypeEnum,
    QualityRatingEnum,
    StageStatusEnum,
    UnitTypeEnum,
    UserRoleEnum,
    WaterSourceTypeEnum,
)

# ── Parcels ─────────────────────────────────────────────────────────────────
from farmops.models.parcels import LandParcel, LandParcelWaterSource

# ── Reference data ──────────────────────────────────────────────────────────
from farmops.models.reference import (
    ActivityType,
    CropType,
    Season,
    SeasonDefinition,
    UnitOfMeasure,
    WaterSource,
)

# ── Auth models ─────────────────────────────────────────────────────────────
from farmops.models.users import User

__all__ = [
    "ActivityCategoryEnum",
    # Activity log
    "ActivityLog",
    # Reference data
    "ActivityType",
    # Base & mixins
    "Base",
    "CropCategoryEnum",
    # Crop cycle core
    "CropCycle",
    "CropCycleStage",
    # Enums
    "CropCycleStatusEnum",
    "CropType",
    # Parcels
    "LandParcel",
    "LandParcelWaterSource",
    "LandTypeEnum",
    "QualityRatingEnum",
    "Season",
    "SeasonDefinition",
    "StageStatusEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "UnitOfMeasure",
    "UnitTypeEnum",
    # Auth
    "User",
    "UserRoleEnum",
    "WaterSource",
    "WaterSourceTypeEnum",
]
