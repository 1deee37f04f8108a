"""ORM model registry. Importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from ralfarm.models import Campaign, Farm, Plot, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from ralfarm.models.base import Base, RecordStatusMixin, TimestampMixin, UUIDPrimaryKeyMixin

# ── Activities & expenses ───────────────────────────────────────────────────
from ralfarm.models.activity import CampaignActivity, Expense

# ── Campaigns ───────────────────────────────────────────────────────────────
from ralfarm.models.campaign import Campaign, CampaignPlot

# ── Tenant topology ─────────────────────────────────────────────────────────
from ralfarm.models.company import Company

# ── Enums ───────────────────────────────────────────────────────────────────
from ralfarm.models.enums import (
    ActivityStatusEnum,
    ActivityTypeEnum,
    CampaignStatusEnum,
    CostTypeEnum,
    ExpenseCategoryEnum,
    PlotStatusEnum,
    RecordStatusEnum,
    RentTypeEnum,
    SeasonEnum,
    UserRoleEnum,
)
from ralfarm.models.farm import Farm, Plot

# ── Auth models ─────────────────────────────────────────────────────────────
from ralfarm.models.user import User, UserFarmAssignment

__all__ = [
    # Base & mixins
    "Base",
    # Activities & expenses
    "ActivityStatusEnum",
    "ActivityTypeEnum",
    "CampaignActivity",
    "CostTypeEnum",
    "Expense",
    "ExpenseCategoryEnum",
    # Campaigns
    "Campaign",
    "CampaignPlot",
    "CampaignStatusEnum",
    # Tenant topology
    "Company",
    "Farm",
    "Plot",
    "PlotStatusEnum",
    "RecordStatusEnum",
    "RecordStatusMixin",
    "RentTypeEnum",
    "SeasonEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Auth
    "User",
    "UserFarmAssignment",
    "UserRoleEnum",
]
