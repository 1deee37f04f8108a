"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
"""

from enum import StrEnum

# ── Tenant enums ────────────────────────────────────────────────────────────


class RecordStatusEnum(StrEnum):
    """Soft lifecycle shared by companies, users and farms."""

    active = "active"
    inactive = "inactive"
    deleted = "deleted"


# ── Plot enums ──────────────────────────────────────────────────────────────


class PlotStatusEnum(StrEnum):
    """Cultivation state of a plot."""

    free = "free"
    planted = "planted"
    harvesting = "harvesting"
    processing = "processing"


class RentTypeEnum(StrEnum):
    """How rent is paid for a leased plot."""

    fixed_amount = "fixed_amount"
    percentage_yield = "percentage_yield"


# ── Campaign enums ──────────────────────────────────────────────────────────


class SeasonEnum(StrEnum):
    spring = "spring"
    summer = "summer"
    autumn = "autumn"
    winter = "winter"


class CampaignStatusEnum(StrEnum):
    """Multi-plot campaign lifecycle."""

    planned = "planned"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


# Statuses that hold a plot for their (season, year).
BLOCKING_CAMPAIGN_STATUSES: frozenset[CampaignStatusEnum] = frozenset(
    {CampaignStatusEnum.planned, CampaignStatusEnum.active}
)


# ── Activity enums ──────────────────────────────────────────────────────────


class ActivityTypeEnum(StrEnum):
    """Field work scheduled within a campaign."""

    soil_preparation = "soil_preparation"
    planting = "planting"
    fertilizing = "fertilizing"
    spraying = "spraying"
    irrigation = "irrigation"
    weeding = "weeding"
    harvesting = "harvesting"
    field_inspection = "field_inspection"
    maintenance = "maintenance"
    other = "other"


class ActivityStatusEnum(StrEnum):
    planned = "planned"
    in_progress = "in_progress"
    completed = "completed"
    overdue = "overdue"
    cancelled = "cancelled"


# ── Expense enums ───────────────────────────────────────────────────────────


class CostTypeEnum(StrEnum):
    """``specific`` costs belong to one campaign; ``general`` ones to the whole farm."""

    specific = "specific"
    general = "general"


class ExpenseCategoryEnum(StrEnum):
    seeds = "seeds"
    fertilizers = "fertilizers"
    pesticides = "pesticides"
    plot_labor = "plot_labor"
    plot_rent = "plot_rent"
    irrigation = "irrigation"
    fuel = "fuel"
    machinery = "machinery"
    general_labor = "general_labor"
    insurance = "insurance"
    taxes = "taxes"
    maintenance = "maintenance"
    utilities = "utilities"
    other = "other"


# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles for RBAC."""

    super_admin = "super_admin"
    admin_company = "admin_company"
    admin_farm = "admin_farm"
    engineer = "engineer"
