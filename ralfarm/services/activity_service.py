"""Campaign activity planning and completion.

Activities hang off a campaign and reach their farm only through the
campaign's plot links, so farm scoping joins ``campaign_plots`` to ``plots``.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.models.activity import CampaignActivity
from ralfarm.models.campaign import Campaign, CampaignPlot
from ralfarm.models.enums import ActivityStatusEnum, ActivityTypeEnum
from ralfarm.models.farm import Plot
from ralfarm.schemas.activity import ActivityCreate, ActivityUpdate
from ralfarm.services.errors import NotFoundError, ValidationError, flush_changes

logger = structlog.get_logger("ralfarm.activities")


def campaigns_on_farms(farm_ids: Sequence[uuid.UUID]):
	"""Subquery of campaign ids with at least one plot on ``farm_ids``."""
	return (
		select(CampaignPlot.campaign_id)
		.join(Plot, Plot.id == CampaignPlot.plot_id)
		.where(Plot.farm_id.in_(list(farm_ids)))
	)


class ActivityService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_activity(self, payload: ActivityCreate, created_by: uuid.UUID | None = None) -> CampaignActivity:
		campaign = await self.db.get(Campaign, payload.campaign_id)
		if campaign is None:
			raise NotFoundError(f"Campaign {payload.campaign_id} not found")

		planned_area = payload.planned_area_ha
		if planned_area is None:
			planned_area = campaign.total_area_ha
		elif planned_area > campaign.total_area_ha:
			raise ValidationError(
				f"Planned area ({planned_area}ha) exceeds campaign area ({campaign.total_area_ha}ha)"
			)

		activity = CampaignActivity(
			campaign_id=campaign.id,
			activity_type=payload.activity_type,
			name=payload.name,
			description=payload.description,
			status=ActivityStatusEnum.planned,
			planned_date=payload.planned_date,
			priority=payload.priority,
			planned_area_ha=planned_area,
			estimated_duration_hours=payload.estimated_duration_hours,
			estimated_cost_ron=payload.estimated_cost_ron,
			required_equipment=payload.required_equipment,
			required_materials=payload.required_materials,
			assigned_to_user_id=payload.assigned_to_user_id,
			created_by_user_id=created_by,
		)
		self.db.add(activity)
		await flush_changes(self.db, "activity")
		await self.db.refresh(activity)
		logger.info(
			"activity_created",
			activity_id=str(activity.id),
			campaign_id=str(campaign.id),
			activity_type=payload.activity_type.value,
		)
		return activity

	async def get_activity(self, activity_id: uuid.UUID) -> CampaignActivity:
		activity = await self.db.get(CampaignActivity, activity_id, populate_existing=True)
		if activity is None:
			raise NotFoundError(f"Activity {activity_id} not found")
		return activity

	async def list_activities(
		self,
		*,
		farm_ids: Sequence[uuid.UUID] | None = None,
		campaign_id: uuid.UUID | None = None,
		status: ActivityStatusEnum | None = None,
		activity_type: ActivityTypeEnum | None = None,
		date_from: date | None = None,
		date_to: date | None = None,
		assigned_to: uuid.UUID | None = None,
	) -> list[CampaignActivity]:
		stmt = select(CampaignActivity).order_by(
			CampaignActivity.planned_date.asc(), CampaignActivity.created_at.asc()
		)
		if farm_ids is not None:
			if not farm_ids:
				return []
			stmt = stmt.where(CampaignActivity.campaign_id.in_(campaigns_on_farms(farm_ids)))
		if campaign_id is not None:
			stmt = stmt.where(CampaignActivity.campaign_id == campaign_id)
		if status is not None:
			stmt = stmt.where(CampaignActivity.status == status)
		if activity_type is not None:
			stmt = stmt.where(CampaignActivity.activity_type == activity_type)
		if date_from is not None:
			stmt = stmt.where(CampaignActivity.planned_date >= date_from)
		if date_to is not None:
			stmt = stmt.where(CampaignActivity.planned_date <= date_to)
		if assigned_to is not None:
			stmt = stmt.where(CampaignActivity.assigned_to_user_id == assigned_to)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def update_activity(self, activity_id: uuid.UUID, payload: ActivityUpdate) -> CampaignActivity:
		activity = await self.get_activity(activity_id)
		changes = payload.model_dump(exclude_unset=True)
		for field in ("activity_type", "name", "planned_date", "status"):
			if field in changes and changes[field] is None:
				raise ValidationError(f"{field} cannot be cleared")

		new_status = changes.get("status", activity.status)
		completed = changes.get("completed_date", activity.completed_date)
		if new_status == ActivityStatusEnum.completed and completed is None:
			changes["completed_date"] = completed = date.today()
		planned = changes.get("planned_date", activity.planned_date)
		if completed is not None and completed < planned:
			raise ValidationError("completed_date cannot precede planned_date")

		for field, value in changes.items():
			setattr(activity, field, value)
		await flush_changes(self.db, "activity")
		await self.db.refresh(activity)
		logger.info("activity_updated", activity_id=str(activity.id), fields=sorted(changes))
		return activity

	async def delete_activity(self, activity_id: uuid.UUID) -> None:
		activity = await self.get_activity(activity_id)
		await self.db.delete(activity)
		await flush_changes(self.db, "activity")
		logger.info("activity_deleted", activity_id=str(activity_id))

	async def campaign_farm_ids(self, campaign_id: uuid.UUID) -> set[uuid.UUID]:
		rows = await self.db.execute(
			select(Plot.farm_id)
			.join(CampaignPlot, CampaignPlot.plot_id == Plot.id)
			.where(CampaignPlot.campaign_id == campaign_id)
		)
		return set(rows.scalars().all())
