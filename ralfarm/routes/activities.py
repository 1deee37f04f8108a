"""Campaign activity routes.

Access follows the campaign: a caller must reach every farm the campaign's
plots sit on.  Engineers only see and update activities assigned to them.
"""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.access import accessible_farm_ids, ensure_farm_access
from ralfarm.auth.dependencies import ADMIN_ROLES, get_current_user, require_role
from ralfarm.database import get_db
from ralfarm.models.activity import CampaignActivity
from ralfarm.models.enums import ActivityStatusEnum, ActivityTypeEnum, UserRoleEnum
from ralfarm.models.user import User
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.activity import ActivityCreate, ActivityListRead, ActivityRead, ActivityUpdate
from ralfarm.services.activity_service import ActivityService

router = APIRouter(prefix="/activities", tags=["activities"])


async def _load_accessible(
	service: ActivityService,
	db: AsyncSession,
	user: User,
	activity_id: uuid.UUID,
) -> CampaignActivity:
	activity = await service.get_activity(activity_id)
	await ensure_farm_access(db, user, await service.campaign_farm_ids(activity.campaign_id))
	return activity


def _ensure_assignee(user: User, activity: CampaignActivity) -> None:
	if user.role == UserRoleEnum.engineer and activity.assigned_to_user_id != user.id:
		raise HTTPException(
			status_code=status.HTTP_403_FORBIDDEN,
			detail={"error": "activity_forbidden", "message": "Activity is not assigned to you"},
		)


@router.post("", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
async def create_activity(
	payload: ActivityCreate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ActivityRead:
	service = ActivityService(db)
	try:
		await ensure_farm_access(db, user, await service.campaign_farm_ids(payload.campaign_id))
		activity = await service.create_activity(payload, created_by=user.id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ActivityRead.model_validate(activity)


@router.get("", response_model=ActivityListRead)
async def list_activities(
	campaign_id: uuid.UUID | None = Query(default=None),
	activity_status: ActivityStatusEnum | None = Query(default=None, alias="status"),
	activity_type: ActivityTypeEnum | None = Query(default=None),
	date_from: date | None = Query(default=None),
	date_to: date | None = Query(default=None),
	assigned_to: uuid.UUID | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ActivityListRead:
	if user.role == UserRoleEnum.engineer:
		assigned_to = user.id
	service = ActivityService(db)
	try:
		activities = await service.list_activities(
			farm_ids=await accessible_farm_ids(db, user),
			campaign_id=campaign_id,
			status=activity_status,
			activity_type=activity_type,
			date_from=date_from,
			date_to=date_to,
			assigned_to=assigned_to,
		)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ActivityListRead(items=[ActivityRead.model_validate(activity) for activity in activities])


@router.get("/{activity_id}", response_model=ActivityRead)
async def get_activity(
	activity_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ActivityRead:
	try:
		activity = await _load_accessible(ActivityService(db), db, user, activity_id)
		_ensure_assignee(user, activity)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ActivityRead.model_validate(activity)


@router.patch("/{activity_id}", response_model=ActivityRead)
async def update_activity(
	activity_id: uuid.UUID,
	payload: ActivityUpdate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ActivityRead:
	service = ActivityService(db)
	try:
		activity = await _load_accessible(service, db, user, activity_id)
		_ensure_assignee(user, activity)
		activity = await service.update_activity(activity_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ActivityRead.model_validate(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
	activity_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(require_role(*ADMIN_ROLES)),
) -> Response:
	service = ActivityService(db)
	try:
		await _load_accessible(service, db, user, activity_id)
		await service.delete_activity(activity_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
