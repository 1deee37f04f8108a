from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

import ralfarm.routes.activities as activity_routes
from ralfarm.auth.dependencies import get_current_user
from ralfarm.main import app
from ralfarm.models.enums import ActivityStatusEnum, ActivityTypeEnum, SeasonEnum, UserRoleEnum
from ralfarm.schemas.activity import ActivityCreate, ActivityUpdate
from ralfarm.schemas.campaign import CampaignCreate
from ralfarm.services.activity_service import ActivityService
from ralfarm.services.campaign_service import CampaignPlotAllocator
from ralfarm.services.errors import NotFoundError, ValidationError


def _activity_obj(assigned_to: UUID | None = None, **overrides: object) -> SimpleNamespace:
	now = datetime.now(UTC)
	fields: dict[str, object] = {
		"id": uuid4(),
		"campaign_id": uuid4(),
		"activity_type": ActivityTypeEnum.spraying,
		"name": "Erbicidare post-emergenta",
		"description": None,
		"status": ActivityStatusEnum.planned,
		"planned_date": date(2025, 5, 10),
		"completed_date": None,
		"priority": 2,
		"planned_area_ha": 10.0,
		"estimated_duration_hours": None,
		"estimated_cost_ron": None,
		"actual_cost_ron": None,
		"required_equipment": None,
		"required_materials": None,
		"completion_notes": None,
		"assigned_to_user_id": assigned_to,
		"created_by_user_id": None,
		"created_at": now,
		"updated_at": now,
	}
	fields.update(overrides)
	return SimpleNamespace(**fields)


@pytest.fixture
def open_farm_access(monkeypatch: pytest.MonkeyPatch) -> None:
	async def allow(_db: object, _user: object, _farm_ids: object) -> None:
		return None

	async def farms(self: ActivityService, _campaign_id: object) -> set[UUID]:
		return {uuid4()}

	monkeypatch.setattr(activity_routes, "ensure_farm_access", allow)
	monkeypatch.setattr(ActivityService, "campaign_farm_ids", farms)


# ── Routes ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_activity_returns_201(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, open_farm_access: None
) -> None:
	creators: list[object] = []

	async def fake_create(self: ActivityService, payload: ActivityCreate, created_by: object = None) -> object:
		creators.append(created_by)
		return _activity_obj(campaign_id=payload.campaign_id, name=payload.name)

	monkeypatch.setattr(ActivityService, "create_activity", fake_create)

	campaign_id = uuid4()
	response = await client.post(
		"/api/v1/activities",
		json={
			"campaign_id": str(campaign_id),
			"activity_type": "spraying",
			"name": "Erbicidare",
			"planned_date": "2025-05-10",
		},
	)

	assert response.status_code == 201
	assert response.json()["campaign_id"] == str(campaign_id)
	assert creators[0] is not None


@pytest.mark.asyncio
async def test_create_activity_rejects_bad_priority(client: AsyncClient) -> None:
	response = await client.post(
		"/api/v1/activities",
		json={
			"campaign_id": str(uuid4()),
			"activity_type": "spraying",
			"name": "Erbicidare",
			"planned_date": "2025-05-10",
			"priority": 9,
		},
	)
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_engineer_lists_only_own_assignments(
	client: AsyncClient,
	monkeypatch: pytest.MonkeyPatch,
	user_factory: Callable[..., object],
) -> None:
	engineer = user_factory(UserRoleEnum.engineer, company_id=uuid4())
	farm_id = uuid4()
	seen: dict[str, object] = {}

	async def _engineer() -> object:
		return engineer

	async def fake_scope(_db: object, _user: object) -> list[UUID]:
		return [farm_id]

	async def fake_list(self: ActivityService, **filters: object) -> list[object]:
		seen.update(filters)
		return [_activity_obj(assigned_to=engineer.id)]

	app.dependency_overrides[get_current_user] = _engineer
	monkeypatch.setattr(activity_routes, "accessible_farm_ids", fake_scope)
	monkeypatch.setattr(ActivityService, "list_activities", fake_list)

	response = await client.get("/api/v1/activities", params={"assigned_to": str(uuid4()), "status": "planned"})

	assert response.status_code == 200
	assert len(response.json()["items"]) == 1
	assert seen["assigned_to"] == engineer.id
	assert seen["farm_ids"] == [farm_id]
	assert seen["status"] == ActivityStatusEnum.planned


@pytest.mark.asyncio
async def test_engineer_cannot_update_unassigned_activity(
	client: AsyncClient,
	monkeypatch: pytest.MonkeyPatch,
	user_factory: Callable[..., object],
	open_farm_access: None,
) -> None:
	engineer = user_factory(UserRoleEnum.engineer, company_id=uuid4())
	activity = _activity_obj(assigned_to=uuid4())

	async def _engineer() -> object:
		return engineer

	async def fake_get(self: ActivityService, activity_id: object) -> object:
		return activity

	app.dependency_overrides[get_current_user] = _engineer
	monkeypatch.setattr(ActivityService, "get_activity", fake_get)

	response = await client.patch(f"/api/v1/activities/{activity.id}", json={"status": "completed"})

	assert response.status_code == 403
	assert response.json()["detail"]["error"] == "activity_forbidden"


@pytest.mark.asyncio
async def test_assigned_engineer_completes_activity(
	client: AsyncClient,
	monkeypatch: pytest.MonkeyPatch,
	user_factory: Callable[..., object],
	open_farm_access: None,
) -> None:
	engineer = user_factory(UserRoleEnum.engineer, company_id=uuid4())
	activity = _activity_obj(assigned_to=engineer.id)

	async def _engineer() -> object:
		return engineer

	async def fake_get(self: ActivityService, activity_id: object) -> object:
		return activity

	async def fake_update(self: ActivityService, activity_id: object, payload: ActivityUpdate) -> object:
		return _activity_obj(
			assigned_to=engineer.id,
			status=payload.status,
			completed_date=date(2025, 5, 11),
		)

	app.dependency_overrides[get_current_user] = _engineer
	monkeypatch.setattr(ActivityService, "get_activity", fake_get)
	monkeypatch.setattr(ActivityService, "update_activity", fake_update)

	response = await client.patch(f"/api/v1/activities/{activity.id}", json={"status": "completed"})

	assert response.status_code == 200
	assert response.json()["status"] == "completed"
	assert response.json()["completed_date"] == "2025-05-11"


@pytest.mark.asyncio
async def test_delete_activity_forbidden_for_engineer(client: AsyncClient, user_factory: Callable[..., object]) -> None:
	async def _engineer() -> object:
		return user_factory(UserRoleEnum.engineer, company_id=uuid4())

	app.dependency_overrides[get_current_user] = _engineer

	response = await client.delete(f"/api/v1/activities/{uuid4()}")
	assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_missing_activity_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def fake_get(self: ActivityService, activity_id: object) -> object:
		raise NotFoundError(f"Activity {activity_id} not found")

	monkeypatch.setattr(ActivityService, "get_activity", fake_get)

	response = await client.get(f"/api/v1/activities/{uuid4()}")
	assert response.status_code == 404


# ── Service (SQLite) ────────────────────────────────────────────────────────


@pytest.fixture
async def campaigns(seed, db_session: AsyncSession) -> dict[str, UUID]:
	company_id = await seed.company()
	north = await seed.farm(company_id)
	south = await seed.farm(company_id, "Ferma Sud")
	north_plot = await seed.plot(north, "Tarla 1", 20.0)
	south_plot = await seed.plot(south, "Tarla 9", 15.0)
	allocator = CampaignPlotAllocator(db_session)

	def payload(plot_id: UUID, area: float) -> CampaignCreate:
		return CampaignCreate(
			name="Grau 2025",
			crop_type="wheat",
			season=SeasonEnum.autumn,
			year=2025,
			plot_assignments=[{"plot_id": plot_id, "planted_area_ha": area}],
		)

	north_campaign = await allocator.create_campaign(payload(north_plot, 12.0))
	south_campaign = await allocator.create_campaign(payload(south_plot, 15.0))
	await db_session.commit()
	return {
		"north_farm": north,
		"south_farm": south,
		"north": north_campaign.id,
		"south": south_campaign.id,
	}


def _create(campaign_id: UUID, planned: date, **extra: object) -> ActivityCreate:
	return ActivityCreate(
		campaign_id=campaign_id,
		activity_type=extra.pop("activity_type", ActivityTypeEnum.fertilizing),
		name=extra.pop("name", "Fertilizare azot"),
		planned_date=planned,
		**extra,
	)


@pytest.mark.asyncio
async def test_create_defaults_planned_area_to_campaign_area(
	db_session: AsyncSession, campaigns: dict[str, UUID]
) -> None:
	creator = uuid4()
	activity = await ActivityService(db_session).create_activity(
		_create(campaigns["north"], date(2025, 10, 1)), created_by=creator
	)
	await db_session.commit()

	assert activity.planned_area_ha == pytest.approx(12.0)
	assert activity.status == ActivityStatusEnum.planned
	assert activity.created_by_user_id == creator
	assert activity.created_at is not None


@pytest.mark.asyncio
async def test_create_validates_campaign_and_area(db_session: AsyncSession, campaigns: dict[str, UUID]) -> None:
	service = ActivityService(db_session)

	with pytest.raises(NotFoundError):
		await service.create_activity(_create(uuid4(), date(2025, 10, 1)))
	with pytest.raises(ValidationError, match="exceeds campaign area"):
		await service.create_activity(_create(campaigns["north"], date(2025, 10, 1), planned_area_ha=30.0))


@pytest.mark.asyncio
async def test_list_is_scoped_through_campaign_plots(db_session: AsyncSession, campaigns: dict[str, UUID]) -> None:
	service = ActivityService(db_session)
	assignee = uuid4()
	late = await service.create_activity(_create(campaigns["north"], date(2025, 10, 20)))
	early = await service.create_activity(
		_create(campaigns["north"], date(2025, 10, 5), activity_type=ActivityTypeEnum.planting, assigned_to_user_id=assignee)
	)
	await service.create_activity(_create(campaigns["south"], date(2025, 10, 1)))
	await db_session.commit()

	north = await service.list_activities(farm_ids=[campaigns["north_farm"]])
	assert [activity.id for activity in north] == [early.id, late.id]

	assert await service.list_activities(farm_ids=[]) == []
	assert len(await service.list_activities()) == 3
	assert [a.id for a in await service.list_activities(assigned_to=assignee)] == [early.id]
	assert [a.id for a in await service.list_activities(activity_type=ActivityTypeEnum.planting)] == [early.id]
	window = await service.list_activities(date_from=date(2025, 10, 2), date_to=date(2025, 10, 10))
	assert [a.id for a in window] == [early.id]
	assert await service.campaign_farm_ids(campaigns["south"]) == {campaigns["south_farm"]}


@pytest.mark.asyncio
async def test_completing_an_activity_stamps_completed_date(
	db_session: AsyncSession, campaigns: dict[str, UUID]
) -> None:
	service = ActivityService(db_session)
	planned = date.today() - timedelta(days=3)
	activity = await service.create_activity(_create(campaigns["north"], planned))

	updated = await service.update_activity(
		activity.id,
		ActivityUpdate(status=ActivityStatusEnum.completed, actual_cost_ron=1250.5, completion_notes="Aplicat"),
	)
	await db_session.commit()

	assert updated.status == ActivityStatusEnum.completed
	assert updated.completed_date == date.today()
	assert updated.actual_cost_ron == pytest.approx(1250.5)
	assert updated.name == "Fertilizare azot"


@pytest.mark.asyncio
async def test_update_rejects_inconsistent_changes(db_session: AsyncSession, campaigns: dict[str, UUID]) -> None:
	service = ActivityService(db_session)
	activity = await service.create_activity(_create(campaigns["north"], date(2025, 10, 10)))

	with pytest.raises(ValidationError, match="cannot precede"):
		await service.update_activity(activity.id, ActivityUpdate(completed_date=date(2025, 10, 1)))
	with pytest.raises(ValidationError, match="cannot be cleared"):
		await service.update_activity(activity.id, ActivityUpdate(name=None))

	reloaded = await service.get_activity(activity.id)
	assert reloaded.completed_date is None


@pytest.mark.asyncio
async def test_delete_activity(db_session: AsyncSession, campaigns: dict[str, UUID]) -> None:
	service = ActivityService(db_session)
	activity = await service.create_activity(_create(campaigns["south"], date(2025, 10, 1)))

	await service.delete_activity(activity.id)

	with pytest.raises(NotFoundError):
		await service.get_activity(activity.id)
