from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from ralfarm.auth.dependencies import get_current_user
from ralfarm.main import app
from ralfarm.models.enums import CampaignStatusEnum, SeasonEnum, UserRoleEnum
from ralfarm.services.campaign_service import CampaignPlotAllocator
from ralfarm.services.errors import ConflictError, NotFoundError, PersistenceError, ValidationError


def _campaign_obj(status: CampaignStatusEnum = CampaignStatusEnum.planned) -> SimpleNamespace:
	now = datetime.now(UTC)
	farm_id = uuid4()
	plot_a = SimpleNamespace(id=uuid4(), name="Plot A", farm_id=farm_id, calculated_area=10.0)
	plot_b = SimpleNamespace(id=uuid4(), name="Plot B", farm_id=farm_id, calculated_area=5.0)
	return SimpleNamespace(
		id=uuid4(),
		name="Corn 2024",
		crop_type="corn",
		season=SeasonEnum.spring,
		year=2024,
		total_area_ha=10.0,
		start_date=None,
		end_date=None,
		status=status,
		notes=None,
		created_at=now,
		updated_at=now,
		plots=[
			SimpleNamespace(plot_id=plot_a.id, plot=plot_a, planted_area_ha=6.0),
			SimpleNamespace(plot_id=plot_b.id, plot=plot_b, planted_area_ha=4.0),
		],
	)


def _body(plot_ids: list[UUID] | None = None, area: float = 6.0) -> dict[str, object]:
	plot_ids = plot_ids or [uuid4()]
	return {
		"name": "Corn 2024",
		"crop_type": "corn",
		"season": "spring",
		"year": 2024,
		"plot_assignments": [{"plot_id": str(plot_id), "planted_area_ha": area} for plot_id in plot_ids],
	}


@pytest.fixture
def plot_farms(monkeypatch: pytest.MonkeyPatch) -> set[UUID]:
	farms: set[UUID] = {uuid4()}

	async def fake_farm_ids(self: CampaignPlotAllocator, _plot_ids: object) -> set[UUID]:
		return farms

	monkeypatch.setattr(CampaignPlotAllocator, "farm_ids_for_plots", fake_farm_ids)
	return farms


@pytest.mark.asyncio
async def test_create_campaign_returns_201(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, plot_farms: set[UUID]
) -> None:
	campaign = _campaign_obj()

	async def fake_create(self: CampaignPlotAllocator, payload: object) -> object:
		return campaign

	monkeypatch.setattr(CampaignPlotAllocator, "create_campaign", fake_create)

	response = await client.post("/api/v1/campaigns", json=_body())

	assert response.status_code == 201
	body = response.json()
	assert body["total_area_ha"] == 10.0
	assert body["status"] == "planned"
	assert {item["plot_name"] for item in body["plots"]} == {"Plot A", "Plot B"}
	assert body["plots"][0]["plot_area"] == 10.0


@pytest.mark.asyncio
async def test_create_campaign_conflict_maps_to_409(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, plot_farms: set[UUID]
) -> None:
	busy = uuid4()

	async def fake_create(self: CampaignPlotAllocator, payload: object) -> object:
		raise ConflictError("Plots already assigned", [busy])

	monkeypatch.setattr(CampaignPlotAllocator, "create_campaign", fake_create)

	response = await client.post("/api/v1/campaigns", json=_body([busy]))

	assert response.status_code == 409
	detail = response.json()["detail"]
	assert detail["conflicting_ids"] == [str(busy)]


@pytest.mark.asyncio
async def test_create_campaign_validation_maps_to_400(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, plot_farms: set[UUID]
) -> None:
	async def fake_create(self: CampaignPlotAllocator, payload: object) -> object:
		raise ValidationError("Planted area (11.0ha) exceeds plot area (10.0ha) for plot Plot A")

	monkeypatch.setattr(CampaignPlotAllocator, "create_campaign", fake_create)

	response = await client.post("/api/v1/campaigns", json=_body(area=11.0))

	assert response.status_code == 400
	assert "11.0" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_campaign_store_failure_maps_to_503(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, plot_farms: set[UUID]
) -> None:
	async def fake_create(self: CampaignPlotAllocator, payload: object) -> object:
		raise PersistenceError("campaign create failed")

	monkeypatch.setattr(CampaignPlotAllocator, "create_campaign", fake_create)

	response = await client.post("/api/v1/campaigns", json=_body())
	assert response.status_code == 503


@pytest.mark.asyncio
async def test_create_campaign_schema_rejects_empty_assignments(client: AsyncClient) -> None:
	body = _body()
	body["plot_assignments"] = []
	response = await client.post("/api/v1/campaigns", json=body)
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_missing_campaign_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def fake_get(self: CampaignPlotAllocator, campaign_id: object) -> object:
		raise NotFoundError(f"Campaign {campaign_id} not found")

	monkeypatch.setattr(CampaignPlotAllocator, "get_campaign", fake_get)

	response = await client.get(f"/api/v1/campaigns/{uuid4()}")
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_campaigns_passes_filters(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	captured: dict[str, object] = {}

	async def fake_list(self: CampaignPlotAllocator, **kwargs: object) -> list[object]:
		captured.update(kwargs)
		return [_campaign_obj()]

	monkeypatch.setattr(CampaignPlotAllocator, "list_campaigns", fake_list)

	response = await client.get("/api/v1/campaigns", params={"status": "planned", "year": 2024, "season": "spring"})

	assert response.status_code == 200
	assert len(response.json()["items"]) == 1
	assert captured["farm_ids"] is None
	assert captured["status"] == CampaignStatusEnum.planned
	assert captured["year"] == 2024
	assert captured["season"] == SeasonEnum.spring


@pytest.mark.asyncio
async def test_edit_campaign_returns_updated(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, plot_farms: set[UUID]
) -> None:
	campaign = _campaign_obj()

	async def fake_get(self: CampaignPlotAllocator, campaign_id: object) -> object:
		return campaign

	async def fake_edit(self: CampaignPlotAllocator, campaign_id: object, payload: object) -> object:
		campaign.total_area_ha = 3.0
		return campaign

	monkeypatch.setattr(CampaignPlotAllocator, "get_campaign", fake_get)
	monkeypatch.setattr(CampaignPlotAllocator, "edit_campaign", fake_edit)

	response = await client.put(f"/api/v1/campaigns/{campaign.id}", json=_body(area=3.0))

	assert response.status_code == 200
	assert response.json()["total_area_ha"] == 3.0


@pytest.mark.asyncio
async def test_change_status(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	campaign = _campaign_obj()

	async def fake_get(self: CampaignPlotAllocator, campaign_id: object) -> object:
		return campaign

	async def fake_status(self: CampaignPlotAllocator, campaign_id: object, status: CampaignStatusEnum) -> object:
		campaign.status = status
		return campaign

	monkeypatch.setattr(CampaignPlotAllocator, "get_campaign", fake_get)
	monkeypatch.setattr(CampaignPlotAllocator, "change_status", fake_status)

	response = await client.patch(f"/api/v1/campaigns/{campaign.id}/status", json={"status": "completed"})

	assert response.status_code == 200
	assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_delete_campaign_forbidden_for_engineer(client: AsyncClient, user_factory: Callable[..., object]) -> None:
	async def _engineer() -> object:
		return user_factory(UserRoleEnum.engineer, company_id=uuid4())

	app.dependency_overrides[get_current_user] = _engineer

	response = await client.delete(f"/api/v1/campaigns/{uuid4()}")
	assert response.status_code == 403
	assert response.json()["detail"]["error"] == "forbidden"


@pytest.mark.asyncio
async def test_delete_campaign_returns_204(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	campaign = _campaign_obj()
	deleted: list[object] = []

	async def fake_get(self: CampaignPlotAllocator, campaign_id: object) -> object:
		return campaign

	async def fake_delete(self: CampaignPlotAllocator, campaign_id: object) -> None:
		deleted.append(campaign_id)

	monkeypatch.setattr(CampaignPlotAllocator, "get_campaign", fake_get)
	monkeypatch.setattr(CampaignPlotAllocator, "delete_campaign", fake_delete)

	response = await client.delete(f"/api/v1/campaigns/{campaign.id}")

	assert response.status_code == 204
	assert deleted == [campaign.id]
