from datetime import datetime, timezone

import httpx
import pytest

from components.core.init_db import get_db
from components.plan.enums import PeriodType
from components.plan.periods import compute_period_window, resolve_time_zone
from restapi.router import create_app


@pytest.fixture
async def client(db_manager):
    app = create_app()

    async def override_get_db():
        async with db_manager.get_db() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def user(make_user):
    return await make_user()


def auth(user):
    return {"X-User-Id": str(user.id)}


async def test_health_check(client):
    response = await client.get("/health_check/")

    assert response.status_code == 200
    assert response.json() == {"service_name": "Plan Service", "status": "healthy", "database": "ok"}


async def test_requests_without_user_are_rejected(client):
    assert (await client.get("/plans/current")).status_code == 401
    assert (await client.get("/plans/current", headers={"X-User-Id": "999"})).status_code == 401


async def test_current_plan_is_created_on_demand(client, user):
    response = await client.get("/plans/current", headers=auth(user))

    assert response.status_code == 200
    body = response.json()
    window = compute_period_window(PeriodType.MONTHLY, resolve_time_zone(None), datetime.now(timezone.utc))
    assert body["period_type"] == "MONTHLY"
    assert body["currency"] == "USD"
    assert datetime.fromisoformat(body["period_start"].replace("Z", "+00:00")) == window.period_start
    assert body["budget_goals"] == []

    history = await client.get("/plans", headers=auth(user))
    assert [plan["id"] for plan in history.json()] == [body["id"]]


async def test_switch_and_goal_editing(client, user):
    response = await client.post(
        "/plans/switch",
        headers=auth(user),
        json={"period_type": "WEEKLY", "switch_mode": "PERIOD_ONLY", "goals_mode": "RESET_EMPTY"},
    )
    assert response.status_code == 200
    plan = response.json()
    assert plan["period_type"] == "WEEKLY"

    response = await client.patch(
        f"/plans/{plan['id']}/goals/budget",
        headers=auth(user),
        json={"goals": {" Food": 2500}, "total_budget_limit_minor": 10000},
    )
    assert response.status_code == 200
    assert response.json()["budget_goals"] == [{"category": "food", "limit_minor": 2500}]
    assert response.json()["total_budget_limit_minor"] == 10000

    response = await client.put(
        f"/plans/{plan['id']}/goals/savings",
        headers=auth(user),
        json={"name": "Trip", "target_minor": 50000},
    )
    assert response.status_code == 200
    assert response.json()["savings_goals"] == [{"name": "Trip", "target_minor": 50000}]

    response = await client.delete(f"/plans/{plan['id']}/goals/savings/Trip", headers=auth(user))
    assert response.status_code == 200
    assert response.json()["savings_goals"] == []

    response = await client.delete(f"/plans/{plan['id']}/goals/savings/Trip", headers=auth(user))
    assert response.status_code == 404


async def test_switch_with_unknown_time_zone(client, user):
    response = await client.post(
        "/plans/switch",
        headers=auth(user),
        json={"period_type": "WEEKLY", "time_zone": "Nowhere/Special"},
    )

    assert response.status_code == 400
    assert "Nowhere/Special" in response.json()["detail"]


async def test_rollover_endpoint(client, user):
    response = await client.post("/plans/actions/rollover", headers=auth(user))
    assert response.status_code == 404

    await client.get("/plans/current", headers=auth(user))
    response = await client.post("/plans/actions/rollover", headers=auth(user))

    assert response.status_code == 200
    body = response.json()
    assert body["rolled"] is False
    assert body["created_count"] == 0
    assert body["reason"] == "Plan is still active"


async def test_activate_and_read_plan(client, user, make_plan):
    old = await make_plan(user, datetime(2024, 1, 1, tzinfo=timezone.utc), activate=False)

    response = await client.post(f"/plans/{old.id}/activate", headers=auth(user))
    assert response.status_code == 200

    response = await client.get("/users/me", headers=auth(user))
    assert response.json()["active_plan_id"] == old.id

    assert (await client.get(f"/plans/{old.id}", headers=auth(user))).status_code == 200
    assert (await client.get("/plans/12345", headers=auth(user))).status_code == 404


async def test_update_user_preferences(client, user):
    response = await client.patch(
        "/users/me", headers=auth(user), json={"time_zone": "Asia/Seoul", "currency": "KRW"}
    )
    assert response.status_code == 200
    assert response.json()["time_zone"] == "Asia/Seoul"
    assert response.json()["currency"] == "KRW"
    assert response.json()["language"] == "en"

    response = await client.patch("/users/me", headers=auth(user), json={"time_zone": "Nowhere/Special"})
    assert response.status_code == 400
