from datetime import date, timedelta

import pytest

from conftest import PASSWORD
from trashapp.services.user import UserService

pytestmark = pytest.mark.anyio

API = "/api/v1"


async def register(client, email="ann@example.com", name="Ann"):
    resp = await client.post(f"{API}/auth/register", json={"name": name, "email": email, "password": PASSWORD})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def bearer(tokens):
    return {"Authorization": f"Bearer {tokens['access_token']}"}


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status_code"] == "200"
    assert body["data"]["status"] == "OK"


async def test_unknown_route_envelope(client):
    resp = await client.get(f"{API}/nope")
    assert resp.status_code == 404
    assert resp.json() == {
        "error": {"message": f"Route {API}/nope not found", "code": "NOT_FOUND", "details": {}},
        "status_code": "404",
    }


async def test_register_login_profile(client):
    created = await register(client)
    assert created["user"]["email"] == "ann@example.com"

    resp = await client.post(f"{API}/auth/login", json={"email": "ANN@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    tokens = resp.json()["data"]

    resp = await client.get(f"{API}/auth/profile", headers=bearer(tokens))
    assert resp.status_code == 200
    profile = resp.json()["data"]
    assert profile["name"] == "Ann"
    assert "hashed_password" not in profile


async def test_duplicate_registration(client):
    await register(client)
    resp = await client.post(
        f"{API}/auth/register", json={"name": "Ann", "email": "ann@example.com", "password": PASSWORD}
    )
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "DUPLICATE_ERROR"
    assert error["details"] == {"email": "email must be unique"}


async def test_validation_error_envelope(client):
    resp = await client.post(f"{API}/auth/register", json={"name": "Ann", "email": "ann@example.com", "password": "123"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["status_code"] == "422"
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "password" in body["error"]["details"]


async def test_profile_requires_token(client):
    resp = await client.get(f"{API}/auth/profile")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    resp = await client.get(f"{API}/auth/profile", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


async def test_refresh_and_logout(client):
    tokens = await register(client)
    resp = await client.post(f"{API}/auth/token/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    assert resp.json()["data"]["token_type"] == "bearer"

    resp = await client.post(
        f"{API}/auth/logout", json={"refresh_token": tokens["refresh_token"]}, headers=bearer(tokens)
    )
    assert resp.status_code == 200

    resp = await client.post(f"{API}/auth/token/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401

    resp = await client.post(f"{API}/auth/token/refresh", json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "MISSING_REFRESH_TOKEN"


async def test_pickup_request_and_listing(client):
    tokens = await register(client)
    headers = bearer(tokens)
    pickup_date = (date.today() + timedelta(days=2)).isoformat()

    resp = await client.post(
        f"{API}/customer/pickups/request",
        json={"address": "12 Green St", "waste_type": "hazardous", "pickup_date": pickup_date, "urgent_pickup": True},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    pickup = resp.json()["data"]
    assert pickup["status"] == "pending"
    assert pickup["estimated_cost"] == 3000
    assert pickup["status_updates"][0]["status"] == "pending"

    resp = await client.get(f"{API}/customer/pickups/my", params={"page_size": "5"}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["total_items"] == 1
    assert body["pagination"]["page_size"] == 5

    resp = await client.patch(f"{API}/customer/pickups/{pickup['id']}/cancel", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelled"

    resp = await client.patch(f"{API}/customer/pickups/{pickup['id']}/cancel", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_STATUS"


async def test_pickup_in_the_past_rejected(client):
    tokens = await register(client)
    resp = await client.post(
        f"{API}/customer/pickups/request",
        json={"address": "12 Green St", "waste_type": "general", "pickup_date": "2020-01-01"},
        headers=bearer(tokens),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_DATE"


async def test_invalid_page_size(client):
    tokens = await register(client)
    resp = await client.get(f"{API}/customer/pickups/my", params={"page_size": "500"}, headers=bearer(tokens))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_PAGE_SIZE"


async def test_recurring_routes(client):
    tokens = await register(client)
    headers = bearer(tokens)

    resp = await client.post(
        f"{API}/customer/pickups/recurring/create",
        json={"frequency": "weekly", "time_slot": "evening", "waste_type": "general", "address": "7 Elm St"},
        headers=headers,
    )
    assert resp.status_code == 422
    assert "day_of_week" in resp.json()["error"]["details"]

    resp = await client.post(
        f"{API}/customer/pickups/recurring/create",
        json={
            "frequency": "weekly",
            "day_of_week": 2,
            "time_slot": "evening",
            "waste_type": "general",
            "address": "7 Elm St",
        },
        headers=headers,
    )
    assert resp.status_code == 201
    schedule = resp.json()["data"]
    assert schedule["is_active"] is True

    resp = await client.get(f"{API}/customer/pickups/recurring", headers=headers)
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["data"]] == [schedule["id"]]

    resp = await client.patch(f"{API}/customer/pickups/recurring/{schedule['id']}/toggle", headers=headers)
    assert resp.json()["data"]["is_active"] is False


async def test_admin_routes_require_admin(client):
    tokens = await register(client)
    resp = await client.get(f"{API}/admin/dashboard/stats", headers=bearer(tokens))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"


async def test_admin_assigns_and_completes(client, db):
    users = UserService(db)
    await users.create("Root", "root@example.com", PASSWORD, role="admin")
    driver = await users.create("Dan", "dan@example.com", PASSWORD, role="driver")
    driver_id = driver.id
    await db.commit()

    customer = await register(client)
    admin = (await client.post(f"{API}/auth/login", json={"email": "root@example.com", "password": PASSWORD})).json()["data"]

    pickup_date = (date.today() + timedelta(days=1)).isoformat()
    pickup = (
        await client.post(
            f"{API}/customer/pickups/request",
            json={"address": "12 Green St", "waste_type": "general", "pickup_date": pickup_date},
            headers=bearer(customer),
        )
    ).json()["data"]

    resp = await client.post(
        f"{API}/admin/pickups/assign",
        json={"pickup_id": pickup["id"], "driver_id": driver_id},
        headers=bearer(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["assigned_driver_id"] == driver_id

    for status in ("in_progress", "completed"):
        resp = await client.patch(
            f"{API}/admin/pickups/{pickup['id']}/status",
            json={"status": status, "actual_cost": 1000},
            headers=bearer(admin),
        )
        assert resp.status_code == 200, resp.text

    resp = await client.post(f"{API}/customer/pickups/{pickup['id']}/rate", json={"rating": True}, headers=bearer(customer))
    assert resp.status_code == 422
    assert "rating" in resp.json()["error"]["details"]

    resp = await client.post(f"{API}/customer/pickups/{pickup['id']}/rate", json={"rating": 5}, headers=bearer(customer))
    assert resp.status_code == 200
    assert resp.json()["data"]["rating"] == 5

    stats = (await client.get(f"{API}/admin/dashboard/stats", headers=bearer(admin))).json()["data"]
    assert stats["totalPickups"] == 1
    assert stats["completedPickups"] == 1
    assert stats["totalDrivers"] == 1
    assert stats["totalUsers"] == 2
    assert stats["revenue"] == 1000

    drivers = (await client.get(f"{API}/admin/drivers", headers=bearer(admin))).json()
    assert [d["email"] for d in drivers["data"]] == ["dan@example.com"]
    assert drivers["pagination"]["total_items"] == 1


async def test_portfolio(client):
    resp = await client.get(f"{API}/portfolio/projects/ecocollect")
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == "ecocollect"

    resp = await client.get(f"{API}/portfolio/projects/missing")
    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Project not found"

    resp = await client.get(f"{API}/portfolio/")
    assert set(resp.json()["data"]) >= {"meta", "dataportfolio", "skills", "logotext"}
