"""
Integration tests for the HTTP API.

Register -> Invite -> Driver sign-up -> Cycle with multipart uploads ->
Dashboard, plus the standard error body.
"""

import json
from datetime import datetime

import pytest

JPEG = ("odometer.jpg", b"\xff\xd8\xff-jpeg-bytes", "image/jpeg")


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_token(client):
    response = await client.post("/v1/auth/register", json={
        "email": "owner@fleet.com",
        "name": "Olivia Owner",
        "password": "password123",
    })
    assert response.status_code == 201
    return response.json()["access_token"]


@pytest.fixture
async def driver_token(client, admin_token):
    invitation = await client.post("/v1/auth/invitations", headers=auth(admin_token))
    assert invitation.status_code == 201

    response = await client.post("/v1/auth/register-driver", json={
        "email": "trucker@fleet.com",
        "name": "Tiago Trucker",
        "password": "password123",
        "invitation_token": invitation.json()["invitation_token"],
    })
    assert response.status_code == 201
    return response.json()["access_token"]


async def _me(client, token):
    response = await client.get("/v1/auth/me", headers=auth(token))
    assert response.status_code == 200
    return response.json()


@pytest.fixture
async def vehicle_id(client, admin_token):
    response = await client.post(
        "/v1/vehicles", json={"plate": "QWE4R56", "brand": "Mercedes"}, headers=auth(admin_token)
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
async def cycle_id(client, admin_token, driver_token, vehicle_id):
    driver = await _me(client, driver_token)
    payload = {
        "description": "Coffee run",
        "driver_id": driver["id"],
        "car_id": vehicle_id,
        "departure_at": "2024-05-01T06:00:00",
        "departure_odometer": 88000,
    }
    response = await client.post(
        "/v1/cycles",
        data={"payload": json.dumps(payload)},
        files={"departure_photo": JPEG},
        headers=auth(admin_token),
    )
    assert response.status_code == 201
    return response.json()["id"]


# Auth

@pytest.mark.asyncio
async def test_driver_is_linked_to_inviting_admin(client, admin_token, driver_token):
    admin = await _me(client, admin_token)
    driver = await _me(client, driver_token)

    assert admin["role"] == "ADMIN"
    assert admin["admin_id"] is None
    assert driver["role"] == "DRIVER"
    assert driver["admin_id"] == admin["id"]


@pytest.mark.asyncio
async def test_invited_driver_gets_trial_period(client, admin_token, driver_token):
    admin = await _me(client, admin_token)
    driver = await _me(client, driver_token)
    assert admin["trial_ends_at"] is None

    joined = datetime.fromisoformat(driver["created_at"]).date()
    trial_end = datetime.fromisoformat(driver["trial_ends_at"]).date()
    assert (trial_end - joined).days == 7

    response = await client.get("/v1/drivers", headers=auth(admin_token))
    assert response.status_code == 200
    assert [d["trial_ends_at"] for d in response.json()] == [driver["trial_ends_at"]]


@pytest.mark.asyncio
async def test_invalid_invitation_rejected(client):
    response = await client.post("/v1/auth/register-driver", json={
        "email": "sneaky@fleet.com",
        "name": "Sneaky",
        "password": "password123",
        "invitation_token": "not-a-real-invitation",
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST"


@pytest.mark.asyncio
async def test_invitation_is_not_an_access_token(client, admin_token):
    invitation = await client.post("/v1/auth/invitations", headers=auth(admin_token))
    response = await client.get("/v1/auth/me", headers=auth(invitation.json()["invitation_token"]))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client, admin_token):
    response = await client.post("/v1/auth/register", json={
        "email": "owner@fleet.com",
        "name": "Copy Cat",
        "password": "password123",
    })
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_and_logout(client, admin_token):
    response = await client.post("/v1/auth/login", json={"email": "owner@fleet.com", "password": "wrong-pass"})
    assert response.status_code == 401

    response = await client.post("/v1/auth/login", json={"email": "owner@fleet.com", "password": "password123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.post("/v1/auth/logout", headers=auth(token))
    assert response.status_code == 204

    response = await client.get("/v1/auth/me", headers=auth(token))
    assert response.status_code == 401
    assert response.json()["message"] == "Token has been revoked"


@pytest.mark.asyncio
async def test_driver_cannot_invite(client, driver_token):
    response = await client.post("/v1/auth/invitations", headers=auth(driver_token))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_token_rejected(client):
    response = await client.get("/v1/cycles")
    assert response.status_code in (401, 403)


# Cycles over HTTP

@pytest.mark.asyncio
async def test_cycle_without_photo_is_rejected(client, admin_token, driver_token, vehicle_id):
    driver = await _me(client, driver_token)
    payload = {
        "description": "No proof",
        "driver_id": driver["id"],
        "car_id": vehicle_id,
        "departure_at": "2024-05-01T06:00:00",
        "departure_odometer": 88000,
    }
    response = await client.post(
        "/v1/cycles", data={"payload": json.dumps(payload)}, headers=auth(admin_token)
    )
    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION_001"
    assert body["details"]["field"] == "departure_photo"


@pytest.mark.asyncio
async def test_malformed_payload_is_rejected(client, admin_token):
    response = await client.post(
        "/v1/cycles", data={"payload": "{not json"}, files={"departure_photo": JPEG}, headers=auth(admin_token)
    )
    assert response.status_code == 422
    assert response.json()["details"]["field"] == "payload"


@pytest.mark.asyncio
async def test_full_cycle_flow(client, admin_token, driver_token, cycle_id):
    freight = await client.post(
        f"/v1/cycles/{cycle_id}/freights",
        data={"payload": json.dumps({"departure_weight": 30000, "rate_per_ton": 200})},
        files={"departure_photo": ("scale.jpg", b"scale", "image/jpeg")},
        headers=auth(driver_token),
    )
    assert freight.status_code == 201
    assert freight.json()["value"] == 6000.0
    assert freight.json()["commission_value"] == 600.0

    fueling = await client.post(
        f"/v1/cycles/{cycle_id}/fuelings",
        data={"payload": json.dumps({"diesel_liters": 100, "diesel_price_per_liter": 6})},
        files={
            "odometer_photo": ("odo.jpg", b"odo", "image/jpeg"),
            "receipt_photo": ("receipt.jpg", b"receipt", "image/jpeg"),
        },
        headers=auth(driver_token),
    )
    assert fueling.status_code == 201
    assert fueling.json()["total"] == 600.0

    expense = await client.post(
        f"/v1/cycles/{cycle_id}/expenses",
        data={"payload": json.dumps({"date": "2024-05-02", "description": "Toll", "value": 400})},
        headers=auth(driver_token),
    )
    assert expense.status_code == 201

    dashboard = await client.get("/v1/dashboard", headers=auth(admin_token))
    assert dashboard.status_code == 200
    totals = dashboard.json()["totals"]
    assert totals["freight_total"] == 6000.0
    assert totals["net_total"] == 4400.0

    closed = await client.post(f"/v1/cycles/{cycle_id}/close", headers=auth(admin_token))
    assert closed.status_code == 200
    assert closed.json()["status"] == "CLOSED"

    blocked = await client.post(
        f"/v1/cycles/{cycle_id}/expenses",
        data={"payload": json.dumps({"date": "2024-05-03", "description": "Late meal", "value": 30})},
        headers=auth(driver_token),
    )
    assert blocked.status_code == 403
    assert blocked.json()["error_code"] == "ERR_PERM_001"

    deleted = await client.delete(f"/v1/cycles/{cycle_id}", headers=auth(admin_token))
    assert deleted.status_code == 204

    missing = await client.get(f"/v1/cycles/{cycle_id}", headers=auth(admin_token))
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_driver_permissions_over_http(client, admin_token, driver_token, cycle_id):
    driver = await _me(client, driver_token)

    response = await client.patch(
        f"/v1/drivers/{driver['id']}/permissions",
        json={"view_fuelings": False},
        headers=auth(admin_token),
    )
    assert response.status_code == 200
    assert response.json()["view_fuelings"] is False

    response = await client.get(f"/v1/cycles/{cycle_id}/fuelings", headers=auth(driver_token))
    assert response.status_code == 403

    response = await client.get(f"/v1/cycles/{cycle_id}/freights", headers=auth(driver_token))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_commission_settings_over_http(client, admin_token, driver_token):
    response = await client.put(
        "/v1/settings/commission", json={"commission_percentage": 15}, headers=auth(admin_token)
    )
    assert response.status_code == 200

    response = await client.get("/v1/settings/commission", headers=auth(driver_token))
    assert response.json()["commission_percentage"] == 15.0

    response = await client.put(
        "/v1/settings/commission", json={"commission_percentage": 20}, headers=auth(driver_token)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_vehicle_in_use_returns_reference_error(client, admin_token, vehicle_id, cycle_id):
    response = await client.delete(f"/v1/vehicles/{vehicle_id}", headers=auth(admin_token))
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_REFERENCE_001"


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers
