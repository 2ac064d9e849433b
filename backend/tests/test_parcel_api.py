"""
Parcel and QR endpoint tests.

HTTP surface: status codes, error envelope and response shapes.
"""

import pytest
from httpx import AsyncClient

from backend.app.domain.parcels.identifiers import build_qr_payload


async def create_parcel(client: AsyncClient, payload: dict) -> dict:
    response = await client.post("/v1/parcels", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def move(client: AsyncClient, parcel_id: int, status: str, actor, **extra):
    body = {"status": status, "actor_id": actor.id, "actor_role": actor.role.value}
    body.update(extra)
    return await client.patch(f"/v1/parcels/{parcel_id}/status", json=body)


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_create_parcel(client, parcel_request, sender):
    data = await create_parcel(client, parcel_request)

    assert data["status"] == "pending"
    assert data["sender_id"] == sender.id
    assert data["tracking_id"].startswith("ADR-")
    assert data["price"] == "50.00"
    assert data["is_paid"] is False
    assert data["version"] == 1


@pytest.mark.asyncio
async def test_create_parcel_missing_phone(client, parcel_request):
    del parcel_request["recipient_phone"]

    response = await client.post("/v1/parcels", json=parcel_request)

    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "ERR_VALIDATION"
    assert any(err["loc"][-1] == "recipient_phone" for err in body["details"]["errors"])

    listing = await client.get(f"/v1/parcels/sender/{parcel_request['sender_id']}")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_create_parcel_blank_recipient_name(client, parcel_request):
    parcel_request["recipient_name"] = "   "

    response = await client.post("/v1/parcels", json=parcel_request)

    assert response.status_code == 422
    assert any(err["loc"][-1] == "recipient_name" for err in response.json()["details"]["errors"])


@pytest.mark.asyncio
async def test_create_parcel_unknown_sender(client, parcel_request):
    parcel_request["sender_id"] = 4242

    response = await client.post("/v1/parcels", json=parcel_request)

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_status_flow_and_tracking(client, parcel_request, driver):
    parcel = await create_parcel(client, parcel_request)

    response = await move(client, parcel["id"], "picked_up", driver, driver_id=driver.id, notes="Collected")
    assert response.status_code == 200
    assert response.json() == {
        "success": True, "parcel_id": parcel["id"], "status": "picked_up", "version": 2
    }

    response = await move(client, parcel["id"], "delivered", driver)
    assert response.status_code == 200

    tracking = await client.get(f"/v1/parcels/tracking/{parcel['tracking_id']}")
    assert tracking.status_code == 200
    data = tracking.json()
    assert data["parcel"]["status"] == "delivered"
    assert data["parcel"]["delivered_at"] is not None
    assert data["parcel"]["driver_id"] == driver.id
    assert [e["status"] for e in data["events"]] == ["delivered", "picked_up", "pending"]
    assert data["events"][1]["notes"] == "Collected"

    response = await move(client, parcel["id"], "cancelled", driver)
    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_PARCEL_TRANSITION"
    assert body["details"] == {"current_status": "delivered", "requested_status": "cancelled"}


@pytest.mark.asyncio
async def test_backward_transition_conflict(client, parcel_request, driver):
    parcel = await create_parcel(client, parcel_request)
    await move(client, parcel["id"], "in_transit", driver)

    response = await move(client, parcel["id"], "picked_up", driver)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_PARCEL_TRANSITION"


@pytest.mark.asyncio
async def test_stale_version_conflict(client, parcel_request, driver):
    parcel = await create_parcel(client, parcel_request)
    await move(client, parcel["id"], "picked_up", driver)

    response = await move(client, parcel["id"], "in_transit", driver, expected_version=1)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT"


@pytest.mark.asyncio
async def test_unknown_status_rejected(client, parcel_request, driver):
    parcel = await create_parcel(client, parcel_request)

    response = await move(client, parcel["id"], "lost_in_space", driver)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_parcel(client, driver):
    assert (await client.get("/v1/parcels/999")).status_code == 404
    assert (await client.get("/v1/parcels/tracking/ADR-0-NOPE")).status_code == 404
    assert (await move(client, 999, "picked_up", driver)).status_code == 404


@pytest.mark.asyncio
async def test_list_by_sender_and_driver(client, parcel_request, sender, driver):
    first = await create_parcel(client, parcel_request)
    second = await create_parcel(client, parcel_request)
    await move(client, second["id"], "picked_up", driver, driver_id=driver.id)

    by_sender = (await client.get(f"/v1/parcels/sender/{sender.id}")).json()
    assert [p["id"] for p in by_sender] == [second["id"], first["id"]]

    by_driver = (await client.get(f"/v1/parcels/driver/{driver.id}")).json()
    assert [p["id"] for p in by_driver] == [second["id"]]


@pytest.mark.asyncio
async def test_review_endpoint(client, parcel_request, driver):
    parcel = await create_parcel(client, parcel_request)

    response = await client.post(f"/v1/parcels/{parcel['id']}/review", json={"rating": 5})
    assert response.status_code == 409

    await move(client, parcel["id"], "delivered", driver)

    response = await client.post(f"/v1/parcels/{parcel['id']}/review", json={"rating": 5, "review": "Fast"})
    assert response.status_code == 200
    assert response.json()["rating"] == 5

    response = await client.post(f"/v1/parcels/{parcel['id']}/review", json={"rating": 9})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_qr_payload_and_verify(client, parcel_request):
    parcel = await create_parcel(client, parcel_request)

    response = await client.get(f"/v1/qr/{parcel['tracking_id']}")
    assert response.status_code == 200
    payload = response.json()["payload"]
    assert payload == f"{parcel['tracking_id']}:{parcel['qr_hash']}"

    response = await client.post("/v1/qr/verify", json={"payload": payload})
    assert response.status_code == 200
    assert response.json()["parcel"]["id"] == parcel["id"]


@pytest.mark.asyncio
async def test_qr_verify_rejects_tampered_and_unknown(client, parcel_request):
    parcel = await create_parcel(client, parcel_request)
    tampered = f"{parcel['tracking_id']}:{'0' * 64}"

    response = await client.post("/v1/qr/verify", json={"payload": tampered})
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    response = await client.post("/v1/qr/verify", json={"payload": build_qr_payload("ADR-1-UNKNOWN")})
    assert response.status_code == 404
