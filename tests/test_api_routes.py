import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from housesync.main import app
from housesync.models.outbox import OutboxEvent
from housesync.relay.outbox_relay import OutboxRelay


@pytest_asyncio.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def replicate(broker, clock, kill_switch):
    await OutboxRelay(broker, kill_switch=kill_switch, clock=clock).poll_once()
    await broker.join()


async def create_house(client, name="A"):
    response = await client.post("/api/v1/houses/", json={"name": name, "address": "Main St", "area": "120.5"})
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_house_commits_an_outbox_event(client):
    house = await create_house(client)

    assert house["name"] == "A"
    response = await client.get("/api/v1/outbox/pending")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_pending"] == 1
    assert data["events"][0]["eventType"] == "HouseCreated"
    assert data["events"][0]["retryCount"] == 0


@pytest.mark.asyncio
async def test_update_of_missing_house_returns_404(client):
    response = await client.put("/api/v1/houses/999", json={"name": "B", "area": "10"})

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "not_found"
    assert await OutboxEvent.all().count() == 0


@pytest.mark.asyncio
async def test_room_for_missing_house_returns_400(client):
    response = await client.post("/api/v1/rooms/", json={"house_id": 999, "name": "Kitchen", "area": "10"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "missing_parent"


@pytest.mark.asyncio
async def test_invalid_house_payload_returns_422(client):
    response = await client.post("/api/v1/houses/", json={"name": "", "area": "-1"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.asyncio
async def test_delete_house_returns_204(client):
    house = await create_house(client)

    response = await client.delete(f"/api/v1/houses/{house['id']}")

    assert response.status_code == 204
    assert (await client.get(f"/api/v1/houses/{house['id']}")).status_code == 404
    types = [row.event_type for row in await OutboxEvent.all().order_by("id")]
    assert types == ["HouseCreated", "HouseDeleted"]


@pytest.mark.asyncio
async def test_replica_reads_after_replication(client, broker, clock, quiet_kill_switch):
    house = await create_house(client)
    room = (await client.post(
        "/api/v1/rooms/", json={"house_id": house["id"], "name": "Kitchen", "type": "kitchen", "area": "12"},
    )).json()["data"]

    await replicate(broker, clock, quiet_kill_switch)

    response = await client.get("/api/v1/replica/houses")
    assert response.status_code == 200
    houses = response.json()["data"]
    assert [h["house_id"] for h in houses] == [house["id"]]
    assert [r["room_id"] for r in houses[0]["rooms"]] == [room["id"]]
    assert (await client.get("/api/v1/outbox/pending")).json()["data"]["total_pending"] == 0


@pytest.mark.asyncio
async def test_temperature_readings_flow(client, broker, clock, quiet_kill_switch):
    house = await create_house(client)
    room = (await client.post(
        "/api/v1/rooms/", json={"house_id": house["id"], "name": "Kitchen", "area": "12"},
    )).json()["data"]
    await replicate(broker, clock, quiet_kill_switch)

    reading = {"room_id": room["id"], "hour": 7, "degrees": 21.5, "date": "2026-01-05"}
    first = await client.post("/api/v1/replica/temperatures", json=reading)
    duplicate = await client.post("/api/v1/replica/temperatures", json=reading)
    unknown_room = await client.post("/api/v1/replica/temperatures", json={**reading, "room_id": 999})
    bad_hour = await client.post("/api/v1/replica/temperatures", json={**reading, "hour": 24})

    assert first.status_code == 201
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "conflict"
    assert unknown_room.status_code == 400
    assert bad_hour.status_code == 422

    await client.post("/api/v1/replica/temperatures", json={**reading, "hour": 3})
    listed = await client.get(f"/api/v1/replica/rooms/{room['id']}/temperatures", params={"date": "2026-01-05"})
    assert [t["hour"] for t in listed.json()["data"]] == [3, 7]
