import json
from decimal import Decimal

import pytest

from housesync.core.errors import EntityNotFoundError, ReferentialIntegrityError
from housesync.models.house import House, Room
from housesync.models.outbox import OutboxEvent
from housesync.services import house_service


async def _events():
    rows = await OutboxEvent.all().order_by("id")
    return [(row.event_type, json.loads(row.event_data)) for row in rows]


class TestHouseService:

    @pytest.mark.asyncio
    async def test_update_emits_full_snapshot(self, db, uow):
        house = await house_service.create_house(uow, "A", "Old Rd", Decimal("50"))

        await house_service.update_house(uow, house.id, "B", "New Rd", Decimal("55.5"))

        events = await _events()
        assert [e[0] for e in events] == ["HouseCreated", "HouseUpdated"]
        payload = events[1][1]
        assert payload["name"] == "B"
        assert payload["address"] == "New Rd"
        assert payload["area"] == 55.5

    @pytest.mark.asyncio
    async def test_update_of_missing_house_writes_nothing(self, db, uow):
        with pytest.raises(EntityNotFoundError):
            await house_service.update_house(uow, 404, "B", "", Decimal("1"))

        assert await OutboxEvent.all().count() == 0

    @pytest.mark.asyncio
    async def test_delete_house_removes_rooms_and_emits_one_event(self, db, uow):
        house = await house_service.create_house(uow, "A", "", Decimal("50"))
        await house_service.create_room(uow, house.id, "Kitchen", "kitchen", Decimal("10"))

        await house_service.delete_house(uow, house.id)

        assert not await House.filter(id=house.id).exists()
        assert await Room.all().count() == 0
        events = await _events()
        assert events[-1] == ("HouseDeleted", {"houseId": house.id, "eventTime": events[-1][1]["eventTime"]})
        assert [e[0] for e in events].count("RoomDeleted") == 0


class TestRoomService:

    @pytest.mark.asyncio
    async def test_room_created_snapshot_includes_parent_and_placement(self, db, uow):
        house = await house_service.create_house(uow, "A", "", Decimal("50"))

        room = await house_service.create_room(uow, house.id, "Kitchen", "kitchen", Decimal("10"), "north")

        event_type, payload = (await _events())[-1]
        assert event_type == "RoomCreated"
        assert payload["roomId"] == room.id
        assert payload["houseId"] == house.id
        assert payload["type"] == "kitchen"
        assert payload["placement"] == "north"

    @pytest.mark.asyncio
    async def test_room_for_missing_house_is_rejected(self, db, uow):
        with pytest.raises(ReferentialIntegrityError):
            await house_service.create_room(uow, 99, "Kitchen", "kitchen", Decimal("10"))

        assert await Room.all().count() == 0
        assert await OutboxEvent.all().count() == 0

    @pytest.mark.asyncio
    async def test_room_update_can_move_room_to_another_house(self, db, uow):
        first = await house_service.create_house(uow, "A", "", Decimal("50"))
        second = await house_service.create_house(uow, "B", "", Decimal("60"))
        room = await house_service.create_room(uow, first.id, "Kitchen", "kitchen", Decimal("10"))

        await house_service.update_room(uow, room.id, second.id, "Kitchen", "kitchen", Decimal("12"))

        event_type, payload = (await _events())[-1]
        assert event_type == "RoomUpdated"
        assert payload["houseId"] == second.id
        assert payload["previousHouseId"] == first.id

    @pytest.mark.asyncio
    async def test_room_deleted_carries_its_house_id(self, db, uow):
        house = await house_service.create_house(uow, "A", "", Decimal("50"))
        room = await house_service.create_room(uow, house.id, "Kitchen", "kitchen", Decimal("10"))

        await house_service.delete_room(uow, room.id)

        event_type, payload = (await _events())[-1]
        assert event_type == "RoomDeleted"
        assert payload["roomId"] == room.id
        assert payload["houseId"] == house.id

    @pytest.mark.asyncio
    async def test_delete_of_missing_room_raises(self, db, uow):
        with pytest.raises(EntityNotFoundError):
            await house_service.delete_room(uow, 12)
