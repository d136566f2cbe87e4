from typing import Any, Optional

from housesync.models.house import House, Room
from housesync.models.outbox import OutboxEvent
from housesync.schemas.events import (
    EventPayload,
    HouseCreated,
    HouseDeleted,
    HouseUpdated,
    RoomCreated,
    RoomDeleted,
    RoomUpdated,
    serialize_event,
)


def build_outbox_event(event: EventPayload) -> OutboxEvent:
    """Unsaved outbox row for a typed event."""
    return OutboxEvent(
        event_type=event.event_type,
        event_data=serialize_event(event),
        is_published=False,
        retry_count=0,
    )


async def create_outbox_event(event: EventPayload, conn: Any = None) -> OutboxEvent:
    """
    Creates a new Outbox event record using the provided database connection (transaction).

    CRITICAL: Passing 'conn' ensures the event is created atomically with the business data.
    """
    row = build_outbox_event(event)
    await row.save(using_db=conn)
    return row


class OutboxWriter:
    """
    Outbox-row factory bound to one connection. Handed to every unit-of-work
    operation next to the connection, one method per mutation kind.
    Creations and updates carry the full post-mutation snapshot,
    deletions only the identifying keys.
    """

    def __init__(self, conn: Optional[Any] = None):
        self.conn = conn

    async def add(self, event: EventPayload) -> OutboxEvent:
        return await create_outbox_event(event, conn=self.conn)

    async def house_created(self, house: House) -> OutboxEvent:
        return await self.add(HouseCreated(
            house_id=house.id, name=house.name, address=house.address, area=house.area,
        ))

    async def house_updated(self, house: House) -> OutboxEvent:
        return await self.add(HouseUpdated(
            house_id=house.id, name=house.name, address=house.address, area=house.area,
        ))

    async def house_deleted(self, house_id: int) -> OutboxEvent:
        return await self.add(HouseDeleted(house_id=house_id))

    async def room_created(self, room: Room) -> OutboxEvent:
        return await self.add(RoomCreated(
            room_id=room.id, house_id=room.house_id, name=room.name,
            type=room.type, area=room.area, placement=room.placement,
        ))

    async def room_updated(self, room: Room, previous_house_id: Optional[int] = None) -> OutboxEvent:
        if previous_house_id == room.house_id:
            previous_house_id = None
        return await self.add(RoomUpdated(
            room_id=room.id, house_id=room.house_id, name=room.name,
            type=room.type, area=room.area, placement=room.placement,
            previous_house_id=previous_house_id,
        ))

    async def room_deleted(self, room_id: int, house_id: int) -> OutboxEvent:
        return await self.add(RoomDeleted(room_id=room_id, house_id=house_id))
