from decimal import Decimal
from typing import List, Optional

from housesync.core.errors import EntityNotFoundError, ReferentialIntegrityError
from housesync.events.outbox_writer import OutboxWriter
from housesync.models.house import House, Room
from housesync.services.unit_of_work import TransactionalOutbox

# Every mutation below is one unit of work emitting exactly one outbox row.


async def create_house(uow: TransactionalOutbox, name: str, address: str, area: Decimal) -> House:
    async def operation(conn, outbox: OutboxWriter) -> House:
        house = await House.create(name=name, address=address, area=area, using_db=conn)
        await outbox.house_created(house)
        return house

    return await uow.execute_in_transaction(operation)


async def update_house(uow: TransactionalOutbox, house_id: int, name: str, address: str, area: Decimal) -> House:
    async def operation(conn, outbox: OutboxWriter) -> House:
        house = await House.get_or_none(id=house_id).using_db(conn)
        if not house:
            raise EntityNotFoundError("House", house_id)

        house.name = name
        house.address = address
        house.area = area
        await house.save(using_db=conn)
        await outbox.house_updated(house)
        return house

    return await uow.execute_in_transaction(operation)


async def delete_house(uow: TransactionalOutbox, house_id: int) -> None:
    """Deletes the house and its rooms. Only HouseDeleted is emitted; the replica cascades itself."""
    async def operation(conn, outbox: OutboxWriter) -> None:
        house = await House.get_or_none(id=house_id).using_db(conn)
        if not house:
            raise EntityNotFoundError("House", house_id)

        await Room.filter(house_id=house_id).using_db(conn).delete()
        await house.delete(using_db=conn)
        await outbox.house_deleted(house_id)

    await uow.execute_in_transaction(operation)


async def create_room(
    uow: TransactionalOutbox, house_id: int, name: str, type: str, area: Decimal, placement: str = ""
) -> Room:
    async def operation(conn, outbox: OutboxWriter) -> Room:
        if not await House.filter(id=house_id).using_db(conn).exists():
            raise ReferentialIntegrityError(f"House {house_id} not found.")

        room = await Room.create(
            house_id=house_id, name=name, type=type, area=area, placement=placement, using_db=conn
        )
        await outbox.room_created(room)
        return room

    return await uow.execute_in_transaction(operation)


async def update_room(
    uow: TransactionalOutbox, room_id: int, house_id: int, name: str, type: str, area: Decimal, placement: str = ""
) -> Room:
    async def operation(conn, outbox: OutboxWriter) -> Room:
        room = await Room.get_or_none(id=room_id).using_db(conn)
        if not room:
            raise EntityNotFoundError("Room", room_id)
        if not await House.filter(id=house_id).using_db(conn).exists():
            raise ReferentialIntegrityError(f"House {house_id} not found.")

        previous_house_id = room.house_id
        room.house_id = house_id
        room.name = name
        room.type = type
        room.area = area
        room.placement = placement
        await room.save(using_db=conn)
        await outbox.room_updated(room, previous_house_id)
        return room

    return await uow.execute_in_transaction(operation)


async def delete_room(uow: TransactionalOutbox, room_id: int) -> None:
    async def operation(conn, outbox: OutboxWriter) -> None:
        room = await Room.get_or_none(id=room_id).using_db(conn)
        if not room:
            raise EntityNotFoundError("Room", room_id)

        house_id = room.house_id
        await room.delete(using_db=conn)
        await outbox.room_deleted(room_id, house_id)

    await uow.execute_in_transaction(operation)


async def get_house(house_id: int) -> Optional[House]:
    return await House.get_or_none(id=house_id)


async def list_houses() -> List[House]:
    return await House.all().order_by("id")


async def get_room(room_id: int) -> Optional[Room]:
    return await Room.get_or_none(id=room_id)


async def list_rooms(house_id: Optional[int] = None) -> List[Room]:
    query = Room.all() if house_id is None else Room.filter(house_id=house_id)
    return await query.order_by("id")
