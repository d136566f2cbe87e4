import datetime as dt
import logging
from typing import Dict, List, Optional

from tortoise.exceptions import IntegrityError

from housesync.core.errors import ConflictError, ReferentialIntegrityError
from housesync.models.replica import ReplicaHouse, ReplicaRoom, Temperature
from housesync.schemas.replica import ReplicaHouseResponse, ReplicaRoomResponse

log = logging.getLogger(__name__)


async def record_temperature(room_id: int, hour: int, degrees: float, date: Optional[dt.date] = None) -> Temperature:
    """
    Stores one hourly reading for a replicated room.
    The room must already be in the replica, and (room, hour, date) is unique.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}.")
    date = date or dt.datetime.now(dt.timezone.utc).date()

    if not await ReplicaRoom.filter(room_id=room_id).exists():
        raise ReferentialIntegrityError(f"Room {room_id} is not known to the replica.")

    if await Temperature.filter(room_id=room_id, hour=hour, date=date).exists():
        raise ConflictError("Temperature reading already exists for this room, hour, and date.")

    try:
        reading = await Temperature.create(room_id=room_id, hour=hour, degrees=degrees, date=date)
    except IntegrityError:
        raise ConflictError("Temperature reading already exists for this room, hour, and date.")

    log.info("Recorded %.1f degrees for Room %s at %s hour %d", degrees, room_id, date, hour)
    return reading


async def temperatures_for_room(room_id: int, date: Optional[dt.date] = None) -> List[Temperature]:
    query = Temperature.filter(room_id=room_id)
    if date is not None:
        query = query.filter(date=date)
    return await query.order_by("date", "hour")


async def houses_with_rooms() -> List[ReplicaHouseResponse]:
    """Replica houses with their rooms, two queries total."""
    houses = await ReplicaHouse.all().order_by("house_id")
    if not houses:
        return []
    rooms = await ReplicaRoom.filter(house_id__in=[h.house_id for h in houses]).order_by("room_id")

    rooms_by_house: Dict[int, List[ReplicaRoomResponse]] = {}
    for room in rooms:
        rooms_by_house.setdefault(room.house_id, []).append(ReplicaRoomResponse.model_validate(room))

    return [
        ReplicaHouseResponse(
            house_id=house.house_id,
            name=house.name,
            address=house.address,
            area=house.area,
            rooms=rooms_by_house.get(house.house_id, []),
        )
        for house in houses
    ]
