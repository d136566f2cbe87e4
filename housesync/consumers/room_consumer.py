import logging
from typing import Optional

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from housesync.core.db import REPLICA
from housesync.models.replica import ReplicaHouse, ReplicaRoom, Temperature
from housesync.schemas.events import RoomCreated, RoomDeleted, RoomUpdated
from housesync.transport.base import Delivery

log = logging.getLogger(__name__)


def _attempt(delivery: Optional[Delivery]) -> int:
    return delivery.attempt if delivery else 1


async def handle_room_created(event: RoomCreated, delivery: Optional[Delivery] = None) -> None:
    """
    Consumer logic for 'RoomCreated'. Skips duplicates, and skips (without
    storing anything) a room whose house is not in the replica yet; a later
    redelivery after the house arrives applies normally.
    """
    log.info(
        "Processing RoomCreated for Room %s, House %s (attempt %d)",
        event.room_id, event.house_id, _attempt(delivery),
    )
    try:
        async with in_transaction(REPLICA) as conn:
            if await ReplicaRoom.filter(room_id=event.room_id).using_db(conn).exists():
                log.warning("Room %s already exists in replica; duplicate create skipped.", event.room_id)
                return

            if not await ReplicaHouse.filter(house_id=event.house_id).using_db(conn).exists():
                log.warning(
                    "House %s not found in replica for Room %s; room create skipped.",
                    event.house_id, event.room_id,
                )
                return

            await ReplicaRoom.create(
                room_id=event.room_id,
                house_id=event.house_id,
                name=event.name,
                type=event.type,
                area=event.area,
                placement=event.placement,
                using_db=conn,
            )
    except IntegrityError:
        log.warning("Room %s already exists in replica; duplicate create skipped.", event.room_id)
        return
    except Exception:
        log.exception("Failed to apply RoomCreated for Room %s", event.room_id)
        raise

    log.info("Replica room %s created under House %s.", event.room_id, event.house_id)


async def handle_room_updated(event: RoomUpdated, delivery: Optional[Delivery] = None) -> None:
    """Consumer logic for 'RoomUpdated'. Absent room or absent parent: skipped, nothing applied."""
    log.info(
        "Processing RoomUpdated for Room %s, House %s (attempt %d)",
        event.room_id, event.house_id, _attempt(delivery),
    )
    try:
        async with in_transaction(REPLICA) as conn:
            room = await ReplicaRoom.get_or_none(room_id=event.room_id).using_db(conn)
            if not room:
                log.warning("Room %s not found in replica; update skipped.", event.room_id)
                return

            if not await ReplicaHouse.filter(house_id=event.house_id).using_db(conn).exists():
                log.warning(
                    "House %s not found in replica for Room %s; update skipped.",
                    event.house_id, event.room_id,
                )
                return

            room.house_id = event.house_id
            room.name = event.name
            room.type = event.type
            room.area = event.area
            room.placement = event.placement
            await room.save(
                update_fields=["house_id", "name", "type", "area", "placement", "updated_at"],
                using_db=conn,
            )
    except Exception:
        log.exception("Failed to apply RoomUpdated for Room %s", event.room_id)
        raise

    log.info("Replica room %s updated.", event.room_id)


async def handle_room_deleted(event: RoomDeleted, delivery: Optional[Delivery] = None) -> None:
    """Consumer logic for 'RoomDeleted'. Temperatures go first, then the room."""
    log.info(
        "Processing RoomDeleted for Room %s, House %s (attempt %d)",
        event.room_id, event.house_id, _attempt(delivery),
    )
    try:
        async with in_transaction(REPLICA) as conn:
            await Temperature.filter(room_id=event.room_id).using_db(conn).delete()
            deleted = await ReplicaRoom.filter(room_id=event.room_id).using_db(conn).delete()
    except Exception:
        log.exception("Failed to apply RoomDeleted for Room %s", event.room_id)
        raise

    if not deleted:
        log.warning("Room %s not found in replica; delete was a no-op.", event.room_id)
        return
    log.info("Replica room %s deleted with its temperatures.", event.room_id)
