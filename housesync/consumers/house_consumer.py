import logging
from typing import Optional

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from housesync.core.db import REPLICA
from housesync.models.replica import ReplicaHouse, ReplicaRoom, Temperature
from housesync.schemas.events import HouseCreated, HouseDeleted, HouseUpdated
from housesync.transport.base import Delivery

log = logging.getLogger(__name__)

# Business-rule conditions (duplicate, absent entity) are logged and absorbed.
# Store errors are logged and re-raised so the transport redelivers.


def _attempt(delivery: Optional[Delivery]) -> int:
    return delivery.attempt if delivery else 1


async def handle_house_created(event: HouseCreated, delivery: Optional[Delivery] = None) -> None:
    """Consumer logic for 'HouseCreated'. A duplicate create is a no-op."""
    log.info("Processing HouseCreated for House %s (attempt %d)", event.house_id, _attempt(delivery))
    try:
        async with in_transaction(REPLICA) as conn:
            # Idempotency Check
            if await ReplicaHouse.filter(house_id=event.house_id).using_db(conn).exists():
                log.warning("House %s already exists in replica; duplicate create skipped.", event.house_id)
                return

            await ReplicaHouse.create(
                house_id=event.house_id,
                name=event.name,
                address=event.address,
                area=event.area,
                using_db=conn,
            )
    except IntegrityError:
        # A concurrent delivery inserted the same id first
        log.warning("House %s already exists in replica; duplicate create skipped.", event.house_id)
        return
    except Exception:
        log.exception("Failed to apply HouseCreated for House %s", event.house_id)
        raise

    log.info("Replica house %s created.", event.house_id)


async def handle_house_updated(event: HouseUpdated, delivery: Optional[Delivery] = None) -> None:
    """Consumer logic for 'HouseUpdated'. Never creates on update."""
    log.info("Processing HouseUpdated for House %s (attempt %d)", event.house_id, _attempt(delivery))
    try:
        async with in_transaction(REPLICA) as conn:
            house = await ReplicaHouse.get_or_none(house_id=event.house_id).using_db(conn)
            if not house:
                log.warning("House %s not found in replica; update skipped.", event.house_id)
                return

            house.name = event.name
            house.address = event.address
            house.area = event.area
            await house.save(update_fields=["name", "address", "area", "updated_at"], using_db=conn)
    except Exception:
        log.exception("Failed to apply HouseUpdated for House %s", event.house_id)
        raise

    log.info("Replica house %s updated.", event.house_id)


async def handle_house_deleted(event: HouseDeleted, delivery: Optional[Delivery] = None) -> None:
    """
    Consumer logic for 'HouseDeleted'. Deletes the house's temperatures,
    then its rooms, then the house, in one replica transaction.
    """
    log.info("Processing HouseDeleted for House %s (attempt %d)", event.house_id, _attempt(delivery))
    try:
        async with in_transaction(REPLICA) as conn:
            room_ids = await (
                ReplicaRoom.filter(house_id=event.house_id).using_db(conn).values_list("room_id", flat=True)
            )
            if room_ids:
                await Temperature.filter(room_id__in=list(room_ids)).using_db(conn).delete()
                await ReplicaRoom.filter(house_id=event.house_id).using_db(conn).delete()

            deleted = await ReplicaHouse.filter(house_id=event.house_id).using_db(conn).delete()
    except Exception:
        log.exception("Failed to apply HouseDeleted for House %s", event.house_id)
        raise

    if not deleted:
        log.warning("House %s not found in replica; delete was a no-op.", event.house_id)
        return
    log.info("Replica house %s deleted with %d room(s).", event.house_id, len(room_ids))
