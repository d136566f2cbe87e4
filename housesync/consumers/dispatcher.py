import logging
from typing import Dict, Optional

from housesync.consumers.house_consumer import handle_house_created, handle_house_deleted, handle_house_updated
from housesync.consumers.room_consumer import handle_room_created, handle_room_deleted, handle_room_updated
from housesync.core.errors import UnknownEventTypeError
from housesync.schemas.events import (
    HOUSE_CREATED,
    HOUSE_DELETED,
    HOUSE_UPDATED,
    ROOM_CREATED,
    ROOM_DELETED,
    ROOM_UPDATED,
    DomainEvent,
)
from housesync.transport.base import Delivery, Handler, Transport

log = logging.getLogger(__name__)

# One replica consumer per event type
CONSUMERS: Dict[str, Handler] = {
    HOUSE_CREATED: handle_house_created,
    HOUSE_UPDATED: handle_house_updated,
    HOUSE_DELETED: handle_house_deleted,
    ROOM_CREATED: handle_room_created,
    ROOM_UPDATED: handle_room_updated,
    ROOM_DELETED: handle_room_deleted,
}


def register_consumers(transport: Transport) -> None:
    """Subscribes every replica consumer to its event type on the transport."""
    for event_type, handler in CONSUMERS.items():
        transport.subscribe(event_type, handler)
    log.info("Registered %d replica consumers.", len(CONSUMERS))


async def dispatch_event(event: DomainEvent, delivery: Optional[Delivery] = None) -> None:
    """Routes a typed event to its consumer by its tag."""
    handler = CONSUMERS.get(event.event_type)
    if handler is None:
        raise UnknownEventTypeError(event.event_type)
    await handler(event, delivery)
