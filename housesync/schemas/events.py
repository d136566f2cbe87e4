"""
Wire contracts for the six domain events.

Each event is a frozen Pydantic model tagged by a ``Literal`` ``event_type``;
``DomainEvent`` is the discriminated union over the closed set. Payloads are
self-contained snapshots: a consumer never calls back to the owner to resolve
one. JSON field names are camelCase (``houseId``, ``eventTime``). The tag is
not part of the serialized payload; it travels in the outbox ``event_type``
column and is re-attached by :func:`parse_event`. Areas are JSON numbers.

Each event names its own stream (``partition_key``) and the set of keys it
must stay ordered with (``ordering_keys``). Room events are ordered with
their room and their house, and a move is also ordered with the house the
room left.
"""
import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, TypeAdapter
from pydantic.alias_generators import to_camel

from housesync.core.errors import UnknownEventTypeError

HOUSE_CREATED = "HouseCreated"
HOUSE_UPDATED = "HouseUpdated"
HOUSE_DELETED = "HouseDeleted"
ROOM_CREATED = "RoomCreated"
ROOM_UPDATED = "RoomUpdated"
ROOM_DELETED = "RoomDeleted"

EVENT_TYPES = (HOUSE_CREATED, HOUSE_UPDATED, HOUSE_DELETED, ROOM_CREATED, ROOM_UPDATED, ROOM_DELETED)

# Areas travel as JSON numbers
Area = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event_time: datetime = Field(default_factory=_utcnow)

    @property
    def partition_key(self) -> str:
        """Stream of the entity the event is about."""
        return f"house:{self.house_id}"

    @property
    def ordering_keys(self) -> Tuple[str, ...]:
        """
        Events sharing any of these keys are delivered in creation order.
        A room event carries its house key too, so it never overtakes the house.
        """
        return (self.partition_key,)


class HouseSnapshot(EventPayload):
    house_id: int
    name: str
    address: str = ""
    area: Area


class RoomEvent(EventPayload):
    room_id: int
    house_id: int

    @property
    def partition_key(self) -> str:
        return f"room:{self.room_id}"

    @property
    def ordering_keys(self) -> Tuple[str, ...]:
        return (self.partition_key, f"house:{self.house_id}")


class RoomSnapshot(RoomEvent):
    name: str
    type: str = ""
    area: Area
    placement: str = ""


class HouseCreated(HouseSnapshot):
    event_type: Literal["HouseCreated"] = Field(HOUSE_CREATED, exclude=True)


class HouseUpdated(HouseSnapshot):
    event_type: Literal["HouseUpdated"] = Field(HOUSE_UPDATED, exclude=True)


class HouseDeleted(EventPayload):
    event_type: Literal["HouseDeleted"] = Field(HOUSE_DELETED, exclude=True)
    house_id: int


class RoomCreated(RoomSnapshot):
    event_type: Literal["RoomCreated"] = Field(ROOM_CREATED, exclude=True)


class RoomUpdated(RoomSnapshot):
    event_type: Literal["RoomUpdated"] = Field(ROOM_UPDATED, exclude=True)
    # Set only when the update moved the room to another house
    previous_house_id: Optional[int] = None

    @property
    def ordering_keys(self) -> Tuple[str, ...]:
        keys = super().ordering_keys
        if self.previous_house_id is not None and self.previous_house_id != self.house_id:
            keys += (f"house:{self.previous_house_id}",)
        return keys


class RoomDeleted(RoomEvent):
    event_type: Literal["RoomDeleted"] = Field(ROOM_DELETED, exclude=True)


DomainEvent = Annotated[
    Union[HouseCreated, HouseUpdated, HouseDeleted, RoomCreated, RoomUpdated, RoomDeleted],
    Field(discriminator="event_type"),
]

_event_adapter = TypeAdapter(DomainEvent)


def serialize_event(event: EventPayload) -> str:
    """Payload JSON as stored in ``OutboxEvent.event_data``. Unset optional keys are left out."""
    return event.model_dump_json(by_alias=True, exclude_none=True)


def parse_event(event_type: str, event_data: Union[str, Dict[str, Any]]) -> DomainEvent:
    """
    Rebuilds a typed event from its tag and stored payload.
    Raises UnknownEventTypeError for tags outside the closed set and
    ValueError (json.JSONDecodeError or pydantic.ValidationError) for a
    malformed payload.
    """
    if event_type not in EVENT_TYPES:
        raise UnknownEventTypeError(event_type)
    data = json.loads(event_data) if isinstance(event_data, str) else event_data
    if not isinstance(data, dict):
        raise ValueError(f"{event_type} payload must be a JSON object, got {type(data).__name__}")
    data = dict(data)
    data["eventType"] = event_type
    return _event_adapter.validate_python(data)
