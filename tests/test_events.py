import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from housesync.core.errors import UnknownEventTypeError
from housesync.schemas.events import (
    HouseCreated,
    HouseDeleted,
    RoomDeleted,
    RoomUpdated,
    parse_event,
    serialize_event,
)


def test_house_created_payload_shape():
    """Creation payload is a full snapshot with camelCase keys and no type tag."""
    event = HouseCreated(house_id=1, name="A", address="Main St 1", area=Decimal("120.50"))
    data = json.loads(serialize_event(event))

    assert set(data) == {"houseId", "name", "address", "area", "eventTime"}
    assert data["houseId"] == 1
    assert data["area"] == 120.5


def test_delete_payloads_carry_only_keys():
    assert set(json.loads(serialize_event(HouseDeleted(house_id=3)))) == {"houseId", "eventTime"}
    assert set(json.loads(serialize_event(RoomDeleted(room_id=7, house_id=3)))) == {"roomId", "houseId", "eventTime"}


def test_parse_restores_the_tagged_type():
    original = RoomUpdated(room_id=7, house_id=3, name="Kitchen", type="kitchen", area=Decimal("12"), placement="north")

    parsed = parse_event("RoomUpdated", serialize_event(original))

    assert isinstance(parsed, RoomUpdated)
    assert parsed.model_dump() == original.model_dump()


def test_parse_rejects_unknown_event_type():
    with pytest.raises(UnknownEventTypeError):
        parse_event("HouseRenamed", "{}")


def test_parse_rejects_malformed_payload():
    with pytest.raises(ValidationError):
        parse_event("HouseCreated", json.dumps({"name": "no id"}))


def test_parse_rejects_payload_that_is_not_an_object():
    with pytest.raises(ValueError):
        parse_event("HouseCreated", "[]")


def test_room_events_are_ordered_with_their_room_and_house():
    deleted = RoomDeleted(room_id=7, house_id=3)

    assert deleted.partition_key == "room:7"
    assert HouseDeleted(house_id=3).partition_key in deleted.ordering_keys


def test_room_move_is_also_ordered_with_the_house_it_left():
    moved = RoomUpdated(room_id=7, house_id=4, name="Kitchen", area=Decimal("12"), previous_house_id=3)
    payload = json.loads(serialize_event(moved))

    assert set(moved.ordering_keys) == {"room:7", "house:4", "house:3"}
    assert payload["previousHouseId"] == 3
    assert parse_event("RoomUpdated", serialize_event(moved)).previous_house_id == 3


def test_plain_room_update_has_no_previous_house_key():
    updated = RoomUpdated(room_id=7, house_id=3, name="Kitchen", area=Decimal("12"))

    assert "previousHouseId" not in json.loads(serialize_event(updated))
    assert set(updated.ordering_keys) == {"room:7", "house:3"}
