# housesync/models/__init__.py
from .house import House, Room
from .outbox import OutboxEvent
from .replica import ReplicaHouse, ReplicaRoom, Temperature

# Export all models
__all__ = [
    "House",
    "OutboxEvent",
    "ReplicaHouse",
    "ReplicaRoom",
    "Room",
    "Temperature",
]
