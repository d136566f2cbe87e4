import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Tuple

from pydantic import BaseModel, Field

from housesync.schemas.events import DomainEvent


class Envelope(BaseModel):
    """One transport message carrying one domain event."""
    message_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    outbox_id: Optional[int] = None
    event: DomainEvent
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        return self.event.event_type

    @property
    def partition_key(self) -> str:
        return self.event.partition_key

    @property
    def ordering_keys(self) -> Tuple[str, ...]:
        return self.event.ordering_keys


class Delivery(BaseModel):
    """Delivery metadata handed to a consumer next to the event."""
    message_id: uuid.UUID
    partition_key: str
    attempt: int = 1

    @property
    def redelivered(self) -> bool:
        return self.attempt > 1


Handler = Callable[[DomainEvent, Delivery], Awaitable[None]]


class Transport(ABC):
    """
    At-least-once pub/sub. Messages sharing an ordering key are handled in
    publish order; messages with no key in common may be handled concurrently.
    ``publish`` returning means the transport accepted the message;
    it raises a TransportError (or any other exception) when it did not.
    """

    @abstractmethod
    async def publish(self, envelope: Envelope) -> None:
        ...

    @abstractmethod
    def subscribe(self, event_type: str, handler: Handler) -> None:
        ...

    async def close(self) -> None:
        return None
