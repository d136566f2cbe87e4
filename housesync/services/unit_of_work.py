"""
Unit-of-work coordinator: a business mutation and its outbox row commit
together or not at all.

Stores without transaction support (lightweight test stores) can run the
coordinator with ``transactional=False``. That mode executes the operation
directly with no atomicity guarantee; it is announced with a warning and is
refused outright when the service runs in production.
"""
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tortoise import connections
from tortoise.transactions import in_transaction

from housesync.core.config import APP_ENV, OUTBOX_TRANSACTIONAL
from housesync.core.db import OWNER
from housesync.core.errors import ConfigurationError
from housesync.events.outbox_writer import OutboxWriter

log = logging.getLogger(__name__)

T = TypeVar("T")

# Receives the connection to mutate through and the outbox-row factory bound to it
Operation = Callable[[Any, OutboxWriter], Awaitable[T]]


class TransactionalOutbox:

    def __init__(
        self,
        connection_name: str = OWNER,
        transactional: bool = OUTBOX_TRANSACTIONAL,
        environment: str = APP_ENV,
    ):
        if not transactional:
            if environment == "production":
                raise ConfigurationError(
                    "Non-transactional outbox mode is not allowed in production."
                )
            log.warning(
                "Outbox coordinator on '%s' runs WITHOUT transactions: "
                "a failed operation may leave a mutation without its outbox row.",
                connection_name,
            )
        self.connection_name = connection_name
        self.transactional = transactional

    async def execute_in_transaction(self, operation: Operation) -> T:
        """
        Runs ``operation(conn, outbox)`` and returns its result. On any exception
        both the mutation and the outbox rows are rolled back and the exception
        propagates to the caller.
        """
        if not self.transactional:
            conn = connections.get(self.connection_name)
            return await operation(conn, OutboxWriter(conn))

        try:
            async with in_transaction(self.connection_name) as conn:
                return await operation(conn, OutboxWriter(conn))
        except Exception as e:
            log.warning("Unit of work rolled back: %s", e)
            raise


_default_unit_of_work: Optional[TransactionalOutbox] = None


def get_unit_of_work() -> TransactionalOutbox:
    """FastAPI dependency; the coordinator is built once from configuration."""
    global _default_unit_of_work
    if _default_unit_of_work is None:
        _default_unit_of_work = TransactionalOutbox()
    return _default_unit_of_work
