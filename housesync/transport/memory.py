import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, Iterable, List, NamedTuple, Optional, Set

from housesync.core.errors import TransportUnavailableError, UnknownEventTypeError
from housesync.schemas.events import EVENT_TYPES
from housesync.transport.base import Delivery, Envelope, Handler, Transport
from housesync.transport.kill_switch import KillSwitch
from housesync.transport.policy import RetryPolicy, consumer_retry_policy

log = logging.getLogger(__name__)


class DeadLetter(NamedTuple):
    envelope: Envelope
    handler: str
    error: str


class InMemoryBroker(Transport):
    """
    In-process broker. Every message is handled by its own task, which first
    waits for the earlier messages sharing one of its ordering keys. Messages of
    one entity therefore reach consumers in publish order, a room never overtakes
    its house, and unrelated entities are consumed concurrently.

    A handler that raises is redelivered with the consumer retry policy; once
    attempts are exhausted the message is parked in ``dead_letters``.
    An optional kill-switch suspends consumption after sustained failures.
    """

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        kill_switch: Optional[KillSwitch] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.retry_policy = retry_policy or consumer_retry_policy()
        self.kill_switch = kill_switch
        self._sleep = sleep
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        self._tails: Dict[str, asyncio.Task] = {}  # ordering key -> last message task
        self._pending: Set[asyncio.Task] = set()
        self._available = True
        self.published: List[Envelope] = []
        self.dead_letters: List[DeadLetter] = []

    def set_available(self, available: bool) -> None:
        """Simulates the broker becoming unreachable (or coming back)."""
        self._available = available

    def subscribe(self, event_type: str, handler: Handler) -> None:
        if event_type not in EVENT_TYPES:
            raise UnknownEventTypeError(event_type)
        self._handlers[event_type].append(handler)

    async def publish(self, envelope: Envelope) -> None:
        if not self._available:
            raise TransportUnavailableError("Broker is unreachable.")

        keys = envelope.ordering_keys
        predecessors = {self._tails[k] for k in keys if k in self._tails}
        task = asyncio.create_task(
            self._handle_after(predecessors, envelope), name=f"broker:{envelope.partition_key}"
        )
        for key in keys:
            self._tails[key] = task
        self._pending.add(task)
        task.add_done_callback(lambda t: self._release(t, keys))
        self.published.append(envelope)

    async def join(self) -> None:
        """Waits until every message published so far has been handled or dead-lettered."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        for task in self._pending:
            task.cancel()
        await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()
        self._tails.clear()

    def _release(self, task: asyncio.Task, keys: Iterable[str]) -> None:
        self._pending.discard(task)
        for key in keys:
            if self._tails.get(key) is task:
                del self._tails[key]

    async def _handle_after(self, predecessors: Set[asyncio.Task], envelope: Envelope) -> None:
        if predecessors:
            await asyncio.wait(predecessors)
        try:
            await self._dispatch(envelope)
        except Exception:
            log.exception("Broker failed to dispatch message %s", envelope.message_id)

    async def _dispatch(self, envelope: Envelope) -> None:
        handlers = self._handlers.get(envelope.event_type)
        if not handlers:
            log.warning("No consumer subscribed to %s; message %s dropped.", envelope.event_type, envelope.message_id)
            return
        for handler in handlers:
            await self._deliver(handler, envelope)

    async def _deliver(self, handler: Handler, envelope: Envelope) -> None:
        handler_name = getattr(handler, "__name__", repr(handler))
        attempt = 0
        while True:
            attempt += 1
            await self._wait_while_suspended()
            delivery = Delivery(
                message_id=envelope.message_id,
                partition_key=envelope.partition_key,
                attempt=attempt,
            )
            try:
                await handler(envelope.event, delivery)
            except Exception as e:
                if self.kill_switch is not None:
                    self.kill_switch.record_failure()
                if self.retry_policy.is_exhausted(attempt):
                    log.error(
                        "%s failed %d times for %s (message %s); dead-lettered: %s",
                        handler_name, attempt, envelope.event_type, envelope.message_id, e,
                    )
                    self.dead_letters.append(DeadLetter(envelope, handler_name, str(e)))
                    return
                delay = self.retry_policy.delay_for(attempt)
                log.warning(
                    "%s failed for %s (attempt %d); redelivering in %.1fs: %s",
                    handler_name, envelope.event_type, attempt, delay, e,
                )
                await self._sleep(delay)
            else:
                if self.kill_switch is not None:
                    self.kill_switch.record_success()
                return

    async def _wait_while_suspended(self) -> None:
        if self.kill_switch is None:
            return
        while self.kill_switch.is_tripped:
            await self._sleep(self.kill_switch.remaining())
