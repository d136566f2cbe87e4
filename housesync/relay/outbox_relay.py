"""Background relay that moves committed outbox rows onto the transport.

Each poll:
1. Selects unpublished rows with attempts left, oldest first, leaving out rows
   still waiting out their backoff
2. Publishes them one by one, in that order, paging further until a batch of
   rows was actually attempted or nothing is left
3. Marks a row published only after the transport accepted it, or bumps its
   retry bookkeeping and schedules the next attempt with exponential backoff

A row waiting out its backoff holds back every later row sharing one of its
ordering keys, so per-entity order holds without blocking other entities.
When the kill-switch trips the poll stops and publishing stays suspended until
the switch restarts. Publishing a row twice (crash between transport ack and
the row update) is tolerated: consumers are idempotent.
"""
import asyncio
import contextlib
import logging
import time
from typing import Callable, Dict, Optional, Set, Tuple

from pydantic import BaseModel

from housesync.core.config import BATCH_SIZE, POLLING_INTERVAL
from housesync.core.errors import UnknownEventTypeError
from housesync.events.outbox_store import fetch_unpublished, mark_failed, mark_published
from housesync.models.outbox import OutboxEvent
from housesync.schemas.events import DomainEvent, parse_event
from housesync.transport.base import Envelope, Transport
from housesync.transport.kill_switch import KillSwitch
from housesync.transport.policy import RetryPolicy, publish_retry_policy

log = logging.getLogger(__name__)


class RelayBatchResult(BaseModel):
    published: int = 0
    failed: int = 0
    deferred: int = 0
    suspended: bool = False

    @property
    def attempted(self) -> int:
        return self.published + self.failed


class OutboxRelay:
    """
    Attributes:
        batch_size: Rows attempted per poll
        poll_interval: Seconds between polls when idle
        retry_policy: Publish backoff and attempt bound
        kill_switch: Suspends all publishing after sustained failures
    """

    def __init__(
        self,
        transport: Transport,
        retry_policy: Optional[RetryPolicy] = None,
        kill_switch: Optional[KillSwitch] = None,
        batch_size: int = BATCH_SIZE,
        poll_interval: float = POLLING_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.retry_policy = retry_policy or publish_retry_policy()
        self.kill_switch = kill_switch or KillSwitch(clock=clock, name="publish")
        self.batch_size = batch_size
        self.poll_interval = poll_interval
        self._clock = clock
        # outbox id -> (earliest next attempt, ordering keys of the row)
        self._backoff: Dict[int, Tuple[float, Tuple[str, ...]]] = {}

        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def poll_once(self) -> RelayBatchResult:
        """Publishes one batch. Stops between rows, never mid-row."""
        result = RelayBatchResult()
        if self.kill_switch.is_tripped:
            result.suspended = True
            return result

        now = self._clock()
        waiting: Set[int] = set()
        blocked: Set[str] = set()
        for row_id, (not_before, keys) in self._backoff.items():
            if not_before > now:
                waiting.add(row_id)
                blocked.update(keys)

        last_seen: Optional[OutboxEvent] = None
        while result.attempted < self.batch_size:
            rows = await fetch_unpublished(
                self.batch_size, self.retry_policy.max_attempts, exclude_ids=waiting, after=last_seen
            )
            if not rows:
                break

            for row in rows:
                if self._halted(result):
                    return self._report(result)
                last_seen = row

                try:
                    event = parse_event(row.event_type, row.event_data)
                except (UnknownEventTypeError, ValueError) as e:
                    # Cannot be published; burn its attempts so it surfaces as exhausted
                    log.error("Outbox row %s is unreadable: %s", row.id, e)
                    await mark_failed(row, f"Unreadable event: {e}")
                    result.failed += 1
                    continue

                keys = event.ordering_keys
                if blocked.intersection(keys):
                    blocked.update(keys)
                    result.deferred += 1
                    continue

                if await self._publish_row(row, event):
                    result.published += 1
                else:
                    result.failed += 1
                    blocked.update(keys)

                if result.attempted >= self.batch_size:
                    break

        return self._report(result)

    def _halted(self, result: RelayBatchResult) -> bool:
        if self._task is not None and not self._running:
            return True
        if self.kill_switch.is_tripped:
            result.suspended = True
            log.error(
                "Publishing suspended by kill-switch for %.0fs after %d attempt(s) in this poll.",
                self.kill_switch.remaining(), result.attempted,
            )
            return True
        return False

    def _report(self, result: RelayBatchResult) -> RelayBatchResult:
        if result.attempted:
            log.info(
                "Processed %d outbox events (%d published, %d failed, %d deferred).",
                result.attempted, result.published, result.failed, result.deferred,
            )
        return result

    async def _publish_row(self, row: OutboxEvent, event: DomainEvent) -> bool:
        envelope = Envelope(outbox_id=row.id, event=event)
        try:
            await self.transport.publish(envelope)
        except Exception as e:
            self.kill_switch.record_failure()
            await mark_failed(row, str(e) or e.__class__.__name__)
            if self.retry_policy.is_exhausted(row.retry_count):
                self._backoff.pop(row.id, None)
                log.error(
                    "Giving up on %s event %s after %d attempts: %s",
                    row.event_type, row.id, row.retry_count, row.last_error,
                )
            else:
                delay = self.retry_policy.delay_for(row.retry_count)
                self._backoff[row.id] = (self._clock() + delay, event.ordering_keys)
                log.warning(
                    "Failed to publish %s event %s. Retry count: %d, next attempt in %.1fs.",
                    row.event_type, row.id, row.retry_count, delay,
                )
            return False

        self.kill_switch.record_success()
        await mark_published(row)
        self._backoff.pop(row.id, None)
        log.debug("Successfully published %s event %s", row.event_type, row.id)
        return True

    async def start(self) -> None:
        if self._running:
            log.warning("Outbox relay already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name="outbox-relay")
        log.info(
            "--- Outbox Relay started (batch_size=%d, poll_interval=%.1fs, max_attempts=%d) ---",
            self.batch_size, self.poll_interval, self.retry_policy.max_attempts,
        )

    async def stop(self, timeout: float = 30.0) -> None:
        """Lets the in-flight row finish, then stops the loop."""
        if not self._running:
            return
        self._running = False

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=timeout)
            except asyncio.TimeoutError:
                log.warning("Outbox relay shutdown timed out, cancelling")
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task
            self._task = None

        log.info("Outbox relay stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                result = await self.poll_once()
            except Exception:
                log.exception("Outbox relay encountered a store error")
                # Back off on errors to avoid tight error loop
                await self._idle(self.poll_interval * 2)
                continue

            if result.suspended:
                await self._idle(max(self.kill_switch.remaining(), self.poll_interval))
            elif result.published:
                # More rows might be waiting, yield and poll again
                await asyncio.sleep(0)
            else:
                await self._idle(self.poll_interval)

    async def _idle(self, seconds: float) -> None:
        # Sleep in short slices so stop() is honoured promptly
        deadline = self._clock() + seconds
        while self._running and self._clock() < deadline:
            await asyncio.sleep(min(0.1, max(0.0, deadline - self._clock())))


async def run_forever():
    """Main loop for the relay service: in-process broker feeding the replica consumers."""
    from housesync.consumers.dispatcher import register_consumers
    from housesync.core.db import close_db, init_db
    from housesync.core.logging_config import configure_logging
    from housesync.transport.memory import InMemoryBroker

    configure_logging()
    await init_db()
    broker = InMemoryBroker(kill_switch=KillSwitch(name="consume"))
    register_consumers(broker)
    relay = OutboxRelay(broker)

    await relay.start()
    try:
        await asyncio.Event().wait()
    finally:
        await relay.stop()
        await broker.close()
        await close_db()


def main():
    try:
        asyncio.run(run_forever())
    except KeyboardInterrupt:
        log.info("Relay service stopped.")


if __name__ == "__main__":
    main()
