"""Kill-switch for publishing and consumption.

Watches the outcome of recent attempts inside a sliding window. Once at least
``activation_threshold`` attempts were seen and the failed share reaches
``trip_threshold``, the switch trips: the guarded operation class is suspended
as a whole (not per message) until ``restart_timeout`` elapses, after which it
resumes with a fresh window.

Usage:
    switch = KillSwitch(KillSwitchSettings(activation_threshold=10, trip_threshold=0.15))

    if switch.is_tripped:
        return  # suspended, try again after switch.remaining()
    try:
        await transport.publish(envelope)
        switch.record_success()
    except TransportError:
        switch.record_failure()
"""
import logging
import time
from collections import deque
from enum import Enum
from typing import Callable, Deque, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from housesync.core.config import (
    KILL_SWITCH_ACTIVATION_THRESHOLD,
    KILL_SWITCH_RESTART_TIMEOUT,
    KILL_SWITCH_TRIP_THRESHOLD,
    KILL_SWITCH_WINDOW,
)

log = logging.getLogger(__name__)


class KillSwitchState(str, Enum):
    ACTIVE = "active"  # Normal operation
    TRIPPED = "tripped"  # Suspended until the restart timeout passes


class KillSwitchSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    activation_threshold: int = Field(10, ge=1)
    trip_threshold: float = Field(0.15, gt=0, le=1)
    window: float = Field(60.0, gt=0)
    restart_timeout: float = Field(60.0, ge=0)


def kill_switch_settings() -> KillSwitchSettings:
    return KillSwitchSettings(
        activation_threshold=KILL_SWITCH_ACTIVATION_THRESHOLD,
        trip_threshold=KILL_SWITCH_TRIP_THRESHOLD,
        window=KILL_SWITCH_WINDOW,
        restart_timeout=KILL_SWITCH_RESTART_TIMEOUT,
    )


class KillSwitch:

    def __init__(
        self,
        settings: Optional[KillSwitchSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ):
        self.settings = settings or kill_switch_settings()
        self.name = name
        self._clock = clock
        self._outcomes: Deque[Tuple[float, bool]] = deque()
        self._tripped_until: Optional[float] = None
        self.trip_count = 0

    @property
    def state(self) -> KillSwitchState:
        if self._tripped_until is None:
            return KillSwitchState.ACTIVE
        if self._clock() >= self._tripped_until:
            self._restart()
            return KillSwitchState.ACTIVE
        return KillSwitchState.TRIPPED

    @property
    def is_tripped(self) -> bool:
        return self.state is KillSwitchState.TRIPPED

    def remaining(self) -> float:
        """Seconds until a tripped switch resumes; 0 when active."""
        if not self.is_tripped:
            return 0.0
        return max(0.0, self._tripped_until - self._clock())

    def record_success(self) -> None:
        self._record(True)

    def record_failure(self) -> None:
        self._record(False)
        self._evaluate()

    def _record(self, ok: bool) -> None:
        now = self._clock()
        self._outcomes.append((now, ok))
        horizon = now - self.settings.window
        while self._outcomes and self._outcomes[0][0] < horizon:
            self._outcomes.popleft()

    def _evaluate(self) -> None:
        if self._tripped_until is not None:
            return
        attempts = len(self._outcomes)
        if attempts < self.settings.activation_threshold:
            return
        failures = sum(1 for _, ok in self._outcomes if not ok)
        if failures / attempts >= self.settings.trip_threshold:
            self._tripped_until = self._clock() + self.settings.restart_timeout
            self.trip_count += 1
            log.error(
                "Kill-switch '%s' TRIPPED: %d of %d attempts failed; suspended for %.0fs.",
                self.name, failures, attempts, self.settings.restart_timeout,
            )

    def _restart(self) -> None:
        self._tripped_until = None
        self._outcomes.clear()
        log.info("Kill-switch '%s' restarted; resuming.", self.name)
