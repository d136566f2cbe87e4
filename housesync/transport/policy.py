from pydantic import BaseModel, ConfigDict, Field, model_validator

from housesync.core.config import (
    CONSUMER_INITIAL_DELAY,
    CONSUMER_MAX_ATTEMPTS,
    CONSUMER_MAX_DELAY,
    PUBLISH_BACKOFF_MULTIPLIER,
    PUBLISH_INITIAL_DELAY,
    PUBLISH_MAX_ATTEMPTS,
    PUBLISH_MAX_DELAY,
)


class RetryPolicy(BaseModel):
    """
    Bounded exponential backoff.

    ``delay_for(n)`` is the wait after the n-th failed attempt:
    ``initial_delay * multiplier ** (n - 1)``, capped at ``max_delay``.
    After ``max_attempts`` failed attempts the work is abandoned.
    """
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(5, ge=1)
    initial_delay: float = Field(1.0, ge=0)
    max_delay: float = Field(30.0, ge=0)
    multiplier: float = Field(2.0, ge=1)

    @model_validator(mode="after")
    def _check_delays(self):
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        return self

    def delay_for(self, failures: int) -> float:
        if failures < 1:
            return 0.0
        return min(self.max_delay, self.initial_delay * self.multiplier ** (failures - 1))

    def is_exhausted(self, failures: int) -> bool:
        return failures >= self.max_attempts


def publish_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=PUBLISH_MAX_ATTEMPTS,
        initial_delay=PUBLISH_INITIAL_DELAY,
        max_delay=PUBLISH_MAX_DELAY,
        multiplier=PUBLISH_BACKOFF_MULTIPLIER,
    )


def consumer_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=CONSUMER_MAX_ATTEMPTS,
        initial_delay=CONSUMER_INITIAL_DELAY,
        max_delay=CONSUMER_MAX_DELAY,
        multiplier=PUBLISH_BACKOFF_MULTIPLIER,
    )
