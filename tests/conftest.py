import pytest
import pytest_asyncio
from tortoise import Tortoise

from housesync.core.db import build_tortoise_config
from housesync.services.unit_of_work import TransactionalOutbox
from housesync.transport.kill_switch import KillSwitch, KillSwitchSettings
from housesync.transport.memory import InMemoryBroker
from housesync.transport.policy import RetryPolicy


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest_asyncio.fixture
async def db():
    """Owner and replica stores as two in-memory SQLite databases."""
    await Tortoise.init(config=build_tortoise_config("sqlite://:memory:", "sqlite://:memory:"))
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def uow():
    return TransactionalOutbox(transactional=True, environment="test")


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def broker():
    """In-process broker with instant redelivery and replica consumers attached."""
    from housesync.consumers.dispatcher import register_consumers

    broker = InMemoryBroker(retry_policy=RetryPolicy(max_attempts=3, initial_delay=0, max_delay=0))
    register_consumers(broker)
    yield broker
    await broker.close()


@pytest.fixture
def quiet_kill_switch(clock):
    """A kill-switch that never trips within a test."""
    return KillSwitch(KillSwitchSettings(activation_threshold=1000, trip_threshold=1.0), clock=clock)
