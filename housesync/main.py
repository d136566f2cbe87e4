import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, status

from housesync.api.v1.houses import router as houses_router
from housesync.api.v1.outbox import router as outbox_router
from housesync.api.v1.replica import router as replica_router
from housesync.api.v1.rooms import router as rooms_router
from housesync.consumers.dispatcher import register_consumers
from housesync.core.config import PROJECT_NAME, RUN_RELAY_IN_APP, VERSION
from housesync.core.db import close_db, init_db
from housesync.core.exception_handlers import setup_exception_handlers
from housesync.core.logging_config import configure_logging
from housesync.relay.outbox_relay import OutboxRelay
from housesync.transport.kill_switch import KillSwitch
from housesync.transport.memory import InMemoryBroker

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    configure_logging()
    log.info("Starting %s v%s...", PROJECT_NAME, VERSION)
    await init_db()  # Connect to both stores and generate schemas

    relay = broker = None
    if RUN_RELAY_IN_APP:
        broker = InMemoryBroker(kill_switch=KillSwitch(name="consume"))
        register_consumers(broker)
        relay = OutboxRelay(broker)
        await relay.start()
    yield
    if relay:
        await relay.stop()
        await broker.close()
    await close_db()
    log.info("%s stopped.", PROJECT_NAME)


app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Owner writes and outbox inspection, then replica reads
app.include_router(houses_router, prefix="/api/v1/houses", tags=["Houses"])
app.include_router(rooms_router, prefix="/api/v1/rooms", tags=["Rooms"])
app.include_router(outbox_router, prefix="/api/v1/outbox", tags=["Outbox"])
app.include_router(replica_router, prefix="/api/v1/replica", tags=["Replica"])

setup_exception_handlers(app)


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
