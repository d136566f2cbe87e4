import logging
from typing import Any, Dict, Optional

from tortoise import Tortoise

from housesync.core.config import OWNER_DATABASE_URL, REPLICA_DATABASE_URL

log = logging.getLogger(__name__)

# Connection names double as Tortoise app labels ("owner.House", "replica.ReplicaRoom")
OWNER = "owner"
REPLICA = "replica"

OWNER_MODELS = [
    "housesync.models.house",
    "housesync.models.outbox",
]
REPLICA_MODELS = [
    "housesync.models.replica",
]


def build_tortoise_config(owner_url: str = OWNER_DATABASE_URL, replica_url: str = REPLICA_DATABASE_URL) -> Dict[str, Any]:
    """Two connections, one app per connection. No model crosses between them."""
    return {
        "connections": {OWNER: owner_url, REPLICA: replica_url},
        "apps": {
            OWNER: {"models": OWNER_MODELS, "default_connection": OWNER},
            REPLICA: {"models": REPLICA_MODELS, "default_connection": REPLICA},
        },
        "use_tz": True,
        "timezone": "UTC",
    }


async def init_db(config: Optional[Dict[str, Any]] = None, generate_schemas: bool = True):
    """Initializes the Tortoise ORM connections and generates schemas."""
    config = config or build_tortoise_config()
    try:
        await Tortoise.init(config=config)
        if generate_schemas:
            await Tortoise.generate_schemas(safe=True)
        log.info("Database connections established (%s).", ", ".join(config["connections"]))
    except Exception:
        log.exception("FATAL ERROR: Could not connect to the owner/replica databases.")
        # Re-raise to prevent the application from starting without a database
        raise


async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    log.info("Database connections closed.")
