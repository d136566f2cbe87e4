import os


def _flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


# Database Configuration
# The owning store (houses, rooms, outbox) and the replica store are separate connections.
OWNER_DATABASE_URL = os.getenv("OWNER_DATABASE_URL", "postgres://user:password@db:5432/house_db")
REPLICA_DATABASE_URL = os.getenv("REPLICA_DATABASE_URL", "postgres://user:password@db:5432/temperature_db")

# Application Metadata
PROJECT_NAME = "HouseSync Replication Service"
VERSION = "1.0.0"
APP_ENV = os.getenv("APP_ENV", "development")  # development | test | production
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Unit of work: set to false only for stores without transaction support (never in production)
OUTBOX_TRANSACTIONAL = _flag("OUTBOX_TRANSACTIONAL", True)

# Run the relay + in-process broker inside the API process
RUN_RELAY_IN_APP = _flag("RUN_RELAY_IN_APP", False)

# Outbox Relay Configuration
POLLING_INTERVAL = float(os.getenv("POLLING_INTERVAL", 1))  # Relay checks for new rows every N seconds
BATCH_SIZE = int(os.getenv("BATCH_SIZE", 50))  # How many rows to fetch per poll
PUBLISH_MAX_ATTEMPTS = int(os.getenv("PUBLISH_MAX_ATTEMPTS", 5))
PUBLISH_INITIAL_DELAY = float(os.getenv("PUBLISH_INITIAL_DELAY", 1))
PUBLISH_MAX_DELAY = float(os.getenv("PUBLISH_MAX_DELAY", 30))
PUBLISH_BACKOFF_MULTIPLIER = float(os.getenv("PUBLISH_BACKOFF_MULTIPLIER", 2))

# Kill-switch: trips once TRIP_THRESHOLD of the attempts inside WINDOW seconds failed,
# evaluated only after ACTIVATION_THRESHOLD attempts.
KILL_SWITCH_ACTIVATION_THRESHOLD = int(os.getenv("KILL_SWITCH_ACTIVATION_THRESHOLD", 10))
KILL_SWITCH_TRIP_THRESHOLD = float(os.getenv("KILL_SWITCH_TRIP_THRESHOLD", 0.15))
KILL_SWITCH_WINDOW = float(os.getenv("KILL_SWITCH_WINDOW", 60))
KILL_SWITCH_RESTART_TIMEOUT = float(os.getenv("KILL_SWITCH_RESTART_TIMEOUT", 60))

# Consumer redelivery (owned by the transport)
CONSUMER_MAX_ATTEMPTS = int(os.getenv("CONSUMER_MAX_ATTEMPTS", 5))
CONSUMER_INITIAL_DELAY = float(os.getenv("CONSUMER_INITIAL_DELAY", 1))
CONSUMER_MAX_DELAY = float(os.getenv("CONSUMER_MAX_DELAY", 30))
