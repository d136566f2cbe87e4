import logging

from housesync.core.config import LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Applies the service-wide log format. Safe to call more than once."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # Set logging level for Tortoise ORM
    logging.getLogger('tortoise').setLevel(logging.INFO)
