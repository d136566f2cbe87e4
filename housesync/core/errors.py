class HouseSyncError(Exception):
    """Base class for errors the service raises on purpose."""
    status_code = 500
    code = "server_error"


class ConfigurationError(HouseSyncError):
    code = "configuration_error"


class EntityNotFoundError(HouseSyncError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found.")


class ReferentialIntegrityError(HouseSyncError):
    """A write references a parent that does not exist."""
    status_code = 400
    code = "missing_parent"


class ConflictError(HouseSyncError):
    status_code = 409
    code = "conflict"


class TransportError(HouseSyncError):
    """Raised by a transport when it cannot accept a message."""
    status_code = 503
    code = "transport_error"


class TransportUnavailableError(TransportError):
    code = "transport_unavailable"


class UnknownEventTypeError(HouseSyncError):
    code = "unknown_event_type"

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type}")
