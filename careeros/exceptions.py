"""
Custom exceptions for the CareerOS progress core.

Route-level exception handlers in careeros.main map these onto HTTP
responses; services raise them and never translate them into partial results.
"""


class CareerOSError(Exception):
    """Base exception for all CareerOS errors."""
    pass


class ValidationError(CareerOSError):
    """Raised when a create/update payload is missing fields or is malformed."""

    def __init__(self, message: str, errors: list = None):
        self.errors = errors or []
        super().__init__(message)


class NotFoundError(CareerOSError):
    """Raised when a record does not exist or is not owned by the caller."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class UnknownEventError(CareerOSError):
    """Raised when invalidation is requested for an event outside the fixed set."""

    def __init__(self, event_kind):
        self.event_kind = event_kind
        super().__init__(f"Unknown invalidation event: {event_kind!r}")


class StoreTimeoutError(CareerOSError):
    """Raised when an entity store call exceeds its deadline."""

    def __init__(self, store: str, operation: str, timeout_seconds: float):
        self.store = store
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Entity store '{store}' {operation} timed out after {timeout_seconds}s"
        )


class CacheInvalidationError(CareerOSError):
    """Raised when cached views could be neither marked stale nor deleted."""

    def __init__(self, keys):
        self.keys = list(keys)
        super().__init__(f"Could not invalidate cached views: {', '.join(self.keys)}")
