class SubscriptionError(Exception):
    """Base class for errors raised by the subscription core."""


class ValidationError(SubscriptionError, ValueError):
    """Malformed body, date, id or a missing required field."""


class NotFoundError(SubscriptionError):
    """The requested id does not resolve to a subscription."""


class StorageError(SubscriptionError):
    """The persistence layer failed (connectivity, constraints, timeouts)."""
