"""Error taxonomy of the event/registration core.

Stores raise these; ``LifecycleManager`` turns every one except
``PersistenceError`` into a ``Failure`` result for its callers.
"""


class CampusHubError(Exception):
    code = "campushub_error"

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context = context


class ValidationError(CampusHubError):
    code = "validation_error"

    def __init__(self, message: str = "Invalid input.", errors: dict[str, str] | None = None, **context):
        super().__init__(message, **context)
        self.errors = errors or {}


class EventNotFoundError(CampusHubError):
    code = "event_not_found"


class EventCancelledError(CampusHubError):
    code = "event_cancelled"


class EventFullError(CampusHubError):
    code = "event_full"


class DuplicateRegistrationError(CampusHubError):
    code = "duplicate_registration"


class NotRegisteredError(CampusHubError):
    code = "not_registered"


class CapacityViolationError(CampusHubError):
    code = "capacity_violation"


class PersistenceError(CampusHubError):
    code = "persistence_error"
