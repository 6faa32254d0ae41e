"""
Exceptions
Error taxonomy shared by the DoseKeeper services
"""

from typing import Optional


class DoseKeeperError(Exception):
    """Base class for all DoseKeeper errors"""


class PersistenceFailure(DoseKeeperError):
    """
    Reading from or writing to the store failed.

    The session has already been rolled back when this is raised, so no
    partially written rows are visible. Callers may retry on the next trigger.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"Persistence failure during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InvalidTransition(DoseKeeperError):
    """A log status change that the adherence state machine does not allow"""

    def __init__(self, current: str, requested: str, log_id: Optional[int] = None):
        self.current = current
        self.requested = requested
        self.log_id = log_id
        target = f"log {log_id}" if log_id is not None else "log"
        super().__init__(
            f"Cannot move {target} from '{current}' to '{requested}'"
        )


class SchedulingUnavailable(DoseKeeperError):
    """The notification center refused to register or remove a trigger"""


__all__ = [
    "DoseKeeperError",
    "PersistenceFailure",
    "InvalidTransition",
    "SchedulingUnavailable",
]
