"""Error taxonomy for the analysis core.

Every error carries a ``kind`` string so callers (the HTTP layer in
particular) can map it to a distinct response without isinstance chains.
"""


class RevLensError(Exception):
    """Base class for errors reported by the RevLens core."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(RevLensError):
    """Referenced project, file or task is absent or tombstoned."""

    kind = "not_found"


class InvalidRequestError(RevLensError):
    """Malformed input, empty type list, or a project with no files."""

    kind = "invalid_request"


class InvalidTransitionError(InvalidRequestError):
    """A task status change that the lifecycle does not allow."""

    kind = "invalid_transition"

    def __init__(self, message: str, current=None):
        super().__init__(message)
        # TaskStatus the task was found in, when known
        self.current = current


class PersistenceError(RevLensError):
    """The store was unavailable or rejected a write."""

    kind = "persistence_error"


class QueueError(RevLensError):
    """A descriptor could not be durably appended after bounded retry."""

    kind = "queue_error"
