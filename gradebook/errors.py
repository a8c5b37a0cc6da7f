"""
Error kinds raised by the gradebook core.

The HTTP layer in ``main.py`` maps each kind to a status code; nothing in the
core knows about transports.
"""


class GradebookError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class InvalidToken(GradebookError):
    """Token is malformed, expired, or its signature does not match."""

    status_code = 401


class RevokedToken(GradebookError):
    """Token has been revoked (logged out)."""

    status_code = 401


class InvalidCredentials(GradebookError):
    """Incorrect email or password."""

    status_code = 401


class OwnershipError(GradebookError):
    """Not found or you don't have permission to access it."""

    # "missing" and "owned by someone else" must look the same to callers
    status_code = 404


class NotEnrolled(GradebookError):
    """Student is not enrolled in this class."""

    status_code = 400


class CapacityExceeded(GradebookError):
    """Adding these students would exceed class capacity."""

    status_code = 400


class InvalidRecord(GradebookError):
    """Record contains unknown fields or out-of-range values."""

    status_code = 400


class ConflictError(GradebookError):
    """Record conflicts with an existing one."""

    status_code = 409


class StoreUnavailable(GradebookError):
    """The database could not be reached."""

    status_code = 503
