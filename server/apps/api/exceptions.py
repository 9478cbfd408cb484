"""Error taxonomy shared by every app.

Each error carries the HTTP status the API boundary answers with and a
message that is safe to show to the caller.
"""

from http import HTTPStatus
from typing import ClassVar


class DriveError(Exception):
    """Base class for failures reported to API callers."""

    status_code: ClassVar[int] = HTTPStatus.BAD_REQUEST
    default_message: ClassVar[str] = 'Request failed'

    def __init__(self, message: str | None = None) -> None:
        """Initialize DriveError.

        Args:
            message: Client-visible description of the failure.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(DriveError):
    """Missing, malformed or rejected bearer credential."""

    status_code = HTTPStatus.UNAUTHORIZED
    default_message = 'Invalid token'


class ValidationError(DriveError):
    """Empty required field, missing file payload or malformed input."""

    default_message = 'Invalid request'


class NotFoundError(DriveError):
    """Entity is absent or belongs to another owner.

    The two cases are deliberately indistinguishable to the caller.
    """

    status_code = HTTPStatus.NOT_FOUND
    default_message = 'Not found'


class ConflictError(DriveError):
    """Operation conflicts with the current hierarchy state."""

    default_message = 'Conflict'


class UpstreamStoreError(DriveError):
    """Metadata store, blob store or auth provider call failed."""

    default_message = 'Storage service error'


class UnexpectedError(DriveError):
    """Anything not covered by the other errors."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = 'Internal server error'
