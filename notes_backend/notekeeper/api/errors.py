from fastapi import status


class NotesError(Exception):
    """Base error for request-level failures; carries the HTTP status to report."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NotesError):
    """Malformed or out-of-bounds input."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(NotesError):
    """Missing, invalid or expired token, or the token's user no longer exists."""
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(NotesError):
    """Authenticated, but not the owner of the resource."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(NotesError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateEmail(NotesError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(NotesError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InvalidToken(Exception):
    """Raised by the token service on a bad signature, malformed token or expiry."""
