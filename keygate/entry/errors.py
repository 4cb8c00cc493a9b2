"""Failure kinds of the entry protocol and their HTTP status codes."""

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500


class EntryError(Exception):
    """Base for every error the entry endpoint reports as ``{"error": ...}``."""

    status_code = HTTP_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(EntryError):
    """Required identifying parameters are missing."""

    status_code = HTTP_BAD_REQUEST


class NotFoundError(EntryError):
    """The company or user does not exist."""

    status_code = HTTP_NOT_FOUND


class UnauthorizedError(EntryError):
    """Personal key mismatch or missing key material."""

    status_code = HTTP_UNAUTHORIZED


class ServerMisconfiguredError(EntryError):
    """The company lacks a callback URL or an active secret."""


class ServerError(EntryError):
    """Unexpected store or signing failure."""
