"""Service-level errors. Each carries the HTTP status and client-facing message.

``reason`` holds internal detail (library error text, which check failed) for
logs only; the API layer never returns it.
"""


class ServiceError(Exception):
    """Base for errors raised by services and translated by the API layer."""

    status_code = 500

    def __init__(self, message: str, reason: str | None = None) -> None:
        self.message = message
        self.reason = reason
        super().__init__(message)


class ValidationError(ServiceError):
    """Missing or malformed client input."""

    status_code = 400


class ConflictError(ServiceError):
    """An account with the same username or email already exists."""

    status_code = 409


class AuthenticationError(ServiceError):
    """Login credentials did not match an account."""

    status_code = 401


class AccountNotFoundError(AuthenticationError):
    """No account for the identifier. Same status and message as a bad password."""


class UnauthorizedError(ServiceError):
    """Missing, invalid or expired access token, or its user no longer exists."""

    status_code = 401


class UnsupportedMediaTypeError(ServiceError):
    """Request body is neither JSON nor a form."""

    status_code = 415


class UploadError(ServiceError):
    """Object storage did not return a URL for a required image."""

    status_code = 400


class InternalError(ServiceError):
    """Unexpected persistence or token issuance failure."""

    status_code = 500
