"""Error taxonomy raised by services and translated at the HTTP edge."""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for caller-visible failures."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(ServiceError):
    """Input was well-formed JSON but violates a business rule."""

    status_code = 422


class AuthenticationFailed(ServiceError):
    """Missing or unusable credentials."""

    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """A unique key (email, username, follow edge) already exists."""

    status_code = 409
