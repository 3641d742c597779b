from __future__ import annotations

from typing import Any

from pydantic.alias_generators import to_camel

__all__ = [
    "ServiceError",
    "MissingFieldsError",
    "NoFieldsToUpdateError",
    "ForbiddenError",
    "ConflictError",
    "NotFoundError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "MaxChecksReachedError",
    "HashingError",
    "PersistenceError",
    "PartialFailureError",
]


class ServiceError(Exception):
    """Base class for every failure a service reports to its caller.

    ``code`` is a stable machine-readable identifier and ``status_code`` the
    HTTP status the dispatcher answers with. Both are class defaults that a
    raise site may override; ``extra`` is merged into the error response.
    """

    code: str = "service_error"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **extra: Any,
    ) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        extra = {to_camel(k): v for k, v in self.extra.items()}
        return {"error": self.message, "code": self.code, **extra}


class MissingFieldsError(ServiceError):
    code = "missing_fields"
    status_code = 400
    default_message = "Missing required fields"


class NoFieldsToUpdateError(ServiceError):
    code = "no_fields_to_update"
    status_code = 400
    default_message = "Missing fields to update"


class ForbiddenError(ServiceError):
    code = "forbidden"
    status_code = 403
    default_message = "Missing required token in header, or token is invalid"


class ConflictError(ServiceError):
    code = "conflict"
    status_code = 400
    default_message = "The record already exists"


class NotFoundError(ServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidCredentialsError(ServiceError):
    code = "invalid_credentials"
    status_code = 400
    default_message = "Password did not match"


class TokenExpiredError(ServiceError):
    code = "token_expired"
    status_code = 400
    default_message = "The token has already expired, and cannot be extended"


class MaxChecksReachedError(ServiceError):
    code = "max_checks_reached"
    status_code = 400
    default_message = "The user already has the maximum number of checks"


class HashingError(ServiceError):
    code = "hashing_error"
    status_code = 500
    default_message = "Could not hash the user's password"


class PersistenceError(ServiceError):
    code = "io_error"
    status_code = 500
    default_message = "Could not persist the record"


class PartialFailureError(PersistenceError):
    """The first of two dependent writes committed and the second did not."""

    code = "partial_failure"
