"""Validated request payloads.

Each operation parses its raw JSON fields into one of these models before
touching the store. Any missing or ill-typed field rejects the whole request
with ``MissingFieldsError``.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, TypeVar

from pydantic import (
    Field,
    StrictBool,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from .errors import MissingFieldsError
from .records import WireModel

__all__ = [
    "Phone",
    "NonEmptyStr",
    "SignupRequest",
    "UserUpdateRequest",
    "LoginRequest",
    "CheckCreateRequest",
    "parse_request",
    "parse_phone",
]

# ASCII digits only; `\d` would also accept other Unicode digits.
PHONE_PATTERN = r"^[0-9]{10,15}$"

NonEmptyStr = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
Phone = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, pattern=PHONE_PATTERN)]
StatusCode = Annotated[int, Field(strict=True, ge=100, le=599)]

_PHONE = TypeAdapter(Phone)

M = TypeVar("M", bound=WireModel)


class SignupRequest(WireModel):
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    phone: Phone
    password: NonEmptyStr
    tos_agreement: StrictBool

    @field_validator("tos_agreement")
    @classmethod
    def _must_agree(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("tosAgreement must be true")
        return value


class UserUpdateRequest(WireModel):
    phone: Phone
    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    password: NonEmptyStr | None = None

    @property
    def has_changes(self) -> bool:
        return any(v is not None for v in (self.first_name, self.last_name, self.password))


class LoginRequest(WireModel):
    phone: Phone
    password: NonEmptyStr


class CheckCreateRequest(WireModel):
    protocol: Literal["http", "https"]
    url: NonEmptyStr
    method: Literal["get", "post", "put", "delete"]
    success_codes: Annotated[list[StatusCode], Field(min_length=1)]
    timeout_seconds: Annotated[int, Field(strict=True, ge=1)]

    @field_validator("timeout_seconds")
    @classmethod
    def _within_limit(cls, value: int, info: ValidationInfo) -> int:
        limit = (info.context or {}).get("max_timeout_seconds")
        if limit is not None and value > limit:
            raise ValueError(f"timeoutSeconds must be at most {limit}")
        return value


def parse_request(
    model: type[M],
    fields: Mapping[str, Any] | None,
    *,
    message: str | None = None,
    **context: Any,
) -> M:
    """Validate ``fields`` into ``model`` or raise ``MissingFieldsError``.

    The error lists the offending wire field names under ``fields``.
    """
    data = dict(fields) if isinstance(fields, Mapping) else {}
    try:
        return model.model_validate(data, context=context or None)
    except ValidationError as e:
        bad = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise MissingFieldsError(message, fields=bad) from e


def parse_phone(value: object, *, message: str | None = None) -> str:
    """Validate a bare phone number (query strings) or raise ``MissingFieldsError``."""
    try:
        return _PHONE.validate_python(value)
    except ValidationError as e:
        raise MissingFieldsError(message, fields=["phone"]) from e
