"""Stored record shapes.

Records round-trip through the document store as camelCase JSON objects;
Python code uses the snake_case attributes.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "USERS",
    "TOKENS",
    "CHECKS",
    "WireModel",
    "User",
    "Token",
    "Check",
]

USERS = "users"
TOKENS = "tokens"
CHECKS = "checks"


class WireModel(BaseModel):
    """Base for models that speak camelCase on the wire and on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class User(WireModel):
    phone: str
    first_name: str
    last_name: str
    hashed_password: str
    tos_agreement: bool
    checks: list[str] = Field(default_factory=list)

    def public(self) -> dict[str, Any]:
        """The user as returned to clients: everything but the password hash."""
        return self.model_dump(by_alias=True, exclude={"hashed_password"})


class Token(WireModel):
    id: str
    phone: str
    expires: int  # epoch milliseconds

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires


class Check(WireModel):
    id: str
    user_phone: str
    protocol: str
    url: str
    method: str
    success_codes: list[int]
    timeout_seconds: int
