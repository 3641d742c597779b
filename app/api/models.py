from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from ..domain.records import Check, Token, WireModel

__all__ = ["UserProfile", "TokenOut", "CheckOut", "ErrorResponse", "Empty"]


class UserProfile(WireModel):
    """A user as shown to its owner (no password hash)."""
    phone: str
    first_name: str
    last_name: str
    tos_agreement: bool
    checks: list[str]


class TokenOut(Token):
    """A session token; `expires` is epoch milliseconds."""


class CheckOut(Check):
    """A stored uptime check definition."""


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    error: str
    code: Optional[str] = None


class Empty(BaseModel):
    """Successful mutation with nothing to return."""
