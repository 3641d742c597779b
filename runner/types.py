from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Session:
    """Credentials and state for the throwaway user of one smoke run."""

    phone: str
    password: str
    token: str | None = None
    expires: int | None = None
    check_ids: list[str] = field(default_factory=list)


@dataclass
class StepResult:
    """Outcome of one step of the smoke flow."""

    name: str
    ok: bool
    status_code: int | None = None
    detail: str | None = None


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., server never answers /ping)."""


class UnexpectedResponse(SmokeError):
    """Raised when an API call answers with a status the flow did not expect."""

    def __init__(self, step: str, status_code: int, body: str) -> None:
        super().__init__(f"{step}: unexpected status {status_code}: {body[:200]}")
        self.step = step
        self.status_code = status_code
