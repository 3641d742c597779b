from __future__ import annotations

import secrets
import string
from collections.abc import Sequence

from runner.types import StepResult


def random_phone(prefix: str = "1555") -> str:
    """A syntactically valid 11-digit phone that is unlikely to collide."""
    return prefix + "".join(secrets.choice(string.digits) for _ in range(11 - len(prefix)))


def random_password(length: int = 16) -> str:
    return secrets.token_urlsafe(length)


def sample_check(index: int) -> dict:
    """Payload for the ``index``-th check created during a run."""
    return {
        "protocol": "https" if index % 2 else "http",
        "url": f"example.com/smoke/{index}",
        "method": "get",
        "successCodes": [200, 201],
        "timeoutSeconds": 3,
    }


def summarize(steps: list[StepResult], *, leftover_checks: Sequence[str] = ()) -> tuple[dict, int]:
    """Compute summary dict and an exit code from step outcomes.

    ``leftover_checks`` are check ids whose owner was deleted during cleanup.
    They do not affect the exit code.
    """
    failed = [s for s in steps if not s.ok]
    summary = {
        "component": "runner",
        "event": "summary",
        "steps": len(steps),
        "passed": len(steps) - len(failed),
        "failed": len(failed),
        "failures": [
            {"step": s.name, "status_code": s.status_code, "detail": s.detail} for s in failed
        ],
    }
    if leftover_checks:
        summary["leftover_checks"] = list(leftover_checks)
        summary["hint"] = "run `python -m tools.reconcile --apply` to delete leftover checks"
    exit_code = 0 if steps and not failed else 1
    return summary, exit_code
