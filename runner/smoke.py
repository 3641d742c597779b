#!/usr/bin/env python3
"""End-to-end smoke run against a live server.

Steps:
- wait for /ping
- sign up a throwaway user
- log in with a wrong then the right password
- read the profile with and without the token
- create checks up to the quota, then one more (must be refused)
- extend the token
- delete the user and the token (unless --keep)
- emit a compact summary and exit code

The API has no way to delete a check, so after cleanup the checks created
here are orphans. The summary lists them under ``leftover_checks``; remove
them with ``python -m tools.reconcile --apply`` once the server is stopped.
"""
from __future__ import annotations

import asyncio
import sys

import httpx

from app.logging_conf import get_logger, setup_logging
from runner import client as api
from runner.cli import parse_args
from runner.types import Session, SmokeError, StepResult
from runner.utils import random_password, random_phone, sample_check, summarize

setup_logging()
logger = get_logger("runner")


def _step(steps: list[StepResult], name: str, r: httpx.Response, expected: int) -> bool:
    ok = r.status_code == expected
    detail = None if ok else r.text[:200]
    steps.append(StepResult(name=name, ok=ok, status_code=r.status_code, detail=detail))
    logger.info(
        "runner.step",
        extra={"event": "step", "step": name, "ok": ok, "status_code": r.status_code},
    )
    return ok


async def run_smoke(
    *,
    base_url: str,
    max_checks: int = 5,
    phone: str | None = None,
    keep: bool = False,
    timeout_s: float = 20.0,
) -> int:
    await api.wait_for_ping(base_url, timeout_s)
    session = Session(phone=phone or random_phone(), password=random_password())
    steps: list[StepResult] = []
    cleaned_up = False

    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        try:
            await api.signup(client, session)
            steps.append(StepResult(name="signup", ok=True, status_code=200))

            _step(steps, "login_wrong_password", await api.login(client, session, password="nope"), 400)
            if not _step(steps, "login", await api.login(client, session), 200):
                raise SmokeError("login failed; cannot continue")

            _step(steps, "get_user", await api.get_user(client, session), 200)
            _step(steps, "get_user_no_token", await api.get_user(client, session, with_token=False), 403)

            for i in range(max_checks):
                _step(steps, f"create_check_{i + 1}", await api.create_check(client, session, sample_check(i)), 200)
            _step(
                steps,
                "create_check_over_quota",
                await api.create_check(client, session, sample_check(max_checks)),
                400,
            )

            await api.extend_token(client, session)
            steps.append(StepResult(name="extend_token", ok=True, status_code=200))

            if not keep:
                await api.delete_user(client, session)
                await api.delete_token(client, session)
                steps.append(StepResult(name="cleanup", ok=True, status_code=200))
                cleaned_up = True
        except SmokeError as e:
            steps.append(StepResult(name=getattr(e, "step", "flow"), ok=False, detail=str(e)))
            logger.error("runner.aborted", extra={"event": "aborted", "error": str(e)})

    summary, exit_code = summarize(steps, leftover_checks=session.check_ids if cleaned_up else ())
    summary["phone"] = session.phone
    summary["check_ids"] = session.check_ids
    logger.info("runner.summary", extra=summary)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    code = asyncio.run(
        run_smoke(
            base_url=args.base_url,
            max_checks=args.max_checks,
            phone=args.phone,
            keep=args.keep,
            timeout_s=args.timeout,
        )
    )
    raise SystemExit(code)


if __name__ == "__main__":
    main()
