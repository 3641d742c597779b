from __future__ import annotations

import asyncio
import time

import httpx

from app.logging_conf import get_logger
from runner.types import Session, SmokeError, UnexpectedResponse

logger = get_logger("runner.client")


def _expect(step: str, r: httpx.Response, *statuses: int) -> dict:
    """Return the JSON body if ``r`` has one of ``statuses``, else raise."""
    if r.status_code not in statuses:
        raise UnexpectedResponse(step, r.status_code, r.text)
    return r.json() if r.content else {}


async def wait_for_ping(base_url: str, timeout_s: float = 20.0) -> None:
    """Hit /ping until it answers 200 or raise after a timeout."""
    deadline = time.monotonic() + timeout_s
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/ping")
                if r.status_code == 200:
                    logger.info("ping.ok", extra={"event": "ping_ok"})
                    return
            except httpx.TransportError:
                pass
            await asyncio.sleep(0.25)
    raise SmokeError("Server did not answer /ping within timeout")


async def signup(client: httpx.AsyncClient, session: Session) -> None:
    r = await client.post(
        "/users",
        json={
            "firstName": "Smoke",
            "lastName": "Runner",
            "phone": session.phone,
            "password": session.password,
            "tosAgreement": True,
        },
    )
    _expect("signup", r, 200)
    logger.info("user.created", extra={"event": "user_created", "phone": session.phone})


async def login(client: httpx.AsyncClient, session: Session, *, password: str | None = None) -> httpx.Response:
    """POST /tokens; on success the token is stored on ``session``."""
    r = await client.post(
        "/tokens",
        json={"phone": session.phone, "password": password or session.password},
    )
    if r.status_code == 200:
        body = r.json()
        session.token = body["id"]
        session.expires = body["expires"]
    return r


async def get_user(client: httpx.AsyncClient, session: Session, *, with_token: bool = True) -> httpx.Response:
    headers = {"token": session.token} if with_token and session.token else {}
    return await client.get("/users", params={"phone": session.phone}, headers=headers)


async def create_check(client: httpx.AsyncClient, session: Session, payload: dict) -> httpx.Response:
    r = await client.post("/checks", json=payload, headers={"token": session.token or ""})
    if r.status_code == 200:
        session.check_ids.append(r.json()["id"])
    return r


async def extend_token(client: httpx.AsyncClient, session: Session) -> dict:
    r = await client.put("/tokens", json={"id": session.token})
    body = _expect("extend_token", r, 200)
    session.expires = body["expires"]
    return body


async def delete_user(client: httpx.AsyncClient, session: Session) -> None:
    r = await client.delete(
        "/users", params={"phone": session.phone}, headers={"token": session.token or ""}
    )
    _expect("delete_user", r, 200)


async def delete_token(client: httpx.AsyncClient, session: Session) -> None:
    r = await client.delete("/tokens", params={"id": session.token})
    _expect("delete_token", r, 200)
    logger.info("token.deleted", extra={"event": "token_deleted"})
