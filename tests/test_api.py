"""
HTTP-level tests through FastAPI's TestClient.
"""
from __future__ import annotations

import json

import pytest

from app.config import TOKEN_TTL_MS
from app.store import StoreError
from conftest import PHONE, check_fields, signup_fields


def _login(client, password: str = "pw") -> dict:
    r = client.post("/tokens", json={"phone": PHONE, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def signed_up(client):
    r = client.post("/users", json=signup_fields())
    assert r.status_code == 200, r.text


@pytest.fixture
def auth(client, signed_up) -> dict:
    return {"token": _login(client)["id"]}


def test_ping(client):
    r = client.get("/ping")
    assert r.status_code == 200
    assert r.json() == {}


def test_signup_login_profile_scenario(client, clock, settings):
    r = client.post("/users", json=signup_fields())
    assert r.status_code == 200
    assert r.json() == {}
    stored = json.loads((settings.data_dir / "users" / f"{PHONE}.json").read_text())
    assert stored["checks"] == []

    r = client.post("/tokens", json={"phone": PHONE, "password": "wrong"})
    assert r.status_code == 400
    assert r.json()["error"] == "Password did not match"

    token = _login(client)
    assert token["phone"] == PHONE
    assert token["expires"] - clock.now == 3_600_000

    r = client.get("/users", params={"phone": PHONE}, headers={"token": token["id"]})
    assert r.status_code == 200
    body = r.json()
    assert "hashedPassword" not in body
    assert body["firstName"] == "A" and body["checks"] == []

    r = client.get("/users", params={"phone": PHONE})
    assert r.status_code == 403
    assert "error" in r.json()


def test_duplicate_signup(client, signed_up):
    r = client.post("/users", json=signup_fields())
    assert r.status_code == 400
    assert r.json() == {
        "error": "A user with this phone number already exists",
        "code": "conflict",
    }


@pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]"])
def test_unparseable_body_is_missing_fields(client, body):
    r = client.post("/users", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["code"] == "missing_fields"


def test_update_profile(client, auth):
    r = client.put("/users", json={"phone": PHONE, "lastName": "C"}, headers=auth)
    assert r.status_code == 200
    assert r.json()["lastName"] == "C"

    r = client.put("/users", json={"phone": PHONE}, headers=auth)
    assert r.status_code == 400
    assert r.json()["error"] == "Missing fields to update"


def test_delete_user_then_lookup(client, auth):
    r = client.delete("/users", params={"phone": PHONE}, headers=auth)
    assert r.status_code == 200

    r = client.get("/users", params={"phone": PHONE}, headers=auth)
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


def test_delete_user_with_json_body(client, auth):
    r = client.request("DELETE", "/users", json={"phone": PHONE}, headers=auth)
    assert r.status_code == 200


def test_token_lifecycle(client, signed_up, clock):
    token = _login(client)

    r = client.get("/tokens", params={"id": token["id"]})
    assert r.status_code == 200
    assert r.json() == token

    clock.advance(60_000)
    r = client.put("/tokens", json={"id": token["id"]})
    assert r.status_code == 200
    assert r.json()["expires"] == clock.now + TOKEN_TTL_MS

    clock.advance(TOKEN_TTL_MS)
    r = client.put("/tokens", json={"id": token["id"]})
    assert r.status_code == 400
    assert r.json()["code"] == "token_expired"

    r = client.delete("/tokens", params={"id": token["id"]})
    assert r.status_code == 200
    r = client.get("/tokens", params={"id": token["id"]})
    assert r.status_code == 404
    r = client.delete("/tokens", params={"id": token["id"]})
    assert r.status_code == 400


def test_get_token_without_id(client):
    r = client.get("/tokens")
    assert r.status_code == 400
    assert r.json()["code"] == "missing_fields"


def test_token_id_with_trailing_newline_is_malformed(client):
    r = client.get("/tokens", params={"id": "a" * 20 + "\n"})
    assert r.status_code == 400
    assert r.json()["code"] == "missing_fields"


def test_checks_quota_over_http(client, auth, settings):
    ids = []
    for _ in range(settings.max_checks):
        r = client.post("/checks", json=check_fields(), headers=auth)
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["userPhone"] == PHONE
        assert body["successCodes"] == [200, 201]
        ids.append(body["id"])

    r = client.post("/checks", json=check_fields(), headers=auth)
    assert r.status_code == 400
    assert r.json()["code"] == "max_checks_reached"

    r = client.get("/users", params={"phone": PHONE}, headers=auth)
    assert r.json()["checks"] == ids

    r = client.get("/checks", params={"id": ids[0]}, headers=auth)
    assert r.status_code == 200
    assert r.json()["id"] == ids[0]


def test_check_requires_token(client, signed_up):
    r = client.post("/checks", json=check_fields())
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


def test_partial_failure_is_distinct(client, auth, monkeypatch):
    def failing_update(collection, key, record):
        raise StoreError("disk full")

    monkeypatch.setattr(client.app.state.services.store, "update", failing_update)

    r = client.post("/checks", json=check_fields(), headers=auth)
    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "partial_failure"
    assert len(body["checkId"]) == 20
    assert "disk full" not in r.text


def test_unknown_path(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["error"] == "Not Found"


def test_unsupported_method(client):
    r = client.patch("/users", json={})
    assert r.status_code == 405
    assert "error" in r.json()

    r = client.delete("/checks")
    assert r.status_code == 405


def test_request_id_is_echoed(client):
    r = client.get("/ping", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/ping").headers["X-Request-ID"]
