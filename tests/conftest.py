"""
pytest configuration and fixtures.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from app.config import ENVIRONMENTS, Settings
from app.main import create_app
from app.service import Services, build_services
from app.store import DocumentStore

PHONE = "15551234567"
OTHER_PHONE = "15557654321"
START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Staging settings with an isolated data dir and a small quota."""
    return replace(ENVIRONMENTS["staging"], data_dir=tmp_path / "data", max_checks=3)


@pytest.fixture
def store(settings: Settings) -> DocumentStore:
    return DocumentStore(settings.data_dir)


@pytest.fixture
def services(settings: Settings, clock: FakeClock) -> Services:
    return build_services(settings, clock=clock)


@pytest.fixture
def client(settings: Settings, clock: FakeClock) -> Iterator[TestClient]:
    with TestClient(create_app(settings, clock=clock)) as c:
        yield c


def signup_fields(phone: str = PHONE, **overrides) -> dict:
    fields = {
        "firstName": "A",
        "lastName": "B",
        "phone": phone,
        "password": "pw",
        "tosAgreement": True,
    }
    fields.update(overrides)
    return fields


def check_fields(**overrides) -> dict:
    fields = {
        "protocol": "https",
        "url": "example.com/health",
        "method": "get",
        "successCodes": [200, 201],
        "timeoutSeconds": 3,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def user(services: Services):
    return services.users.create(signup_fields())


@pytest.fixture
def token(services: Services, user):
    return services.tokens.issue(PHONE, "pw")
