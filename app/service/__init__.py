"""Service layer: one object per resource, wired from a single ``Settings``."""
from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..domain.records import CHECKS, TOKENS, USERS
from ..store import DocumentStore
from .checks import CheckService
from .tokens import Clock, TokenService, now_ms
from .users import UserService

__all__ = ["COLLECTIONS", "Services", "build_services"]

COLLECTIONS = (USERS, TOKENS, CHECKS)


@dataclass(frozen=True)
class Services:
    settings: Settings
    store: DocumentStore
    tokens: TokenService
    users: UserService
    checks: CheckService


def build_services(settings: Settings, *, clock: Clock | None = None) -> Services:
    store = DocumentStore(settings.data_dir)
    tokens = TokenService(store, settings, clock or now_ms)
    users = UserService(store, tokens, settings)
    checks = CheckService(store, tokens, users, settings)
    return Services(settings=settings, store=store, tokens=tokens, users=users, checks=checks)
