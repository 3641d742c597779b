from __future__ import annotations

import time
from collections.abc import Callable

from pydantic import ValidationError

from ..config import Settings
from ..domain.errors import (
    ForbiddenError,
    InvalidCredentialsError,
    MissingFieldsError,
    NotFoundError,
    PersistenceError,
    TokenExpiredError,
)
from ..domain.records import TOKENS, USERS, Token, User
from ..domain.requests import LoginRequest, parse_request
from ..domain.security import is_record_id, passwords_match, random_id
from ..logging_conf import get_logger
from ..store import DocumentStore, RecordNotFoundError, StoreError

__all__ = ["Clock", "now_ms", "TokenService"]

logger = get_logger("service.tokens")

Clock = Callable[[], int]


def now_ms() -> int:
    """Return current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _short(token_id: str) -> str:
    return f"{token_id[:4]}…"


class TokenService:
    """Session tokens: opaque ids that expire a fixed TTL after issue/extend."""

    def __init__(self, store: DocumentStore, settings: Settings, clock: Clock = now_ms) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock

    def _load(self, token_id: str, *, missing: NotFoundError) -> Token:
        try:
            return Token.model_validate(self.store.read(TOKENS, token_id))
        except RecordNotFoundError as e:
            raise missing from e
        except (StoreError, ValidationError) as e:
            raise PersistenceError("Could not read the specified token") from e

    @staticmethod
    def _require_id(token_id: object) -> str:
        if not is_record_id(token_id):
            raise MissingFieldsError(fields=["id"])
        return token_id  # type: ignore[return-value]

    # ------------------------
    # Use-cases
    # ------------------------

    def issue(self, phone: object, password: object) -> Token:
        """Log a user in and return a fresh token."""
        creds = parse_request(LoginRequest, {"phone": phone, "password": password})
        try:
            user = User.model_validate(self.store.read(USERS, creds.phone))
        except RecordNotFoundError as e:
            raise NotFoundError("Could not find the specified user", status_code=400) from e
        except (StoreError, ValidationError) as e:
            raise PersistenceError("Could not read the specified user") from e

        if not passwords_match(creds.password, user.hashed_password, self.settings.hashing_secret):
            logger.info("token.denied", extra={"event": "token_denied", "phone": creds.phone})
            raise InvalidCredentialsError()

        token = Token(
            id=random_id(),
            phone=creds.phone,
            expires=self.clock() + self.settings.token_ttl_ms,
        )
        try:
            self.store.create(TOKENS, token.id, token.to_document())
        except StoreError as e:
            raise PersistenceError("Could not create the new token") from e
        logger.info(
            "token.issue",
            extra={"event": "token_issue", "phone": token.phone, "token": _short(token.id)},
        )
        return token

    def get(self, token_id: object) -> Token:
        token_id = self._require_id(token_id)
        return self._load(token_id, missing=NotFoundError("Could not find the specified token"))

    def extend(self, token_id: object) -> Token:
        """Push expiry to now + TTL. Expired tokens stay expired."""
        token_id = self._require_id(token_id)
        token = self._load(
            token_id,
            missing=NotFoundError("Specified token does not exist", status_code=400),
        )
        now = self.clock()
        if token.is_expired(now):
            raise TokenExpiredError()

        token.expires = now + self.settings.token_ttl_ms
        try:
            self.store.update(TOKENS, token.id, token.to_document())
        except RecordNotFoundError as e:
            raise NotFoundError("Specified token does not exist", status_code=400) from e
        except StoreError as e:
            raise PersistenceError("Could not update the token's expiration") from e
        logger.info("token.extend", extra={"event": "token_extend", "token": _short(token.id)})
        return token

    def delete(self, token_id: object) -> None:
        token_id = self._require_id(token_id)
        try:
            self.store.delete(TOKENS, token_id)
        except RecordNotFoundError as e:
            raise NotFoundError("Could not find the specified token", status_code=400) from e
        except StoreError as e:
            raise PersistenceError("Could not delete the specified token") from e
        logger.info("token.delete", extra={"event": "token_delete", "token": _short(token_id)})

    def verify(self, token_id: object, phone: object) -> bool:
        """True iff the token exists, belongs to ``phone`` and has not expired."""
        if not is_record_id(token_id) or not isinstance(phone, str):
            return False
        try:
            token = Token.model_validate(self.store.read(TOKENS, token_id))
        except (StoreError, ValidationError):
            return False
        return token.phone == phone and not token.is_expired(self.clock())

    def resolve_owner(self, token_id: object) -> str:
        """Phone of the user holding a live token, else ``ForbiddenError``."""
        if not is_record_id(token_id):
            raise ForbiddenError()
        try:
            token = Token.model_validate(self.store.read(TOKENS, token_id))
        except RecordNotFoundError as e:
            raise ForbiddenError() from e
        except (StoreError, ValidationError) as e:
            raise PersistenceError("Could not read the specified token") from e
        if token.is_expired(self.clock()):
            raise ForbiddenError()
        return token.phone
