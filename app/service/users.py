from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..config import Settings
from ..domain.errors import (
    ConflictError,
    ForbiddenError,
    NoFieldsToUpdateError,
    NotFoundError,
    PersistenceError,
)
from ..domain.records import USERS, User
from ..domain.requests import SignupRequest, UserUpdateRequest, parse_phone, parse_request
from ..domain.security import hash_password
from ..logging_conf import get_logger
from ..store import DocumentStore, RecordExistsError, RecordNotFoundError, StoreError
from .tokens import TokenService

__all__ = ["UserService"]

logger = get_logger("service.users")


class UserService:
    def __init__(self, store: DocumentStore, tokens: TokenService, settings: Settings) -> None:
        self.store = store
        self.tokens = tokens
        self.settings = settings

    def _authorize(self, token: object, phone: str) -> None:
        if not self.tokens.verify(token, phone):
            logger.info("user.forbidden", extra={"event": "user_forbidden", "phone": phone})
            raise ForbiddenError()

    def load(self, phone: str, *, missing: NotFoundError) -> User:
        try:
            return User.model_validate(self.store.read(USERS, phone))
        except RecordNotFoundError as e:
            raise missing from e
        except (StoreError, ValidationError) as e:
            raise PersistenceError("Could not read the specified user") from e

    # ------------------------
    # Use-cases
    # ------------------------

    def create(self, fields: Mapping[str, Any] | None) -> User:
        """Sign a user up. The store's exclusive create is the duplicate check."""
        req = parse_request(SignupRequest, fields)
        user = User(
            phone=req.phone,
            first_name=req.first_name,
            last_name=req.last_name,
            hashed_password=hash_password(req.password, self.settings.hashing_secret),
            tos_agreement=True,
            checks=[],
        )
        try:
            self.store.create(USERS, user.phone, user.to_document())
        except RecordExistsError as e:
            raise ConflictError("A user with this phone number already exists") from e
        except StoreError as e:
            raise PersistenceError("Could not create the new user") from e
        logger.info("user.create", extra={"event": "user_create", "phone": user.phone})
        return user

    def get(self, phone: object, token: object) -> dict[str, Any]:
        phone = parse_phone(phone)
        self._authorize(token, phone)
        user = self.load(phone, missing=NotFoundError("Could not find the specified user"))
        return user.public()

    def update(self, phone: object, token: object, fields: Mapping[str, Any] | None) -> dict[str, Any]:
        """Merge firstName/lastName/password into the stored user."""
        merged = dict(fields) if isinstance(fields, Mapping) else {}
        merged["phone"] = phone
        req = parse_request(UserUpdateRequest, merged)
        if not req.has_changes:
            raise NoFieldsToUpdateError()
        self._authorize(token, req.phone)

        missing = NotFoundError("The specified user does not exist", status_code=400)
        user = self.load(req.phone, missing=missing)
        if req.first_name is not None:
            user.first_name = req.first_name
        if req.last_name is not None:
            user.last_name = req.last_name
        if req.password is not None:
            user.hashed_password = hash_password(req.password, self.settings.hashing_secret)

        try:
            self.store.update(USERS, user.phone, user.to_document())
        except RecordNotFoundError as e:
            raise missing from e
        except StoreError as e:
            raise PersistenceError("Could not update the user") from e
        logger.info(
            "user.update",
            extra={
                "event": "user_update",
                "phone": user.phone,
                "fields": [k for k in ("firstName", "lastName", "password") if merged.get(k) is not None],
            },
        )
        return user.public()

    def delete(self, phone: object, token: object) -> None:
        """Remove the user record. Tokens and checks it owns are left in place."""
        phone = parse_phone(phone)
        self._authorize(token, phone)
        missing = NotFoundError("Could not find the specified user", status_code=400)
        try:
            self.store.delete(USERS, phone)
        except RecordNotFoundError as e:
            raise missing from e
        except StoreError as e:
            raise PersistenceError("Could not delete the specified user") from e
        logger.info("user.delete", extra={"event": "user_delete", "phone": phone})
