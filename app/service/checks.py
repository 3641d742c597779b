from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..config import Settings
from ..domain.errors import (
    ForbiddenError,
    MaxChecksReachedError,
    MissingFieldsError,
    NotFoundError,
    PartialFailureError,
    PersistenceError,
)
from ..domain.records import CHECKS, USERS, Check
from ..domain.requests import CheckCreateRequest, parse_request
from ..domain.security import is_record_id, random_id
from ..logging_conf import get_logger
from ..store import DocumentStore, RecordNotFoundError, StoreError
from .tokens import TokenService
from .users import UserService

__all__ = ["CheckService"]

logger = get_logger("service.checks")

_INVALID_INPUTS = "Missing required inputs, or inputs are invalid"


class CheckService:
    """Uptime check definitions owned by users, capped at ``max_checks`` each.

    A check is written before its id is appended to the owner's ``checks``
    list. Those are two separate writes; if the second fails the check is
    left orphaned and the caller gets ``PartialFailureError`` with its id.
    """

    def __init__(
        self,
        store: DocumentStore,
        tokens: TokenService,
        users: UserService,
        settings: Settings,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.users = users
        self.settings = settings

    def create(self, token: object, fields: Mapping[str, Any] | None) -> Check:
        req = parse_request(
            CheckCreateRequest,
            fields,
            message=_INVALID_INPUTS,
            max_timeout_seconds=self.settings.max_timeout_seconds,
        )
        phone = self.tokens.resolve_owner(token)
        # Owner deleted while the token lives on: treat like a bad token.
        owner = self.users.load(phone, missing=ForbiddenError())

        limit = self.settings.max_checks
        if len(owner.checks) >= limit:
            raise MaxChecksReachedError(
                f"The user already has the maximum number of checks ({limit})"
            )

        check = Check(
            id=random_id(),
            user_phone=phone,
            protocol=req.protocol,
            url=req.url,
            method=req.method,
            success_codes=req.success_codes,
            timeout_seconds=req.timeout_seconds,
        )
        try:
            self.store.create(CHECKS, check.id, check.to_document())
        except StoreError as e:
            raise PersistenceError("Could not create the new check") from e

        owner.checks.append(check.id)
        try:
            self.store.update(USERS, owner.phone, owner.to_document())
        except StoreError as e:
            logger.error(
                "check.orphaned",
                extra={"event": "check_orphaned", "check_id": check.id, "phone": phone},
            )
            raise PartialFailureError(
                "Could not update the user with the new check", check_id=check.id
            ) from e

        logger.info(
            "check.create",
            extra={
                "event": "check_create",
                "check_id": check.id,
                "phone": phone,
                "count": len(owner.checks),
            },
        )
        return check

    def get(self, check_id: object, token: object) -> Check:
        if not is_record_id(check_id):
            raise MissingFieldsError(fields=["id"])
        try:
            check = Check.model_validate(self.store.read(CHECKS, check_id))
        except RecordNotFoundError as e:
            raise NotFoundError("Could not find the specified check") from e
        except (StoreError, ValidationError) as e:
            raise PersistenceError("Could not read the specified check") from e
        if not self.tokens.verify(token, check.user_phone):
            raise ForbiddenError()
        return check
