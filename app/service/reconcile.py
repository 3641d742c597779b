"""Find and remove checks no user references.

Orphans come from a failed second write during check creation, or from a
user being deleted while still owning checks.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

from pydantic import ValidationError

from ..domain.records import CHECKS, USERS, Check, User
from ..logging_conf import get_logger
from ..store import DocumentStore, RecordNotFoundError, StoreError

__all__ = ["Orphan", "find_orphaned_checks", "remove_orphaned_checks"]

logger = get_logger("service.reconcile")


@dataclass(frozen=True)
class Orphan:
    check_id: str
    user_phone: str | None
    reason: str  # "owner_missing" | "unreferenced" | "unreadable"

    def as_dict(self) -> dict:
        return asdict(self)


def _load_owner(store: DocumentStore, phone: str) -> User | str:
    """The owner's record, or the orphan reason that applies to its checks."""
    try:
        return User.model_validate(store.read(USERS, phone))
    except RecordNotFoundError:
        return "owner_missing"
    except (StoreError, ValidationError):
        return "unreadable"


def _reason(check_id: str, owner: User | str) -> str | None:
    if isinstance(owner, str):
        return owner
    if check_id not in owner.checks:
        return "unreferenced"
    return None


def find_orphaned_checks(store: DocumentStore) -> list[Orphan]:
    """Checks whose owner is gone or does not list them.

    A check whose owner record exists but cannot be decoded is reported as
    ``unreadable``, never as ``owner_missing``.
    """
    orphans: list[Orphan] = []
    owners: dict[str, User | str] = {}

    for check_id in store.list_keys(CHECKS):
        try:
            check = Check.model_validate(store.read(CHECKS, check_id))
        except RecordNotFoundError:
            continue  # deleted since listing
        except (StoreError, ValidationError):
            orphans.append(Orphan(check_id, None, "unreadable"))
            continue

        phone = check.user_phone
        if phone not in owners:
            owners[phone] = _load_owner(store, phone)

        reason = _reason(check_id, owners[phone])
        if reason is not None:
            orphans.append(Orphan(check_id, phone, reason))

    return orphans


def remove_orphaned_checks(store: DocumentStore) -> list[Orphan]:
    """Delete every orphan found and return what was removed.

    Unreadable records are reported but left on disk for inspection. The
    owner is read again right before each delete and the check is kept if it
    is now listed there or the owner can no longer be decoded. A check created
    while this runs can still be caught between its two writes, so run it
    against a stopped server.
    """
    removed: list[Orphan] = []
    for orphan in find_orphaned_checks(store):
        if orphan.reason == "unreadable" or orphan.user_phone is None:
            continue
        current = _reason(orphan.check_id, _load_owner(store, orphan.user_phone))
        if current is None or current == "unreadable":
            logger.info(
                "check.reconcile_skipped",
                extra={"event": "check_reconcile_skipped", "check_id": orphan.check_id, "reason": current},
            )
            continue
        try:
            store.delete(CHECKS, orphan.check_id)
        except RecordNotFoundError:
            continue
        removed.append(orphan)
        logger.info(
            "check.reconciled",
            extra={"event": "check_reconciled", "check_id": orphan.check_id, "reason": orphan.reason},
        )
    return removed
