from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, Query

from ..service import Services
from .deps import get_services, json_payload
from .models import CheckOut, Empty, ErrorResponse, TokenOut, UserProfile

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)

Payload = dict[str, Any]


# ------------------------
# /users
# ------------------------

@router.post("/users", response_model=Empty, summary="Sign up")
def create_user(
    payload: Payload = Depends(json_payload),
    services: Services = Depends(get_services),
) -> Empty:
    """Required: firstName, lastName, phone, password, tosAgreement (true)."""
    services.users.create(payload)
    return Empty()


@router.get("/users", response_model=UserProfile, summary="Read own profile")
def get_user(
    phone: str | None = Query(default=None),
    token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> UserProfile:
    return UserProfile.model_validate(services.users.get(phone, token))


@router.put("/users", response_model=UserProfile, summary="Update own profile")
def update_user(
    payload: Payload = Depends(json_payload),
    token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> UserProfile:
    """Required: phone. At least one of firstName, lastName, password."""
    out = services.users.update(payload.get("phone"), token, payload)
    return UserProfile.model_validate(out)


@router.delete("/users", response_model=Empty, summary="Delete own account")
def delete_user(
    phone: str | None = Query(default=None),
    payload: Payload = Depends(json_payload),
    token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> Empty:
    # ?phone= wins; a JSON body is accepted for older clients.
    services.users.delete(phone if phone is not None else payload.get("phone"), token)
    return Empty()


# ------------------------
# /tokens
# ------------------------

@router.post("/tokens", response_model=TokenOut, summary="Log in")
def create_token(
    payload: Payload = Depends(json_payload),
    services: Services = Depends(get_services),
) -> TokenOut:
    token = services.tokens.issue(payload.get("phone"), payload.get("password"))
    return TokenOut.model_validate(token.to_document())


@router.get("/tokens", response_model=TokenOut, summary="Read a token")
def get_token(
    token_id: str | None = Query(default=None, alias="id"),
    services: Services = Depends(get_services),
) -> TokenOut:
    return TokenOut.model_validate(services.tokens.get(token_id).to_document())


@router.put("/tokens", response_model=TokenOut, summary="Extend a token by one TTL")
def extend_token(
    payload: Payload = Depends(json_payload),
    services: Services = Depends(get_services),
) -> TokenOut:
    return TokenOut.model_validate(services.tokens.extend(payload.get("id")).to_document())


@router.delete("/tokens", response_model=Empty, summary="Log out")
def delete_token(
    token_id: str | None = Query(default=None, alias="id"),
    payload: Payload = Depends(json_payload),
    services: Services = Depends(get_services),
) -> Empty:
    services.tokens.delete(token_id if token_id is not None else payload.get("id"))
    return Empty()


# ------------------------
# /checks
# ------------------------

@router.post("/checks", response_model=CheckOut, summary="Create an uptime check")
def create_check(
    payload: Payload = Depends(json_payload),
    token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> CheckOut:
    """Required: protocol, url, method, successCodes, timeoutSeconds. Quota per user."""
    check = services.checks.create(token, payload)
    return CheckOut.model_validate(check.to_document())


@router.get("/checks", response_model=CheckOut, summary="Read one of your checks")
def get_check(
    check_id: str | None = Query(default=None, alias="id"),
    token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> CheckOut:
    return CheckOut.model_validate(services.checks.get(check_id, token).to_document())
