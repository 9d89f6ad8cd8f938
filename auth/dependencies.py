"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

The token is read from the Authorization header only, in the exact form
"Bearer <token>". The TokenAuthority is taken from app.state, where the API
lifespan put it, so these helpers never touch configuration themselves.

try_get_claims() is the soft variant (returns None on failure).
get_current_claims() wraps it and raises HTTP 401 if unauthenticated.
get_current_principal() additionally requires the principal claim shape.
require_kind() wraps get_current_principal() and raises HTTP 403 if the
principal's type does not match the route.
get_password_vault() hands route code the shared PasswordVault, for the
login and registration handlers that own user records.

Layer rule: may import from fastapi because this module is part of the
FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request

from auth.errors import InvalidCredential
from auth.models import PRINCIPAL_KINDS, Principal
from auth.passwords import PasswordVault
from auth.tokens import TokenAuthority, extract_bearer_token


def _token_authority(request: Request) -> TokenAuthority:
    return request.app.state.token_authority


def get_password_vault(request: Request) -> PasswordVault:
    return request.app.state.password_vault


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def try_get_claims(request: Request) -> dict[str, Any] | None:
    """Return verified claims for the request, or None.

    Never raises -- a missing, malformed, forged, or expired token all mean
    "anonymous" here. Use for routes that behave differently for signed-in
    callers but still serve everyone.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    try:
        return _token_authority(request).verify(token)
    except InvalidCredential:
        return None


def get_current_claims(request: Request) -> dict[str, Any]:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    A missing token and a rejected token get different codes so clients can
    tell "not signed in" from "signed in, but the session is no longer good".
    Which check rejected the token is never revealed.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise _unauthorized("missing_token", "No token provided.")
    try:
        return _token_authority(request).verify(token)
    except InvalidCredential as exc:
        raise _unauthorized("invalid_token", str(exc)) from exc


def get_current_principal(claims: dict[str, Any] = Depends(get_current_claims)) -> Principal:
    """Require a valid token that carries principal claims (id, userName, type)."""
    try:
        return Principal.from_claims(claims)
    except ValueError as exc:
        raise _unauthorized("invalid_token", InvalidCredential.message) from exc


def require_kind(kind: str):
    """Return a dependency that only admits principals of the given kind.

    Use as a FastAPI dependency:
        @router.get("/coach/students")
        async def route(coach: Principal = Depends(require_kind("coach"))): ...
    """
    if kind not in PRINCIPAL_KINDS:
        raise ValueError(f"unknown principal kind {kind!r}; expected one of {PRINCIPAL_KINDS}")

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.kind != kind:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": f"Invalid token type for {kind} route."},
            )
        return principal

    return dependency
