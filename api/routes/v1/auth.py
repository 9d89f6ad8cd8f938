"""
api/routes/v1/auth.py -- Token introspection endpoints.

Routes:
  GET /api/v1/auth/me       -- identity from the bearer token (requires auth)
  GET /api/v1/auth/session  -- soft auth: who is calling, if anyone (public)

Login, registration and user storage live in the service that owns user
records; they call TokenAuthority.issue() and PasswordVault directly.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends

from api.models import MeResponse, SessionResponse
from auth.dependencies import get_current_principal, try_get_claims
from auth.models import Principal

# Auth policy:
# - GET /api/v1/auth/me:       requires auth (get_current_principal)
# - GET /api/v1/auth/session:  public -- returns authenticated=false instead of 401
router = APIRouter()


@router.get("/auth/me", response_model=MeResponse)
async def me(principal: Principal = Depends(get_current_principal)) -> MeResponse:
    """Return identity information for the authenticated caller."""
    return MeResponse(id=principal.user_id, user_name=principal.username, type=principal.kind)


@router.get("/auth/session", response_model=SessionResponse)
async def session(claims: Optional[dict[str, Any]] = Depends(try_get_claims)) -> SessionResponse:
    """Report whether the request carries a valid token.

    Invalid and expired tokens are reported as anonymous rather than
    rejected, so pages that work for both audiences can call this freely.
    """
    return SessionResponse(authenticated=claims is not None, claims=claims)
