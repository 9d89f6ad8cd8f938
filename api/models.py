"""
API request and response models for credgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from auth/models.py, which owns the internal Principal type; route
handlers map between the two.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MeResponse(BaseModel):
    """Identity of the caller, as carried in their token."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_name: str = Field(alias="userName")
    type: str


class SessionResponse(BaseModel):
    """Soft-auth view of the caller. claims is None for anonymous callers."""

    authenticated: bool
    claims: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Every non-2xx response body: {"error": {"code", "message", "detail"}}."""

    error: ErrorDetail
