"""
api/main.py -- FastAPI application entry point for credgate.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. log_requests          -- one INFO line per request with latency

Lifespan loads Settings once, builds the TokenAuthority and PasswordVault,
and shuts the vault's thread pool down on exit. Route code reaches both
through the Depends() helpers in auth/dependencies.py.

Every error response, including router-level 404/405, has the shape
{"error": {"code", "message", "detail"}}.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.passwords import PasswordVault
from auth.tokens import TokenAuthority
from core.config import get_settings

VERSION = "0.1.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("credgate.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the credential components once and tear them down on shutdown.

    get_settings() raises here (not at import) when JWT_SECRET is missing in
    production mode, so the server refuses to start instead of serving with
    a guessable key.
    """
    settings = get_settings()
    logger.info("credgate API starting up (debug=%s)", settings.debug)
    if settings.uses_default_secret:
        logger.warning("Signing tokens with the built-in default secret -- do not expose this instance")
    app.state.token_authority = TokenAuthority(settings)
    app.state.password_vault = PasswordVault(
        max_workers=settings.password_workers,
        timeout=settings.password_timeout_seconds,
    )

    yield

    app.state.password_vault.close()
    logger.info("credgate API shutdown complete")


app = FastAPI(
    title="credgate API",
    description="Bearer token issuance/verification and password hashing core.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["localhost", "127.0.0.1", "*.localhost"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, headers: Optional[dict] = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap every HTTP error in the error envelope.

    Registered on Starlette's base class so the router's own 404 and 405
    are covered as well as the fastapi.HTTPException raised by auth
    dependencies. A {"code", "message"} dict detail is used as the error
    field as-is; WWW-Authenticate and other headers are carried over.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail), exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures server-side; clients only see a generic 500."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
