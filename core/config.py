"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for credgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
or construct Settings(...) explicitly and pass it to the component that needs it.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance afterwards. The API lifespan and the
      CLI both go through it; TokenAuthority itself never reads the
      environment, it receives the Settings object at construction time.

  BaseSettings (pydantic-settings): field names map to env var names
      (jwt_secret -> JWT_SECRET, password_workers -> PASSWORD_WORKERS).

  @model_validator: mode="before" applies the JWT_SECRET fallback policy
      (the model is frozen, so it cannot be patched afterwards); mode="after"
      checks lengths and ranges once all fields are resolved.

Security notes:
  [S1] In production mode (DEBUG not set or false), a missing JWT_SECRET is a
       hard startup failure.

  [S2] In debug mode, a missing JWT_SECRET falls back to the publicly known
       DEFAULT_JWT_SECRET and logs a warning. Anyone who reads this file can
       forge tokens for a deployment running on the fallback.

  [S3] JWT_SECRET shorter than 32 characters is rejected outright. HS256
       signing relies on key entropy.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache

from pydantic import TypeAdapter, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("credgate.config")

DEFAULT_JWT_SECRET = "default-secret-key-change-in-production"

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Settings loaded from environment variables and an optional .env file.

    All fields have defaults so Settings(jwt_secret=...) can be built in tests
    without touching the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The validator
    # below either substitutes the debug fallback or raises.
    jwt_secret: str = ""

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    password_workers: int = 4
    # 0 disables the timeout.
    password_timeout_seconds: float = 0.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def apply_secret_fallback(cls, data):
        """Substitute DEFAULT_JWT_SECRET in debug mode [S2], refuse otherwise [S1].

        Runs in "before" mode because the model is frozen: the fallback must
        be in place before the instance exists.
        """
        if not isinstance(data, dict):
            return data
        secret = data.get("jwt_secret") or ""
        if secret:
            return data
        if _parse_debug(data.get("debug", False)):
            logger.warning(
                "WARNING: JWT_SECRET is not set; using the built-in default secret. "
                "Tokens signed with it can be forged by anyone. Never run this in production."
            )
            return {**data, "jwt_secret": DEFAULT_JWT_SECRET}
        raise ValueError(
            "JWT_SECRET is required in production mode. "
            "Set JWT_SECRET in your environment or .env file. "
            "To run in development mode, set DEBUG=true."
        )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Reject short secrets [S3] and nonsensical pool/timeout values."""
        if len(self.jwt_secret) < _MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters.")
        if self.password_workers < 1:
            raise ValueError("PASSWORD_WORKERS must be at least 1.")
        if self.password_timeout_seconds < 0:
            raise ValueError("PASSWORD_TIMEOUT_SECONDS must not be negative.")
        return self

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


_BOOL = TypeAdapter(bool)


def _parse_debug(value) -> bool:
    """Read DEBUG with the same rules the debug field uses.

    A value pydantic cannot read as a bool counts as production mode.
    """
    try:
        return _BOOL.validate_python(value)
    except ValidationError:
        return False


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings singleton.

    In tests: call get_settings.cache_clear() between cases if you need to
    inject different environment variables.
    """
    return Settings()
