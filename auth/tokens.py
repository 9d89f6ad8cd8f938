"""
auth/tokens.py -- Signed bearer token issuance, verification, and header parsing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the caller's claims plus iat/exp
       and are signed with Settings.jwt_secret. Lifetime is fixed at 30 days
       (TOKEN_LIFETIME); callers cannot shorten or extend it per token.

  Verification: any failure raises InvalidCredential. The exception carries a
       reason code (malformed / bad_signature / expired) that is logged at
       DEBUG and otherwise ignored -- the route layer turns every instance
       into the same 401.

  Algorithm pinning: decode only accepts HS256, so a token whose header says
       "alg": "none" (or an asymmetric algorithm) is rejected as a signature
       failure rather than trusted.

  Clock: TokenAuthority takes an optional clock callable so expiry can be
       exercised without waiting 30 days. jose's own exp check is disabled
       and replaced with a check against that clock.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, NoReturn

from jose import JWTError, jwt

from auth.errors import InvalidCredential, InvalidCredentialReason
from auth.models import Claims
from core.config import Settings

logger = logging.getLogger("credgate.auth")

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=30)
BEARER_SCHEME = "Bearer"

# iat/exp are written by issue() and stripped by verify().
RESERVED_CLAIMS = frozenset({"iat", "exp"})

# Signature only. Every registered-claim check jose would otherwise apply
# (aud, sub, iss, ...) assumes a claim shape this module does not impose.
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
    "verify_at_hash": False,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_bearer_token(header_value: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` value.

    The header must be exactly the scheme, one space, and the token. Anything
    else -- absent header, other scheme, extra spaces, no token -- yields None.
    Never raises.
    """
    if not header_value or not isinstance(header_value, str):
        return None
    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME:
        return None
    return parts[1]


class TokenAuthority:
    """Issues and verifies HS256 tokens with a fixed 30-day lifetime.

    Holds no mutable state: the secret comes from the Settings object passed
    in at construction and is never changed afterwards, so one instance can
    be shared across all requests and threads.
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] | None = None) -> None:
        self._secret = settings.jwt_secret
        self._clock = clock or _utcnow

    def issue(self, claims: Claims) -> str:
        """Sign claims into a compact token valid for TOKEN_LIFETIME.

        Raises ValueError if claims use a reserved name (iat, exp) and
        TypeError if a claim value is not JSON-serializable.
        """
        reserved = RESERVED_CLAIMS.intersection(claims)
        if reserved:
            raise ValueError(f"claims may not set reserved names: {sorted(reserved)}")
        issued_at = int(self._clock().timestamp())
        payload: dict[str, Any] = dict(claims)
        payload["iat"] = issued_at
        payload["exp"] = issued_at + int(TOKEN_LIFETIME.total_seconds())
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        """Return the original claims of a valid, unexpired token.

        Raises InvalidCredential on malformed input, signature mismatch, or
        when the current time is at or past the token's exp.
        """
        if not isinstance(token, str) or not token:
            self._reject(InvalidCredentialReason.malformed)
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            self._reject(InvalidCredentialReason.malformed)
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
        except JWTError:
            self._reject(InvalidCredentialReason.bad_signature)

        expires_at = payload.get("exp")
        if isinstance(expires_at, bool) or not isinstance(expires_at, int):
            self._reject(InvalidCredentialReason.malformed)
        if self._clock().timestamp() >= expires_at:
            self._reject(InvalidCredentialReason.expired)

        return {k: v for k, v in payload.items() if k not in RESERVED_CLAIMS}

    extract_bearer_token = staticmethod(extract_bearer_token)

    @staticmethod
    def _reject(reason: InvalidCredentialReason) -> NoReturn:
        logger.debug("Token rejected (%s)", reason.value)
        raise InvalidCredential(reason)
