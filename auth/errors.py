"""
auth/errors.py -- Exception types raised by the credential core.

InvalidCredential is the only failure token verification ever signals.
Callers must treat every instance the same way (reject the request); the
reason code exists for logs and metrics, not for branching in route code.

Layer rule: stdlib only.
"""

from __future__ import annotations

from enum import Enum


class InvalidCredentialReason(str, Enum):
    malformed = "malformed"
    bad_signature = "bad_signature"
    expired = "expired"


class InvalidCredential(Exception):
    """A token failed decoding, signature verification, or expiry checks.

    The message is deliberately identical for every reason so it can be
    forwarded to clients without leaking which check failed.
    """

    message = "Invalid or expired token"

    def __init__(self, reason: InvalidCredentialReason) -> None:
        super().__init__(self.message)
        self.reason = reason


class PasswordOperationTimeout(TimeoutError):
    """A password hash or verify did not finish within the configured timeout.

    No record is returned in this case; the underlying bcrypt call may still
    finish in its worker thread, and its result is discarded.
    """
