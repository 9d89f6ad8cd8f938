"""
auth/models.py -- Domain types for authentication.

Pattern: Data class (pure data container, minimal logic). The token core
treats claims as an opaque mapping; Principal is the shape the HTTP glue
puts into that mapping and reads back out of it.

Claim names ("id", "userName", "type") are the ones already present in
tokens issued by the original service, so those tokens keep decoding.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

Claims = Mapping[str, Any]

PRINCIPAL_KINDS = ("user", "coach")


@dataclass(frozen=True)
class Principal:
    """An authenticated identity as carried inside a token.

    kind is "user" or "coach"; route dependencies gate on it.
    """

    user_id: str
    username: str
    kind: str  # "user", "coach"

    def to_claims(self) -> dict[str, Any]:
        return {"id": self.user_id, "userName": self.username, "type": self.kind}

    @classmethod
    def from_claims(cls, claims: Claims) -> Principal:
        """Build a Principal from verified claims.

        Raises ValueError if a required claim is missing or has the wrong
        type. A validly signed token without principal claims is still not a
        usable login token.
        """
        user_id = claims.get("id")
        username = claims.get("userName")
        kind = claims.get("type")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("claim 'id' must be a non-empty string")
        if not isinstance(username, str):
            raise ValueError("claim 'userName' must be a string")
        if kind not in PRINCIPAL_KINDS:
            raise ValueError(f"claim 'type' must be one of {PRINCIPAL_KINDS}")
        return cls(user_id=user_id, username=username, kind=kind)
