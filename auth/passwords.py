"""
auth/passwords.py -- Password hashing and verification (bcrypt).

Security design decisions:
  bcrypt, used directly (no passlib wrapper), cost factor 10. Each hash gets
       a fresh salt from bcrypt.gensalt(); the salt and cost are embedded in
       the returned "$2b$10$..." record, so verification needs nothing else.

  72-byte limit: bcrypt only looks at the first 72 bytes of input. Rather
       than silently truncate (two long passwords sharing a prefix would
       collide), hash_password() rejects longer input with ValueError.

  Offloading: bcrypt at cost 10 takes tens of milliseconds of pure CPU.
       PasswordVault runs it on a thread pool via loop.run_in_executor so an
       event loop serving other requests is never stalled. bcrypt releases
       the GIL while hashing, so the pool gives real parallelism.

  Timing equalization: verify_or_dummy() runs bcrypt against _DUMMY_RECORD
       when there is no stored record, so an unknown account takes as long to
       reject as a wrong password.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import bcrypt

from auth.errors import PasswordOperationTimeout

logger = logging.getLogger("credgate.auth")

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a salted bcrypt record for plain. Blocking; prefer PasswordVault.hash()."""
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password exceeds {BCRYPT_MAX_BYTES} bytes when UTF-8 encoded")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, record: str) -> bool:
    """Return True if plain reproduces the digest stored in record.

    A malformed record raises ValueError -- that is a caller bug, not a
    failed login. A candidate longer than 72 bytes can never match a record
    produced by hash_password(), so it is rejected without calling bcrypt.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, record.encode("utf-8"))


# Computed once at import so the first unknown-user login is not measurably
# faster or slower than later ones.
_DUMMY_RECORD: str = hash_password("credgate_timing_dummy")


class PasswordVault:
    """Runs bcrypt hash/verify off the event loop.

    Usage:
        vault = PasswordVault(max_workers=4, timeout=2.0)
        record = await vault.hash("hunter2")
        ok = await vault.verify("hunter2", record)
        vault.close()

    Operations share no state, so any number may be in flight at once; the
    pool size bounds how many actually run in parallel. With a timeout set,
    an operation that does not finish in time raises PasswordOperationTimeout
    and returns nothing -- a caller can never receive a partial record.
    """

    def __init__(self, max_workers: int = 4, timeout: float | None = None) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="credgate-bcrypt")
        self._timeout = timeout or None

    async def hash(self, password: str) -> str:
        return await self._run(hash_password, password)

    async def verify(self, password: str, record: str) -> bool:
        return await self._run(verify_password, password, record)

    async def verify_or_dummy(self, password: str, record: str | None) -> bool:
        """Verify against record, or burn an equivalent bcrypt run if there is none."""
        if record is None:
            await self._run(verify_password, password, _DUMMY_RECORD)
            return False
        return await self._run(verify_password, password, record)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, func, *args)
        if self._timeout is None:
            return await future
        try:
            return await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("%s timed out after %.2fs", func.__name__, self._timeout)
            raise PasswordOperationTimeout(f"{func.__name__} exceeded {self._timeout}s") from exc
