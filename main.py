#!/usr/bin/env python3
"""
credgate -- operator CLI for the credential core.

Usage:
  python main.py hash-password
  echo -n 's3cret' | python main.py hash-password --stdin
  python main.py verify-password '$2b$10$...'
  python main.py issue-token --claim id=u1 --claim userName=alice --claim type=user
  python main.py verify-token eyJhbGciOi...

Environment variables:
  JWT_SECRET   Signing key for issue-token / verify-token (min 32 chars).
               The password commands do not read it.
  DEBUG        Set to true to fall back to the built-in (unsafe) secret.

Exit codes:
  0  success
  1  credential rejected (password mismatch, invalid or expired token)
  2  bad input or configuration
  3  password operation timed out (--timeout)
"""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from typing import Optional

from auth.errors import InvalidCredential, PasswordOperationTimeout
from auth.passwords import PasswordVault
from auth.tokens import TokenAuthority
from core.config import get_settings

logger = logging.getLogger("credgate.cli")


def _read_password(from_stdin: bool) -> str:
    """Read a password without echoing it, or from stdin for scripting.

    A single trailing newline is stripped from stdin input so that
    `echo pw | ...` and `printf pw | ...` behave the same.
    """
    if from_stdin:
        value = sys.stdin.read()
        return value[:-1] if value.endswith("\n") else value
    return getpass.getpass("Password: ")


def _parse_claims(pairs: list[str]) -> dict:
    """Turn KEY=VALUE pairs into a claims dict. Values that parse as JSON
    (numbers, booleans, lists) keep their type; anything else stays a string."""
    claims: dict = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"claim '{pair}' is not in KEY=VALUE form")
        try:
            claims[key] = json.loads(raw)
        except json.JSONDecodeError:
            claims[key] = raw
    return claims


async def _with_vault(timeout: float, op, *args):
    # Password commands never load Settings: hashing does not depend on JWT_SECRET.
    if timeout < 0:
        raise ValueError("--timeout must not be negative")
    vault = PasswordVault(max_workers=1, timeout=timeout)
    try:
        return await op(vault, *args)
    finally:
        vault.close()


def _cmd_hash_password(args: argparse.Namespace) -> int:
    password = _read_password(args.stdin)
    if not password:
        print("  [!] Refusing to hash an empty password.", file=sys.stderr)
        return 2
    record = asyncio.run(_with_vault(args.timeout, PasswordVault.hash, password))
    print(record)
    return 0


def _cmd_verify_password(args: argparse.Namespace) -> int:
    password = _read_password(args.stdin)
    matched = asyncio.run(_with_vault(args.timeout, PasswordVault.verify, password, args.record))
    print("match" if matched else "no match")
    return 0 if matched else 1


def _cmd_issue_token(args: argparse.Namespace) -> int:
    claims = _parse_claims(args.claim or [])
    authority = TokenAuthority(get_settings())
    print(authority.issue(claims))
    return 0


def _cmd_verify_token(args: argparse.Namespace) -> int:
    authority = TokenAuthority(get_settings())
    try:
        claims = authority.verify(args.token)
    except InvalidCredential as exc:
        print(f"  [!] {exc}", file=sys.stderr)
        return 1
    print(json.dumps(claims, indent=2, sort_keys=True))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credgate",
        description="Hash and verify passwords; issue and verify bearer tokens.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log rejection reasons to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("hash-password", help="Print a bcrypt record for a password")
    p.add_argument("--stdin", action="store_true", help="Read the password from stdin instead of prompting")
    p.add_argument("--timeout", type=float, default=0.0, metavar="SECONDS", help="Give up after SECONDS (0 = no limit)")
    p.set_defaults(func=_cmd_hash_password)

    p = sub.add_parser("verify-password", help="Check a password against a bcrypt record")
    p.add_argument("record", help="Stored password record ($2b$...)")
    p.add_argument("--stdin", action="store_true", help="Read the password from stdin instead of prompting")
    p.add_argument("--timeout", type=float, default=0.0, metavar="SECONDS", help="Give up after SECONDS (0 = no limit)")
    p.set_defaults(func=_cmd_verify_password)

    p = sub.add_parser("issue-token", help="Sign a 30-day token for the given claims")
    p.add_argument("--claim", action="append", metavar="KEY=VALUE", help="Claim to embed (repeatable)")
    p.set_defaults(func=_cmd_issue_token)

    p = sub.add_parser("verify-token", help="Verify a token and print its claims")
    p.add_argument("token")
    p.set_defaults(func=_cmd_verify_token)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)-5s %(name)s %(message)s",
    )
    try:
        return args.func(args)
    except PasswordOperationTimeout as e:
        print(f"  [!] Timed out: {e}", file=sys.stderr)
        return 3
    except ValueError as e:
        # Settings validation errors and bad claim/password input land here.
        print(f"  [!] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
