"""Tests for the operator CLI in main.py.

main() is called in-process with an argv list; passwords come from a
patched getpass or a replaced stdin. Exit codes: 0 ok, 1 rejected, 2 bad
input or configuration, 3 password timeout.
"""

from __future__ import annotations

import io
import json

import pytest

import main as cli
from auth.passwords import hash_password, verify_password
from auth.tokens import TokenAuthority
from core.config import get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestPasswordCommands:
    def test_hash_password_prompts_and_prints_record(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter2")
        assert cli.main(["hash-password"]) == 0
        record = capsys.readouterr().out.strip()
        assert record.startswith("$2b$10$")
        assert verify_password("hunter2", record)

    def test_hash_password_from_stdin_strips_one_newline(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("hunter2\n"))
        assert cli.main(["hash-password", "--stdin"]) == 0
        assert verify_password("hunter2", capsys.readouterr().out.strip())

    def test_empty_password_is_refused(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "")
        assert cli.main(["hash-password"]) == 2
        assert capsys.readouterr().out == ""

    def test_over_long_password_is_bad_input(self, monkeypatch) -> None:
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "x" * 100)
        assert cli.main(["hash-password"]) == 2

    def test_verify_password_match_and_mismatch(self, monkeypatch, capsys) -> None:
        record = hash_password("hunter2")
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter2")
        assert cli.main(["verify-password", record]) == 0
        assert capsys.readouterr().out.strip() == "match"

        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter3")
        assert cli.main(["verify-password", record]) == 1
        assert capsys.readouterr().out.strip() == "no match"

    def test_verify_password_malformed_record_is_bad_input(self, monkeypatch) -> None:
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter2")
        assert cli.main(["verify-password", "not-a-record"]) == 2

    def test_password_commands_work_without_jwt_secret(self, monkeypatch, fresh_settings, capsys) -> None:
        """Hashing is independent of token signing; a production shell with no
        JWT_SECRET must still be able to hash and verify."""
        monkeypatch.setenv("DEBUG", "false")
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter2")

        assert cli.main(["hash-password"]) == 0
        record = capsys.readouterr().out.strip()
        assert record.startswith("$2b$10$")

        assert cli.main(["verify-password", record]) == 0
        assert capsys.readouterr().out.strip() == "match"

    def test_timeout_exits_3_without_a_record(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter2")
        assert cli.main(["hash-password", "--timeout", "0.000001"]) == 3
        out = capsys.readouterr()
        assert out.out == ""
        assert "Timed out" in out.err

    def test_negative_timeout_is_bad_input(self, monkeypatch) -> None:
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "hunter2")
        assert cli.main(["hash-password", "--timeout", "-1"]) == 2


class TestTokenCommands:
    def test_issue_then_verify(self, capsys) -> None:
        assert cli.main(["issue-token", "--claim", "userId=u1", "--claim", "role=admin", "--claim", "level=3"]) == 0
        token = capsys.readouterr().out.strip()

        assert TokenAuthority(get_settings()).verify(token) == {"userId": "u1", "role": "admin", "level": 3}

        assert cli.main(["verify-token", token]) == 0
        assert json.loads(capsys.readouterr().out) == {"userId": "u1", "role": "admin", "level": 3}

    def test_verify_invalid_token_exits_1(self, capsys) -> None:
        assert cli.main(["verify-token", "not-a-token"]) == 1
        assert "Invalid or expired token" in capsys.readouterr().err

    def test_bad_claim_syntax_exits_2(self, capsys) -> None:
        assert cli.main(["issue-token", "--claim", "no-equals-sign"]) == 2
        assert "KEY=VALUE" in capsys.readouterr().err

    def test_reserved_claim_exits_2(self) -> None:
        assert cli.main(["issue-token", "--claim", "exp=1"]) == 2

    def test_missing_secret_in_production_exits_2(self, monkeypatch, fresh_settings, capsys) -> None:
        monkeypatch.setenv("DEBUG", "false")
        monkeypatch.delenv("JWT_SECRET", raising=False)
        assert cli.main(["issue-token", "--claim", "userId=u1"]) == 2
        assert "JWT_SECRET is required" in capsys.readouterr().err
