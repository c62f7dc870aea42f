"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from ldaplogin.cli import main
from ldaplogin.models.ldap import DirectoryEntry

from .support.config import config_path
from .support.ldap import MockLDAP

ADMIN_DN = "cn=admin,dc=example,dc=com"
PEOPLE = "ou=people,dc=example,dc=com"
ADMINS = "cn=admins,ou=groups,dc=example,dc=com"


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep log messages out of the command output."""
    monkeypatch.setenv("LDAPLOGIN_LOG_LEVEL", "ERROR")


@pytest.fixture
def directory(mock_ldap: MockLDAP) -> MockLDAP:
    alice = DirectoryEntry(
        f"cn=alice,{PEOPLE}",
        {
            "cn": ["alice"],
            "sn": ["Example"],
            "givenName": ["Alice"],
            "mail": ["alice@example.com"],
            "memberOf": [ADMINS],
        },
    )
    bob = DirectoryEntry(f"cn=bob,{PEOPLE}", {"cn": ["bob"]})
    mock_ldap.add_credentials(ADMIN_DN, "admin-password")
    mock_ldap.add_credentials(alice.dn, "alice-password")
    mock_ldap.add_entries_for_test(
        PEOPLE, "(|(cn=alice)(mail=alice))", [alice]
    )
    mock_ldap.add_entries_for_test(PEOPLE, "(|(cn=*)(mail=*))", [alice, bob])
    return mock_ldap


def test_help() -> None:
    runner = CliRunner()

    result = runner.invoke(main, ["-h"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Commands:" in result.output

    result = runner.invoke(main, ["help"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Commands:" in result.output

    result = runner.invoke(main, ["help", "login"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Log in as a user" in result.output
    assert "Commands:" not in result.output

    result = runner.invoke(main, ["help", "unknown-command"])
    assert result.exit_code != 0
    assert "Unknown help topic unknown-command" in result.output


def test_login(directory: MockLDAP) -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["login", "alice", "--config-path", str(config_path("groups"))],
        input="alice-password\n",
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    output = result.output[result.output.index("{") :]
    assert json.loads(output) == {
        "auth_module": "ldap",
        "auth_id": f"cn=alice,{PEOPLE}",
        "name": "Alice Example",
        "login": "alice",
        "email": "alice@example.com",
        "groups": [ADMINS],
        "org_roles": {"1": "Admin"},
        "is_admin": True,
    }
    assert directory.is_closed


def test_login_failure(
    directory: MockLDAP, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LDAPLOGIN_CONFIG_PATH", str(config_path("groups")))
    runner = CliRunner()
    result = runner.invoke(
        main, ["login", "alice", "--password", "wrong-password"]
    )
    assert result.exit_code == 1
    assert "Invalid username or password" in result.output


def test_users(directory: MockLDAP) -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["users", "--config-path", str(config_path("groups"))],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    users = json.loads(result.output)
    assert [u["login"] for u in users] == ["alice", "bob"]
    assert users[0]["org_roles"] == {"1": "Admin"}
    assert users[1]["org_roles"] == {}
    assert directory.binds == [(ADMIN_DN, "admin-password")]
