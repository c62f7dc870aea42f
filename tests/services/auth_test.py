"""Tests for binding to the directory."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from structlog.stdlib import BoundLogger

from ldaplogin.config import Config, LDAPConfig
from ldaplogin.exceptions import (
    DirectoryOperationError,
    InvalidCredentialsError,
)
from ldaplogin.models.enums import LDAPResultCode
from ldaplogin.services.auth import Authenticator

from ..support.config import load_config
from ..support.ldap import MockLDAP

ADMIN_DN = "cn=admin,dc=example,dc=com"
ALICE_DN = "cn=alice,ou=people,dc=example,dc=com"


def test_service_account(config: Config, logger: BoundLogger) -> None:
    mock_ldap = MockLDAP()
    mock_ldap.add_credentials(ADMIN_DN, "admin-password")
    auth = Authenticator(config.ldap, mock_ldap, logger)

    result = auth.authenticate("alice", "alice-password")
    assert result.second_bind_required
    assert mock_ldap.binds == [(ADMIN_DN, "admin-password")]


def test_service_account_template(logger: BoundLogger) -> None:
    config = LDAPConfig(
        host="ldap.example.com",
        bindDn="cn=%s,ou=people,dc=example,dc=com",
        bindPassword="shared-password",
        searchBaseDns=["dc=example,dc=com"],
    )
    mock_ldap = MockLDAP()
    mock_ldap.add_credentials(ALICE_DN, "shared-password")
    auth = Authenticator(config, mock_ldap, logger)

    assert auth.authenticate("alice", "alice-password").second_bind_required
    assert mock_ldap.binds == [(ALICE_DN, "shared-password")]


def test_direct_bind(logger: BoundLogger) -> None:
    config = load_config("direct-bind")
    mock_ldap = MockLDAP()
    mock_ldap.add_credentials(ALICE_DN, "alice-password")
    auth = Authenticator(config.ldap, mock_ldap, logger)

    result = auth.authenticate("alice", "alice-password")
    assert not result.second_bind_required
    assert mock_ldap.binds == [(ALICE_DN, "alice-password")]

    with pytest.raises(InvalidCredentialsError) as excinfo:
        auth.authenticate("alice", "wrong")
    assert isinstance(excinfo.value.__cause__, DirectoryOperationError)


def test_direct_bind_empty_password(logger: BoundLogger) -> None:
    config = load_config("direct-bind")
    mock_ldap = MockLDAP()
    auth = Authenticator(config.ldap, mock_ldap, logger)

    assert not auth.authenticate("alice", "").second_bind_required
    assert mock_ldap.binds == [(ALICE_DN, None)]


def test_anonymous(logger: BoundLogger) -> None:
    config = LDAPConfig(
        host="ldap.example.com", searchBaseDns=["dc=example,dc=com"]
    )
    mock_ldap = MockLDAP()
    auth = Authenticator(config, mock_ldap, logger)

    assert auth.authenticate("alice", "alice-password").second_bind_required
    auth.server_bind()
    assert mock_ldap.binds == [("", None), ("", None)]


def test_invalid_service_password(
    config: Config, logger: BoundLogger
) -> None:
    mock_ldap = MockLDAP()
    mock_ldap.add_credentials(ADMIN_DN, "other-password")
    auth = Authenticator(config.ldap, mock_ldap, logger)
    with pytest.raises(InvalidCredentialsError):
        auth.authenticate("alice", "alice-password")
    with pytest.raises(InvalidCredentialsError):
        auth.server_bind()


def test_other_bind_error(config: Config, logger: BoundLogger) -> None:
    mock_ldap = MockLDAP()
    auth = Authenticator(config.ldap, mock_ldap, logger)
    error = DirectoryOperationError(LDAPResultCode.unwilling_to_perform)
    with (
        patch.object(mock_ldap, "bind", side_effect=error),
        pytest.raises(DirectoryOperationError) as excinfo,
    ):
        auth.server_bind()
    assert excinfo.value is error


def test_server_bind(logger: BoundLogger) -> None:
    config = LDAPConfig(
        host="ldap.example.com",
        bindDn="cn=%s,ou=people,dc=example,dc=com",
        bindPassword="shared-password",
        searchBaseDns=["dc=example,dc=com"],
    )
    mock_ldap = MockLDAP()
    mock_ldap.add_credentials(config.bind_dn, "shared-password")
    auth = Authenticator(config, mock_ldap, logger)
    auth.server_bind()
    assert mock_ldap.binds == [(config.bind_dn, "shared-password")]


def test_second_bind(config: Config, logger: BoundLogger) -> None:
    mock_ldap = MockLDAP()
    mock_ldap.add_credentials(ALICE_DN, "alice-password")
    auth = Authenticator(config.ldap, mock_ldap, logger)

    auth.second_bind(ALICE_DN, "alice-password")
    assert mock_ldap.binds == [(ALICE_DN, "alice-password")]

    with pytest.raises(InvalidCredentialsError):
        auth.second_bind(ALICE_DN, "admin-password")
    with pytest.raises(InvalidCredentialsError):
        auth.second_bind(ALICE_DN, "")
    assert len(mock_ldap.binds) == 2

