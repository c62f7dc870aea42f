"""Test configuration parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError
from safir.logging import LogLevel, Profile

from ldaplogin.config import Config, LDAPConfig
from ldaplogin.models.enums import (
    BindStrategy,
    GroupStrategy,
    OrgRole,
    TLSMode,
)

from .support.config import config_path, load_config


def test_service_account() -> None:
    config = load_config("service-account")
    assert config.log_level == LogLevel.DEBUG
    assert config.log_profile == Profile.development
    ldap = config.ldap
    assert ldap.host == ["ldap.example.com"]
    assert ldap.port == 389
    assert ldap.tls == TLSMode.none
    assert ldap.password == "admin-password"
    assert ldap.bind_strategy == BindStrategy.service_account
    assert ldap.group_strategy == GroupStrategy.member_of_attribute
    assert ldap.user_attributes == [
        "cn",
        "sn",
        "email",
        "givenName",
        "memberOf",
    ]
    assert ldap.groups == []


def test_direct_bind() -> None:
    ldap = load_config("direct-bind").ldap
    assert ldap.bind_password is None
    assert ldap.password == ""
    assert ldap.bind_strategy == BindStrategy.direct
    expected = "cn=alice,ou=people,dc=example,dc=com"
    assert ldap.format_bind_dn("alice") == expected


def test_no_bind_dn() -> None:
    ldap = LDAPConfig(host="ldap.example.com", searchBaseDns=["dc=example"])
    assert ldap.bind_strategy == BindStrategy.service_account
    assert ldap.format_bind_dn("alice") == ""


def test_format_bind_dn() -> None:
    ldap = LDAPConfig(
        host="ldap.example.com",
        bindDn="uid=%s,ou=%s",
        searchBaseDns=["dc=example"],
    )
    assert ldap.format_bind_dn("a*b") == "uid=a*b,ou=a*b"
    ldap = LDAPConfig(
        host="ldap.example.com",
        bindDn="cn=admin",
        searchBaseDns=["dc=example"],
    )
    assert ldap.format_bind_dn("alice") == "cn=admin"


def test_groups() -> None:
    ldap = load_config("groups").ldap
    assert ldap.host == ["ldap1.example.com", "ldap2.example.com"]
    assert ldap.port == 636
    assert ldap.search_base_dns == [
        "ou=people,dc=example,dc=com",
        "ou=contractors,dc=example,dc=com",
    ]
    assert [g.org_role for g in ldap.groups] == [
        OrgRole.admin,
        OrgRole.editor,
        OrgRole.viewer,
    ]
    assert [g.org_id for g in ldap.groups] == [1, 1, 2]
    assert [g.is_admin for g in ldap.groups] == [True, None, False]


def test_group_search() -> None:
    ldap = load_config("group-search").ldap
    assert ldap.group_strategy == GroupStrategy.group_search
    assert ldap.group_search_user_attribute == "uid"
    assert ldap.user_attributes == ["uid", "sn", "mail", "givenName"]
    assert ldap.groups[0].group_dn == "*"
    assert ldap.groups[0].org_id == 1


def test_group_search_user_attribute() -> None:
    ldap = LDAPConfig(
        host="ldap.example.com",
        searchBaseDns=["dc=example"],
        groupSearchFilter="(member=%s)",
        groupSearchBaseDns=["ou=groups,dc=example"],
        groupSearchFilterUserAttribute="uidNumber",
    )
    assert ldap.user_attributes[-1] == "uidNumber"

    ldap = LDAPConfig(
        host="ldap.example.com",
        searchBaseDns=["dc=example"],
        groupSearchFilter="(member=%s)",
        groupSearchBaseDns=["ou=groups,dc=example"],
        groupSearchFilterUserAttribute="dn",
    )
    assert "dn" not in ldap.user_attributes


def test_env_password(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LDAPLOGIN_LDAP_BIND_PASSWORD", "env-password")
    ldap = load_config("service-account").ldap
    assert ldap.password == "env-password"
    assert "env-password" not in repr(ldap)


def test_env_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LDAPLOGIN_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LDAPLOGIN_LOG_PROFILE", "production")
    config = Config.from_file(config_path("service-account"))
    assert config.log_level == LogLevel.WARNING
    assert config.log_profile == Profile.production


def test_client_cert_requires_key(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="set together"):
        LDAPConfig(
            host="ldap.example.com",
            searchBaseDns=["dc=example"],
            clientCert=tmp_path / "cert.pem",
        )


def test_group_search_requires_base() -> None:
    with pytest.raises(ValidationError, match="groupSearchBaseDns"):
        LDAPConfig(
            host="ldap.example.com",
            searchBaseDns=["dc=example"],
            groupSearchFilter="(member=%s)",
        )


def test_required_settings() -> None:
    with pytest.raises(ValidationError):
        LDAPConfig(host="ldap.example.com", searchBaseDns=[])
    with pytest.raises(ValidationError):
        LDAPConfig(host=[], searchBaseDns=["dc=example"])
    with pytest.raises(ValidationError):
        LDAPConfig(
            host="ldap.example.com",
            searchBaseDns=["dc=example"],
            searchFilter="",
        )


def test_config_frozen() -> None:
    ldap = load_config("service-account").ldap
    with pytest.raises(ValidationError):
        ldap.port = 636  # type: ignore[misc]
