"""Configuration for ldaplogin.

ldaplogin is configured by a YAML file, normally
:file:`/etc/ldaplogin/ldaplogin.yaml`. The bind password is a secret and may
instead be injected via an environment variable, which takes precedence over
the file.

Only the settings with explicit ``validation_alias`` settings are meant to be
set via environment variables. Every environment variable read by the
configuration starts with ``LDAPLOGIN_``, so unrelated variables such as
``PORT`` are never read as settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self, override

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging

from .constants import DEFAULT_PORT, DN_ATTRIBUTE, USERNAME_PLACEHOLDER
from .models.enums import BindStrategy, GroupStrategy, OrgRole, TLSMode

__all__ = [
    "CamelCaseSettings",
    "Config",
    "EnvFirstSettings",
    "GroupMapping",
    "LDAPAttributes",
    "LDAPConfig",
]


def _split_words(v: Any) -> Any:
    """Split a space-separated string into a list of words."""
    if isinstance(v, str):
        return v.split()
    return v


class CamelCaseSettings(BaseSettings):
    """Settings model that accepts camel-case keys and rejects unknown ones.

    Configuration files use camel-case, matching the rest of the deployment
    configuration, while the Python attributes use snake case.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )


class EnvFirstSettings(CamelCaseSettings):
    """Settings model in which environment variables beat the YAML file."""

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Read the environment first, then constructor arguments.

        Constructor arguments hold the parsed YAML file. Neither :file:`.env`
        files nor secret directories are consulted.
        """
        return (env_settings, init_settings)


class LDAPAttributes(BaseModel):
    """Names of the LDAP attributes holding user information.

    An empty name means that piece of information is not retrieved.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    username: str = Field(
        "cn",
        title="Username attribute",
        description="Attribute holding the login name of the user",
    )

    surname: str = Field(
        "sn",
        title="Surname attribute",
        description="Attribute holding the surname (family name) of the user",
    )

    name: str = Field(
        "givenName",
        title="Given name attribute",
        description="Attribute holding the given name of the user",
    )

    email: str = Field(
        "email",
        title="Email attribute",
        description="Attribute holding the email address of the user",
    )

    member_of: str = Field(
        "memberOf",
        title="Member-of attribute",
        description=(
            "Attribute of the user entry listing the groups of the user. If"
            " ``groupSearchFilter`` is set, this is instead the attribute of"
            " the group entries used to identify the group, and the group DN"
            " is used if this is empty or ``memberOf``."
        ),
    )


class GroupMapping(BaseModel):
    """Mapping of an LDAP group to an organization role."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    group_dn: str = Field(
        ...,
        title="Group DN",
        description=(
            "DN (or other identifier) of the LDAP group, compared"
            " case-insensitively to the user's groups. ``*`` matches every"
            " user."
        ),
        examples=["cn=admins,ou=groups,dc=example,dc=com"],
        min_length=1,
    )

    org_id: int = Field(
        1,
        title="Organization ID",
        description="Organization in which the role is granted",
        ge=1,
    )

    org_role: OrgRole = Field(
        ...,
        title="Organization role",
        description="Role granted to members of the group",
    )

    is_admin: bool | None = Field(
        None,
        title="Server administrator",
        description=(
            "Whether members of the group are server administrators. Unset"
            " means this mapping does not affect administrator status."
        ),
    )


class LDAPConfig(EnvFirstSettings):
    """Configuration for the LDAP server and the mapping of its users.

    The configuration is immutable once loaded. The bind and group search
    strategies are derived from it rather than configured directly.
    """

    model_config = SettingsConfigDict(
        env_prefix="LDAPLOGIN_LDAP_", frozen=True
    )

    host: list[str] = Field(
        ...,
        title="LDAP hosts",
        description=(
            "Hosts to try, in order. The first host that accepts a connection"
            " is used. May be given as a space-separated string."
        ),
        min_length=1,
    )

    port: int = Field(
        DEFAULT_PORT, title="LDAP port", description="Port on every host"
    )

    tls: TLSMode = Field(
        TLSMode.none,
        title="TLS mode",
        description=(
            "Whether to use no TLS, implicit TLS (``ldaps``), or StartTLS"
        ),
    )

    skip_verify_ssl: bool = Field(
        False,
        title="Skip certificate verification",
        description="If true, do not verify the server certificate",
    )

    root_ca_cert: list[Path] = Field(
        [],
        title="CA certificates",
        description=(
            "PEM files of CA certificates used to verify the server. All of"
            " the certificates from every file are trusted. May be given as a"
            " space-separated string."
        ),
    )

    client_cert: Path | None = Field(
        None,
        title="Client certificate",
        description="PEM file holding the client certificate for mutual TLS",
    )

    client_key: Path | None = Field(
        None,
        title="Client key",
        description="PEM file holding the unencrypted client private key",
    )

    bind_dn: str = Field(
        "",
        title="Bind DN",
        description=(
            "DN to bind as for the initial bind. If it contains ``%s``, that"
            " is replaced by the username of the user logging in."
        ),
        examples=["cn=admin,dc=example,dc=com", "uid=%s,dc=example,dc=com"],
    )

    bind_password: SecretStr | None = Field(
        None,
        title="Bind password",
        description=(
            "Password of the service account. If set, or if ``bindDn`` is"
            " empty, the initial bind uses the service account and the user's"
            " password is verified with a second bind as the user."
        ),
        validation_alias=AliasChoices(
            "LDAPLOGIN_LDAP_BIND_PASSWORD", "bindPassword"
        ),
    )

    search_filter: str = Field(
        "(cn=%s)",
        title="User search filter",
        description=(
            "Filter used to find the user's entry. Every ``%s`` is replaced by"
            " the escaped username."
        ),
        min_length=1,
    )

    search_base_dns: list[str] = Field(
        ...,
        title="User search base DNs",
        description=(
            "Base DNs to search for users, in order. The first base DN with a"
            " match is used."
        ),
        min_length=1,
    )

    attributes: LDAPAttributes = Field(
        LDAPAttributes(),
        title="Attribute names",
        description="Names of the LDAP attributes holding user information",
    )

    group_search_filter: str = Field(
        "",
        title="Group search filter",
        description=(
            "If set, groups are found by searching the group tree with this"
            " filter rather than by reading the member-of attribute of the"
            " user. Every ``%s`` is replaced by the escaped username, or by"
            " the value of ``groupSearchFilterUserAttribute`` if set."
        ),
        examples=["(&(objectClass=posixGroup)(memberUid=%s))"],
    )

    group_search_filter_user_attribute: str = Field(
        "",
        title="Group search user attribute",
        description=(
            "Attribute of the user entry substituted into the group search"
            " filter instead of the username. ``dn`` means the user's DN."
        ),
    )

    group_search_base_dns: list[str] = Field(
        [],
        title="Group search base DNs",
        description=(
            "Base DNs to search for groups, in order. The first base DN with"
            " a match is used."
        ),
    )

    groups: list[GroupMapping] = Field(
        [],
        title="Group mappings",
        description=(
            "Mappings of groups to organization roles, in priority order. If"
            " any are configured, users who match none of them are refused."
        ),
    )

    @field_validator("host", "root_ca_cert", "search_base_dns", mode="before")
    @classmethod
    def _validate_word_list(cls, v: Any) -> Any:
        return _split_words(v)

    @model_validator(mode="after")
    def _validate_client_cert(self) -> Self:
        if bool(self.client_cert) != bool(self.client_key):
            msg = "clientCert and clientKey must be set together"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _validate_group_search(self) -> Self:
        if self.group_search_filter and not self.group_search_base_dns:
            msg = "groupSearchBaseDns required if groupSearchFilter is set"
            raise ValueError(msg)
        return self

    @property
    def bind_strategy(self) -> BindStrategy:
        """How the initial bind of a login is done.

        A configured service password, or no bind DN at all, means the
        initial bind uses the service identity and the user's password has to
        be checked with a second bind.
        """
        if self.password or not self.bind_dn:
            return BindStrategy.service_account
        return BindStrategy.direct

    @property
    def group_strategy(self) -> GroupStrategy:
        """How group membership is determined."""
        if self.group_search_filter:
            return GroupStrategy.group_search
        return GroupStrategy.member_of_attribute

    @property
    def group_search_user_attribute(self) -> str:
        """Attribute of the user entry substituted into group searches."""
        if self.group_search_filter_user_attribute:
            return self.group_search_filter_user_attribute
        return self.attributes.username

    @property
    def password(self) -> str:
        """Service bind password, or the empty string if not set."""
        if not self.bind_password:
            return ""
        return self.bind_password.get_secret_value()

    def format_bind_dn(self, username: str) -> str:
        """Return the bind DN for a user.

        Parameters
        ----------
        username
            Username, substituted literally (without escaping) for every
            ``%s`` in the bind DN.

        Returns
        -------
        str
            The bind DN, or ``bind_dn`` unchanged if it has no placeholder.
        """
        if USERNAME_PLACEHOLDER not in self.bind_dn:
            return self.bind_dn
        return self.bind_dn.replace(USERNAME_PLACEHOLDER, username)

    @property
    def user_attributes(self) -> list[str]:
        """Attributes to request when searching for users.

        Empty attribute names are omitted. If groups are found by a group
        search keyed on some other attribute of the user, that attribute is
        requested as well.
        """
        attrs = self.attributes
        wanted = [
            attrs.username,
            attrs.surname,
            attrs.email,
            attrs.name,
            attrs.member_of,
        ]
        if self.group_strategy == GroupStrategy.group_search:
            extra = self.group_search_user_attribute
            if extra.lower() != DN_ATTRIBUTE and extra not in wanted:
                wanted.append(extra)
        return [a for a in wanted if a]


class Config(EnvFirstSettings):
    """Configuration for ldaplogin."""

    model_config = SettingsConfigDict(env_prefix="LDAPLOGIN_")

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
        validation_alias=AliasChoices("LDAPLOGIN_LOG_LEVEL", "logLevel"),
    )

    log_profile: Profile = Field(
        Profile.production,
        title="Logging profile",
        description=(
            "Logging profile: ``production`` for JSON logs or ``development``"
            " for human-readable logs"
        ),
        validation_alias=AliasChoices("LDAPLOGIN_LOG_PROFILE", "logProfile"),
    )

    ldap: LDAPConfig = Field(
        ...,
        title="LDAP configuration",
        description="Configuration for the LDAP server and group mappings",
    )

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f))

    def configure_logging(self) -> None:
        """Configure logging based on the ldaplogin configuration."""
        configure_logging(
            name="ldaplogin",
            profile=self.log_profile,
            log_level=self.log_level,
        )
