"""Models for the identity produced by an LDAP login."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..constants import AUTH_MODULE
from .enums import OrgRole

__all__ = ["ApplicationIdentity"]


class ApplicationIdentity(BaseModel):
    """Identity of a user as seen by the application.

    Produced by a login or by listing users and handed to the caller, which
    is responsible for provisioning or updating its own user record from it.
    """

    auth_module: str = Field(
        AUTH_MODULE,
        title="Authentication module",
        description="Tag identifying the source of the identity",
        examples=["ldap"],
    )

    auth_id: str = Field(
        ...,
        title="Authentication ID",
        description="Distinguished name of the user's directory entry",
        examples=["cn=alice,ou=people,dc=example,dc=com"],
    )

    name: str = Field(
        "",
        title="Display name",
        description="Given name and surname separated by a space",
        examples=["Alice Example"],
    )

    login: str = Field("", title="Login name", examples=["alice"])

    email: str = Field(
        "", title="Email address", examples=["alice@example.com"]
    )

    groups: list[str] = Field(
        [],
        title="Groups",
        description="Identifiers of the groups of which the user is a member",
    )

    org_roles: dict[int, OrgRole] = Field(
        {},
        title="Organization roles",
        description=(
            "Role of the user in each organization, keyed by organization ID."
            " A user holds at most one role per organization."
        ),
    )

    is_admin: bool | None = Field(
        None,
        title="Server administrator",
        description=(
            "Whether the user is a server administrator, or `None` if no"
            " matching group mapping said either way"
        ),
    )
