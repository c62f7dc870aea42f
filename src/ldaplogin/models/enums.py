"""Enums used in ldaplogin models.

Notes
-----
These are kept in a separate module because the configuration, the
exceptions, and the storage layer all need them, and the configuration must
not import from the storage layer.
"""

from __future__ import annotations

from enum import Enum, IntEnum

__all__ = [
    "BindStrategy",
    "GroupStrategy",
    "LDAPResultCode",
    "OrgRole",
    "TLSMode",
]


class BindStrategy(Enum):
    """How the initial bind of a login is performed."""

    service_account = "service_account"
    """Bind with the service credentials and verify the user with a second
    bind as the user's own DN.
    """

    direct = "direct"
    """Bind directly as the user, using the bind DN template."""


class GroupStrategy(Enum):
    """How group membership of a user is determined."""

    member_of_attribute = "member_of_attribute"
    """Read the member-of attribute from the user's own entry."""

    group_search = "group_search"
    """Search the group tree for groups that list the user as a member."""


class LDAPResultCode(IntEnum):
    """LDAP result codes from :rfc:`4511` section 4.1.9.

    Only the codes that are likely to be seen from bind, search, add, and
    delete operations are listed. Unknown codes are carried as plain integers.
    """

    success = 0
    operations_error = 1
    protocol_error = 2
    time_limit_exceeded = 3
    size_limit_exceeded = 4
    auth_method_not_supported = 7
    strong_auth_required = 8
    referral = 10
    admin_limit_exceeded = 11
    unavailable_critical_extension = 12
    confidentiality_required = 13
    no_such_attribute = 16
    undefined_attribute_type = 17
    invalid_attribute_syntax = 21
    no_such_object = 32
    invalid_dn_syntax = 34
    inappropriate_authentication = 48
    invalid_credentials = 49
    insufficient_access_rights = 50
    busy = 51
    unavailable = 52
    unwilling_to_perform = 53
    naming_violation = 64
    object_class_violation = 65
    not_allowed_on_non_leaf = 66
    entry_already_exists = 68
    other = 80


class OrgRole(Enum):
    """Role a user may hold in an organization."""

    viewer = "Viewer"
    editor = "Editor"
    admin = "Admin"


class TLSMode(Enum):
    """How TLS is used for the LDAP connection."""

    none = "none"
    """Plain LDAP with no TLS."""

    ldaps = "ldaps"
    """TLS handshake immediately after connecting (implicit TLS)."""

    starttls = "starttls"
    """Connect without TLS and upgrade with the StartTLS extended operation."""
