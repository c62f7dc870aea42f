"""Constants for ldaplogin."""

__all__ = [
    "AUTH_MODULE",
    "CONFIG_PATH",
    "DEFAULT_PORT",
    "DN_ATTRIBUTE",
    "GROUP_WILDCARD",
    "MEMBER_OF_ATTRIBUTE",
    "USERNAME_PLACEHOLDER",
]

AUTH_MODULE = "ldap"
"""Tag recorded in every identity produced by this package."""

CONFIG_PATH = "/etc/ldaplogin/ldaplogin.yaml"
"""Default configuration path."""

DEFAULT_PORT = 389
"""Default LDAP port if none is configured."""

DN_ATTRIBUTE = "dn"
"""Pseudo-attribute name that refers to the distinguished name of an entry.

LDAP servers do not return the DN as an attribute, so any lookup of this name
(compared case-insensitively) returns the DN of the entry instead.
"""

GROUP_WILDCARD = "*"
"""Group DN in a group mapping that matches every authenticated user."""

MEMBER_OF_ATTRIBUTE = "memberOf"
"""Conventional name of the attribute listing a user's groups.

If the member-of attribute is configured to this name (or not configured) and
groups are found by searching the group tree, the DN of each matching group is
used as the group identifier, since group entries do not carry this
attribute.
"""

USERNAME_PLACEHOLDER = "%s"
"""Placeholder in bind DN and filter templates replaced by the username."""
