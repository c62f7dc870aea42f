"""Data models for LDAP."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..constants import DN_ATTRIBUTE, GROUP_WILDCARD

__all__ = [
    "DirectoryEntry",
    "DirectoryRecord",
    "SearchRequest",
]


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """A search to run against the directory.

    Searches always cover the whole subtree under the base DN and never
    dereference aliases.
    """

    base_dn: str
    """Base DN of the search."""

    filter_exp: str
    """Search filter."""

    attributes: list[str]
    """Attributes to retrieve for each matching entry."""


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """A single entry returned by a directory search.

    Attribute names in LDAP are case-insensitive, so lookups here are as
    well. The pseudo-attribute ``dn`` always resolves to the DN of the entry.
    """

    dn: str
    """Distinguished name of the entry."""

    attributes: dict[str, list[str]] = field(default_factory=dict)
    """Attribute values keyed by attribute name."""

    def get(self, name: str) -> str:
        """Return the first value of an attribute.

        Parameters
        ----------
        name
            Name of the attribute, or ``dn`` for the DN of the entry.

        Returns
        -------
        str
            First value of the attribute, or the empty string if the name is
            empty, the attribute is missing, or it has no values.
        """
        if name.lower() == DN_ATTRIBUTE:
            return self.dn
        values = self.get_all(name)
        return values[0] if values else ""

    def get_all(self, name: str) -> list[str]:
        """Return all values of an attribute.

        Parameters
        ----------
        name
            Name of the attribute.

        Returns
        -------
        list of str
            Values of the attribute, or an empty list if the name is empty or
            the attribute is missing.
        """
        if not name:
            return []
        wanted = name.lower()
        for key, values in self.attributes.items():
            if key.lower() == wanted:
                return list(values)
        return []


@dataclass(slots=True)
class DirectoryRecord:
    """A user located in the directory together with their groups.

    Built fresh for each search and never stored.
    """

    dn: str
    """Distinguished name of the user's entry."""

    username: str = ""
    """Username, from the configured username attribute."""

    surname: str = ""
    """Surname, from the configured surname attribute."""

    given_name: str = ""
    """Given name, from the configured name attribute."""

    email: str = ""
    """Email address, from the configured email attribute."""

    member_of: list[str] = field(default_factory=list)
    """Identifiers (normally DNs) of the groups the user belongs to."""

    def is_member_of(self, group: str) -> bool:
        """Whether the user is a member of the given group.

        Group identifiers are compared case-insensitively, since DNs are
        case-insensitive in practice. The group ``*`` matches every user.
        """
        if group == GROUP_WILDCARD:
            return True
        wanted = group.lower()
        return any(g.lower() == wanted for g in self.member_of)
