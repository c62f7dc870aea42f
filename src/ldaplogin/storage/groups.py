"""Resolve the group membership of a directory user."""

from __future__ import annotations

from typing import Protocol

from ldap3.utils.conv import escape_filter_chars
from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..constants import (
    DN_ATTRIBUTE,
    MEMBER_OF_ATTRIBUTE,
    USERNAME_PLACEHOLDER,
)
from ..models.enums import GroupStrategy
from ..models.ldap import DirectoryEntry
from .search import DirectorySearchEngine

__all__ = [
    "GroupResolver",
    "GroupSearchResolver",
    "MemberOfResolver",
    "create_group_resolver",
]


class GroupResolver(Protocol):
    """Determine the groups of a user from their directory entry."""

    def resolve(self, entry: DirectoryEntry) -> list[str]:
        """Return the identifiers of the groups of the user."""


class MemberOfResolver:
    """Read group membership from an attribute of the user's entry.

    Parameters
    ----------
    config
        LDAP configuration.
    """

    def __init__(self, config: LDAPConfig) -> None:
        self._config = config

    def resolve(self, entry: DirectoryEntry) -> list[str]:
        """Return the values of the member-of attribute of the entry.

        Parameters
        ----------
        entry
            User's directory entry.

        Returns
        -------
        list of str
            Group identifiers, empty if the attribute is missing.
        """
        return entry.get_all(self._config.attributes.member_of)


class GroupSearchResolver:
    """Find the groups of a user by searching the group tree.

    Parameters
    ----------
    config
        LDAP configuration.
    search
        Search engine bound to the same connection as the user search.
    logger
        Logger to use.
    """

    def __init__(
        self,
        config: LDAPConfig,
        search: DirectorySearchEngine,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._search = search
        self._logger = logger

    @property
    def group_id_attribute(self) -> str:
        """Attribute of a group entry used to identify the group.

        This is the configured member-of attribute, unless that is empty or
        the conventional ``memberOf``, in which case the DN of the group is
        used.
        """
        attr = self._config.attributes.member_of
        if not attr or attr == MEMBER_OF_ATTRIBUTE:
            return DN_ATTRIBUTE
        return attr

    def resolve(self, entry: DirectoryEntry) -> list[str]:
        """Search for the groups that name the user as a member.

        Parameters
        ----------
        entry
            User's directory entry.

        Returns
        -------
        list of str
            Identifier of each group found under the first group base DN with
            any match, empty if there were none.

        Raises
        ------
        DirectoryOperationError
            Raised if a group search failed.
        """
        value = entry.get(self._config.group_search_user_attribute)
        filter_exp = self._config.group_search_filter.replace(
            USERNAME_PLACEHOLDER, escape_filter_chars(value)
        )
        id_attr = self.group_id_attribute
        attributes = [] if id_attr == DN_ATTRIBUTE else [id_attr]
        groups = self._search.search(
            self._config.group_search_base_dns, filter_exp, attributes
        )
        self._logger.debug(
            "LDAP groups found",
            ldap_search=filter_exp,
            count=len(groups),
            user=entry.dn,
        )
        return [g.get(id_attr) for g in groups]


def create_group_resolver(
    config: LDAPConfig, search: DirectorySearchEngine, logger: BoundLogger
) -> GroupResolver:
    """Create the group resolver selected by the configuration.

    Parameters
    ----------
    config
        LDAP configuration.
    search
        Search engine for the connection in use.
    logger
        Logger to use.

    Returns
    -------
    GroupResolver
        Resolver for the configured group strategy.
    """
    match config.group_strategy:
        case GroupStrategy.group_search:
            return GroupSearchResolver(config, search, logger)
        case GroupStrategy.member_of_attribute:
            return MemberOfResolver(config)
