"""Search the directory for user entries."""

from __future__ import annotations

from ldap3.utils.conv import escape_filter_chars
from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..constants import USERNAME_PLACEHOLDER
from ..exceptions import AmbiguousDirectoryMatchError, InvalidCredentialsError
from ..models.ldap import DirectoryEntry, SearchRequest
from .ldap import DirectoryClient

__all__ = ["DirectorySearchEngine"]


class DirectorySearchEngine:
    """Run searches across an ordered list of base DNs.

    Parameters
    ----------
    config
        LDAP configuration.
    client
        Bound connection to the directory.
    logger
        Logger to use.
    """

    def __init__(
        self,
        config: LDAPConfig,
        client: DirectoryClient,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._client = client
        self._logger = logger

    @property
    def user_attributes(self) -> list[str]:
        """Attributes requested for user entries."""
        return self._config.user_attributes

    def search(
        self, base_dns: list[str], filter_exp: str, attributes: list[str]
    ) -> list[DirectoryEntry]:
        """Search each base DN in turn until one has a match.

        Parameters
        ----------
        base_dns
            Base DNs to search, in order.
        filter_exp
            Search filter.
        attributes
            Attributes to retrieve.

        Returns
        -------
        list of DirectoryEntry
            Entries found under the first base DN with any match, or an empty
            list if none matched. Base DNs after the first match are not
            searched.

        Raises
        ------
        DirectoryOperationError
            Raised if a search failed.
        """
        _, entries = self._search_bases(base_dns, filter_exp, attributes)
        return entries

    def find_user(self, username: str) -> DirectoryEntry:
        """Find the directory entry of one user.

        Parameters
        ----------
        username
            Username, escaped before it is substituted into the filter.

        Returns
        -------
        DirectoryEntry
            The user's entry.

        Raises
        ------
        AmbiguousDirectoryMatchError
            Raised if more than one entry matched under the first base DN
            with any match.
        InvalidCredentialsError
            Raised if no entry matched.
        """
        filter_exp = self._config.search_filter.replace(
            USERNAME_PLACEHOLDER, escape_filter_chars(username)
        )
        base_dn, entries = self._search_bases(
            self._config.search_base_dns, filter_exp, self.user_attributes
        )
        if base_dn is None:
            self._logger.info("LDAP user not found", user=username)
            raise InvalidCredentialsError
        if len(entries) > 1:
            raise AmbiguousDirectoryMatchError(base_dn, len(entries))
        return entries[0]

    def find_users(self) -> list[DirectoryEntry]:
        """Find every user entry matching the search filter.

        Returns
        -------
        list of DirectoryEntry
            Entries found under the first base DN with any match.
        """
        filter_exp = self._config.search_filter.replace(
            USERNAME_PLACEHOLDER, "*"
        )
        return self.search(
            self._config.search_base_dns, filter_exp, self.user_attributes
        )

    def _search_bases(
        self, base_dns: list[str], filter_exp: str, attributes: list[str]
    ) -> tuple[str | None, list[DirectoryEntry]]:
        """Search base DNs in order, returning the one that matched."""
        for base_dn in base_dns:
            request = SearchRequest(
                base_dn=base_dn, filter_exp=filter_exp, attributes=attributes
            )
            logger = self._logger.bind(
                ldap_attrs=attributes,
                ldap_base=base_dn,
                ldap_search=filter_exp,
            )
            logger.debug("Querying LDAP")
            entries = self._client.search(request)
            if entries:
                logger.debug("LDAP search matched", count=len(entries))
                return base_dn, entries
        return None, []
