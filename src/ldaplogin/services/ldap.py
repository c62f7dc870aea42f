"""Log in and look up users against an LDAP directory."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..models.identity import ApplicationIdentity
from ..models.ldap import DirectoryEntry, DirectoryRecord
from ..storage.dialer import DirectoryDialer
from ..storage.groups import GroupResolver, create_group_resolver
from ..storage.search import DirectorySearchEngine
from .auth import Authenticator
from .identity import IdentityMapper

__all__ = ["LDAPService"]


class LDAPService:
    """Authenticate users and map them to application identities.

    This collects the login and user listing logic. Each operation opens its
    own connection to the directory and closes it before returning, whether
    or not the operation succeeded. Nothing is cached between operations.

    Parameters
    ----------
    config
        LDAP configuration.
    dialer
        Used to open a connection for each operation.
    logger
        Logger to use.
    """

    def __init__(
        self,
        config: LDAPConfig,
        dialer: DirectoryDialer,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._dialer = dialer
        self._logger = logger
        self._mapper = IdentityMapper(config, logger)

    def login(self, username: str, password: str) -> ApplicationIdentity:
        """Authenticate a user and return their identity.

        Parameters
        ----------
        username
            Username of the user.
        password
            Password supplied by the user.

        Returns
        -------
        ApplicationIdentity
            Identity of the user, including organization roles.

        Raises
        ------
        AmbiguousDirectoryMatchError
            Raised if the search filter matched more than one entry.
        DirectoryConnectionError
            Raised if no LDAP host could be reached.
        DirectoryOperationError
            Raised if a directory operation failed.
        InvalidCredentialsError
            Raised if the username or password is wrong, or the user is not
            authorized by the group mappings.
        """
        logger = self._logger.bind(user=username)
        with self._dialer.connect() as client:
            auth = Authenticator(self._config, client, logger)
            bind = auth.authenticate(username, password)
            search = DirectorySearchEngine(self._config, client, logger)
            entry = search.find_user(username)
            resolver = create_group_resolver(self._config, search, logger)
            record = self._build_record(entry, resolver)
            if bind.second_bind_required:
                auth.second_bind(entry.dn, password)
        identity = self._mapper.extract_identity(record)
        logger.info("LDAP login succeeded", ldap_dn=entry.dn)
        return identity

    def users(self) -> list[ApplicationIdentity]:
        """List every user matching the search filter.

        Group mappings are applied, but users who match none of them are
        still listed.

        Returns
        -------
        list of ApplicationIdentity
            Identity of each user.

        Raises
        ------
        DirectoryConnectionError
            Raised if no LDAP host could be reached.
        DirectoryOperationError
            Raised if a directory operation failed.
        InvalidCredentialsError
            Raised if the service credentials were rejected.
        """
        with self._dialer.connect() as client:
            Authenticator(self._config, client, self._logger).server_bind()
            search = DirectorySearchEngine(self._config, client, self._logger)
            resolver = create_group_resolver(
                self._config, search, self._logger
            )
            records = [
                self._build_record(e, resolver) for e in search.find_users()
            ]
        return [self._mapper.build_identity(r) for r in records]

    def add_entry(self, dn: str, attributes: dict[str, list[str]]) -> None:
        """Add an entry to the directory as the service identity.

        Parameters
        ----------
        dn
            DN of the new entry.
        attributes
            Attributes of the new entry.

        Raises
        ------
        DirectoryOperationError
            Raised if the directory refused the new entry.
        """
        with self._dialer.connect() as client:
            Authenticator(self._config, client, self._logger).server_bind()
            client.add(dn, attributes)
        self._logger.info("Added LDAP entry", ldap_dn=dn)

    def remove_entry(self, dn: str) -> None:
        """Remove an entry from the directory as the service identity.

        Parameters
        ----------
        dn
            DN of the entry to remove.

        Raises
        ------
        DirectoryOperationError
            Raised if the directory refused to remove the entry.
        """
        with self._dialer.connect() as client:
            Authenticator(self._config, client, self._logger).server_bind()
            client.delete(dn)
        self._logger.info("Removed LDAP entry", ldap_dn=dn)

    def extract_identity(
        self, record: DirectoryRecord
    ) -> ApplicationIdentity:
        """Build and validate the identity for a directory record.

        Parameters
        ----------
        record
            The user's directory record.

        Returns
        -------
        ApplicationIdentity
            Corresponding identity.

        Raises
        ------
        InvalidCredentialsError
            Raised if the user is not authorized by the group mappings.
        """
        return self._mapper.extract_identity(record)

    def _build_record(
        self, entry: DirectoryEntry, resolver: GroupResolver
    ) -> DirectoryRecord:
        attrs = self._config.attributes
        return DirectoryRecord(
            dn=entry.dn,
            username=entry.get(attrs.username),
            surname=entry.get(attrs.surname),
            given_name=entry.get(attrs.name),
            email=entry.get(attrs.email),
            member_of=resolver.resolve(entry),
        )
