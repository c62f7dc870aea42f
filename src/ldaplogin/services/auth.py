"""Bind to the directory on behalf of a user or the service."""

from __future__ import annotations

from dataclasses import dataclass

from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..exceptions import DirectoryOperationError, InvalidCredentialsError
from ..models.enums import BindStrategy
from ..storage.ldap import DirectoryClient

__all__ = ["Authenticator", "BindResult"]


@dataclass(frozen=True, slots=True)
class BindResult:
    """Outcome of the initial bind of a login."""

    second_bind_required: bool
    """Whether the user's password still has to be checked.

    True if the initial bind used the service credentials, in which case the
    user must be verified with a second bind as their own DN once it is
    known.
    """


class Authenticator:
    """Perform the binds needed to log in or list users.

    Parameters
    ----------
    config
        LDAP configuration.
    client
        Open connection to the directory.
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

    def authenticate(self, username: str, password: str) -> BindResult:
        """Perform the initial bind of a login.

        If a service password is configured, or there is no bind DN at all,
        bind with the service password. Otherwise bind directly with the
        user's password. In both cases any ``%s`` in the bind DN is replaced
        by the username.

        Parameters
        ----------
        username
            Username of the user logging in.
        password
            Password supplied by the user.

        Returns
        -------
        BindResult
            Whether a second bind as the user is still needed.

        Raises
        ------
        DirectoryOperationError
            Raised if the bind failed for a reason other than invalid
            credentials.
        InvalidCredentialsError
            Raised if the directory rejected the credentials.
        """
        bind_dn = self._config.format_bind_dn(username)
        match self._config.bind_strategy:
            case BindStrategy.service_account:
                self._bind(bind_dn, self._config.password)
                return BindResult(second_bind_required=True)
            case BindStrategy.direct:
                self._bind(bind_dn, password)
                return BindResult(second_bind_required=False)

    def server_bind(self) -> None:
        """Bind with the service credentials.

        The bind DN is used as configured, without substituting a username.
        If no service password is set, an unauthenticated bind is done.

        Raises
        ------
        DirectoryOperationError
            Raised if the bind failed for a reason other than invalid
            credentials.
        InvalidCredentialsError
            Raised if the directory rejected the credentials.
        """
        self._bind(self._config.bind_dn, self._config.password)

    def second_bind(self, dn: str, password: str) -> None:
        """Verify the user's password by binding as the user.

        Parameters
        ----------
        dn
            DN of the user's entry.
        password
            Password supplied by the user, never the service password.

        Raises
        ------
        DirectoryOperationError
            Raised if the bind failed for a reason other than invalid
            credentials.
        InvalidCredentialsError
            Raised if the password is empty or the directory rejected it.
        """
        if not password:
            # An empty password would be an unauthenticated bind.
            self._logger.info("Refusing empty password", user=dn)
            raise InvalidCredentialsError
        self._bind(dn, password)

    def _bind(self, dn: str, password: str) -> None:
        logger = self._logger.bind(user=dn)
        try:
            if password:
                self._client.bind(dn, password)
            else:
                self._client.unauthenticated_bind(dn)
        except DirectoryOperationError as e:
            logger.info("LDAP bind failed", error=str(e))
            if e.is_invalid_credentials:
                raise InvalidCredentialsError from e
            raise
        logger.debug("LDAP bind succeeded")
