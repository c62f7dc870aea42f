"""Create ldaplogin components."""

from __future__ import annotations

from typing import Self

import structlog
from structlog.stdlib import BoundLogger

from .config import Config
from .services.ldap import LDAPService
from .storage.dialer import DirectoryDialer
from .storage.ldap import connect_ldap3

__all__ = ["Factory"]


class Factory:
    """Build ldaplogin components.

    Parameters
    ----------
    config
        ldaplogin configuration.
    logger
        Logger to use for errors.
    """

    @classmethod
    def standalone(cls, config: Config) -> Self:
        """Create a component factory for use outside of an application.

        Used by the command-line interface. The logger is the ``ldaplogin``
        logger, so logging should already have been configured.

        Parameters
        ----------
        config
            ldaplogin configuration.

        Returns
        -------
        Factory
            Newly-created factory.
        """
        logger = structlog.get_logger("ldaplogin")
        return cls(config, logger)

    def __init__(self, config: Config, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger

    def create_dialer(self) -> DirectoryDialer:
        """Create a new dialer for the configured LDAP hosts.

        Returns
        -------
        DirectoryDialer
            Newly-created dialer.
        """
        return DirectoryDialer(
            self._config.ldap, self._logger, connect=connect_ldap3
        )

    def create_ldap_service(self) -> LDAPService:
        """Create a new service for LDAP logins and user lookups.

        Returns
        -------
        LDAPService
            Newly-created LDAP service.
        """
        return LDAPService(
            self._config.ldap, self.create_dialer(), self._logger
        )
