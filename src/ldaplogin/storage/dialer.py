"""Establish connections to the configured LDAP hosts."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ldap3 import Tls
from ldap3.core.exceptions import LDAPException
from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..exceptions import DirectoryConnectionError, LDAPError
from ..models.enums import TLSMode
from ..tls import TLSMaterial
from .ldap import DirectoryClient, connect_ldap3

type ConnectFunction = Callable[..., DirectoryClient]
"""Signature of `~ldaplogin.storage.ldap.connect_ldap3`."""

__all__ = ["ConnectFunction", "DirectoryDialer"]


class DirectoryDialer:
    """Open a connection to the first usable LDAP host.

    Parameters
    ----------
    config
        LDAP configuration.
    logger
        Logger to use.
    connect
        Function that opens a connection to one host. Replaced in tests.
    """

    def __init__(
        self,
        config: LDAPConfig,
        logger: BoundLogger,
        *,
        connect: ConnectFunction = connect_ldap3,
    ) -> None:
        self._config = config
        self._logger = logger
        self._connect = connect

    def dial(self) -> DirectoryClient:
        """Connect to the first configured host that accepts a connection.

        Hosts are tried in the configured order. With StartTLS, a host whose
        upgrade fails is treated the same as one that refused the connection.

        Returns
        -------
        DirectoryClient
            Open, unbound connection. The caller must close it.

        Raises
        ------
        DirectoryConfigurationError
            Raised if the configured TLS material could not be loaded. No
            host is contacted in that case.
        DirectoryConnectionError
            Raised if every host failed. The error from the last host is
            chained as the cause.
        """
        material = None
        if self._config.tls != TLSMode.none:
            material = TLSMaterial.from_config(self._config)

        last_error: Exception | None = None
        for host in self._config.host:
            logger = self._logger.bind(
                ldap_host=host,
                ldap_port=self._config.port,
                ldap_tls=self._config.tls.value,
            )
            tls = material.for_host(host) if material else None
            try:
                client = self._dial_host(host, tls)
            except (LDAPException, LDAPError, OSError) as e:
                logger.warning("Cannot connect to LDAP host", error=str(e))
                last_error = e
                continue
            logger.debug("Connected to LDAP host")
            return client

        hosts = ", ".join(self._config.host)
        msg = f"Cannot connect to any LDAP host ({hosts})"
        raise DirectoryConnectionError(msg) from last_error

    @contextmanager
    def connect(self) -> Iterator[DirectoryClient]:
        """Open a connection and close it on exit.

        Yields
        ------
        DirectoryClient
            Open, unbound connection.
        """
        client = self.dial()
        try:
            yield client
        finally:
            client.close()

    def _dial_host(self, host: str, tls: Tls | None) -> DirectoryClient:
        port = self._config.port
        if self._config.tls == TLSMode.ldaps:
            return self._connect(host, port, use_ssl=True, tls=tls)
        client = self._connect(host, port)
        if self._config.tls == TLSMode.starttls and tls:
            try:
                client.start_tls(tls)
            except Exception:
                client.close()
                raise
        return client
