"""Directory client boundary and its ``ldap3`` implementation."""

from __future__ import annotations

from typing import Any, Protocol

from ldap3 import (
    ANONYMOUS,
    AUTO_BIND_NONE,
    DEREF_NEVER,
    NONE,
    SIMPLE,
    SUBTREE,
    Connection,
    Server,
    Tls,
)

from ..exceptions import DirectoryOperationError
from ..models.enums import LDAPResultCode
from ..models.ldap import DirectoryEntry, SearchRequest

__all__ = [
    "DirectoryClient",
    "LDAP3DirectoryClient",
    "connect_ldap3",
]


class DirectoryClient(Protocol):
    """Operations on one open connection to a directory server.

    Every operation that the server answers with a result other than success
    raises `~ldaplogin.exceptions.DirectoryOperationError`. Transport
    failures propagate as whatever the implementation raises.
    """

    def bind(self, dn: str, password: str) -> None:
        """Perform a simple bind."""

    def unauthenticated_bind(self, dn: str) -> None:
        """Perform a bind with a DN and no password."""

    def add(self, dn: str, attributes: dict[str, list[str]]) -> None:
        """Add an entry."""

    def delete(self, dn: str) -> None:
        """Delete an entry."""

    def search(self, request: SearchRequest) -> list[DirectoryEntry]:
        """Run a search and return the matching entries."""

    def start_tls(self, tls: Tls) -> None:
        """Upgrade the connection to TLS in place."""

    def close(self) -> None:
        """Close the connection."""


class LDAP3DirectoryClient:
    """Directory client backed by an ``ldap3`` connection.

    Parameters
    ----------
    connection
        Open, unbound ``ldap3`` connection. It must have been created with
        ``raise_exceptions=False`` so that result codes can be inspected.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def bind(self, dn: str, password: str) -> None:
        self._bind(dn, password, authentication=SIMPLE)

    def unauthenticated_bind(self, dn: str) -> None:
        # ldap3 refuses a simple bind with an empty password, so an
        # unauthenticated bind (RFC 4513 section 5.1.2) goes through the
        # anonymous method, which still sends the DN.
        self._bind(dn, "", authentication=ANONYMOUS)

    def add(self, dn: str, attributes: dict[str, list[str]]) -> None:
        self._connection.add(dn, attributes=attributes)
        self._check_result()

    def delete(self, dn: str) -> None:
        self._connection.delete(dn)
        self._check_result()

    def search(self, request: SearchRequest) -> list[DirectoryEntry]:
        self._connection.search(
            search_base=request.base_dn,
            search_filter=request.filter_exp,
            search_scope=SUBTREE,
            dereference_aliases=DEREF_NEVER,
            attributes=request.attributes or None,
        )
        self._check_result()
        return [
            DirectoryEntry(
                dn=r["dn"], attributes=_normalize(r.get("attributes", {}))
            )
            for r in self._connection.response or []
            if r.get("type") == "searchResEntry"
        ]

    def start_tls(self, tls: Tls) -> None:
        self._connection.server.tls = tls
        if not self._connection.start_tls():
            result = self._connection.result or {}
            raise DirectoryOperationError.from_result(result)

    def close(self) -> None:
        self._connection.unbind()

    def _bind(self, dn: str, password: str, *, authentication: str) -> None:
        self._connection.authentication = authentication
        self._connection.user = dn
        self._connection.password = password
        self._connection.bind()
        self._check_result()

    def _check_result(self) -> None:
        """Raise an exception if the last operation did not succeed.

        Raises
        ------
        DirectoryOperationError
            Raised if the result code is anything other than success,
            including ``noSuchObject`` for a missing search base.
        """
        result = self._connection.result or {}
        code = result.get("result", LDAPResultCode.success)
        if code != LDAPResultCode.success:
            raise DirectoryOperationError.from_result(result)


def connect_ldap3(
    host: str, port: int, *, use_ssl: bool = False, tls: Tls | None = None
) -> LDAP3DirectoryClient:
    """Open a connection to a directory server with ``ldap3``.

    Parameters
    ----------
    host
        Host to connect to.
    port
        Port to connect to.
    use_ssl
        Whether to do the TLS handshake immediately on connecting.
    tls
        TLS settings, required if ``use_ssl`` is set.

    Returns
    -------
    LDAP3DirectoryClient
        Client for the open but not yet bound connection.

    Raises
    ------
    ldap3.core.exceptions.LDAPException
        Raised if the connection could not be opened.
    """
    server = Server(host, port=port, use_ssl=use_ssl, tls=tls, get_info=NONE)
    connection = Connection(
        server, auto_bind=AUTO_BIND_NONE, raise_exceptions=False
    )
    connection.open()
    return LDAP3DirectoryClient(connection)


def _normalize(attributes: dict[str, Any]) -> dict[str, list[str]]:
    """Convert ``ldap3`` attribute values to lists of strings."""
    result = {}
    for name, value in attributes.items():
        values = value if isinstance(value, list) else [value]
        result[name] = [
            v.decode(errors="replace") if isinstance(v, bytes) else str(v)
            for v in values
        ]
    return result
