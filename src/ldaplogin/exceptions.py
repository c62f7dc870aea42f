"""Exceptions for ldaplogin."""

from __future__ import annotations

from typing import Any, Self

from .models.enums import LDAPResultCode

__all__ = [
    "AmbiguousDirectoryMatchError",
    "DirectoryConfigurationError",
    "DirectoryConnectionError",
    "DirectoryOperationError",
    "InvalidCredentialsError",
    "LDAPError",
]


class LDAPError(Exception):
    """Base class for all errors raised while talking to LDAP."""


class InvalidCredentialsError(LDAPError):
    """The username or password is invalid, or the user is not authorized.

    This is raised if the directory rejects a bind with invalid credentials,
    if no entry matches the username, or if group mappings are configured and
    none of them matched the user. The message is identical in every case so
    that callers cannot tell which check failed.
    """

    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class AmbiguousDirectoryMatchError(LDAPError):
    """More than one entry matched a search for a single user.

    This indicates that the configured search filter is too broad and should
    be reported as a configuration problem, not a credentials problem.

    Parameters
    ----------
    base_dn
        Base DN of the search that returned multiple entries.
    count
        Number of entries returned.
    """

    def __init__(self, base_dn: str, count: int) -> None:
        msg = (
            f"LDAP search under {base_dn} matched {count} entries, please"
            " review your searchFilter setting"
        )
        super().__init__(msg)
        self.base_dn = base_dn
        self.count = count


class DirectoryConnectionError(LDAPError):
    """Unable to connect to any of the configured LDAP hosts.

    The underlying error from the last host tried is chained as the cause.
    """


class DirectoryConfigurationError(LDAPError):
    """TLS material for the LDAP connection could not be loaded.

    Raised for unreadable or unparsable CA certificates and for client
    certificate and key pairs that cannot be read or do not match. This is a
    configuration defect and should not be retried.
    """


class DirectoryOperationError(LDAPError):
    """An LDAP operation completed with a result code other than success.

    Parameters
    ----------
    result_code
        Numeric LDAP result code. Converted to `LDAPResultCode` if it is one
        of the known codes.
    description
        Short name of the result code as reported by the LDAP library.
    message
        Diagnostic message returned by the server, if any.
    """

    def __init__(
        self,
        result_code: LDAPResultCode | int,
        description: str = "",
        message: str = "",
    ) -> None:
        try:
            result_code = LDAPResultCode(result_code)
        except ValueError:
            pass
        msg = f"LDAP operation failed with result {int(result_code)}"
        if description:
            msg += f" ({description})"
        if message:
            msg += f": {message}"
        super().__init__(msg)
        self.result_code = result_code
        self.description = description
        self.message = message

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> Self:
        """Build the exception from an ``ldap3`` result dictionary.

        Parameters
        ----------
        result
            The ``result`` attribute of an ``ldap3`` connection after a failed
            operation.

        Returns
        -------
        DirectoryOperationError
            Corresponding exception.
        """
        return cls(
            result.get("result", LDAPResultCode.other),
            result.get("description") or "",
            result.get("message") or "",
        )

    @property
    def is_invalid_credentials(self) -> bool:
        """Whether the directory rejected the credentials of a bind."""
        return self.result_code == LDAPResultCode.invalid_credentials
