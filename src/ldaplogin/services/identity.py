"""Map directory records to application identities."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..constants import AUTH_MODULE
from ..exceptions import InvalidCredentialsError
from ..models.enums import OrgRole
from ..models.identity import ApplicationIdentity
from ..models.ldap import DirectoryRecord

__all__ = ["IdentityMapper"]


class IdentityMapper:
    """Turn a directory record into an identity with organization roles.

    Parameters
    ----------
    config
        LDAP configuration, whose group mappings are applied in order.
    logger
        Logger to use.
    """

    def __init__(self, config: LDAPConfig, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger

    def build_identity(self, record: DirectoryRecord) -> ApplicationIdentity:
        """Build the identity for a record without checking authorization.

        Group mappings are applied in configured order. The first matching
        mapping for an organization determines the role in that
        organization. Any matching mapping with ``isAdmin`` set makes the
        user an administrator, whether or not it assigned a role.

        Parameters
        ----------
        record
            The user's directory record.

        Returns
        -------
        ApplicationIdentity
            Corresponding identity.
        """
        org_roles: dict[int, OrgRole] = {}
        is_admin: bool | None = None
        for mapping in self._config.groups:
            if not record.is_member_of(mapping.group_dn):
                continue
            if mapping.org_id not in org_roles:
                org_roles[mapping.org_id] = mapping.org_role
            if mapping.is_admin:
                is_admin = True

        return ApplicationIdentity(
            auth_module=AUTH_MODULE,
            auth_id=record.dn,
            name=f"{record.given_name} {record.surname}",
            login=record.username,
            email=record.email,
            groups=record.member_of,
            org_roles=org_roles,
            is_admin=is_admin,
        )

    def validate_identity(self, identity: ApplicationIdentity) -> None:
        """Check that a user is authorized by the group mappings.

        If no group mappings are configured, every user is authorized.

        Parameters
        ----------
        identity
            Identity built by `build_identity`.

        Raises
        ------
        InvalidCredentialsError
            Raised if group mappings are configured and the user was not
            given a role in any organization.
        """
        if self._config.groups and not identity.org_roles:
            self._logger.error(
                "User does not match any LDAP group mapping",
                user=identity.login,
                ldap_dn=identity.auth_id,
            )
            raise InvalidCredentialsError

    def extract_identity(
        self, record: DirectoryRecord
    ) -> ApplicationIdentity:
        """Build the identity for a record and check authorization.

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
        identity = self.build_identity(record)
        self.validate_identity(identity)
        return identity
