"""TLS material for LDAP connections."""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from cryptography import x509
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
    load_pem_private_key,
)
from ldap3 import Tls

from .config import LDAPConfig
from .exceptions import DirectoryConfigurationError

__all__ = ["TLSMaterial"]


@dataclass(frozen=True, slots=True)
class TLSMaterial:
    """Validated TLS material for connecting to the LDAP hosts.

    Notes
    -----
    Created by calling :py:meth:`~TLSMaterial.from_config` rather than the
    constructor, so that every file is read and parsed once, before any host
    is contacted. A problem with any of them is a configuration error, not a
    reason to try the next host.
    """

    ca_certs_data: str | None
    """Concatenated PEM CA certificates, or `None` for the system trust."""

    client_cert: Path | None
    """Client certificate for mutual TLS."""

    client_key: Path | None
    """Private key matching ``client_cert``."""

    skip_verify: bool
    """Whether to skip verification of the server certificate."""

    @classmethod
    def from_config(cls, config: LDAPConfig) -> Self:
        """Load and check the TLS material named in the configuration.

        Parameters
        ----------
        config
            LDAP configuration.

        Returns
        -------
        TLSMaterial
            The validated material.

        Raises
        ------
        DirectoryConfigurationError
            Raised if a CA certificate file cannot be read or holds no valid
            certificate, or the client certificate and key cannot be read,
            cannot be parsed, or do not match.
        """
        ca_certs_data = None
        if config.root_ca_cert:
            pems = [_load_ca_certificates(p) for p in config.root_ca_cert]
            ca_certs_data = "".join(pems)
        if config.client_cert and config.client_key:
            _check_key_pair(config.client_cert, config.client_key)
        return cls(
            ca_certs_data=ca_certs_data,
            client_cert=config.client_cert,
            client_key=config.client_key,
            skip_verify=config.skip_verify_ssl,
        )

    def for_host(self, host: str) -> Tls:
        """Build the ``ldap3`` TLS settings for one host.

        Parameters
        ----------
        host
            Host being connected to, used as the expected server name.

        Returns
        -------
        ldap3.Tls
            TLS settings for a connection to that host.
        """
        return Tls(
            validate=ssl.CERT_NONE if self.skip_verify else ssl.CERT_REQUIRED,
            ca_certs_data=self.ca_certs_data,
            local_certificate_file=(
                str(self.client_cert) if self.client_cert else None
            ),
            local_private_key_file=(
                str(self.client_key) if self.client_key else None
            ),
            valid_names=[host],
            sni=host,
        )


def _read(path: Path, kind: str) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        msg = f"Cannot read {kind} {path}: {e.strerror or e!s}"
        raise DirectoryConfigurationError(msg) from e


def _load_ca_certificates(path: Path) -> str:
    """Read a PEM file of CA certificates and check that it parses."""
    pem = _read(path, "CA certificate")
    try:
        x509.load_pem_x509_certificates(pem)
    except ValueError as e:
        msg = f"Failed to append CA certificate {path}"
        raise DirectoryConfigurationError(msg) from e
    text = pem.decode("ascii", errors="replace")
    return text if text.endswith("\n") else text + "\n"


def _check_key_pair(cert_path: Path, key_path: Path) -> None:
    """Check that a client certificate and key can be used together."""
    cert_pem = _read(cert_path, "client certificate")
    key_pem = _read(key_path, "client key")
    try:
        cert = x509.load_pem_x509_certificate(cert_pem)
        key = load_pem_private_key(key_pem, password=None)
    except (TypeError, ValueError) as e:
        msg = f"Cannot load client key pair {cert_path} and {key_path}"
        raise DirectoryConfigurationError(msg) from e
    cert_public = cert.public_key().public_bytes(
        Encoding.DER, PublicFormat.SubjectPublicKeyInfo
    )
    key_public = key.public_key().public_bytes(
        Encoding.DER, PublicFormat.SubjectPublicKeyInfo
    )
    if cert_public != key_public:
        msg = f"Client key {key_path} does not match certificate {cert_path}"
        raise DirectoryConfigurationError(msg)
