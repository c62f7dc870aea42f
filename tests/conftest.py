"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog
from structlog.stdlib import BoundLogger

from ldaplogin.config import Config
from ldaplogin.factory import Factory

from .support.config import load_config
from .support.ldap import MockLDAP, patch_ldap


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear environment variables that override the test configuration."""
    for variable in (
        "LDAPLOGIN_CONFIG_PATH",
        "LDAPLOGIN_LDAP_BIND_PASSWORD",
        "LDAPLOGIN_LOG_LEVEL",
        "LDAPLOGIN_LOG_PROFILE",
    ):
        monkeypatch.delenv(variable, raising=False)


@pytest.fixture
def config() -> Config:
    """Set up and return the default test configuration.

    The default configuration binds with a service account and reads group
    membership from the ``memberOf`` attribute, with no group mappings.
    """
    return load_config("service-account")


@pytest.fixture
def factory(config: Config, logger: BoundLogger) -> Factory:
    """Return a component factory for the default test configuration."""
    return Factory(config, logger)


@pytest.fixture
def logger() -> BoundLogger:
    return structlog.get_logger("ldaplogin")


@pytest.fixture
def mock_ldap() -> Iterator[MockLDAP]:
    """Replace the ``ldap3`` connection function with a mock directory."""
    yield from patch_ldap()
