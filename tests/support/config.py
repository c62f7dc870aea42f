"""Build test configuration for ldaplogin."""

from __future__ import annotations

from pathlib import Path

from ldaplogin.config import Config

__all__ = ["config_path", "load_config"]


def config_path(filename: str) -> Path:
    """Return the path to a test configuration file.

    Parameters
    ----------
    filename
        The base name of a test configuration file.

    Returns
    -------
    Path
        The path to that file.
    """
    return (
        Path(__file__).parent.parent / "data" / "config" / (filename + ".yaml")
    )


def load_config(filename: str) -> Config:
    """Load one of the test configuration files.

    Environment variable overrides are honored, so tests may use
    ``monkeypatch`` to change settings before calling this.

    Parameters
    ----------
    filename
        The base name of a test configuration file.

    Returns
    -------
    Config
        The parsed configuration.
    """
    return Config.from_file(config_path(filename))
