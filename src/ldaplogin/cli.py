"""Command-line interface for LDAP logins and user listings."""

from __future__ import annotations

import json
from pathlib import Path

import click
import structlog
from safir.click import display_help

from .config import Config
from .constants import CONFIG_PATH
from .exceptions import InvalidCredentialsError, LDAPError
from .factory import Factory

__all__ = [
    "help",
    "login",
    "main",
    "users",
]

_config_path_option = click.option(
    "--config-path",
    envvar="LDAPLOGIN_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=Path(CONFIG_PATH),
    show_default=True,
    help="Application configuration file.",
)


def _load_config(config_path: Path) -> Config:
    """Load the configuration and set up logging."""
    config = Config.from_file(config_path)
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Command-line interface for ldaplogin."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.argument("username")
@click.password_option(
    "--password", confirmation_prompt=False, help="Password of the user."
)
@_config_path_option
def login(*, username: str, password: str, config_path: Path) -> None:
    """Log in as a user and print the resulting identity as JSON."""
    config = _load_config(config_path)
    logger = structlog.get_logger("ldaplogin")
    ldap_service = Factory.standalone(config).create_ldap_service()
    try:
        identity = ldap_service.login(username, password)
    except InvalidCredentialsError as e:
        raise click.ClickException(str(e)) from e
    except LDAPError as e:
        logger.exception("LDAP login failed", user=username)
        raise click.ClickException(str(e)) from e
    click.echo(identity.model_dump_json(indent=2))


@main.command()
@_config_path_option
def users(*, config_path: Path) -> None:
    """Print the identity of every user in the directory as JSON."""
    config = _load_config(config_path)
    ldap_service = Factory.standalone(config).create_ldap_service()
    try:
        identities = ldap_service.users()
    except LDAPError as e:
        raise click.ClickException(str(e)) from e
    result = [i.model_dump(mode="json") for i in identities]
    click.echo(json.dumps(result, indent=2))
