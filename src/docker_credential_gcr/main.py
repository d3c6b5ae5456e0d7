"""Command line entry point speaking the Docker credential-helper protocol."""

import json
import logging
import os

import click
from pydantic import ValidationError

from .config import GCRConfig, get_config, setup_logging, user_config_path
from .consts import HELPER_NAME, PACKAGE_VERSION
from .exceptions import ConfigError, CredentialHelperError
from .helper import GCRCredentialHelper, create_helper
from .login import BrowserLoginAgent
from .models import TokenSourceKind
from .protocols import CredentialStore, LoginAgent
from .store import JsonFileCredentialStore, OAuthContext

logger = logging.getLogger("docker-credential-gcr.main")


def _config(ctx: click.Context) -> GCRConfig:
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config()
        except (ValidationError, json.JSONDecodeError) as e:
            _fail(ctx, ConfigError("invalid configuration", cause=e))
    return ctx.obj["config"]


def _helper(ctx: click.Context) -> GCRCredentialHelper:
    if "helper" not in ctx.obj:
        config = _config(ctx)
        oauth_context = OAuthContext.from_config(config)
        ctx.call_on_close(oauth_context.close)
        ctx.obj["helper"] = create_helper(
            config, store=_store(ctx), oauth_context=oauth_context
        )
    return ctx.obj["helper"]


def _store(ctx: click.Context) -> CredentialStore:
    if "store" not in ctx.obj:
        ctx.obj["store"] = JsonFileCredentialStore(_config(ctx).store_path)
    return ctx.obj["store"]


def _login_agent(ctx: click.Context) -> LoginAgent:
    if "login_agent" not in ctx.obj:
        ctx.obj["login_agent"] = BrowserLoginAgent.from_config(_config(ctx))
    return ctx.obj["login_agent"]


def _fail(ctx: click.Context, error: CredentialHelperError) -> None:
    """Report an error the way Docker expects: message on stdout, exit 1."""
    logger.debug(f"{type(error).__name__}: {error.detail}")
    click.echo(str(error))
    for suggestion in error.suggestions:
        click.echo(f"hint: {suggestion}", err=True)
    ctx.exit(1)


def _read_stdin() -> str:
    return click.get_text_stream("stdin").read().strip()


@click.group(name=HELPER_NAME)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Docker credential helper for Google Container Registry."""
    ctx.ensure_object(dict)
    setup_logging(_config(ctx).log_level)


# ===== CREDENTIAL HELPER PROTOCOL =====


@cli.command()
@click.pass_context
def get(ctx: click.Context) -> None:
    """Print credentials for the server URL read from stdin."""
    server_url = _read_stdin()
    try:
        credential = _helper(ctx).get(server_url)
    except CredentialHelperError as e:
        _fail(ctx, e)
        return
    click.echo(
        json.dumps(
            {
                "ServerURL": server_url,
                "Username": credential.username,
                "Secret": credential.secret,
            }
        )
    )


@cli.command(name="list")
@click.pass_context
def list_(ctx: click.Context) -> None:
    """List stored credentials (unsupported)."""
    try:
        click.echo(json.dumps(_helper(ctx).list()))
    except CredentialHelperError as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
def store(ctx: click.Context) -> None:
    """Store credentials read from stdin (unsupported)."""
    payload = _read_stdin()
    try:
        _helper(ctx).add(json.loads(payload) if payload else None)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"invalid credentials payload: {e}") from e
    except CredentialHelperError as e:
        _fail(ctx, e)


@cli.command()
@click.pass_context
def erase(ctx: click.Context) -> None:
    """Erase credentials for the server URL read from stdin (unsupported)."""
    try:
        _helper(ctx).delete(_read_stdin())
    except CredentialHelperError as e:
        _fail(ctx, e)


# ===== HELPER MANAGEMENT =====


@cli.command()
def version() -> None:
    """Print the helper version."""
    click.echo(f"Google Container Registry Docker credential helper {PACKAGE_VERSION}")


@cli.command()
@click.option(
    "--token-source",
    "token_source",
    help="Comma-separated token sources in priority order, e.g. 'env,store'.",
)
@click.option("--unset-all", is_flag=True, help="Remove all user configuration.")
@click.pass_context
def config(ctx: click.Context, token_source: str | None, unset_all: bool) -> None:
    """Persist user configuration."""
    path = user_config_path()
    if unset_all:
        if os.path.exists(path):
            os.remove(path)
        click.echo(f"Removed {path}", err=True)
        return
    if token_source is None:
        raise click.UsageError("one of --token-source or --unset-all is required")

    sources = [s.strip() for s in token_source.split(",") if s.strip()]
    try:
        for source in sources:
            TokenSourceKind.parse(source)
        _write_user_config(path, {"token_sources": sources})
    except ConfigError as e:
        _fail(ctx, e)
        return
    click.echo(f"Token sources set to {', '.join(sources)}", err=True)


def _write_user_config(path: str, values: dict) -> None:
    try:
        with open(path) as f:
            current = json.load(f)
    except FileNotFoundError:
        current = {}
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"unable to read config file {path}", cause=e) from e
    current.update(values)
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(current, f, indent=2)
    except OSError as e:
        raise ConfigError(f"unable to write config file {path}", cause=e) from e


@cli.group()
def auth() -> None:
    """Manage the helper's own stored credential."""


@auth.command()
@click.pass_context
def login(ctx: click.Context) -> None:
    """Log in through the browser and store the credential."""
    try:
        credential = _login_agent(ctx).perform_login()
        _store(ctx).set_auth(credential)
    except CredentialHelperError as e:
        _fail(ctx, e)
        return
    click.echo("Login Succeeded", err=True)


@auth.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the stored credential."""
    try:
        _store(ctx).delete_auth()
    except CredentialHelperError as e:
        _fail(ctx, e)
        return
    click.echo("Logged out", err=True)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
