"""
CLI main entry - using Click framework.
"""

from __future__ import annotations

import json
import logging
import sys

import click

from corewright import __app_name__
from corewright.config.defaults import build_default_config
from corewright.config.repository import ConfigurationError, Repository
from corewright.foundation.application import Application
from corewright.foundation.bootstrap import DEFAULT_BOOTSTRAPPERS
from corewright.foundation.providers.foundation import kernel_identity
from corewright.http.route_middleware import Dispatched

logger = logging.getLogger("corewright.cli")


def create_application(base_path: str, config_file: str | None) -> Application:
    """Build and bootstrap an application rooted at ``base_path``."""
    defaults = build_default_config()
    config = Repository.from_file(config_file, defaults) if config_file else Repository(defaults=defaults)

    app = Application(base_path=base_path, config=config)
    app.bootstrap_with(DEFAULT_BOOTSTRAPPERS)
    return app


@click.group()
@click.option("--base-path", default=".", type=click.Path(file_okay=False), help="Project root")
@click.option("--config", "config_file", default=None, help="JSON config file")
@click.pass_context
def cli(ctx: click.Context, base_path: str, config_file: str | None) -> None:
    """corewright - application foundation tooling"""
    ctx.ensure_object(dict)
    ctx.obj["base_path"] = base_path
    ctx.obj["config_file"] = config_file


def _application(ctx: click.Context) -> Application:
    try:
        return create_application(ctx.obj["base_path"], ctx.obj["config_file"])
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    except Exception:
        logger.exception("Application failed to bootstrap")
        sys.exit(1)


@cli.command()
@click.pass_context
def about(ctx: click.Context) -> None:
    """Show version, environment and loaded providers."""
    app = _application(ctx)

    click.echo(f"{__app_name__} v{app.version()}")
    click.echo(f"Environment: {app.environment()}")
    click.echo(f"Debug: {'enabled' if app.has_debug_mode_enabled() else 'disabled'}")
    click.echo(f"Base path: {app.base_path()}")

    providers = app.get_loaded_providers()
    click.echo(f"Providers ({len(providers)}):")
    for name in providers:
        click.echo(f"  - {name}")


@cli.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("show")
@click.argument("key", required=False)
@click.pass_context
def config_show(ctx: click.Context, key: str | None) -> None:
    """Show configuration (the whole tree, or one dot-notation key)."""
    repository: Repository = _application(ctx).make("config")

    if key and not repository.has(key):
        click.echo(f"Key '{key}' does not exist")
        ctx.exit(1)

    click.echo(json.dumps(repository.get(key), ensure_ascii=False, indent=2, default=str))


@cli.group()
def middleware() -> None:
    """HTTP middleware inspection."""
    pass


@middleware.command("list")
@click.option("--server", default="http", help="Server name")
@click.option("--route", default=None, help="Route identifier; omit for an unmatched request")
@click.option("--method", default="GET", help="HTTP method")
@click.pass_context
def middleware_list(ctx: click.Context, server: str, route: str | None, method: str) -> None:
    """List the resolved middleware for a route, in execution order."""
    app = _application(ctx)

    identity = kernel_identity(server)
    if not app.bound(identity):
        raise click.ClickException(f"No HTTP kernel configured for server [{server}]")

    kernel = app.make(identity)
    dispatched = Dispatched(True, route, method.upper()) if route else Dispatched.not_found()

    resolved = kernel.get_middleware_for_request(dispatched)
    if not resolved:
        click.echo("No middleware")
        return

    for index, parsed in enumerate(resolved, start=1):
        click.echo(f"{index:>3}. {parsed.signature}")


def run_cli() -> int:
    """Run the CLI and return the process exit code."""
    try:
        cli(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Exit as e:
        return e.exit_code
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return 0


if __name__ == "__main__":
    cli()
