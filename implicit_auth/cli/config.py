"""Configuration management CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

# Common option for JSON output
json_option = click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output result as JSON or formatted text.

    Args:
        data: Data to output
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return
    for key, value in data.items():
        click.echo(f"{key}: {value}")


def error_result(message: str, as_json: bool = False) -> NoReturn:
    """Output error message and exit.

    This function never returns - it either raises ClickException or calls sys.exit.

    Args:
        message: Error message
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2), err=True)
        sys.exit(1)
    raise click.ClickException(message)


@click.group()
def config() -> None:
    """Manage implicit-auth configuration."""
    pass


@config.command("init")
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing configuration file.",
)
@json_option
@click.pass_context
def config_init(ctx: click.Context, force: bool, output_json: bool) -> None:
    """Write a default configuration file.

    Examples:

        # Write ~/.implicit_auth/config.yaml
        implicit-auth config init

        # Write somewhere else
        implicit-auth --config ./auth.yaml config init
    """
    from implicit_auth.core.config import DEFAULT_CONFIG_FILE, get_default_config_yaml

    config_path: Path = ctx.obj.get("config_path") or DEFAULT_CONFIG_FILE

    if config_path.exists() and not force:
        if output_json:
            output_result({"status": "already_exists", "config_file": str(config_path)}, as_json=True)
            return
        click.echo(f"Configuration file already exists: {config_path}")
        click.echo("Use --force to overwrite it.")
        return

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(get_default_config_yaml())

    if output_json:
        output_result({"status": "created", "config_file": str(config_path)}, as_json=True)
    else:
        click.echo(f"Created configuration file: {config_path}")
        click.echo("")
        click.echo("Next steps:")
        click.echo("  1. Set auth.client_id to your application's client id")
        click.echo("  2. Run 'implicit-auth login-url' to start a sign-in")


@config.command("show")
@json_option
@click.pass_context
def config_show(ctx: click.Context, output_json: bool) -> None:
    """Show the effective configuration (file plus environment)."""
    from implicit_auth.core.config import load_config
    from implicit_auth.core.errors import ClientConfigurationError

    try:
        client_config = load_config(ctx.obj.get("config_path"))
    except ClientConfigurationError as e:
        error_result(str(e), output_json)

    data = client_config.to_dict()
    data["config_file"] = str(client_config.config_path) if client_config.config_path else None

    if output_json:
        output_result(data, as_json=True)
        return

    click.echo(f"Config file: {data['config_file'] or '(none, using defaults)'}")
    for section in ("auth", "cache", "logging", "system"):
        click.echo("")
        click.echo(f"[{section}]")
        for key, value in data[section].items():
            click.echo(f"  {key}: {value}")
