"""CLI entry point for implicit-auth.

The cache is SQLite-backed by default, so ``login-url`` and
``handle-response`` can run as two separate invocations.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from implicit_auth import __version__
from implicit_auth.cli import config as config_commands
from implicit_auth.cli.config import error_result, json_option, output_result
from implicit_auth.client import ImplicitAuthClient, create_cache_storage
from implicit_auth.core.config import load_config
from implicit_auth.core.errors import AuthError
from implicit_auth.core.logging import configure_logging
from implicit_auth.request import AuthenticationParameters


@click.group()
@click.version_option(version=__version__, prog_name="implicit-auth")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Path to config.yaml (default: ~/.implicit_auth/config.yaml)",
)
@click.option(
    "--log-level",
    type=click.Choice(["ERROR", "INFO", "DEBUG", "TRACE"], case_sensitive=False),
    default=None,
    help="Log level (default: logging.level from the config file)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """implicit-auth - OAuth2/OIDC implicit grant client."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level


def _get_client(ctx: click.Context, output_json: bool) -> ImplicitAuthClient:
    try:
        client_config = load_config(ctx.obj.get("config_path"))
        protocol_logger = configure_logging(
            ctx.obj.get("log_level") or client_config.logging.level,
            trace_enabled=client_config.logging.trace_enabled,
            log_file=client_config.logging.log_file,
        )
        return ImplicitAuthClient(
            client_config,
            create_cache_storage(client_config),
            protocol_logger=protocol_logger,
        )
    except AuthError as e:
        error_result(str(e), output_json)


def _request_parameters(
    scopes: tuple[str, ...],
    prompt: str | None,
    login_hint: str | None,
    state: str | None,
    authority: str | None,
) -> AuthenticationParameters:
    return AuthenticationParameters(
        scopes=list(scopes) or None,
        prompt=prompt,
        login_hint=login_hint,
        state=state,
        authority=authority,
    )


request_options = [
    click.option("--scope", "scopes", multiple=True, help="Scope to request (repeatable)"),
    click.option(
        "--prompt",
        type=click.Choice(["login", "select_account", "consent", "none"]),
        default=None,
        help="OIDC prompt parameter",
    ),
    click.option("--login-hint", default=None, help="Pre-fill the sign-in name"),
    click.option("--state", default=None, help="Application state echoed back after sign-in"),
    click.option("--authority", default=None, help="Override the configured authority"),
]


def with_request_options(func):
    for option in reversed(request_options):
        func = option(func)
    return func


@cli.command("login-url")
@with_request_options
@json_option
@click.pass_context
def login_url(
    ctx: click.Context,
    scopes: tuple[str, ...],
    prompt: str | None,
    login_hint: str | None,
    state: str | None,
    authority: str | None,
    output_json: bool,
) -> None:
    """Build a sign-in URL and cache the state it carries.

    Open the URL in a browser, then pass the URL you are redirected to
    to 'implicit-auth handle-response'.

    Examples:

        implicit-auth login-url --scope User.Read
    """
    client = _get_client(ctx, output_json)
    request = _request_parameters(scopes, prompt, login_hint, state, authority)

    try:
        url = asyncio.run(client.create_login_url(request))
    except AuthError as e:
        error_result(str(e), output_json)

    if output_json:
        output_result({"url": url}, as_json=True)
    else:
        click.echo(url)


@cli.command("token-url")
@with_request_options
@json_option
@click.pass_context
def token_url(
    ctx: click.Context,
    scopes: tuple[str, ...],
    prompt: str | None,
    login_hint: str | None,
    state: str | None,
    authority: str | None,
    output_json: bool,
) -> None:
    """Build a URL that returns an access token for the given scopes."""
    client = _get_client(ctx, output_json)
    request = _request_parameters(scopes, prompt, login_hint, state, authority)

    try:
        url = asyncio.run(client.create_acquire_token_url(request))
    except AuthError as e:
        error_result(str(e), output_json)

    if output_json:
        output_result({"url": url}, as_json=True)
    else:
        click.echo(url)


@cli.command("handle-response")
@click.argument("response")
@json_option
@click.pass_context
def handle_response(ctx: click.Context, response: str, output_json: bool) -> None:
    """Validate the redirect URL (or its fragment) returned by the provider.

    Examples:

        implicit-auth handle-response 'http://localhost:5000/auth/callback#state=...&id_token=...'
    """
    client = _get_client(ctx, output_json)

    try:
        auth_response = client.handle_response(response)
    except AuthError as e:
        error_result(str(e), output_json)

    if not auth_response.is_success:
        error_result(f"{auth_response.error}: {auth_response.error_description}", output_json)

    if output_json:
        output_result(auth_response.to_dict(), as_json=True)
        return

    click.echo("Response accepted.")
    if auth_response.account:
        click.echo(f"  Signed in as: {auth_response.account.user_name or auth_response.account.name}")
        click.echo(f"  Home account id: {client.get_account_id(auth_response.account)}")
    if auth_response.access_token:
        click.echo(f"  Access token scopes: {' '.join(auth_response.scopes)}")
        if auth_response.expires_on:
            click.echo(f"  Expires on: {auth_response.expires_on.isoformat()}")
    if auth_response.account_state:
        click.echo(f"  State: {auth_response.account_state}")


@cli.command("account")
@json_option
@click.pass_context
def account(ctx: click.Context, output_json: bool) -> None:
    """Show the signed-in account."""
    client = _get_client(ctx, output_json)

    try:
        signed_in = client.get_account()
    except AuthError as e:
        error_result(str(e), output_json)

    if signed_in is None:
        if output_json:
            output_result({"account": None}, as_json=True)
        else:
            click.echo("No account signed in.")
        return

    if output_json:
        output_result({"account": signed_in.to_dict()}, as_json=True)
        return

    click.echo(f"User name: {signed_in.user_name}")
    click.echo(f"Name: {signed_in.name}")
    click.echo(f"Tenant: {signed_in.tenant_id}")
    click.echo(f"Home account id: {client.get_account_id(signed_in)}")


@cli.command("logout-url")
@json_option
@click.pass_context
def logout_url(ctx: click.Context, output_json: bool) -> None:
    """Sign out locally and print the provider's sign-out URL."""
    client = _get_client(ctx, output_json)

    try:
        url = asyncio.run(client.create_logout_url())
    except AuthError as e:
        error_result(str(e), output_json)

    if output_json:
        output_result({"url": url}, as_json=True)
    else:
        click.echo(url)


@cli.command()
@click.option("--host", "-h", default="127.0.0.1", help="Host to bind to")
@click.option("--port", "-p", type=int, default=5000, help="Port to bind to")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the demo web server with the /auth routes."""
    from implicit_auth.app import run_server

    run_server(
        host=host,
        port=port,
        config_path=ctx.obj.get("config_path"),
        log_level=ctx.obj.get("log_level"),
    )


cli.add_command(config_commands.config)
