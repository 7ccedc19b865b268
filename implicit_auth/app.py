"""Flask application factory."""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import TYPE_CHECKING

from flask import Flask, request, url_for

from implicit_auth.core.config import DEFAULT_CONFIG_DIR, ClientConfiguration, load_config
from implicit_auth.core.logging import configure_logging

if TYPE_CHECKING:
    from implicit_auth.network import NetworkModule

ENV_SECRET_KEY = "IMPLICIT_AUTH_SECRET_KEY"


def _load_secret_key() -> str:
    secret_key = os.environ.get(ENV_SECRET_KEY)
    if secret_key:
        return secret_key

    # Use a persistent secret key from the config directory
    key_path = DEFAULT_CONFIG_DIR / "flask_secret.key"
    if key_path.exists():
        return key_path.read_text().strip()
    secret_key = secrets.token_hex(32)
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_text(secret_key)
    key_path.chmod(0o600)
    return secret_key


def create_app(
    config: dict | None = None,
    client_config: ClientConfiguration | None = None,
    network_client: NetworkModule | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Redirect URIs missing from the client configuration default to this
    app's own callback and index routes.

    Args:
        config: Optional Flask configuration overriding the defaults.
        client_config: Client configuration. Loads from file/env if not provided.
        network_client: Transport for authority discovery, mainly for tests.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    if config and config.get("SECRET_KEY"):
        secret_key = config["SECRET_KEY"]
    else:
        secret_key = _load_secret_key()

    app.config.from_mapping(
        SECRET_KEY=secret_key,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
    )
    if config:
        app.config.from_mapping(config)

    client_config = client_config or load_config()
    if not client_config.auth.redirect_uri:
        client_config.auth.redirect_uri = lambda: url_for("auth.callback", _external=True)
    if not client_config.auth.post_logout_redirect_uri:
        client_config.auth.post_logout_redirect_uri = lambda: request.host_url

    from implicit_auth.web import EXTENSION_KEY, init_app

    app.extensions[EXTENSION_KEY] = {
        "config": client_config,
        "network_client": network_client,
    }
    init_app(app)

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 5000,
    config_path: Path | None = None,
    log_level: str | None = None,
) -> None:
    """Run the Flask development server.

    ``log_level`` overrides the level from the configuration file.
    """
    client_config = load_config(config_path)
    configure_logging(
        log_level or client_config.logging.level,
        trace_enabled=client_config.logging.trace_enabled,
        log_file=client_config.logging.log_file,
    )
    app = create_app(client_config=client_config)
    print("Starting implicit-auth demo server...")
    print(f"  URL: http://{host}:{port}")
    print("")
    app.run(host=host, port=port)
