"""Flask integration."""

from flask import Flask

from implicit_auth.web.routes import EXTENSION_KEY, auth_bp, get_client, main_bp
from implicit_auth.web.session_cache import FlaskSessionCacheStorage

__all__ = [
    "EXTENSION_KEY",
    "FlaskSessionCacheStorage",
    "auth_bp",
    "get_client",
    "init_app",
    "main_bp",
]


def init_app(app: Flask) -> None:
    """Register blueprints with the Flask app."""
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
