"""Client configuration management.

Loads configuration from config.yaml files and environment variables.
Environment variables take precedence over config file settings.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from implicit_auth.core.errors import ClientConfigurationError

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".implicit_auth"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

# Environment variable prefix
ENV_PREFIX = "IMPLICIT_AUTH_"

# A URI given either literally or as a callable evaluated on every read
UriSource = str | Callable[[], str]


@dataclass
class AuthSettings:
    """Application registration settings."""

    client_id: str = ""
    authority: str = ""
    validate_authority: bool = True
    redirect_uri: UriSource | None = None
    post_logout_redirect_uri: UriSource | None = None
    scopes: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthSettings:
        return cls(
            client_id=data.get("client_id", ""),
            authority=data.get("authority", ""),
            validate_authority=data.get("validate_authority", True),
            redirect_uri=data.get("redirect_uri"),
            post_logout_redirect_uri=data.get("post_logout_redirect_uri"),
            scopes=list(data.get("scopes", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary. Callable URIs are not serializable and are dropped."""
        return {
            "client_id": self.client_id,
            "authority": self.authority,
            "validate_authority": self.validate_authority,
            "redirect_uri": self.redirect_uri if isinstance(self.redirect_uri, str) else None,
            "post_logout_redirect_uri": (
                self.post_logout_redirect_uri if isinstance(self.post_logout_redirect_uri, str) else None
            ),
            "scopes": list(self.scopes),
        }


@dataclass
class CacheSettings:
    """Where temporary and persistent cache entries live."""

    location: str = "sqlite"  # "sqlite" or "memory"
    db_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheSettings:
        return cls(
            location=data.get("location", "sqlite"),
            db_path=Path(data["db_path"]).expanduser() if data.get("db_path") else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "db_path": str(self.db_path) if self.db_path else None,
        }


@dataclass
class LoggingSettings:
    """Protocol logging settings."""

    level: str = "ERROR"
    trace_enabled: bool = False
    log_file: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingSettings:
        return cls(
            level=data.get("level", "ERROR"),
            trace_enabled=data.get("trace_enabled", False),
            log_file=data.get("log_file"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "trace_enabled": self.trace_enabled,
            "log_file": self.log_file,
        }


@dataclass
class SystemSettings:
    """Network settings for authority discovery."""

    network_timeout: float = 10.0
    verify_ssl: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SystemSettings:
        return cls(
            network_timeout=float(data.get("network_timeout", 10.0)),
            verify_ssl=data.get("verify_ssl", True),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "network_timeout": self.network_timeout,
            "verify_ssl": self.verify_ssl,
        }


@dataclass
class ClientConfiguration:
    """Main client configuration."""

    auth: AuthSettings = field(default_factory=AuthSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    system: SystemSettings = field(default_factory=SystemSettings)
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path | None = None) -> ClientConfiguration:
        return cls(
            auth=AuthSettings.from_dict(data.get("auth") or {}),
            cache=CacheSettings.from_dict(data.get("cache") or {}),
            logging=LoggingSettings.from_dict(data.get("logging") or {}),
            system=SystemSettings.from_dict(data.get("system") or {}),
            config_path=config_path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "auth": self.auth.to_dict(),
            "cache": self.cache.to_dict(),
            "logging": self.logging.to_dict(),
            "system": self.system.to_dict(),
        }

    def save(self, path: Path | None = None) -> Path:
        """Save configuration to a YAML file.

        Args:
            path: Path to save to. Uses config_path or default if not specified.

        Returns:
            The path written.
        """
        save_path = path or self.config_path or DEFAULT_CONFIG_FILE
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
        return save_path


def _get_env_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def load_config(config_path: Path | None = None) -> ClientConfiguration:
    """Load client configuration.

    Configuration is loaded in this order (later values override earlier):
    1. Default values
    2. config.yaml file (if exists)
    3. Environment variables

    Args:
        config_path: Path to config file. Uses default if not specified.

    Returns:
        ClientConfiguration with merged settings.

    Raises:
        ClientConfigurationError: If the config file is not valid YAML.
    """
    config = ClientConfiguration()

    file_path = config_path or DEFAULT_CONFIG_FILE
    if file_path.exists():
        try:
            with open(file_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ClientConfigurationError.create_invalid_config_error(str(file_path), str(e)) from e
        if not isinstance(data, dict):
            raise ClientConfigurationError.create_invalid_config_error(str(file_path), "expected a mapping")
        config = ClientConfiguration.from_dict(data, config_path=file_path)

    auth = config.auth
    for attr in ("client_id", "authority", "redirect_uri", "post_logout_redirect_uri"):
        value = os.environ.get(f"{ENV_PREFIX}{attr.upper()}")
        if value:
            setattr(auth, attr, value)
    auth.validate_authority = _get_env_bool(f"{ENV_PREFIX}VALIDATE_AUTHORITY", auth.validate_authority)

    if os.environ.get(f"{ENV_PREFIX}CACHE_LOCATION"):
        config.cache.location = os.environ[f"{ENV_PREFIX}CACHE_LOCATION"]
    if os.environ.get(f"{ENV_PREFIX}DB_PATH"):
        config.cache.db_path = Path(os.environ[f"{ENV_PREFIX}DB_PATH"])

    if os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        config.logging.level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"]
    config.logging.trace_enabled = _get_env_bool(f"{ENV_PREFIX}LOG_TRACE", config.logging.trace_enabled)

    config.system.network_timeout = _get_env_float(f"{ENV_PREFIX}NETWORK_TIMEOUT", config.system.network_timeout)
    config.system.verify_ssl = _get_env_bool(f"{ENV_PREFIX}VERIFY_SSL", config.system.verify_ssl)

    return config


def get_default_config_yaml() -> str:
    """Get the default config.yaml content as a string."""
    return """\
# implicit-auth configuration file
# Environment variables override these settings (prefix: IMPLICIT_AUTH_)

auth:
  # Application (client) id from the provider's app registration
  client_id: ""

  # Issuer to sign in against; defaults to https://login.microsoftonline.com/common/
  authority: ""

  # Reject non-https authorities
  validate_authority: true

  # Where the provider sends the browser back with the URL fragment
  redirect_uri: "http://localhost:5000/auth/callback"

  # Where the provider sends the browser after sign-out
  post_logout_redirect_uri: "http://localhost:5000/"

  # Extra scopes requested on login
  scopes: []

cache:
  # "sqlite" keeps state across processes, "memory" only for one process
  location: sqlite
  # db_path: ~/.implicit_auth/cache.db

logging:
  # ERROR, INFO, DEBUG or TRACE; the CLI --log-level option overrides it
  level: ERROR
  # Logs raw tokens; never enable outside local debugging
  trace_enabled: false

system:
  network_timeout: 10.0
  verify_ssl: true
"""
