"""OAuth2/OIDC implicit grant client for browser-hosted applications."""

__version__ = "0.1.0"

from implicit_auth.account import Account  # noqa: E402
from implicit_auth.client import ImplicitAuthClient, create_cache_storage  # noqa: E402
from implicit_auth.core.config import ClientConfiguration, load_config  # noqa: E402
from implicit_auth.core.errors import (  # noqa: E402
    AuthError,
    AuthorityDiscoveryError,
    ClientAuthError,
    ClientConfigurationError,
    InteractionRequiredAuthError,
    NetworkError,
    ServerError,
)
from implicit_auth.request import AuthenticationParameters  # noqa: E402
from implicit_auth.response import AuthResponse, ResponseStateInfo  # noqa: E402

__all__ = [
    "__version__",
    "Account",
    "AuthError",
    "AuthResponse",
    "AuthenticationParameters",
    "AuthorityDiscoveryError",
    "ClientAuthError",
    "ClientConfiguration",
    "ClientConfigurationError",
    "ImplicitAuthClient",
    "InteractionRequiredAuthError",
    "NetworkError",
    "ResponseStateInfo",
    "ServerError",
    "create_cache_storage",
    "load_config",
]
