"""Authorization request construction."""

from implicit_auth.request.parameters import AuthenticationParameters
from implicit_auth.request.server_params import ServerRequestParameters

__all__ = [
    "AuthenticationParameters",
    "ServerRequestParameters",
]
