"""Provider response parsing."""

from implicit_auth.response.auth_response import AuthResponse, ResponseStateInfo
from implicit_auth.response.hash_parser import HashParser

__all__ = [
    "AuthResponse",
    "HashParser",
    "ResponseStateInfo",
]
