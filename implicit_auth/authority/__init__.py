"""Authority resolution."""

from implicit_auth.authority.authority import Authority, AuthorityType, UrlComponents
from implicit_auth.authority.factory import AuthorityFactory

__all__ = [
    "Authority",
    "AuthorityFactory",
    "AuthorityType",
    "UrlComponents",
]
