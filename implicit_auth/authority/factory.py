"""Creates Authority instances from configured URLs."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from implicit_auth.authority.authority import Authority
from implicit_auth.core.errors import ClientConfigurationError

if TYPE_CHECKING:
    from implicit_auth.network import NetworkModule


class AuthorityFactory:
    """Validates authority URLs and builds Authority objects."""

    DEFAULT_AUTHORITY = "https://login.microsoftonline.com/common/"

    @classmethod
    def create_instance(
        cls,
        authority_url: str | None,
        network_client: NetworkModule,
        validate_authority: bool = True,
    ) -> Authority:
        """Create an authority for a URL, or for the default authority when none is given.

        Args:
            authority_url: Absolute authority URL.
            network_client: Transport used later for discovery.
            validate_authority: Require https.

        Raises:
            ClientConfigurationError: If the URL is not absolute, or not https while validating.
        """
        url = (authority_url or "").strip() or cls.DEFAULT_AUTHORITY

        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ClientConfigurationError.create_invalid_authority_error(url, "not an absolute URL")
        if validate_authority and parts.scheme.lower() != "https":
            raise ClientConfigurationError.create_invalid_authority_error(url, "authority must use https")
        if parts.query or parts.fragment:
            raise ClientConfigurationError.create_invalid_authority_error(
                url, "authority must not carry a query string or fragment"
            )

        return Authority(url, network_client)
