"""Authority descriptors and endpoint discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from implicit_auth.core.errors import AuthorityDiscoveryError, NetworkError

if TYPE_CHECKING:
    from implicit_auth.network import NetworkModule

logger = logging.getLogger(__name__)

TENANT_PLACEHOLDER = "{tenant}"

AAD_HOSTS = frozenset(
    {
        "login.microsoftonline.com",
        "login.windows.net",
        "login.microsoft.com",
        "sts.windows.net",
        "login.chinacloudapi.cn",
        "login.microsoftonline.de",
        "login.microsoftonline.us",
    }
)


class AuthorityType(StrEnum):
    """Kinds of issuers, which differ in where discovery lives."""

    AAD = "aad"
    B2C = "b2c"
    ADFS = "adfs"
    OIDC = "oidc"


@dataclass(frozen=True)
class UrlComponents:
    """Parsed pieces of an authority URL."""

    protocol: str
    host: str
    path_segments: tuple[str, ...]


class Authority:
    """Issuer descriptor with lazily discovered endpoints.

    Endpoints are fetched once by ``resolve_endpoints`` and are read-only
    afterwards.
    """

    def __init__(self, canonical_authority: str, network_client: NetworkModule) -> None:
        """Initialize the authority.

        Args:
            canonical_authority: Absolute authority URL. Normalized to lower case with a trailing slash.
            network_client: Transport used for discovery.
        """
        self.canonical_authority = canonical_authority.lower().rstrip("/") + "/"
        self.network_client = network_client

        parts = urlsplit(self.canonical_authority)
        self.url_components = UrlComponents(
            protocol=parts.scheme,
            host=parts.netloc,
            path_segments=tuple(segment for segment in parts.path.split("/") if segment),
        )
        self.authority_type = self._detect_type()

        self._endpoints: dict[str, Any] | None = None

    def __repr__(self) -> str:
        return f"<Authority(canonical='{self.canonical_authority}', type='{self.authority_type}')>"

    def _detect_type(self) -> AuthorityType:
        segments = self.url_components.path_segments
        host = self.url_components.host
        first = segments[0] if segments else ""
        if first == "tfp" or host.endswith(".b2clogin.com"):
            return AuthorityType.B2C
        if first == "adfs":
            return AuthorityType.ADFS
        if host in AAD_HOSTS:
            return AuthorityType.AAD
        return AuthorityType.OIDC

    @property
    def tenant(self) -> str:
        """Tenant segment of the authority (B2C: the directory after 'tfp')."""
        segments = self.url_components.path_segments
        if self.authority_type == AuthorityType.B2C and segments and segments[0] == "tfp":
            return segments[1] if len(segments) > 1 else ""
        return segments[0] if segments else ""

    @property
    def default_open_id_configuration_endpoint(self) -> str:
        if self.authority_type in (AuthorityType.AAD, AuthorityType.B2C):
            return f"{self.canonical_authority}v2.0/.well-known/openid-configuration"
        return f"{self.canonical_authority}.well-known/openid-configuration"

    @property
    def discovery_complete(self) -> bool:
        return self._endpoints is not None

    def _endpoint(self, name: str) -> str:
        if self._endpoints is None:
            raise AuthorityDiscoveryError(
                "endpoints_resolution_error",
                f"Endpoints for {self.canonical_authority} have not been resolved yet",
            )
        return self._endpoints.get(name) or ""

    @property
    def authorization_endpoint(self) -> str:
        return self._endpoint("authorization_endpoint")

    @property
    def token_endpoint(self) -> str:
        return self._endpoint("token_endpoint")

    @property
    def end_session_endpoint(self) -> str:
        return self._endpoint("end_session_endpoint")

    @property
    def issuer(self) -> str:
        return self._endpoint("issuer")

    def _replace_tenant(self, value: Any) -> Any:
        if isinstance(value, str) and TENANT_PLACEHOLDER in value:
            return value.replace(TENANT_PLACEHOLDER, self.tenant)
        return value

    async def resolve_endpoints(self) -> Authority:
        """Fetch the OpenID configuration unless it was already fetched.

        Returns:
            This authority, with endpoints populated.

        Raises:
            NetworkError: If the discovery document cannot be fetched.
            AuthorityDiscoveryError: If the document lacks an authorization endpoint.
        """
        if self._endpoints is not None:
            return self

        discovery_url = self.default_open_id_configuration_endpoint
        logger.info("Resolving endpoints for %s", self.canonical_authority)

        try:
            document = await self.network_client.get_json(discovery_url)
        except NetworkError as e:
            logger.error("Endpoint discovery failed for %s: %s", self.canonical_authority, e)
            raise

        endpoints = {key: self._replace_tenant(value) for key, value in document.items()}
        if not endpoints.get("authorization_endpoint"):
            raise AuthorityDiscoveryError.create_endpoint_resolution_error(
                discovery_url, "document has no authorization_endpoint"
            )

        self._endpoints = endpoints
        logger.debug("Authorization endpoint for %s: %s", self.canonical_authority, self.authorization_endpoint)
        return self
