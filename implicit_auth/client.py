"""Implicit grant client.

The flow runs in two phases that may live in separate processes:

1. ``create_login_url`` resolves the authority, builds the authorization URL
   and caches the state and nonce it issued.
2. ``handle_response`` reads the fragment the provider redirected back with,
   compares its state to the cached one and materializes the account.

The cache storage is the only thing shared between the phases.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable
from pathlib import Path

from implicit_auth.account import Account, ClientInfo, IdToken
from implicit_auth.authority import Authority, AuthorityFactory
from implicit_auth.cache import (
    CacheStorage,
    InMemoryCacheStorage,
    SQLCacheStorage,
    clear_persistent_items,
    update_cache_entries,
)
from implicit_auth.core.config import ClientConfiguration, UriSource, load_config
from implicit_auth.core.constants import (
    NO_ACCOUNT,
    PersistentCacheKeys,
    ServerHashParamKeys,
    TemporaryCacheKeys,
)
from implicit_auth.core.errors import AuthError, AuthorityDiscoveryError, ClientConfigurationError
from implicit_auth.core.logging import ProtocolLogger, get_protocol_logger, redact_sensitive
from implicit_auth.network import HttpxNetworkModule, NetworkModule
from implicit_auth.request import AuthenticationParameters, ServerRequestParameters
from implicit_auth.response import AuthResponse, HashParser, ResponseStateInfo
from implicit_auth.storage import Database
from implicit_auth.url import UrlString

logger = logging.getLogger(__name__)


def create_cache_storage(config: ClientConfiguration) -> CacheStorage:
    """Build the cache storage named by the configuration.

    Raises:
        ClientConfigurationError: If the cache location is unknown.
    """
    location = config.cache.location
    if location == "memory":
        return InMemoryCacheStorage()
    if location == "sqlite":
        return SQLCacheStorage(Database(config.cache.db_path))
    raise ClientConfigurationError.create_invalid_config_error(
        str(config.config_path or "<defaults>"),
        f"unknown cache location {location!r}, expected 'sqlite' or 'memory'",
    )


class ImplicitAuthClient:
    """Orchestrates the OAuth2/OIDC implicit grant for one application registration."""

    def __init__(
        self,
        config: ClientConfiguration,
        cache_storage: CacheStorage,
        network_client: NetworkModule | None = None,
        location_provider: Callable[[], str] | None = None,
        protocol_logger: ProtocolLogger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration.
            cache_storage: Store shared by the login and response phases.
            network_client: Transport for authority discovery. Built from
                ``config.system`` if omitted.
            location_provider: Returns the page the login started from. The
                redirect URI is cached as the start page when omitted.
            protocol_logger: Logger for discovery traffic. Uses the global one if omitted.

        Raises:
            ClientConfigurationError: If the configured authority is not usable.
        """
        self.config = config
        self.client_id = config.auth.client_id
        self.cache_storage = cache_storage
        self.protocol_logger = protocol_logger or get_protocol_logger()
        self.network_client = network_client or HttpxNetworkModule(
            timeout=config.system.network_timeout,
            verify_ssl=config.system.verify_ssl,
            protocol_logger=self.protocol_logger,
        )
        self._location_provider = location_provider
        self._account: Account | None = None

        self._default_authority: Authority | None = AuthorityFactory.create_instance(
            config.auth.authority,
            self.network_client,
            config.auth.validate_authority,
        )

    @classmethod
    def from_config(
        cls,
        config_path: Path | None = None,
        cache_storage: CacheStorage | None = None,
        **kwargs,
    ) -> ImplicitAuthClient:
        """Create a client from the configuration file and environment."""
        config = load_config(config_path)
        return cls(config, cache_storage or create_cache_storage(config), **kwargs)

    @property
    def default_authority_uri(self) -> str:
        if self._default_authority is None:
            return ""
        return self._default_authority.canonical_authority

    # Login and token requests

    async def create_login_url(self, request: AuthenticationParameters | None = None) -> str:
        """Build the URL that signs the user in and returns an identity token.

        The state, nonce, requested scopes and login start page are cached
        before the URL is returned.

        Raises:
            ClientConfigurationError: If no authority can be resolved or the request is malformed.
            NetworkError: If endpoint discovery fails.
            AuthorityDiscoveryError: If the discovery document is unusable.
        """
        return await self._create_navigate_url(request or AuthenticationParameters(), is_login_call=True)

    async def create_acquire_token_url(self, request: AuthenticationParameters) -> str:
        """Build the URL that returns an access token for ``request.scopes``.

        Raises:
            ClientConfigurationError: If scopes are missing or the request is malformed.
            NetworkError: If endpoint discovery fails.
            AuthorityDiscoveryError: If the discovery document is unusable.
        """
        return await self._create_navigate_url(request, is_login_call=False)

    def _authority_for(self, request: AuthenticationParameters) -> Authority:
        if request.authority:
            return AuthorityFactory.create_instance(
                request.authority,
                self.network_client,
                self.config.auth.validate_authority,
            )
        if self._default_authority is None:
            raise ClientConfigurationError.create_invalid_authority_error("", "no authority is configured")
        return self._default_authority

    async def _resolve(self, authority: Authority, flow_type: str) -> Authority:
        self.protocol_logger.start_flow(f"{flow_type}_{uuid.uuid4().hex}", flow_type)
        try:
            return await authority.resolve_endpoints()
        finally:
            self.protocol_logger.end_flow()

    async def _create_navigate_url(self, request: AuthenticationParameters, is_login_call: bool) -> str:
        authority = await self._resolve(self._authority_for(request), "authority_discovery")

        account = request.account or self.get_account()
        request = dataclasses.replace(request, account=account)
        if is_login_call and self.config.auth.scopes:
            request = dataclasses.replace(
                request,
                extra_scopes_to_consent=[*(request.extra_scopes_to_consent or []), *self.config.auth.scopes],
            )

        server_params = ServerRequestParameters(
            authority,
            self.client_id,
            request,
            is_login_call,
            False,
            account,
            self.get_redirect_uri(),
        )
        server_params.append_extra_scopes()

        update_cache_entries(self.cache_storage, server_params, account, self._login_start_page())

        if server_params.is_sso_param(account):
            logger.debug("Adding single sign-on hints to the request")
        server_params.populate_query_params()

        url = server_params.create_navigate_url()
        logger.info(
            "Created %s URL (correlation id %s)",
            "login" if is_login_call else "token",
            server_params.correlation_id,
        )
        return url

    def _login_start_page(self) -> str:
        if self._location_provider is not None:
            return self._location_provider()
        return self.get_redirect_uri()

    # Response handling

    def extract_response_state(self, url_fragment: str) -> ResponseStateInfo:
        """Read the state from a response fragment and compare it to the cached one.

        Raises:
            AuthError: If the fragment cannot be deserialized or carries no state.
        """
        params = UrlString(url_fragment).get_deserialized_hash()
        if params is None:
            raise AuthError.create_unexpected_error("the response fragment could not be deserialized")
        if ServerHashParamKeys.STATE not in params:
            raise AuthError.create_unexpected_error("the response fragment does not contain a state")

        state = params[ServerHashParamKeys.STATE]
        cached_state = self.cache_storage.get_item(TemporaryCacheKeys.REQUEST_STATE)
        return ResponseStateInfo(state=state, state_match=cached_state is not None and state == cached_state)

    def handle_response(self, url_fragment: str) -> AuthResponse:
        """Validate the fragment the provider redirected back with.

        Args:
            url_fragment: The full redirect URL or just its fragment.

        Returns:
            AuthResponse. Check ``is_success`` or call ``raise_for_error()``.

        Raises:
            AuthError: If the fragment cannot be deserialized or carries no state.
            ClientAuthError: If the identity token or client info cannot be decoded.
        """
        logger.debug("Handling response %s", redact_sensitive(url_fragment))
        response_state = self.extract_response_state(url_fragment)

        parser = HashParser(self.get_account(), self.client_id, self.cache_storage)
        response = parser.parse_response_from_hash(url_fragment, response_state)

        if response.is_success and response.account is not None:
            self._account = response.account
        return response

    # Session

    def get_account(self) -> Account | None:
        """Return the signed-in account, or None when there is no session.

        The account is derived from the cached identity token and client info
        on first use and memoized until ``clear_account()``.

        Raises:
            ClientAuthError: If the cached entries cannot be decoded.
        """
        if self._account is not None:
            return self._account

        raw_id_token = self.cache_storage.get_item(PersistentCacheKeys.ID_TOKEN)
        raw_client_info = self.cache_storage.get_item(PersistentCacheKeys.CLIENT_INFO)
        if not raw_id_token or not raw_client_info:
            return None

        self._account = Account.create_account(IdToken(raw_id_token), ClientInfo(raw_client_info))
        return self._account

    def clear_account(self) -> None:
        """Forget the memoized account. Cached entries are left alone."""
        self._account = None

    @staticmethod
    def get_account_id(account: Account | None) -> str:
        if account and account.home_account_identifier:
            return account.home_account_identifier
        return NO_ACCOUNT

    async def create_logout_url(self) -> str:
        """End the local session and build the provider's sign-out URL.

        Raises:
            ClientConfigurationError: If no post logout redirect URI is configured.
            AuthorityDiscoveryError: If the authority publishes no end_session_endpoint.
        """
        if self._default_authority is None:
            raise ClientConfigurationError.create_invalid_authority_error("", "no authority is configured")
        authority = await self._resolve(self._default_authority, "authority_discovery")
        if not authority.end_session_endpoint:
            raise AuthorityDiscoveryError.create_end_session_endpoint_missing_error(authority.canonical_authority)

        post_logout_redirect_uri = self.get_post_logout_redirect_uri()

        clear_persistent_items(self.cache_storage)
        self.clear_account()
        logger.info("Cleared local session")

        return UrlString(authority.end_session_endpoint).append_query_string(
            {"post_logout_redirect_uri": post_logout_redirect_uri}
        )

    # Redirect URIs

    @staticmethod
    def _resolve_uri(source: UriSource | None) -> str:
        if callable(source):
            return source()
        return source or ""

    def get_redirect_uri(self) -> str:
        """Return the redirect URI, calling it first when configured as a callable.

        Raises:
            ClientConfigurationError: If no redirect URI is configured.
        """
        uri = self._resolve_uri(self.config.auth.redirect_uri)
        if not uri:
            raise ClientConfigurationError.create_redirect_uri_empty_error()
        return uri

    def get_post_logout_redirect_uri(self) -> str:
        """Return the post logout redirect URI, calling it first when configured as a callable.

        Raises:
            ClientConfigurationError: If no post logout redirect URI is configured.
        """
        uri = self._resolve_uri(self.config.auth.post_logout_redirect_uri)
        if not uri:
            raise ClientConfigurationError.create_post_logout_redirect_uri_empty_error()
        return uri
