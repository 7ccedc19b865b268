"""Turns the URL fragment returned by the provider into an AuthResponse."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from implicit_auth.account import Account, ClientInfo, IdToken
from implicit_auth.cache.utils import reset_temp_cache_items
from implicit_auth.core.constants import (
    RESOURCE_DELIMITER,
    PersistentCacheKeys,
    ServerHashParamKeys,
    TemporaryCacheKeys,
)
from implicit_auth.core.errors import AuthError
from implicit_auth.response.auth_response import (
    MISSING_TOKENS_ERROR,
    NONCE_MISMATCH_ERROR,
    STATE_MISMATCH_ERROR,
    AuthResponse,
    ResponseStateInfo,
)
from implicit_auth.url import UrlString

if TYPE_CHECKING:
    from implicit_auth.cache.storage import CacheStorage

logger = logging.getLogger(__name__)


class HashParser:
    """Validates a response fragment and materializes the session it carries.

    Persistent cache entries are written only for responses whose state matched
    and whose identity token carries the nonce issued with the request.
    """

    def __init__(self, account: Account | None, client_id: str, cache: CacheStorage) -> None:
        self.account = account
        self.client_id = client_id
        self.cache = cache

    def parse_response_from_hash(self, url_fragment: str, response_state: ResponseStateInfo) -> AuthResponse:
        """Parse a fragment whose state has already been compared to the cached one.

        Args:
            url_fragment: The fragment, with or without the leading '#'.
            response_state: State echoed by the provider and whether it matched.

        Returns:
            AuthResponse with tokens and account on success, or an error code.

        Raises:
            AuthError: If the fragment cannot be deserialized.
            ClientAuthError: If the identity token or client info cannot be decoded.
        """
        params = UrlString(url_fragment).get_deserialized_hash()
        if params is None:
            raise AuthError.create_unexpected_error("the response fragment could not be deserialized")

        response = AuthResponse(
            state=response_state.state,
            state_match=response_state.state_match,
            account_state=self._account_state(response_state.state),
        )

        if not response_state.state_match:
            # Untrusted: leave the in-flight request's entries for the real response
            logger.warning("Discarding response with unknown state %r", response_state.state)
            response.error = STATE_MISMATCH_ERROR
            response.error_description = "The returned state does not match the state issued with the request"
            return response

        if ServerHashParamKeys.ERROR in params:
            response.error = params[ServerHashParamKeys.ERROR]
            response.error_description = params.get(ServerHashParamKeys.ERROR_DESCRIPTION, "")
            logger.info("Provider returned error %s: %s", response.error, response.error_description)
            reset_temp_cache_items(self.cache)
            return response

        raw_id_token = params.get(ServerHashParamKeys.ID_TOKEN)
        access_token = params.get(ServerHashParamKeys.ACCESS_TOKEN)
        if not raw_id_token and not access_token:
            response.error = MISSING_TOKENS_ERROR
            response.error_description = "No tokens received in the response"
            reset_temp_cache_items(self.cache)
            return response

        account = self.account
        if raw_id_token:
            id_token = IdToken(raw_id_token)
            cached_nonce = self.cache.get_item(TemporaryCacheKeys.NONCE_IDTOKEN)
            if id_token.nonce != cached_nonce:
                logger.warning("Identity token nonce does not match the nonce issued with the request")
                response.error = NONCE_MISMATCH_ERROR
                response.error_description = (
                    f"Nonce mismatch in identity token. Expected: {cached_nonce}, Got: {id_token.nonce}"
                )
                reset_temp_cache_items(self.cache)
                return response

            raw_client_info = params.get(ServerHashParamKeys.CLIENT_INFO)
            if raw_client_info:
                client_info = ClientInfo(raw_client_info)
            else:
                client_info = ClientInfo.from_id_token(id_token)

            self.cache.set_item(PersistentCacheKeys.ID_TOKEN, id_token.raw_id_token)
            self.cache.set_item(PersistentCacheKeys.CLIENT_INFO, client_info.raw_client_info)
            account = Account.create_account(id_token, client_info)

            response.id_token = id_token.raw_id_token
            response.id_token_claims = dict(id_token.claims)
            response.unique_id = id_token.object_id or id_token.subject
            response.tenant_id = id_token.tenant_id
            response.token_type = "id_token"

        if access_token:
            response.access_token = access_token
            response.token_type = params.get(ServerHashParamKeys.TOKEN_TYPE) or "Bearer"
            response.expires_on = self._expires_on(params.get(ServerHashParamKeys.EXPIRES_IN))
            response.scopes = self._granted_scopes(params.get(ServerHashParamKeys.SCOPE))

        response.account = account
        reset_temp_cache_items(self.cache)
        logger.debug("Parsed %s response for state %r", response.token_type, response.state)
        return response

    @staticmethod
    def _account_state(state: str) -> str:
        if RESOURCE_DELIMITER in state:
            return state.split(RESOURCE_DELIMITER, 1)[1]
        return ""

    @staticmethod
    def _expires_on(expires_in: str | None) -> datetime | None:
        if expires_in and expires_in.isdigit():
            return datetime.now(UTC) + timedelta(seconds=int(expires_in))
        return None

    def _granted_scopes(self, scope: str | None) -> list[str]:
        # The provider omits scope when it granted exactly what was requested
        if not scope:
            scope = self.cache.get_item(TemporaryCacheKeys.REQUEST_SCOPES) or ""
        return scope.split()
