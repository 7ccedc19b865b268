"""Cache bookkeeping around one request/response round trip."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from implicit_auth.core.constants import PersistentCacheKeys, TemporaryCacheKeys

if TYPE_CHECKING:
    from implicit_auth.account import Account
    from implicit_auth.cache.storage import CacheStorage
    from implicit_auth.request import ServerRequestParameters

logger = logging.getLogger(__name__)


def update_cache_entries(
    cache: CacheStorage,
    request_params: ServerRequestParameters,
    account: Account | None,
    login_start_page: str,
) -> None:
    """Write the temporary entries needed to validate the coming response.

    Any entries left over from an earlier flow are overwritten.
    """
    cache.set_item(TemporaryCacheKeys.REQUEST_STATE, request_params.state)
    cache.set_item(TemporaryCacheKeys.NONCE_IDTOKEN, request_params.nonce)
    cache.set_item(TemporaryCacheKeys.REQUEST_SCOPES, " ".join(request_params.scopes))
    cache.set_item(TemporaryCacheKeys.LOGIN_START_PAGE, login_start_page)
    logger.debug(
        "Cached request state for correlation id %s (account: %s)",
        request_params.correlation_id,
        account.home_account_identifier if account else "none",
    )


def reset_temp_cache_items(cache: CacheStorage) -> None:
    """Remove all temporary entries once a response has been consumed."""
    for key in TemporaryCacheKeys:
        cache.remove_item(key)


def clear_persistent_items(cache: CacheStorage) -> None:
    """Remove the cached identity token and client info."""
    for key in PersistentCacheKeys:
        cache.remove_item(key)
