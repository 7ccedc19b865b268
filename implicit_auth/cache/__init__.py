"""Cache bridge for temporary protocol state and persistent session artifacts."""

from implicit_auth.cache.sql import SQLCacheStorage
from implicit_auth.cache.storage import CacheStorage, InMemoryCacheStorage
from implicit_auth.cache.utils import (
    clear_persistent_items,
    reset_temp_cache_items,
    update_cache_entries,
)

__all__ = [
    "CacheStorage",
    "InMemoryCacheStorage",
    "SQLCacheStorage",
    "clear_persistent_items",
    "reset_temp_cache_items",
    "update_cache_entries",
]
