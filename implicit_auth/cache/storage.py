"""Key-value cache interface and the in-memory implementation."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheStorage(Protocol):
    """Key-value store holding temporary protocol state and persistent session artifacts.

    Implementations provide no locking; concurrent flows sharing one
    store must be serialized by the caller.
    """

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def contains_key(self, key: str) -> bool: ...

    def get_keys(self) -> list[str]: ...

    def clear(self) -> None: ...


class InMemoryCacheStorage:
    """Cache storage living for the lifetime of the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def contains_key(self, key: str) -> bool:
        return key in self._items

    def get_keys(self) -> list[str]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()
