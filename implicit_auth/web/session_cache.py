"""Cache storage backed by the Flask session."""

from __future__ import annotations

from flask import session

from implicit_auth.core.constants import CACHE_PREFIX


class FlaskSessionCacheStorage:
    """Keeps cache entries in the signed session cookie of the current request.

    Only keys under the library's cache prefix are listed or cleared, so other
    session data is left alone.
    """

    def get_item(self, key: str) -> str | None:
        return session.get(str(key))

    def set_item(self, key: str, value: str) -> None:
        session[str(key)] = value

    def remove_item(self, key: str) -> None:
        session.pop(str(key), None)

    def contains_key(self, key: str) -> bool:
        return str(key) in session

    def get_keys(self) -> list[str]:
        return [key for key in session if key.startswith(f"{CACHE_PREFIX}.")]

    def clear(self) -> None:
        for key in self.get_keys():
            session.pop(key, None)
