"""URL and fragment helpers."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit


class UrlString:
    """Wraps a URL or a bare fragment returned by the identity provider."""

    def __init__(self, url: str) -> None:
        self.url_string = url or ""

    @property
    def hash(self) -> str:
        """The fragment without its leading '#', or '' when there is none.

        A string without '#' is treated as a bare fragment.
        """
        value = self.url_string
        if "#" in value:
            value = value.split("#", 1)[1]
        # Hash-routed apps return "#/state=..."
        return value.lstrip("/")

    def get_deserialized_hash(self) -> dict[str, str] | None:
        """Parse the fragment into a flat mapping.

        Returns:
            The key/value pairs, or None when a segment is not a key=value pair.
        """
        segments = [segment for segment in self.hash.split("&") if segment]
        if any("=" not in segment or segment.startswith("=") for segment in segments):
            return None
        return dict(parse_qsl("&".join(segments), keep_blank_values=True))

    def append_query_string(self, params: dict[str, str]) -> str:
        """Append encoded query parameters, respecting any existing query string."""
        if not params:
            return self.url_string
        if self.url_string.endswith(("?", "&")):
            separator = ""
        else:
            separator = "&" if urlsplit(self.url_string).query else "?"
        return f"{self.url_string}{separator}{urlencode(params)}"
