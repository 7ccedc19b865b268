"""Client info returned alongside the identity token."""

from __future__ import annotations

import base64
import binascii
import json
from typing import TYPE_CHECKING

from implicit_auth.core.errors import ClientAuthError

if TYPE_CHECKING:
    from implicit_auth.account.id_token import IdToken


def base64url_encode(value: str) -> str:
    """Encode a string as unpadded base64url."""
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")


def base64url_decode(value: str) -> str:
    """Decode unpadded base64url to a string."""
    padding = -len(value) % 4
    return base64.urlsafe_b64decode(value + "=" * padding).decode("utf-8")


class ClientInfo:
    """Provider-issued (user id, tenant id) pair, as base64url JSON ``{"uid": ..., "utid": ...}``."""

    def __init__(self, raw_client_info: str | None) -> None:
        """Decode a raw client info string.

        Raises:
            ClientAuthError: If the value is empty or not base64url JSON.
        """
        if not raw_client_info:
            raise ClientAuthError.create_client_info_empty_error(raw_client_info)

        try:
            decoded = json.loads(base64url_decode(raw_client_info))
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise ClientAuthError.create_client_info_decoding_error(str(e)) from e
        if not isinstance(decoded, dict):
            raise ClientAuthError.create_client_info_decoding_error("expected a JSON object")

        self.raw_client_info = raw_client_info
        self.uid: str = str(decoded.get("uid") or "")
        self.utid: str = str(decoded.get("utid") or "")

    def __repr__(self) -> str:
        return f"<ClientInfo(uid='{self.uid}', utid='{self.utid}')>"

    @classmethod
    def from_id_token(cls, id_token: IdToken) -> ClientInfo:
        """Build client info for issuers that do not return one."""
        payload = {
            "uid": id_token.object_id or id_token.subject or "",
            "utid": id_token.tenant_id or "",
        }
        return cls(base64url_encode(json.dumps(payload, separators=(",", ":"))))
