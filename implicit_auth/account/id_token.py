"""Decoded OIDC identity token."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import jwt

from implicit_auth.core.errors import ClientAuthError


class IdToken:
    """Claims of an identity token.

    The signature is not verified; the token is decoded for its claims only.
    """

    def __init__(self, raw_id_token: str | None) -> None:
        """Decode a raw identity token.

        Raises:
            ClientAuthError: If the token is empty or cannot be decoded.
        """
        if not raw_id_token:
            raise ClientAuthError.create_id_token_null_or_empty_error(raw_id_token)

        try:
            claims = jwt.decode(raw_id_token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            raise ClientAuthError.create_id_token_parsing_error(str(e)) from e

        self.raw_id_token = raw_id_token
        self.claims: dict[str, Any] = claims

    def __repr__(self) -> str:
        return f"<IdToken(sub='{self.subject}', tid='{self.tenant_id}')>"

    @property
    def issuer(self) -> str | None:
        return self.claims.get("iss")

    @property
    def object_id(self) -> str | None:
        return self.claims.get("oid")

    @property
    def subject(self) -> str | None:
        return self.claims.get("sub")

    @property
    def tenant_id(self) -> str | None:
        return self.claims.get("tid")

    @property
    def version(self) -> str | None:
        return self.claims.get("ver")

    @property
    def preferred_name(self) -> str | None:
        """Sign-in name; v1 tokens carry it as upn, other issuers often as email."""
        return self.claims.get("preferred_username") or self.claims.get("upn") or self.claims.get("email")

    @property
    def name(self) -> str | None:
        return self.claims.get("name")

    @property
    def nonce(self) -> str | None:
        return self.claims.get("nonce")

    @property
    def sid(self) -> str | None:
        return self.claims.get("sid")

    @property
    def expiration(self) -> datetime | None:
        exp = self.claims.get("exp")
        if isinstance(exp, int | float):
            return datetime.fromtimestamp(exp, tz=UTC)
        return None
