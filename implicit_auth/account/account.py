"""Normalized signed-in account."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from implicit_auth.account.client_info import ClientInfo, base64url_encode
from implicit_auth.account.id_token import IdToken


@dataclass(frozen=True)
class Account:
    """Identity of the signed-in user, derived from an identity token and client info."""

    account_identifier: str
    home_account_identifier: str
    user_name: str | None
    name: str | None
    tenant_id: str | None
    sid: str | None
    environment: str | None
    id_token_claims: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create_account(cls, id_token: IdToken, client_info: ClientInfo) -> Account:
        """Derive an account.

        The home account identifier is ``b64url(uid).b64url(utid)``, unique per
        user and tenant.
        """
        home_account_identifier = ""
        if client_info.uid and client_info.utid:
            home_account_identifier = f"{base64url_encode(client_info.uid)}.{base64url_encode(client_info.utid)}"

        issuer = id_token.issuer
        return cls(
            account_identifier=id_token.object_id or id_token.subject or "",
            home_account_identifier=home_account_identifier,
            user_name=id_token.preferred_name,
            name=id_token.name,
            tenant_id=id_token.tenant_id or client_info.utid or None,
            sid=id_token.sid,
            environment=urlsplit(issuer).netloc if issuer else None,
            id_token_claims=dict(id_token.claims),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_identifier": self.account_identifier,
            "home_account_identifier": self.home_account_identifier,
            "user_name": self.user_name,
            "name": self.name,
            "tenant_id": self.tenant_id,
            "sid": self.sid,
            "environment": self.environment,
            "id_token_claims": self.id_token_claims,
        }
