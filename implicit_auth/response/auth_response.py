"""Structured result of handling a provider response."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from implicit_auth.core.errors import ClientAuthError, InteractionRequiredAuthError, ServerError

if TYPE_CHECKING:
    from implicit_auth.account import Account

# Error codes produced by the client while validating a response
STATE_MISMATCH_ERROR = "state_mismatch"
NONCE_MISMATCH_ERROR = "nonce_mismatch"
MISSING_TOKENS_ERROR = "missing_tokens"
CLIENT_RESPONSE_ERRORS = (STATE_MISMATCH_ERROR, NONCE_MISMATCH_ERROR, MISSING_TOKENS_ERROR)


@dataclass(frozen=True)
class ResponseStateInfo:
    """State echoed by the provider and whether it matches the one issued before redirect."""

    state: str
    state_match: bool


@dataclass
class AuthResponse:
    """Tokens, claims and account from a provider response, or the error it carried."""

    state: str
    state_match: bool
    account_state: str = ""
    unique_id: str | None = None
    tenant_id: str | None = None
    token_type: str | None = None
    id_token: str | None = None
    id_token_claims: dict[str, Any] = field(default_factory=dict)
    access_token: str | None = None
    scopes: list[str] = field(default_factory=list)
    expires_on: datetime | None = None
    account: Account | None = None
    error: str | None = None
    error_description: str | None = None

    @property
    def is_success(self) -> bool:
        return self.state_match and not self.error

    def raise_for_error(self) -> None:
        """Raise the error carried by this response, if any.

        Raises:
            ClientAuthError: If the response failed client-side validation.
            InteractionRequiredAuthError: If the provider needs user interaction.
            ServerError: For any other provider error.
        """
        if not self.error:
            return
        description = self.error_description or ""
        if self.error in CLIENT_RESPONSE_ERRORS:
            raise ClientAuthError(self.error, description)
        if InteractionRequiredAuthError.is_interaction_required_error(self.error):
            raise InteractionRequiredAuthError(self.error, description)
        raise ServerError(self.error, description)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "state": self.state,
            "state_match": self.state_match,
            "account_state": self.account_state,
            "unique_id": self.unique_id,
            "tenant_id": self.tenant_id,
            "token_type": self.token_type,
            "id_token": self.id_token,
            "id_token_claims": self.id_token_claims,
            "access_token": self.access_token,
            "scopes": self.scopes,
            "expires_on": self.expires_on.isoformat() if self.expires_on else None,
            "account": self.account.to_dict() if self.account else None,
            "error": self.error,
            "error_description": self.error_description,
            "is_success": self.is_success,
        }
