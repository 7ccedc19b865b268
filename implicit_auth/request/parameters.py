"""Caller-supplied options for authorization requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from implicit_auth.account import Account


@dataclass
class AuthenticationParameters:
    """Options for a login or token request.

    ``account`` is filled in by the client with the current session before the
    request is built; callers normally leave it unset.
    """

    scopes: list[str] | None = None
    extra_scopes_to_consent: list[str] | None = None
    prompt: str | None = None
    extra_query_parameters: dict[str, str] = field(default_factory=dict)
    claims_request: str | None = None
    authority: str | None = None
    state: str | None = None
    correlation_id: str | None = None
    account: Account | None = None
    sid: str | None = None
    login_hint: str | None = None
