"""Builds and validates the authorization request sent to the provider."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from implicit_auth.core.constants import (
    CONSUMERS_TENANT_ID,
    LIBRARY_SKU,
    OPENID_SCOPE,
    PROFILE_SCOPE,
    RESERVED_QUERY_PARAMETERS,
    RESOURCE_DELIMITER,
    PromptValue,
    ResponseTypes,
    SSOTypes,
)
from implicit_auth.core.errors import ClientConfigurationError
from implicit_auth.url import UrlString

if TYPE_CHECKING:
    from implicit_auth.account import Account
    from implicit_auth.authority import Authority
    from implicit_auth.request.parameters import AuthenticationParameters

logger = logging.getLogger(__name__)


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


class ServerRequestParameters:
    """Authorization request for one login or token call.

    Generates the state token, nonce and correlation id on construction.
    These must be cached before the browser is sent to ``create_navigate_url()``.
    """

    def __init__(
        self,
        authority: Authority,
        client_id: str,
        request: AuthenticationParameters,
        is_login_call: bool,
        is_silent_call: bool,
        account: Account | None,
        redirect_uri: str,
    ) -> None:
        """Validate the request and generate per-request values.

        Raises:
            ClientConfigurationError: If the client id is missing or the request is malformed.
        """
        if not client_id:
            raise ClientConfigurationError.create_client_id_empty_error()

        self.authority_instance = authority
        self.client_id = client_id
        self.request = request
        self.is_login_call = is_login_call
        self.is_silent_call = is_silent_call
        self.account = account
        self.redirect_uri = redirect_uri

        self._validate_request()

        self.scopes = self._initial_scopes()
        self.prompt = request.prompt
        self.claims_value = request.claims_request
        self.nonce = str(uuid.uuid4())
        self.state = self._generate_state(request.state)
        self.correlation_id = request.correlation_id or str(uuid.uuid4())
        self.response_type = self._determine_response_type()
        self.query_parameters: dict[str, str] = {}

        from implicit_auth import __version__

        self.x_client_sku = LIBRARY_SKU
        self.x_client_ver = __version__

    # Validation

    def _validate_request(self) -> None:
        request = self.request

        for name, scopes in (("scopes", request.scopes), ("extra_scopes_to_consent", request.extra_scopes_to_consent)):
            if scopes is None:
                continue
            if not isinstance(scopes, list | tuple) or not all(isinstance(s, str) and s for s in scopes):
                raise ClientConfigurationError.create_invalid_scopes_error(
                    f"{name} must be a list of non-empty strings, got {scopes!r}"
                )

        if not self.is_login_call:
            if not request.scopes:
                raise ClientConfigurationError.create_empty_scopes_error()
            if self.client_id in request.scopes and len(request.scopes) > 1:
                raise ClientConfigurationError.create_client_id_single_scope_error()

        if request.prompt is not None:
            if request.prompt not in {p.value for p in PromptValue}:
                raise ClientConfigurationError.create_invalid_prompt_error(request.prompt)
            if request.prompt == PromptValue.SELECT_ACCOUNT and request.sid:
                raise ClientConfigurationError.create_prompt_conflict_error(
                    "prompt=select_account cannot be combined with a sid, which pins the session"
                )
            if request.prompt == PromptValue.NONE and not self._has_sso_hint(self.account):
                raise ClientConfigurationError.create_prompt_conflict_error(
                    "prompt=none requires an account, sid or login_hint to identify the session"
                )

        if request.claims_request:
            try:
                claims = json.loads(request.claims_request)
            except ValueError as e:
                raise ClientConfigurationError.create_invalid_claims_request_error(str(e)) from e
            if not isinstance(claims, dict):
                raise ClientConfigurationError.create_invalid_claims_request_error("expected a JSON object")

    # Generated values

    def _initial_scopes(self) -> list[str]:
        scopes = list(self.request.scopes or [])
        if self.is_login_call:
            # Login always asks for an identity token
            scopes = [OPENID_SCOPE, PROFILE_SCOPE] + [s for s in scopes if s != self.client_id]
        return _unique(scopes)

    def _generate_state(self, user_state: str | None) -> str:
        state = str(uuid.uuid4())
        if user_state:
            state = f"{state}{RESOURCE_DELIMITER}{user_state}"
        return state

    def _determine_response_type(self) -> str:
        if self.is_login_call or self.scopes == [self.client_id]:
            return ResponseTypes.ID_TOKEN
        if self.client_id in self.scopes or OPENID_SCOPE in self.scopes:
            return ResponseTypes.ID_TOKEN_TOKEN
        return ResponseTypes.TOKEN

    # Builder steps

    def append_extra_scopes(self) -> None:
        """Add any extra consent scopes the caller asked for."""
        if self.request.extra_scopes_to_consent:
            self.scopes = _unique([*self.scopes, *self.request.extra_scopes_to_consent])

    def _extra_query_parameters(self) -> dict[str, str]:
        extra = self.request.extra_query_parameters or {}
        return {key: str(value) for key, value in extra.items() if key not in RESERVED_QUERY_PARAMETERS}

    def _has_sso_hint(self, account: Account | None) -> bool:
        extra = self.request.extra_query_parameters or {}
        return bool(
            account
            or self.request.sid
            or self.request.login_hint
            or SSOTypes.SID in extra
            or SSOTypes.LOGIN_HINT in extra
        )

    def is_sso_param(self, account: Account | None) -> bool:
        """Whether the request or account gives the provider a single sign-on hint."""
        return self._has_sso_hint(account)

    def populate_query_params(self) -> None:
        """Fill in prompt, claims, SSO hints and the caller's extra query parameters.

        An explicit sid or login_hint on the request wins over values derived from the account.
        """
        params: dict[str, str] = {}
        extra = self._extra_query_parameters()
        select_account = self.prompt == PromptValue.SELECT_ACCOUNT

        if self.prompt:
            params["prompt"] = self.prompt
        if self.claims_value:
            params["claims"] = self.claims_value

        if self.request.sid and not select_account:
            params[SSOTypes.SID] = self.request.sid
        elif self.request.login_hint:
            params[SSOTypes.LOGIN_HINT] = self.request.login_hint
        elif self.account and SSOTypes.SID not in extra and SSOTypes.LOGIN_HINT not in extra:
            if self.account.sid and not select_account:
                params[SSOTypes.SID] = self.account.sid
            elif self.account.user_name:
                params[SSOTypes.LOGIN_HINT] = self.account.user_name
                if self.account.tenant_id and SSOTypes.DOMAIN_HINT not in extra:
                    params[SSOTypes.DOMAIN_HINT] = (
                        SSOTypes.CONSUMERS if self.account.tenant_id == CONSUMERS_TENANT_ID else SSOTypes.ORGANIZATIONS
                    )

        params.update(extra)
        self.query_parameters = params

    def _scopes_for_url(self) -> list[str]:
        scopes: list[str] = []
        for scope in self.scopes:
            if scope == self.client_id:
                scopes.extend([OPENID_SCOPE, PROFILE_SCOPE])
            else:
                scopes.append(scope)
        return _unique(scopes)

    def create_navigate_url(self) -> str:
        """Build the full authorization URL.

        Raises:
            AuthorityDiscoveryError: If the authority endpoints have not been resolved.
        """
        params = {
            "response_type": str(self.response_type),
            "scope": " ".join(self._scopes_for_url()),
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
            "nonce": self.nonce,
            "client_info": "1",
            "x-client-SKU": self.x_client_sku,
            "x-client-Ver": self.x_client_ver,
            "client-request-id": self.correlation_id,
        }
        params.update({str(k): v for k, v in self.query_parameters.items()})
        return UrlString(self.authority_instance.authorization_endpoint).append_query_string(params)
