"""Tests for authorization request construction."""

import asyncio
import json
from urllib.parse import parse_qs, urlsplit

import pytest
from conftest import AUTHORITY, CLIENT_ID, REDIRECT_URI, create_client_info, create_test_jwt, default_claims

from implicit_auth.account import Account, ClientInfo, IdToken
from implicit_auth.authority import Authority, AuthorityFactory
from implicit_auth.core.constants import CONSUMERS_TENANT_ID
from implicit_auth.core.errors import ClientConfigurationError
from implicit_auth.request import AuthenticationParameters, ServerRequestParameters


@pytest.fixture
def authority(network_client) -> Authority:
    """Default test authority with endpoints resolved."""
    return asyncio.run(AuthorityFactory.create_instance(AUTHORITY, network_client).resolve_endpoints())


@pytest.fixture
def build(authority):
    """Build request parameters; keyword arguments go to AuthenticationParameters."""

    def _build(is_login_call: bool = True, account: Account | None = None, **options) -> ServerRequestParameters:
        return ServerRequestParameters(
            authority,
            CLIENT_ID,
            AuthenticationParameters(**options),
            is_login_call,
            False,
            account,
            REDIRECT_URI,
        )

    return _build


def _account(**claims) -> Account:
    id_token = IdToken(create_test_jwt(default_claims(**claims)))
    return Account.create_account(id_token, ClientInfo(create_client_info("uid", id_token.tenant_id or "utid")))


def _query(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


class TestValidation:
    """Tests for request validation."""

    def test_empty_client_id(self, authority) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            ServerRequestParameters(authority, "", AuthenticationParameters(), True, False, None, REDIRECT_URI)
        assert exc_info.value.error_code == "empty_client_id"

    def test_scopes_must_be_strings(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(scopes=["User.Read", ""])
        assert exc_info.value.error_code == "invalid_request_scopes"

    def test_scopes_must_be_list(self, build) -> None:
        with pytest.raises(ClientConfigurationError):
            build(scopes="User.Read")

    def test_extra_scopes_must_be_strings(self, build) -> None:
        with pytest.raises(ClientConfigurationError):
            build(extra_scopes_to_consent=[42])

    def test_token_call_needs_scopes(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(is_login_call=False, scopes=[])
        assert exc_info.value.error_code == "empty_input_scopes_error"

    def test_client_id_only_as_single_scope(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(is_login_call=False, scopes=[CLIENT_ID, "User.Read"])
        assert exc_info.value.error_code == "client_id_single_scope_error"

    def test_invalid_prompt(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(prompt="always")
        assert exc_info.value.error_code == "invalid_prompt_value"

    @pytest.mark.parametrize("prompt", ["login", "select_account", "consent"])
    def test_valid_prompts(self, build, prompt) -> None:
        assert build(prompt=prompt).prompt == prompt

    def test_select_account_conflicts_with_sid(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(prompt="select_account", sid="session-1")
        assert exc_info.value.error_code == "prompt_account_conflict"

    def test_prompt_none_needs_session_hint(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(prompt="none")
        assert exc_info.value.error_code == "prompt_account_conflict"

    def test_prompt_none_with_hint(self, build) -> None:
        assert build(prompt="none", login_hint="abeli@microsoft.com").prompt == "none"
        assert build(prompt="none", account=_account()).prompt == "none"

    def test_claims_must_be_json_object(self, build) -> None:
        with pytest.raises(ClientConfigurationError) as exc_info:
            build(claims_request="{not json")
        assert exc_info.value.error_code == "invalid_claims"

        with pytest.raises(ClientConfigurationError):
            build(claims_request="[1, 2]")


class TestGeneratedValues:
    """Tests for state, nonce, scopes and response type."""

    def test_state_and_nonce_are_fresh(self, build) -> None:
        first, second = build(), build()
        assert first.state != second.state
        assert first.nonce != second.nonce

    def test_caller_state_appended(self, build) -> None:
        state = build(state="/inbox").state
        generated, _, user_state = state.partition("|")
        assert generated
        assert user_state == "/inbox"

    def test_correlation_id(self, build) -> None:
        assert build(correlation_id="corr-1").correlation_id == "corr-1"
        assert build().correlation_id

    def test_login_scopes(self, build) -> None:
        """openid and profile lead, the client id is dropped and duplicates removed."""
        params = build(scopes=[CLIENT_ID, "User.Read", "openid", "User.Read"])
        assert params.scopes == ["openid", "profile", "User.Read"]

    def test_append_extra_scopes(self, build) -> None:
        params = build(extra_scopes_to_consent=["Mail.Read", "openid"])
        params.append_extra_scopes()
        assert params.scopes == ["openid", "profile", "Mail.Read"]

    @pytest.mark.parametrize(
        ("is_login_call", "scopes", "expected"),
        [
            (True, None, "id_token"),
            (False, [CLIENT_ID], "id_token"),
            (False, ["User.Read"], "token"),
            (False, ["openid", "User.Read"], "id_token token"),
        ],
    )
    def test_response_type(self, build, is_login_call, scopes, expected) -> None:
        assert build(is_login_call=is_login_call, scopes=scopes).response_type == expected


class TestQueryParameters:
    """Tests for SSO hints and extra query parameters."""

    def test_explicit_sid_beats_account(self, build) -> None:
        params = build(sid="explicit", account=_account(sid="from-account"))
        params.populate_query_params()
        assert params.query_parameters["sid"] == "explicit"

    def test_explicit_login_hint_beats_account(self, build) -> None:
        params = build(login_hint="other@contoso.com", account=_account())
        params.populate_query_params()
        assert params.query_parameters["login_hint"] == "other@contoso.com"
        assert "domain_hint" not in params.query_parameters

    def test_account_login_hint_and_domain_hint(self, build) -> None:
        params = build(account=_account())
        params.populate_query_params()
        assert params.query_parameters["login_hint"] == "abeli@microsoft.com"
        assert params.query_parameters["domain_hint"] == "organizations"

    def test_consumer_account_domain_hint(self, build) -> None:
        params = build(account=_account(tid=CONSUMERS_TENANT_ID))
        params.populate_query_params()
        assert params.query_parameters["domain_hint"] == "consumers"

    def test_select_account_ignores_account_sid(self, build) -> None:
        params = build(prompt="select_account", account=_account(sid="from-account"))
        params.populate_query_params()
        assert "sid" not in params.query_parameters
        assert params.query_parameters["login_hint"] == "abeli@microsoft.com"
        assert params.query_parameters["prompt"] == "select_account"

    def test_extra_query_parameters(self, build) -> None:
        """Reserved parameters cannot be overridden by the caller."""
        params = build(extra_query_parameters={"mkt": "en-GB", "state": "forged", "client_id": "other"})
        params.populate_query_params()
        assert params.query_parameters == {"mkt": "en-GB"}

    def test_extra_login_hint_suppresses_account_hint(self, build) -> None:
        params = build(extra_query_parameters={"login_hint": "extra@contoso.com"}, account=_account())
        params.populate_query_params()
        assert params.query_parameters["login_hint"] == "extra@contoso.com"
        assert "domain_hint" not in params.query_parameters

    def test_claims_sent(self, build) -> None:
        claims = json.dumps({"id_token": {"auth_time": {"essential": True}}})
        params = build(claims_request=claims)
        params.populate_query_params()
        assert params.query_parameters["claims"] == claims

    def test_is_sso_param(self, build) -> None:
        assert build().is_sso_param(None) is False
        assert build(login_hint="abeli@microsoft.com").is_sso_param(None) is True
        assert build(extra_query_parameters={"sid": "s"}).is_sso_param(None) is True
        assert build().is_sso_param(_account()) is True


class TestNavigateUrl:
    """Tests for the final authorization URL."""

    def test_navigate_url(self, build) -> None:
        params = build(extra_query_parameters={"mkt": "en-GB"})
        params.populate_query_params()
        url = params.create_navigate_url()

        assert url.startswith("https://login.microsoftonline.com/contoso/oauth2/v2.0/authorize?")
        query = _query(url)
        assert query["response_type"] == "id_token"
        assert query["scope"] == "openid profile"
        assert query["client_id"] == CLIENT_ID
        assert query["redirect_uri"] == REDIRECT_URI
        assert query["state"] == params.state
        assert query["nonce"] == params.nonce
        assert query["client_info"] == "1"
        assert query["client-request-id"] == params.correlation_id
        assert query["x-client-Ver"] == "0.1.0"
        assert query["mkt"] == "en-GB"

    def test_client_id_scope_sent_as_openid_profile(self, build) -> None:
        params = build(is_login_call=False, scopes=[CLIENT_ID])
        assert _query(params.create_navigate_url())["scope"] == "openid profile"
