"""Tests for identity token, client info and account derivation."""

from datetime import UTC, datetime

import pytest
from conftest import TENANT_ID, create_client_info, create_test_jwt, default_claims

from implicit_auth.account import Account, ClientInfo, IdToken, base64url_decode, base64url_encode
from implicit_auth.core.errors import ClientAuthError


class TestBase64Url:
    """Tests for unpadded base64url helpers."""

    def test_encode_strips_padding(self) -> None:
        assert base64url_encode("utid") == "dXRpZA"

    def test_decode_restores_padding(self) -> None:
        assert base64url_decode("dXRpZA") == "utid"

    def test_url_safe_alphabet(self) -> None:
        encoded = base64url_encode("??>")
        assert "+" not in encoded and "/" not in encoded
        assert base64url_decode(encoded) == "??>"


class TestIdToken:
    """Tests for IdToken."""

    def test_claims(self) -> None:
        token = IdToken(create_test_jwt(default_claims(nonce="n1", sid="sid-1")))

        assert token.issuer == f"https://login.microsoftonline.com/{TENANT_ID}/v2.0"
        assert token.object_id == "00000000-0000-0000-66f3-3332eca7ea81"
        assert token.subject == "AAAAAAAAAAAAAAAAAAAAAIkzqFVrSaSaFHy782bbtaQ"
        assert token.tenant_id == TENANT_ID
        assert token.version == "2.0"
        assert token.name == "Abe Lincoln"
        assert token.nonce == "n1"
        assert token.sid == "sid-1"
        assert token.expiration == datetime.fromtimestamp(1900000000, tz=UTC)

    def test_expired_token_still_decodes(self) -> None:
        """Only claims are read; expiry is not enforced."""
        token = IdToken(create_test_jwt(default_claims(exp=1000)))
        assert token.expiration == datetime.fromtimestamp(1000, tz=UTC)

    @pytest.mark.parametrize(
        ("claims", "expected"),
        [
            ({"preferred_username": "pref@contoso.com", "upn": "upn@contoso.com"}, "pref@contoso.com"),
            ({"preferred_username": None, "upn": "upn@contoso.com"}, "upn@contoso.com"),
            ({"preferred_username": None, "email": "mail@contoso.com"}, "mail@contoso.com"),
        ],
    )
    def test_preferred_name(self, claims, expected) -> None:
        token = IdToken(create_test_jwt(default_claims(**claims)))
        assert token.preferred_name == expected

    @pytest.mark.parametrize("raw", [None, ""])
    def test_empty(self, raw) -> None:
        with pytest.raises(ClientAuthError) as exc_info:
            IdToken(raw)
        assert exc_info.value.error_code == "null_or_empty_id_token"

    def test_undecodable(self) -> None:
        with pytest.raises(ClientAuthError) as exc_info:
            IdToken("header.not-json.signature")
        assert exc_info.value.error_code == "id_token_parsing_error"


class TestClientInfo:
    """Tests for ClientInfo."""

    def test_decode(self) -> None:
        info = ClientInfo(create_client_info("uid-1", "utid-1"))
        assert info.uid == "uid-1"
        assert info.utid == "utid-1"

    @pytest.mark.parametrize("raw", [None, ""])
    def test_empty(self, raw) -> None:
        with pytest.raises(ClientAuthError) as exc_info:
            ClientInfo(raw)
        assert exc_info.value.error_code == "client_info_empty_error"

    def test_not_json(self) -> None:
        with pytest.raises(ClientAuthError) as exc_info:
            ClientInfo(base64url_encode("uid=1"))
        assert exc_info.value.error_code == "client_info_decoding_error"

    def test_not_an_object(self) -> None:
        with pytest.raises(ClientAuthError):
            ClientInfo(base64url_encode('["uid"]'))

    def test_from_id_token(self) -> None:
        info = ClientInfo.from_id_token(IdToken(create_test_jwt(default_claims())))
        assert info.uid == "00000000-0000-0000-66f3-3332eca7ea81"
        assert info.utid == TENANT_ID
        assert ClientInfo(info.raw_client_info).uid == info.uid

    def test_from_id_token_falls_back_to_subject(self) -> None:
        info = ClientInfo.from_id_token(IdToken(create_test_jwt(default_claims(oid=None))))
        assert info.uid == "AAAAAAAAAAAAAAAAAAAAAIkzqFVrSaSaFHy782bbtaQ"


class TestAccount:
    """Tests for Account.create_account."""

    def test_create_account(self) -> None:
        account = Account.create_account(
            IdToken(create_test_jwt(default_claims(sid="sid-1"))),
            ClientInfo(create_client_info("uid", "utid")),
        )

        assert account.home_account_identifier == "dWlk.dXRpZA"
        assert account.account_identifier == "00000000-0000-0000-66f3-3332eca7ea81"
        assert account.user_name == "abeli@microsoft.com"
        assert account.name == "Abe Lincoln"
        assert account.tenant_id == TENANT_ID
        assert account.sid == "sid-1"
        assert account.environment == "login.microsoftonline.com"
        assert account.id_token_claims["aud"] == default_claims()["aud"]

    def test_missing_client_info_ids(self) -> None:
        """Without both ids there is no home account identifier."""
        account = Account.create_account(
            IdToken(create_test_jwt(default_claims())),
            ClientInfo(create_client_info("", "utid")),
        )
        assert account.home_account_identifier == ""

    def test_field_equality(self) -> None:
        raw_id_token = create_test_jwt(default_claims())
        raw_client_info = create_client_info("uid", "utid")

        first = Account.create_account(IdToken(raw_id_token), ClientInfo(raw_client_info))
        second = Account.create_account(IdToken(raw_id_token), ClientInfo(raw_client_info))

        assert first == second
        assert first is not second

    def test_immutable(self) -> None:
        account = Account.create_account(
            IdToken(create_test_jwt(default_claims())),
            ClientInfo(create_client_info("uid", "utid")),
        )
        with pytest.raises(AttributeError):
            account.name = "Someone Else"  # type: ignore[misc]

    def test_to_dict(self) -> None:
        account = Account.create_account(
            IdToken(create_test_jwt(default_claims())),
            ClientInfo(create_client_info("uid", "utid")),
        )
        data = account.to_dict()
        assert data["home_account_identifier"] == "dWlk.dXRpZA"
        assert data["user_name"] == "abeli@microsoft.com"
        assert data["id_token_claims"]["tid"] == TENANT_ID
