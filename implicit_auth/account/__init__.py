"""Identity token decoding and account derivation."""

from implicit_auth.account.account import Account
from implicit_auth.account.client_info import ClientInfo, base64url_decode, base64url_encode
from implicit_auth.account.id_token import IdToken

__all__ = [
    "Account",
    "ClientInfo",
    "IdToken",
    "base64url_decode",
    "base64url_encode",
]
