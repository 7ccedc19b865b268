"""Error types raised by the implicit flow client.

Errors fall into four groups:
- Configuration errors (missing redirect URI, unusable authority, bad request options)
- Protocol errors (fragment cannot be parsed, state missing)
- Network and discovery errors from authority resolution
- Server errors returned by the identity provider in the URL fragment
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all authentication errors."""

    def __init__(self, error_code: str, error_message: str = "") -> None:
        """Initialize the error.

        Args:
            error_code: Short machine-readable error code.
            error_message: Human-readable description.
        """
        super().__init__(f"{error_code}: {error_message}" if error_message else error_code)
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def create_unexpected_error(cls, description: str) -> AuthError:
        """Create an error for responses that cannot be handled at all."""
        return cls("unexpected_error", f"Unexpected error in authentication: {description}")


class ClientAuthError(AuthError):
    """Error raised by the client library itself."""

    @classmethod
    def create_id_token_null_or_empty_error(cls, raw_id_token: str | None) -> ClientAuthError:
        return cls("null_or_empty_id_token", f"The id token is null or empty. Given: {raw_id_token!r}")

    @classmethod
    def create_id_token_parsing_error(cls, detail: str) -> ClientAuthError:
        return cls("id_token_parsing_error", f"The id token could not be decoded: {detail}")

    @classmethod
    def create_client_info_empty_error(cls, raw_client_info: str | None) -> ClientAuthError:
        return cls("client_info_empty_error", f"The client info was empty. Given: {raw_client_info!r}")

    @classmethod
    def create_client_info_decoding_error(cls, detail: str) -> ClientAuthError:
        return cls("client_info_decoding_error", f"The client info could not be decoded: {detail}")


class ClientConfigurationError(ClientAuthError):
    """Error caused by missing or invalid configuration or request options.

    These are fatal and never retried: the caller has to fix the input.
    """

    @classmethod
    def create_redirect_uri_empty_error(cls) -> ClientConfigurationError:
        return cls(
            "redirect_uri_empty",
            "A redirect URI is required for all calls, and none has been set.",
        )

    @classmethod
    def create_post_logout_redirect_uri_empty_error(cls) -> ClientConfigurationError:
        return cls(
            "post_logout_uri_empty",
            "A post logout redirect URI has not been set.",
        )

    @classmethod
    def create_invalid_authority_error(cls, authority: str, reason: str) -> ClientConfigurationError:
        return cls("invalid_authority", f"Authority '{authority}' cannot be used: {reason}")

    @classmethod
    def create_client_id_empty_error(cls) -> ClientConfigurationError:
        return cls("empty_client_id", "A client id is required to build authorization requests.")

    @classmethod
    def create_invalid_scopes_error(cls, detail: str) -> ClientConfigurationError:
        return cls("invalid_request_scopes", detail)

    @classmethod
    def create_empty_scopes_error(cls) -> ClientConfigurationError:
        return cls("empty_input_scopes_error", "Scopes cannot be passed as an empty list for this call.")

    @classmethod
    def create_client_id_single_scope_error(cls) -> ClientConfigurationError:
        return cls("client_id_single_scope_error", "The client id can only be provided as a single scope.")

    @classmethod
    def create_invalid_prompt_error(cls, prompt: str) -> ClientConfigurationError:
        return cls(
            "invalid_prompt_value",
            f"Supported prompt values are 'login', 'select_account', 'consent' and 'none'. Given: {prompt!r}",
        )

    @classmethod
    def create_prompt_conflict_error(cls, detail: str) -> ClientConfigurationError:
        return cls("prompt_account_conflict", detail)

    @classmethod
    def create_invalid_claims_request_error(cls, detail: str) -> ClientConfigurationError:
        return cls("invalid_claims", f"Could not parse the claims request: {detail}")

    @classmethod
    def create_invalid_config_error(cls, path: str, detail: str) -> ClientConfigurationError:
        return cls("invalid_configuration", f"Configuration file {path} is invalid: {detail}")


class NetworkError(ClientAuthError):
    """Error raised when a network request fails."""

    @classmethod
    def create_request_failed_error(cls, url: str, detail: str) -> NetworkError:
        return cls("network_error", f"Request to {url} failed: {detail}")


class AuthorityDiscoveryError(ClientAuthError):
    """Error raised when authority endpoints cannot be resolved."""

    @classmethod
    def create_endpoint_resolution_error(cls, discovery_url: str, detail: str) -> AuthorityDiscoveryError:
        return cls("endpoints_resolution_error", f"Could not resolve endpoints from {discovery_url}: {detail}")

    @classmethod
    def create_end_session_endpoint_missing_error(cls, authority: str) -> AuthorityDiscoveryError:
        return cls("end_session_endpoint_missing", f"Authority {authority} does not publish an end_session_endpoint")


class ServerError(AuthError):
    """Error returned by the identity provider."""


class InteractionRequiredAuthError(ServerError):
    """Server error that can only be resolved by an interactive request."""

    ERROR_CODES = ("interaction_required", "consent_required", "login_required")

    @classmethod
    def is_interaction_required_error(cls, error_code: str | None) -> bool:
        return error_code in cls.ERROR_CODES
