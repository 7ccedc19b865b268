"""Protocol constants and cache key names."""

from __future__ import annotations

from enum import StrEnum

# Library identification sent with every authorization request
LIBRARY_SKU = "implicit-auth-python"

# Fallback when an account has no home account identifier
NO_ACCOUNT = "NO_ACCOUNT"

# Separates the library-generated state from caller-supplied state
RESOURCE_DELIMITER = "|"

# Tenant id of personal Microsoft accounts, used to pick a domain_hint
CONSUMERS_TENANT_ID = "9188040d-6c67-4c5b-b112-36a304b66dad"

CACHE_PREFIX = "implicit_auth"


class TemporaryCacheKeys(StrEnum):
    """Request-scoped entries written before redirect and cleared after the response."""

    REQUEST_STATE = f"{CACHE_PREFIX}.request.state"
    NONCE_IDTOKEN = f"{CACHE_PREFIX}.nonce.idtoken"
    LOGIN_START_PAGE = f"{CACHE_PREFIX}.login.start.page"
    REQUEST_SCOPES = f"{CACHE_PREFIX}.request.scopes"


class PersistentCacheKeys(StrEnum):
    """Session-scoped entries, written only after a trusted response."""

    ID_TOKEN = f"{CACHE_PREFIX}.idtoken"
    CLIENT_INFO = f"{CACHE_PREFIX}.client.info"


class ServerHashParamKeys(StrEnum):
    """Keys the identity provider places in the URL fragment."""

    STATE = "state"
    ERROR = "error"
    ERROR_DESCRIPTION = "error_description"
    ID_TOKEN = "id_token"
    ACCESS_TOKEN = "access_token"
    TOKEN_TYPE = "token_type"
    EXPIRES_IN = "expires_in"
    SCOPE = "scope"
    CLIENT_INFO = "client_info"
    SESSION_STATE = "session_state"


class SSOTypes(StrEnum):
    """Query parameters that hint the provider toward an existing session."""

    SID = "sid"
    LOGIN_HINT = "login_hint"
    DOMAIN_HINT = "domain_hint"
    ORGANIZATIONS = "organizations"
    CONSUMERS = "consumers"


class PromptValue(StrEnum):
    """Allowed values of the OIDC prompt parameter."""

    LOGIN = "login"
    SELECT_ACCOUNT = "select_account"
    CONSENT = "consent"
    NONE = "none"


class ResponseTypes(StrEnum):
    """Implicit grant response types."""

    ID_TOKEN = "id_token"
    TOKEN = "token"
    ID_TOKEN_TOKEN = "id_token token"


OPENID_SCOPE = "openid"
PROFILE_SCOPE = "profile"

# Query parameters set by the library; callers cannot override these
RESERVED_QUERY_PARAMETERS = frozenset(
    {
        "response_type",
        "client_id",
        "redirect_uri",
        "scope",
        "state",
        "nonce",
        "client_info",
    }
)
