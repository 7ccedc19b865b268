"""Sign-in routes for Flask applications."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin, urlsplit

from flask import (
    Blueprint,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
)

from implicit_auth.client import ImplicitAuthClient
from implicit_auth.core.constants import TemporaryCacheKeys
from implicit_auth.core.errors import (
    AuthError,
    AuthorityDiscoveryError,
    NetworkError,
)
from implicit_auth.request import AuthenticationParameters
from implicit_auth.web.session_cache import FlaskSessionCacheStorage

if TYPE_CHECKING:
    from flask import Response
    from werkzeug.wrappers import Response as WerkzeugResponse

logger = logging.getLogger(__name__)

_templates_dir = Path(__file__).parent / "templates"

auth_bp = Blueprint(
    "auth",
    __name__,
    template_folder=str(_templates_dir),
    url_prefix="/auth",
)

main_bp = Blueprint("main", __name__)

# Key of this package's entry in app.extensions
EXTENSION_KEY = "implicit_auth"


def get_client() -> ImplicitAuthClient:
    """Build a client for the current request.

    The account is memoized per client, so a client is never shared between
    requests or users.
    """
    state = current_app.extensions[EXTENSION_KEY]
    return ImplicitAuthClient(
        state["config"],
        FlaskSessionCacheStorage(),
        network_client=state["network_client"],
        location_provider=_login_start_page,
    )


def _login_start_page() -> str:
    """Return the page to come back to after sign-in.

    ``next`` is honored only when it stays on this host; anything else
    falls back to the host root.
    """
    target = request.args.get("next")
    if not target:
        return request.host_url
    # Browsers read backslashes as slashes
    target = target.replace("\\", "/")
    parts = urlsplit(urljoin(request.host_url, target))
    host = urlsplit(request.host_url)
    if (parts.scheme, parts.netloc) != (host.scheme, host.netloc):
        return request.host_url
    return target


def _request_parameters() -> AuthenticationParameters:
    scope = request.args.get("scope", "")
    return AuthenticationParameters(
        scopes=scope.split() or None,
        prompt=request.args.get("prompt") or None,
        login_hint=request.args.get("login_hint") or None,
        state=request.args.get("state") or None,
    )


def _error_body(error: str | None, description: str | None) -> dict[str, Any]:
    return {"error": error, "error_description": description}


@auth_bp.errorhandler(AuthError)
def handle_auth_error(e: AuthError) -> tuple[Response, int]:
    """Return library errors as JSON."""
    # Discovery failures are the provider's fault, everything else the caller's
    status = 502 if isinstance(e, NetworkError | AuthorityDiscoveryError) else 400
    logger.warning("Sign-in request failed: %s", e)
    return jsonify(_error_body(e.error_code, e.error_message)), status


@auth_bp.route("/login")
async def login() -> WerkzeugResponse:
    """Redirect the browser to the provider's sign-in page."""
    client = get_client()
    url = await client.create_login_url(_request_parameters())
    return redirect(url)


@auth_bp.route("/token")
async def token() -> WerkzeugResponse:
    """Redirect the browser to the provider to obtain an access token."""
    client = get_client()
    url = await client.create_acquire_token_url(_request_parameters())
    return redirect(url)


@auth_bp.route("/callback", methods=["GET"])
def callback() -> str:
    """Serve the page that posts the URL fragment back to the server."""
    return render_template("auth/callback.html")


@auth_bp.route("/callback", methods=["POST"])
def callback_post() -> WerkzeugResponse | tuple[Response, int]:
    """Validate the posted fragment and return to the page the login started from."""
    client = get_client()
    # Read before handling; a consumed response clears the temporary entries
    start_page = client.cache_storage.get_item(TemporaryCacheKeys.LOGIN_START_PAGE)

    response = client.handle_response(request.form.get("fragment", ""))
    if not response.is_success:
        return jsonify(_error_body(response.error, response.error_description)), 401

    return redirect(start_page or request.host_url)


@auth_bp.route("/account")
def account() -> Response | tuple[Response, int]:
    """Return the signed-in account."""
    signed_in = get_client().get_account()
    if signed_in is None:
        return jsonify(_error_body("no_session", "No account is signed in")), 401
    return jsonify(signed_in.to_dict())


@auth_bp.route("/logout")
async def logout() -> WerkzeugResponse:
    """Clear the local session and redirect to the provider's sign-out page."""
    client = get_client()
    url = await client.create_logout_url()
    return redirect(url)


@main_bp.route("/")
def index() -> dict[str, Any]:
    """Show whether a user is signed in."""
    signed_in = get_client().get_account()
    return {
        "signed_in": signed_in is not None,
        "user_name": signed_in.user_name if signed_in else None,
    }


@main_bp.route("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
