"""OIDC authorization redirect for third-party initiated login."""

from urllib.parse import urlencode

from edusphere.lti.registry import PlatformRegistry
from edusphere.lti.types import LoginRequest


class AuthUrlBuilder:
    """Builds the platform authorization URL for a login request.

    ``redirect_uri`` is fixed at construction from the tool's own base URL
    and never taken from the request.
    """

    def __init__(self, registry: PlatformRegistry, redirect_uri: str) -> None:
        self._registry = registry
        self._redirect_uri = redirect_uri

    def build(self, login: LoginRequest, state: str, nonce: str) -> str:
        """Return the authorization URL. Raises UnknownIssuerError."""
        platform = self._registry.resolve(login.iss)
        params = {
            "state": state,
            "nonce": nonce,
            "scope": "openid",
            "response_type": "id_token",
            "response_mode": "form_post",
            "prompt": "none",
            "client_id": login.client_id or platform.client_id,
            "redirect_uri": self._redirect_uri,
            "login_hint": login.login_hint,
        }
        if login.lti_message_hint:
            params["lti_message_hint"] = login.lti_message_hint
        separator = "&" if "?" in platform.auth_endpoint else "?"
        return f"{platform.auth_endpoint}{separator}{urlencode(params)}"
