"""LTI third-party initiated login endpoint."""

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Form, Query
from fastapi.responses import RedirectResponse

from edusphere.lti.auth_url import AuthUrlBuilder
from edusphere.lti.deps import Registry, Settings, States
from edusphere.lti.types import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lti", tags=["lti"])

TOKEN_BYTES = 16


def generate_token() -> str:
    """Random 32-char hex value for ``state`` and ``nonce``."""
    return secrets.token_hex(TOKEN_BYTES)


async def _initiate_login(
    login: LoginRequest,
    registry: Registry,
    states: States,
    settings: Settings,
) -> RedirectResponse:
    state = generate_token()
    nonce = generate_token()
    url = AuthUrlBuilder(registry, settings.redirect_uri).build(login, state, nonce)
    await states.put(state, nonce, login.login_hint)
    logger.debug(
        "LTI login initiated iss=%s state=%s deployment=%s",
        login.iss,
        state,
        login.lti_deployment_id,
    )
    return RedirectResponse(url=url, status_code=302)


@router.post("/login")
async def login_post(
    login: Annotated[LoginRequest, Form()],
    registry: Registry,
    states: States,
    settings: Settings,
) -> RedirectResponse:
    """POST /lti/login -- OIDC login initiation (form_post)."""
    return await _initiate_login(login, registry, states, settings)


@router.get("/login")
async def login_get(
    login: Annotated[LoginRequest, Query()],
    registry: Registry,
    states: States,
    settings: Settings,
) -> RedirectResponse:
    """GET /lti/login -- OIDC login initiation (query string)."""
    return await _initiate_login(login, registry, states, settings)
