"""LTI launch callback endpoint."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.db.engine import get_session
from edusphere.db.repo_launches import record_launch
from edusphere.lti.deps import Jwks, Registry, Settings, States
from edusphere.lti.launch_validator import LaunchValidator
from edusphere.lti.target import resolve_target

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lti", tags=["lti"])


@router.post("/callback")
async def launch_callback(
    db: Annotated[AsyncSession, Depends(get_session)],
    registry: Registry,
    states: States,
    jwks: Jwks,
    settings: Settings,
    id_token: Annotated[str, Form()] = "",
    state: Annotated[str, Form()] = "",
) -> RedirectResponse:
    """POST /lti/callback -- verify the launch and redirect into the app."""
    validator = LaunchValidator(registry, states, jwks)
    claims, platform = await validator.validate_with_platform(id_token, state)
    launch = await record_launch(db, platform, claims)
    path = resolve_target(claims)
    logger.info(
        "LTI launch accepted launch=%s sub=%s target=%s", launch.id, claims.sub, path
    )
    return RedirectResponse(
        url=f"{settings.app_base_url.rstrip('/')}{path}", status_code=302
    )
