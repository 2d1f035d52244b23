"""Admin endpoints for registering LMS platforms."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.deps import require_admin_token
from edusphere.api.schemas import (
    PlatformListResponse,
    PlatformPayload,
    PlatformResponse,
    PlatformTogglePayload,
)
from edusphere.db.engine import get_session
from edusphere.db.repo_platforms import (
    PlatformRegistrationData,
    list_platforms,
    register_platform,
    set_platform_active,
)

router = APIRouter(prefix="/lti/platforms", tags=["lti-admin"])

DbSession = Annotated[AsyncSession, Depends(get_session)]
AdminToken = Annotated[str, Depends(require_admin_token)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_platform(
    payload: PlatformPayload,
    db: DbSession,
    _token: AdminToken,
) -> PlatformResponse:
    """POST /lti/platforms -- register a platform for a tenant."""
    data = PlatformRegistrationData(**payload.model_dump())
    try:
        entity = await register_platform(db, data)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="platform already registered for this issuer and client id",
        ) from exc
    return PlatformResponse.model_validate(entity)


@router.get("")
async def get_platforms(
    tenant_id: Annotated[str, Query()],
    db: DbSession,
    _token: AdminToken,
) -> PlatformListResponse:
    """GET /lti/platforms?tenant_id=... -- list a tenant's active platforms."""
    entities = await list_platforms(db, tenant_id)
    return PlatformListResponse(
        platforms=[PlatformResponse.model_validate(e) for e in entities]
    )


@router.patch("/{platform_id}")
async def toggle_platform(
    platform_id: str,
    payload: PlatformTogglePayload,
    db: DbSession,
    _token: AdminToken,
) -> PlatformResponse:
    """PATCH /lti/platforms/{id} -- activate or deactivate a platform."""
    entity = await set_platform_active(
        db, platform_id, payload.tenant_id, is_active=payload.is_active
    )
    if entity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"LTI platform {platform_id} not found",
        )
    return PlatformResponse.model_validate(entity)
