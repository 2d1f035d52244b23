"""Database operations for registered LTI platforms."""

import uuid_utils
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.db.models_lti import LtiPlatformEntity
from edusphere.lti.types import PlatformConfig


class PlatformRegistrationData(BaseModel):
    """Parameters for registering a platform."""

    tenant_id: str
    name: str
    issuer: str
    client_id: str
    auth_endpoint: str
    jwks_uri: str
    token_endpoint: str | None = None
    deployment_id: str | None = None


async def register_platform(
    session: AsyncSession, data: PlatformRegistrationData
) -> LtiPlatformEntity:
    """Persist a new active platform."""
    entity = LtiPlatformEntity(
        id=str(uuid_utils.uuid7()),
        tenant_id=data.tenant_id,
        name=data.name,
        issuer=data.issuer,
        client_id=data.client_id,
        auth_endpoint=data.auth_endpoint,
        token_endpoint=data.token_endpoint,
        jwks_uri=data.jwks_uri,
        deployment_id=data.deployment_id,
        is_active=True,
    )
    session.add(entity)
    await session.flush()
    return entity


async def list_platforms(
    session: AsyncSession, tenant_id: str
) -> list[LtiPlatformEntity]:
    """Return a tenant's active platforms."""
    stmt = (
        select(LtiPlatformEntity)
        .where(
            LtiPlatformEntity.tenant_id == tenant_id,
            LtiPlatformEntity.is_active.is_(True),
        )
        .order_by(LtiPlatformEntity.created_at)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_platform_active(
    session: AsyncSession, platform_id: str, tenant_id: str, *, is_active: bool
) -> LtiPlatformEntity | None:
    """Toggle a platform. Returns None if it does not belong to the tenant."""
    stmt = select(LtiPlatformEntity).where(
        LtiPlatformEntity.id == platform_id,
        LtiPlatformEntity.tenant_id == tenant_id,
    )
    result = await session.execute(stmt)
    entity = result.scalar_one_or_none()
    if entity is None:
        return None
    entity.is_active = is_active
    await session.flush()
    return entity


async def get_active_platform_configs(session: AsyncSession) -> list[PlatformConfig]:
    """Return every active platform as a PlatformConfig."""
    stmt = (
        select(LtiPlatformEntity)
        .where(LtiPlatformEntity.is_active.is_(True))
        .order_by(LtiPlatformEntity.created_at)
    )
    result = await session.execute(stmt)
    return [
        PlatformConfig(
            issuer=e.issuer,
            client_id=e.client_id,
            auth_endpoint=e.auth_endpoint,
            jwks_uri=e.jwks_uri,
            deployment_id=e.deployment_id,
            platform_id=e.id,
        )
        for e in result.scalars().all()
    ]
