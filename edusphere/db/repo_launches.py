"""Database operations for launch audit records."""

import uuid_utils
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.db.models_lti import LtiLaunchEntity
from edusphere.lti.types import LaunchClaims, PlatformConfig


async def record_launch(
    session: AsyncSession, platform: PlatformConfig, claims: LaunchClaims
) -> LtiLaunchEntity:
    """Store a verified launch and return the new record."""
    entity = LtiLaunchEntity(
        id=str(uuid_utils.uuid7()),
        platform_id=platform.platform_id,
        issuer=claims.iss,
        user_id=claims.sub,
        course_id=claims.context.id if claims.context else None,
        deployment_id=claims.deployment_id,
        nonce=claims.nonce,
        launch_data=claims.model_dump(mode="json", by_alias=True),
    )
    session.add(entity)
    await session.flush()
    return entity
