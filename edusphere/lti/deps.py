"""FastAPI dependencies wiring the LTI components per request."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edusphere.core.settings import LtiSettings
from edusphere.crypto.jwks_client import JWKSClient
from edusphere.db.engine import get_session, get_session_factory
from edusphere.db.repo_platforms import get_active_platform_configs
from edusphere.lti.registry import PlatformRegistry, platform_from_settings
from edusphere.lti.state_store import SqlStateStore, StateStore


def get_settings() -> LtiSettings:
    return LtiSettings()


def get_jwks_client(request: Request) -> JWKSClient:
    return request.app.state.jwks_client


async def get_registry(
    db: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[LtiSettings, Depends(get_settings)],
) -> PlatformRegistry:
    """Environment platform first, then active database platforms."""
    platforms = []
    env_platform = platform_from_settings(settings)
    if env_platform is not None:
        platforms.append(env_platform)
    platforms.extend(await get_active_platform_configs(db))
    return PlatformRegistry(platforms)


def get_state_store(
    request: Request,
    settings: Annotated[LtiSettings, Depends(get_settings)],
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> StateStore:
    if settings.state_backend == "database":
        return SqlStateStore(
            factory,
            ttl_seconds=settings.state_ttl,
            max_entries=settings.state_max_entries,
        )
    return request.app.state.state_store


Settings = Annotated[LtiSettings, Depends(get_settings)]
Registry = Annotated[PlatformRegistry, Depends(get_registry)]
States = Annotated[StateStore, Depends(get_state_store)]
Jwks = Annotated[JWKSClient, Depends(get_jwks_client)]
