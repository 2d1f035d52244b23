"""Pydantic schemas for the platform administration API."""

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


class PlatformPayload(BaseModel):
    """Request body for POST /lti/platforms."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )

    tenant_id: str
    name: str
    issuer: str
    client_id: str
    auth_endpoint: str
    jwks_uri: str
    token_endpoint: str | None = None
    deployment_id: str | None = None


class PlatformResponse(BaseModel):
    """A registered platform as returned to admins."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=_to_camel,
        populate_by_name=True,
    )

    id: str
    tenant_id: str
    name: str
    issuer: str
    client_id: str
    auth_endpoint: str
    jwks_uri: str
    token_endpoint: str | None = None
    deployment_id: str | None = None
    is_active: bool


class PlatformListResponse(BaseModel):
    """Response for GET /lti/platforms."""

    platforms: list[PlatformResponse] = Field(default_factory=list)


class PlatformTogglePayload(BaseModel):
    """Request body for PATCH /lti/platforms/{id}."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )

    tenant_id: str
    is_active: bool
