"""Type definitions for LTI platforms, login state and launch claims."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LTI_CLAIM = "https://purl.imsglobal.org/spec/lti/claim/"
LTI_VERSION = "1.3.0"


class PlatformConfig(BaseModel):
    """A registered LMS platform, keyed by issuer."""

    model_config = ConfigDict(frozen=True)

    issuer: str
    client_id: str
    auth_endpoint: str
    jwks_uri: str
    deployment_id: str | None = None
    platform_id: str | None = None


class StateEntry(BaseModel):
    """Payload stored against a one-time login ``state`` token."""

    model_config = ConfigDict(frozen=True)

    nonce: str
    login_hint: str
    created_at: datetime
    expires_at: datetime


class LoginRequest(BaseModel):
    """Third-party initiated login parameters sent by the platform."""

    iss: str
    login_hint: str
    target_link_uri: str = ""
    lti_message_hint: str | None = None
    client_id: str | None = None
    lti_deployment_id: str | None = None


class ResourceLinkClaim(BaseModel):
    id: str = ""
    title: str | None = None


class ContextClaim(BaseModel):
    id: str = ""
    label: str | None = None
    title: str | None = None


class LaunchClaims(BaseModel):
    """Verified id_token payload of an LTI resource link launch."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    sub: str
    iss: str
    aud: str | list[str]
    exp: int
    iat: int
    nonce: str
    azp: str | None = None
    name: str | None = None
    email: str | None = None

    version: str = Field(alias=LTI_CLAIM + "version")
    message_type: str = Field(alias=LTI_CLAIM + "message_type")
    deployment_id: str = Field(alias=LTI_CLAIM + "deployment_id")
    target_link_uri: str = Field(default="", alias=LTI_CLAIM + "target_link_uri")
    resource_link: ResourceLinkClaim = Field(
        default_factory=ResourceLinkClaim, alias=LTI_CLAIM + "resource_link"
    )
    roles: list[str] = Field(default_factory=list, alias=LTI_CLAIM + "roles")
    context: ContextClaim | None = Field(default=None, alias=LTI_CLAIM + "context")
    custom: dict[str, Any] | None = Field(default=None, alias=LTI_CLAIM + "custom")
