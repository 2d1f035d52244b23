"""SQLAlchemy models for LTI platforms, login states and launches."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from edusphere.db.base import BaseEntity


class LtiPlatformEntity(BaseEntity):
    """LMS platform registered to launch the tool."""

    __tablename__ = "lti_platforms"
    __table_args__ = (UniqueConstraint("issuer", "client_id"),)

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    issuer: Mapped[str] = mapped_column(String(2048), nullable=False)
    client_id: Mapped[str] = mapped_column(String(255), nullable=False)
    auth_endpoint: Mapped[str] = mapped_column(String(2048), nullable=False)
    token_endpoint: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    jwks_uri: Mapped[str] = mapped_column(String(2048), nullable=False)
    deployment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class LoginStateEntity(BaseEntity):
    """One-time login state awaiting the platform's launch POST.

    ``seq`` is the insertion order used for capacity eviction.
    """

    __tablename__ = "lti_login_states"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    state: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    nonce: Mapped[str] = mapped_column(String(128), nullable=False)
    login_hint: Mapped[str] = mapped_column(String(2048), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )


class LtiLaunchEntity(BaseEntity):
    """Audit record of a verified launch."""

    __tablename__ = "lti_launches"

    id: Mapped[str] = mapped_column(String(48), primary_key=True)
    platform_id: Mapped[str | None] = mapped_column(
        String(48), ForeignKey("lti_platforms.id"), nullable=True
    )
    issuer: Mapped[str] = mapped_column(String(2048), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    deployment_id: Mapped[str] = mapped_column(String(255), nullable=False)
    nonce: Mapped[str] = mapped_column(String(128), nullable=False)
    launch_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
