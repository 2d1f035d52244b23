"""FastAPI dependency injection for admin API authentication."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edusphere.core.settings import LtiSettings
from edusphere.lti.deps import get_settings

_security = HTTPBearer(auto_error=False)


async def require_admin_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_security)],
    settings: Annotated[LtiSettings, Depends(get_settings)],
) -> str:
    """Verify the LTI_ADMIN_TOKEN Bearer token."""
    expected = settings.admin_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if credentials is None or not secrets.compare_digest(
        credentials.credentials, expected
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return credentials.credentials
