"""Tool JWKS endpoint."""

from fastapi import APIRouter, Response

from edusphere.crypto.types import JWKSResponse
from edusphere.lti.deps import Settings
from edusphere.lti.tool_keys import public_jwks

router = APIRouter(prefix="/lti", tags=["lti"])

JWKS_CACHE_CONTROL = "public, max-age=3600"


@router.get("/jwks")
async def jwks(response: Response, settings: Settings) -> JWKSResponse:
    """JSON Web Key Set of the tool's signing key."""
    response.headers["Cache-Control"] = JWKS_CACHE_CONTROL
    return public_jwks(settings.tool_private_key_pem, settings.tool_key_id)
