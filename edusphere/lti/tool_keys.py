"""Publication of the tool's own public signing key."""

import logging

from cryptography.exceptions import UnsupportedAlgorithm

from edusphere.crypto.keys import private_pem_to_jwk_entry
from edusphere.crypto.types import JWKSResponse

logger = logging.getLogger(__name__)


def public_jwks(private_key_pem: str, kid: str) -> JWKSResponse:
    """Return the tool JWKS, or an empty set when no usable key is configured."""
    if not private_key_pem:
        return JWKSResponse(keys=[])
    try:
        entry = private_pem_to_jwk_entry(private_key_pem, kid)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        logger.warning(
            "LTI tool key could not be loaded, publishing empty JWKS: %s", exc
        )
        return JWKSResponse(keys=[])
    return JWKSResponse(keys=[entry])
