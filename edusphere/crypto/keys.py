"""RSA public key to JWK conversion."""

import base64

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import (
    RSAPrivateKey,
    RSAPublicKey,
)

from edusphere.crypto.types import JWKEntry


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = (value.bit_length() + 7) // 8
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def public_key_to_jwk_entry(public_key: RSAPublicKey, kid: str) -> JWKEntry:
    """Convert an RSA public key to JWK format."""
    numbers = public_key.public_numbers()
    return JWKEntry(
        kid=kid,
        n=_int_to_base64url(numbers.n),
        e=_int_to_base64url(numbers.e),
    )


def private_pem_to_jwk_entry(private_key_pem: str, kid: str) -> JWKEntry:
    """Derive the public JWK of a PEM private key.

    Raises ValueError for unreadable PEM and TypeError for non-RSA keys.
    """
    loaded = serialization.load_pem_private_key(
        private_key_pem.encode(), password=None
    )
    if not isinstance(loaded, RSAPrivateKey):
        raise TypeError(f"expected an RSA private key, got {type(loaded).__name__}")
    return public_key_to_jwk_entry(loaded.public_key(), kid)
