"""Type definitions for JWKS documents."""

from pydantic import BaseModel


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS response."""

    kty: str = "RSA"
    use: str = "sig"
    alg: str = "RS256"
    kid: str
    n: str
    e: str


class JWKSResponse(BaseModel):
    """JSON Web Key Set response."""

    keys: list[JWKEntry]
