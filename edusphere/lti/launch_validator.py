"""Validation of the platform's launch POST (id_token + state)."""

import logging
from typing import NoReturn

import jwt
from pydantic import ValidationError

from edusphere.crypto.jwks_client import JWKSClient, JWKSFetchError
from edusphere.lti.errors import (
    JwtInvalidError,
    LtiError,
    NonceMismatchError,
    StateInvalidError,
    UnknownIssuerError,
    UnsupportedVersionError,
)
from edusphere.lti.registry import PlatformRegistry
from edusphere.lti.state_store import StateStore
from edusphere.lti.types import LTI_CLAIM, LTI_VERSION, LaunchClaims, PlatformConfig

logger = logging.getLogger(__name__)

JWT_ALGORITHMS = ["RS256"]
JWT_LEEWAY_SECONDS = 10
REQUIRED_CLAIMS = ["exp", "iat", "sub", "iss", "aud"]


class LaunchValidator:
    """Runs the launch checks in a fixed order; each failure is terminal.

    1. consume the state (always first, so any launch attempt burns it)
    2. pick the platform
    3. verify signature, issuer, audience and expiry against its JWKS
    4. compare the nonce with the one stored for the state
    5. require LTI version 1.3.0
    """

    def __init__(
        self,
        registry: PlatformRegistry,
        state_store: StateStore,
        jwks_client: JWKSClient,
    ) -> None:
        self._registry = registry
        self._state_store = state_store
        self._jwks = jwks_client

    async def validate(self, id_token: str, state: str) -> LaunchClaims:
        claims, _platform = await self.validate_with_platform(id_token, state)
        return claims

    async def validate_with_platform(
        self, id_token: str, state: str
    ) -> tuple[LaunchClaims, PlatformConfig]:
        """Validate a launch and also return the platform that signed it."""
        entry = await self._state_store.consume(state)
        if entry is None:
            self._reject(StateInvalidError(), state)

        platform = self._resolve_platform(id_token, state)
        raw = await self._verify(id_token, platform, state)

        if raw.get("nonce") != entry.nonce:
            self._reject(
                NonceMismatchError("token nonce differs from stored nonce"),
                state,
                platform.issuer,
                raw.get("sub"),
            )

        version = raw.get(LTI_CLAIM + "version")
        if version != LTI_VERSION:
            self._reject(
                UnsupportedVersionError(f"version claim is {version!r}"),
                state,
                platform.issuer,
                raw.get("sub"),
            )

        try:
            claims = LaunchClaims.model_validate(raw)
        except ValidationError as exc:
            self._reject(
                JwtInvalidError(f"launch claims malformed: {exc.error_count()} errors"),
                state,
                platform.issuer,
                raw.get("sub"),
            )

        logger.info(
            "LTI launch validated iss=%s sub=%s deployment=%s",
            claims.iss,
            claims.sub,
            claims.deployment_id,
        )
        return claims, platform

    def _resolve_platform(self, id_token: str, state: str) -> PlatformConfig:
        # A single registered platform needs no issuer; with several, the
        # unverified iss only selects which key set to verify against.
        if len(self._registry) == 1:
            return self._registry.resolve()
        try:
            unverified = jwt.decode(id_token, options={"verify_signature": False})
            issuer = unverified.get("iss")
            if not isinstance(issuer, str):
                raise UnknownIssuerError(f"iss claim is {type(issuer).__name__}")
            return self._registry.resolve(issuer)
        except (jwt.PyJWTError, UnknownIssuerError) as exc:
            self._reject(JwtInvalidError(f"cannot select platform: {exc}"), state)

    async def _verify(
        self, id_token: str, platform: PlatformConfig, state: str
    ) -> dict:
        try:
            header = jwt.get_unverified_header(id_token)
            key = await self._jwks.get_signing_key(platform.jwks_uri, header.get("kid"))
            raw = jwt.decode(
                id_token,
                key.key,
                algorithms=JWT_ALGORITHMS,
                issuer=platform.issuer,
                audience=platform.client_id,
                leeway=JWT_LEEWAY_SECONDS,
                options={"require": REQUIRED_CLAIMS},
            )
        except (jwt.PyJWTError, JWKSFetchError) as exc:
            self._reject(JwtInvalidError(str(exc)), state, platform.issuer)

        aud = raw.get("aud")
        multi_aud = isinstance(aud, list) and len(aud) > 1
        if multi_aud and raw.get("azp") != platform.client_id:
            self._reject(
                JwtInvalidError("azp must name this tool when aud has several values"),
                state,
                platform.issuer,
                raw.get("sub"),
            )
        return raw

    @staticmethod
    def _reject(
        error: LtiError,
        state: str,
        issuer: str | None = None,
        subject: str | None = None,
    ) -> NoReturn:
        logger.warning(
            "LTI launch rejected error=%s state=%s iss=%s sub=%s reason=%s",
            error.error,
            state,
            issuer,
            subject,
            error.reason,
        )
        raise error
