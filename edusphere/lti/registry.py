"""Registered platform lookup keyed by issuer."""

import logging
from collections.abc import Iterable

from edusphere.core.settings import LtiSettings
from edusphere.lti.errors import UnknownIssuerError
from edusphere.lti.types import PlatformConfig

logger = logging.getLogger(__name__)


class PlatformRegistry:
    """Immutable issuer -> PlatformConfig mapping.

    The first platform registered for an issuer wins; later duplicates are
    ignored with a warning.
    """

    def __init__(self, platforms: Iterable[PlatformConfig] = ()) -> None:
        self._by_issuer: dict[str, PlatformConfig] = {}
        for platform in platforms:
            if platform.issuer in self._by_issuer:
                logger.warning("Duplicate LTI platform ignored iss=%s", platform.issuer)
                continue
            self._by_issuer[platform.issuer] = platform

    def __len__(self) -> int:
        return len(self._by_issuer)

    def __contains__(self, issuer: object) -> bool:
        return isinstance(issuer, str) and issuer in self._by_issuer

    def resolve(self, issuer: str | None = None) -> PlatformConfig:
        """Return the platform for ``issuer``.

        Without an issuer the sole registered platform is returned; an empty
        or multi-platform registry cannot answer that and raises.
        """
        if issuer is None:
            if len(self._by_issuer) == 1:
                return next(iter(self._by_issuer.values()))
            raise UnknownIssuerError(
                f"cannot pick a platform among {len(self._by_issuer)} without issuer"
            )
        if not isinstance(issuer, str):
            raise UnknownIssuerError(
                f"issuer must be a string, got {type(issuer).__name__}"
            )
        platform = self._by_issuer.get(issuer)
        if platform is None:
            raise UnknownIssuerError(f"issuer {issuer!r} is not registered")
        return platform


def platform_from_settings(settings: LtiSettings) -> PlatformConfig | None:
    """Build the environment-configured platform, if any."""
    if not settings.has_env_platform():
        return None
    return PlatformConfig(
        issuer=settings.platform_issuer,
        client_id=settings.platform_client_id,
        auth_endpoint=settings.platform_auth_endpoint,
        jwks_uri=settings.platform_jwks_uri,
        deployment_id=settings.deployment_id or None,
    )
