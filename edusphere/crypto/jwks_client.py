"""Async retrieval and caching of platform JSON Web Key Sets."""

import asyncio
import logging
import time
from collections.abc import Callable

import httpx
import jwt

from edusphere.core.settings import (
    JWKS_CACHE_TTL_DEFAULT,
    JWKS_REFRESH_INTERVAL_DEFAULT,
    JWKS_TIMEOUT_DEFAULT,
)

logger = logging.getLogger(__name__)


class JWKSFetchError(Exception):
    """The key set could not be fetched or holds no matching key."""


class JWKSClient:
    """Fetches key sets over HTTP with a bounded timeout and caches them per URI.

    ``timeout`` bounds the whole fetch, body included, not just each socket
    operation. A ``kid`` missing from a cached set forces a refetch, so
    platform key rotation is picked up without waiting for the cache to
    expire; forced refetches of one URI are at least ``refresh_interval``
    seconds apart. Concurrent misses may fetch twice; no lock is held across
    the request.
    """

    def __init__(
        self,
        *,
        timeout: float = JWKS_TIMEOUT_DEFAULT,
        cache_ttl: int = JWKS_CACHE_TTL_DEFAULT,
        refresh_interval: float = JWKS_REFRESH_INTERVAL_DEFAULT,
        transport: httpx.AsyncBaseTransport | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._refresh_interval = refresh_interval
        self._transport = transport
        self._monotonic = monotonic
        self._cache: dict[str, tuple[float, jwt.PyJWKSet]] = {}

    async def get_signing_key(self, jwks_uri: str, kid: str | None) -> jwt.PyJWK:
        """Return the key for ``kid`` from the set at ``jwks_uri``."""
        cached = self._cache.get(jwks_uri)
        if cached is not None:
            age = self._monotonic() - cached[0]
            if age < self._cache_ttl:
                key = _select_key(cached[1], kid)
                if key is not None:
                    return key
                if age < self._refresh_interval:
                    raise JWKSFetchError(
                        f"no signing key kid={kid!r} in {jwks_uri}, "
                        f"refreshed {age:.0f}s ago"
                    )
                logger.info("JWKS kid=%s not cached, refreshing uri=%s", kid, jwks_uri)

        keyset = await self._fetch(jwks_uri)
        key = _select_key(keyset, kid)
        if key is None:
            raise JWKSFetchError(f"no signing key kid={kid!r} in {jwks_uri}")
        return key

    def invalidate(self, jwks_uri: str | None = None) -> None:
        """Drop one cached key set, or all of them."""
        if jwks_uri is None:
            self._cache.clear()
        else:
            self._cache.pop(jwks_uri, None)

    async def _fetch(self, jwks_uri: str) -> jwt.PyJWKSet:
        try:
            async with asyncio.timeout(self._timeout):
                async with httpx.AsyncClient(
                    timeout=self._timeout,
                    transport=self._transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(jwks_uri)
                    response.raise_for_status()
                    data = response.json()
        except TimeoutError as exc:
            raise JWKSFetchError(
                f"JWKS fetch for {jwks_uri} exceeded {self._timeout}s"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise JWKSFetchError(f"JWKS fetch failed for {jwks_uri}: {exc}") from exc

        try:
            keyset = jwt.PyJWKSet.from_dict(data)
        except (jwt.PyJWTError, AttributeError, TypeError, KeyError) as exc:
            raise JWKSFetchError(f"JWKS at {jwks_uri} is malformed: {exc}") from exc

        self._cache[jwks_uri] = (self._monotonic(), keyset)
        return keyset


def _select_key(keyset: jwt.PyJWKSet, kid: str | None) -> jwt.PyJWK | None:
    signing = [k for k in keyset.keys if k.public_key_use in (None, "sig")]
    if kid is None:
        return signing[0] if len(signing) == 1 else None
    for key in signing:
        if key.key_id == kid:
            return key
    return None
