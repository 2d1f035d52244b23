"""FastAPI application factory for the EduSphere LTI 1.3 tool."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from edusphere.api.router_platforms import router as platforms_router
from edusphere.core.settings import LtiSettings
from edusphere.crypto.jwks_client import JWKSClient
from edusphere.lti.errors import LtiError
from edusphere.lti.routes_callback import router as callback_router
from edusphere.lti.routes_jwks import router as jwks_router
from edusphere.lti.routes_login import router as login_router
from edusphere.lti.state_store import MemoryStateStore

logger = logging.getLogger(__name__)


async def _lti_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Render an LtiError without verifier internals."""
    assert isinstance(exc, LtiError)
    return JSONResponse(
        {"error": exc.error, "error_description": exc.message},
        status_code=exc.status_code,
    )


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = LtiSettings()
    logging.getLogger("edusphere").setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if not settings.has_env_platform():
            logger.info("No environment LTI platform configured")
        yield

    app = FastAPI(
        title="EduSphere LTI 1.3 Tool",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.state_store = MemoryStateStore(
        ttl_seconds=settings.state_ttl,
        max_entries=settings.state_max_entries,
    )
    app.state.jwks_client = JWKSClient(
        timeout=settings.jwks_timeout,
        cache_ttl=settings.jwks_cache_ttl,
        refresh_interval=settings.jwks_refresh_interval,
    )

    origins = settings.get_cors_origin_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.add_exception_handler(LtiError, _lti_error_handler)

    app.include_router(login_router)
    app.include_router(callback_router)
    app.include_router(jwks_router)
    app.include_router(platforms_router)

    return app
