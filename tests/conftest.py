"""Shared test fixtures for the EduSphere LTI tool."""

import time
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta

import httpx
import jwt
import pytest
import uuid_utils
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from edusphere.core.app import create_app
from edusphere.crypto.jwks_client import JWKSClient
from edusphere.crypto.keys import public_key_to_jwk_entry
from edusphere.db.base import BaseEntity
from edusphere.db.engine import get_session_factory
from edusphere.lti.types import LTI_CLAIM

ISSUER = "https://lms.example.edu"
CLIENT_ID = "edusphere-tool"
AUTH_ENDPOINT = "https://lms.example.edu/mod/lti/auth.php"
JWKS_URI = "https://lms.example.edu/mod/lti/certs.php"
TOOL_BASE_URL = "https://tool.example.com"
DEPLOYMENT_ID = "deploy-1"
SUBJECT = "lms-user-42"

ClaimsFactory = Callable[..., dict]
TokenMinter = Callable[..., str]


class SigningKeyData(BaseModel):
    """An RSA keypair for signing test tokens."""

    kid: str
    private_key_pem: str
    public_key_pem: str


def generate_rsa_keypair() -> SigningKeyData:
    """Generate a new RSA-2048 keypair with a uuid7 kid."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return SigningKeyData(
        kid=str(uuid_utils.uuid7()),
        private_key_pem=private_pem,
        public_key_pem=public_pem,
    )


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("LTI_PLATFORM_ISSUER", ISSUER)
    monkeypatch.setenv("LTI_PLATFORM_CLIENT_ID", CLIENT_ID)
    monkeypatch.setenv("LTI_PLATFORM_AUTH_ENDPOINT", AUTH_ENDPOINT)
    monkeypatch.setenv("LTI_PLATFORM_JWKS_URI", JWKS_URI)
    monkeypatch.setenv("LTI_DEPLOYMENT_ID", DEPLOYMENT_ID)
    monkeypatch.setenv("LTI_TOOL_BASE_URL", TOOL_BASE_URL)
    monkeypatch.delenv("LTI_TOOL_PRIVATE_KEY", raising=False)
    monkeypatch.delenv("LTI_STATE_BACKEND", raising=False)
    monkeypatch.delenv("LTI_APP_BASE_URL", raising=False)
    monkeypatch.delenv("LTI_ADMIN_TOKEN", raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """In-memory SQLite shared by every session of the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://", echo=False, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_keypair() -> Callable[[], SigningKeyData]:
    """Factory for extra keypairs (rotated or attacker keys)."""
    return generate_rsa_keypair


@pytest.fixture(scope="session")
def platform_key() -> SigningKeyData:
    """The LMS platform's signing key."""
    return generate_rsa_keypair()


def jwks_document(*keys: SigningKeyData) -> dict:
    """Public JWKS for the given keypairs."""
    entries = []
    for kp in keys:
        public = serialization.load_pem_public_key(kp.public_key_pem.encode())
        entries.append(public_key_to_jwk_entry(public, kp.kid).model_dump())
    return {"keys": entries}


@pytest.fixture
def make_jwks() -> Callable[..., dict]:
    return jwks_document


@pytest.fixture
def jwks_requests() -> list[httpx.Request]:
    """Every request seen by the fake platform JWKS endpoint."""
    return []


@pytest.fixture
def jwks_transport(
    platform_key: SigningKeyData, jwks_requests: list[httpx.Request]
) -> httpx.MockTransport:
    """Serves the platform JWKS at JWKS_URI and 404 elsewhere."""

    def handler(request: httpx.Request) -> httpx.Response:
        jwks_requests.append(request)
        if str(request.url) == JWKS_URI:
            return httpx.Response(200, json=jwks_document(platform_key))
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def jwks_client(jwks_transport: httpx.MockTransport) -> JWKSClient:
    return JWKSClient(transport=jwks_transport)


@pytest.fixture
def make_claims() -> ClaimsFactory:
    """Build a valid LTI resource link payload; ``extra`` overrides keys."""

    def factory(nonce: str, extra: dict | None = None, drop: tuple = ()) -> dict:
        now = int(time.time())
        claims = {
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "sub": SUBJECT,
            "iat": now,
            "exp": now + 300,
            "nonce": nonce,
            "name": "Ada Learner",
            LTI_CLAIM + "version": "1.3.0",
            LTI_CLAIM + "message_type": "LtiResourceLinkRequest",
            LTI_CLAIM + "deployment_id": DEPLOYMENT_ID,
            LTI_CLAIM + "target_link_uri": f"{TOOL_BASE_URL}/lti/launch",
            LTI_CLAIM + "resource_link": {"id": "rl-1", "title": "Week 1"},
            LTI_CLAIM + "roles": [
                "http://purl.imsglobal.org/vocab/lis/v2/membership#Learner"
            ],
            LTI_CLAIM + "context": {"id": "course-7", "label": "BIO101"},
        }
        claims.update(extra or {})
        for key in drop:
            claims.pop(key, None)
        return claims

    return factory


@pytest.fixture
def mint_token(platform_key: SigningKeyData) -> TokenMinter:
    """Sign claims as the platform (or with another key)."""

    def mint(
        claims: dict, key: SigningKeyData | None = None, kid: str | None = None
    ) -> str:
        signer = key or platform_key
        return jwt.encode(
            claims,
            signer.private_key_pem,
            algorithm="RS256",
            headers={"kid": kid or signer.kid},
        )

    return mint


@pytest.fixture
def app(
    session_factory: async_sessionmaker[AsyncSession],
    jwks_client: JWKSClient,
) -> FastAPI:
    """The tool app on SQLite with the fake platform JWKS."""
    application = create_app()
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    application.state.jwks_client = jwks_client
    return application


@pytest.fixture
async def app_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """httpx client over the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=TOOL_BASE_URL) as ac:
        yield ac
