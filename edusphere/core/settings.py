"""Application settings loaded from environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

STATE_TTL_DEFAULT = 300
STATE_MAX_ENTRIES_DEFAULT = 10_000
JWKS_TIMEOUT_DEFAULT = 5.0
JWKS_CACHE_TTL_DEFAULT = 3600
JWKS_REFRESH_INTERVAL_DEFAULT = 30.0
DB_POOL_SIZE_DEFAULT = 5
DB_MAX_OVERFLOW_DEFAULT = 10
DB_PORT_DEFAULT = 5432


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="LTI_DB_")

    url: str = ""
    host: str = "localhost"
    port: int = DB_PORT_DEFAULT
    user: str = "edusphere"
    password: str = "edusphere"
    database: str = "edusphere"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT

    @property
    def async_url(self) -> str:
        """Build async connection URL, honouring an explicit override."""
        if self.url:
            return self.url
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class LtiSettings(BaseSettings):
    """LTI 1.3 tool and registered platform settings."""

    model_config = SettingsConfigDict(env_prefix="LTI_")

    platform_issuer: str = ""
    platform_client_id: str = ""
    platform_auth_endpoint: str = ""
    platform_jwks_uri: str = ""
    deployment_id: str = ""

    tool_base_url: str = "http://localhost:4000"
    tool_private_key: str = ""
    tool_key_id: str = "edusphere-lti-key-1"
    app_base_url: str = ""

    state_ttl: int = STATE_TTL_DEFAULT
    state_max_entries: int = STATE_MAX_ENTRIES_DEFAULT
    state_backend: Literal["memory", "database"] = "memory"

    jwks_timeout: float = JWKS_TIMEOUT_DEFAULT
    jwks_cache_ttl: int = JWKS_CACHE_TTL_DEFAULT
    jwks_refresh_interval: float = JWKS_REFRESH_INTERVAL_DEFAULT

    admin_token: str = ""
    cors_origins: str = ""
    log_level: str = "INFO"

    @property
    def redirect_uri(self) -> str:
        """Fixed launch callback URL registered with the platform."""
        return f"{self.tool_base_url.rstrip('/')}/lti/callback"

    @property
    def tool_private_key_pem(self) -> str:
        """Private key PEM with escaped newlines expanded."""
        return self.tool_private_key.replace("\\n", "\n").strip()

    def has_env_platform(self) -> bool:
        """True when every platform field is configured."""
        return all(
            (
                self.platform_issuer,
                self.platform_client_id,
                self.platform_auth_endpoint,
                self.platform_jwks_uri,
            )
        )

    def get_cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if not self.cors_origins:
            return []
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
