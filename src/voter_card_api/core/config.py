"""Service configuration loaded from the environment (and an optional ``.env``).

List-valued settings are stored as comma-separated strings so they can be set
from a single environment variable; the ``*_list`` properties parse them.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SCHEMA_NAME = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def _split_csv(value: str, *, upper: bool = False) -> list[str]:
    items = [item.strip() for item in value.split(",") if item.strip()]
    return [item.upper() for item in items] if upper else items


class Settings(BaseSettings):
    """Runtime settings for the voter card API, CLI and sweep loop."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_url: str = Field(description="Async SQLAlchemy URL, e.g. postgresql+asyncpg://...")
    database_schema: str | None = Field(
        default=None,
        description="Schema placed first on the search path (per-PR preview databases)",
    )

    # Bearer tokens come from the external auth provider and are only verified here
    jwt_secret_key: str = Field(min_length=32, description="Shared secret used to verify bearer tokens")
    jwt_algorithm: str = Field(default="HS256", description="Expected bearer token algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=30,
        gt=0,
        description="Lifetime of tokens minted by create_access_token",
    )

    # Election events
    supported_states: str = Field(
        default="NY,NJ,PA,CT,TX",
        description="States with ballot coverage; events elsewhere are rejected",
    )
    event_sweep_enabled: bool = Field(
        default=True,
        description="Run the in-process loop that records notifications for passed events",
    )
    event_sweep_interval: int = Field(default=3600, ge=60, description="Seconds between sweeps")

    # Voter cards
    share_base_url: str = Field(
        default="https://wethepotato.vercel.app",
        description="Front-end origin that serves /card/{id} share pages",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Minimum Loguru level")
    log_dir: str | None = Field(default=None, description="Write a daily-rotated log file here when set")
    log_json: bool = Field(default=False, description="Emit stderr logs as JSON lines")

    # HTTP surface
    environment: str = Field(default="production", description="Deployment name reported by /health")
    api_v1_prefix: str = Field(default="/api/v1", description="Mount point of the versioned API")
    cors_origins: str = Field(default="", description="Front-end origins allowed to call the API")
    cors_origin_regex: str = Field(default="", description="Regex for additional allowed origins")
    rate_limit_per_minute: int = Field(default=200, gt=0, description="Requests per minute per client IP")
    trusted_proxy_headers: str = Field(
        default="CF-Connecting-IP,X-Forwarded-For,X-Real-IP",
        description="Headers carrying the real client IP, highest priority first",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is not None and not _SCHEMA_NAME.match(v):
            msg = f"Invalid database_schema: must match {_SCHEMA_NAME.pattern}"
            raise ValueError(msg)
        return v

    @field_validator("share_base_url")
    @classmethod
    def validate_share_base_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            msg = "share_base_url must be an http(s) URL"
            raise ValueError(msg)
        return v.rstrip("/")

    @property
    def supported_state_list(self) -> list[str]:
        """Upper-cased state codes with ballot coverage."""
        return _split_csv(self.supported_states, upper=True)

    @property
    def cors_origin_list(self) -> list[str]:
        return _split_csv(self.cors_origins)

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        return _split_csv(self.trusted_proxy_headers)


def get_settings() -> Settings:
    """Load settings from the current environment."""
    return Settings()  # type: ignore[call-arg]
