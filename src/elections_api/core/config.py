"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
Per-run sync knobs (lookahead window, funds floor, party filter) live in the
``automation_config`` table instead, because operators edit them at runtime.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_OFFICES = {"S", "H"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # JWT (admin endpoints)
    jwt_secret_key: str = Field(min_length=32, description="Secret key for signing JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=30,
        description="Access token expiration in minutes",
        gt=0,
    )

    # OpenFEC
    fec_api_key: str | None = Field(
        default=None,
        description="OpenFEC API key (1000 requests/hour per key)",
    )
    fec_base_url: str = Field(
        default="https://api.open.fec.gov/v1",
        description="OpenFEC API base URL",
    )
    fec_cycle: int = Field(
        default=2026,
        description="FEC two-year cycle for the connection probe; sync runs use the active election cycle's year",
        ge=1976,
    )
    fec_per_page: int = Field(
        default=100,
        description="Page size for paginated OpenFEC candidate search",
        gt=0,
        le=100,
    )
    fec_timeout: float = Field(
        default=30.0,
        description="OpenFEC request timeout in seconds",
        gt=0,
    )
    fec_offices: str = Field(
        default="S",
        description="Comma-separated FEC office codes to sync (S = Senate, H = House)",
    )

    @field_validator("fec_base_url")
    @classmethod
    def validate_fec_base_url(cls, v: str) -> str:
        if not v.startswith("https://"):
            msg = "fec_base_url must use HTTPS"
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("fec_offices")
    @classmethod
    def validate_fec_offices(cls, v: str) -> str:
        codes = [c.strip().upper() for c in v.split(",") if c.strip()]
        if not codes or any(c not in _VALID_OFFICES for c in codes):
            msg = "fec_offices must be a comma-separated list of S and/or H"
            raise ValueError(msg)
        return ",".join(codes)

    @property
    def fec_office_list(self) -> list[str]:
        """Parse configured office codes into a de-duplicated, ordered list."""
        seen: list[str] = []
        for code in self.fec_offices.split(","):
            if code not in seen:
                seen.append(code)
        return seen

    # FEC sync trigger & run control
    fec_sync_webhook_secret: str | None = Field(
        default=None,
        description="Shared secret for the cron webhook (falls back to automation_config.webhook_secret)",
    )
    fec_sync_max_run_minutes: int = Field(
        default=30,
        description="Overall deadline for one sync run; overrunning runs are recorded as errors",
        gt=0,
    )
    fec_sync_stale_run_minutes: int = Field(
        default=60,
        description="A 'running' sync older than this is considered dead and no longer blocks new runs",
        gt=0,
    )
    fec_sync_loop_enabled: bool = Field(
        default=False,
        description="Run the FEC sync on an in-process schedule instead of relying on an external cron",
    )
    fec_sync_loop_interval: int = Field(
        default=86400,
        description="Seconds between scheduled FEC sync runs",
        ge=300,
    )
    rebuild_hook_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for the static-site rebuild hook POST",
        gt=0,
    )

    # Legislator directory (congress-legislators)
    legislators_url: str = Field(
        default="https://unitedstates.github.io/congress-legislators/legislators-current.json",
        description="congress-legislators current members JSON",
    )
    legislators_social_url: str = Field(
        default="https://unitedstates.github.io/congress-legislators/legislators-social-media.json",
        description="congress-legislators social media JSON",
    )
    legislators_photo_base_url: str = Field(
        default="https://unitedstates.github.io/images/congress/450x550",
        description="Base URL for member portraits ({base}/{bioguide_id}.jpg)",
    )
    legislators_refresh_hours: int = Field(
        default=24,
        description="Hours before the cached legislator directory is reloaded",
        gt=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
