"""Application settings via Pydantic Settings."""

from functools import lru_cache
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    app_name: str = "Pulse Aggregator"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 9876

    # Number window
    window_size: int = Field(
        default=10,
        validation_alias=AliasChoices("WINDOW_SIZE"),
        ge=1,
        description="Capacity of every per-category number window",
    )
    numbers_api_base_url: str = Field(
        default="http://localhost:9000/test",
        validation_alias=AliasChoices("NUMBERS_API_BASE_URL", "API_BASE_URL"),
    )
    numbers_fetch_timeout: float = Field(
        default=0.5,
        validation_alias=AliasChoices("NUMBERS_FETCH_TIMEOUT"),
        gt=0,
        description="Upper bound (seconds) for one upstream number fetch",
    )

    # Social analytics
    social_api_base_url: str = Field(
        default="http://localhost:9000/test",
        validation_alias=AliasChoices("SOCIAL_API_BASE_URL", "BASE_URL"),
    )
    social_fetch_timeout: float = Field(
        default=10.0,
        validation_alias=AliasChoices("SOCIAL_FETCH_TIMEOUT"),
        gt=0,
    )
    cache_ttl_seconds: int = Field(
        default=300,
        validation_alias=AliasChoices("CACHE_TTL", "CACHE_TTL_SECONDS"),
        ge=1,
        description="Lifetime of cached rankings",
    )
    fetch_max_concurrency: int = Field(
        default=16,
        validation_alias=AliasChoices("FETCH_MAX_CONCURRENCY"),
        ge=1,
        le=256,
        description="Max concurrent upstream requests during a ranking fan-out",
    )

    # Upstream credential (sent as Bearer token, never logged)
    auth_token: str = Field(
        default="",
        validation_alias=AliasChoices("AUTH_TOKEN"),
    )

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["https://a.com","http://localhost:3000"]'
        - Comma-separated string: "https://a.com,http://localhost:3000"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
