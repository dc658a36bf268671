"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env relative to the project root (3 levels up from this file)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(default="", validation_alias="SUPABASE_URL")
    supabase_key: str = Field(default="", validation_alias="SUPABASE_KEY")
    products_table: str = Field(default="products", validation_alias="PRODUCTS_TABLE")

    # Vehicle option lists
    options_cache_ttl: int = Field(default=900, validation_alias="OPTIONS_CACHE_TTL")
    options_cache_maxsize: int = Field(
        default=512, validation_alias="OPTIONS_CACHE_MAXSIZE"
    )

    # Catalog filtering
    default_filter_mode: str = Field(
        default="show_all", validation_alias="DEFAULT_FILTER_MODE"
    )
    catalog_page_limit: int = Field(default=200, validation_alias="CATALOG_PAGE_LIMIT")

    # API settings
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000"],
        validation_alias="ALLOWED_ORIGINS",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Rate limiting
    rate_limit_requests: int = Field(default=60, validation_alias="RATE_LIMIT_REQUESTS")
    rate_limit_period: int = Field(default=60, validation_alias="RATE_LIMIT_PERIOD")

    @property
    def cors_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or return list."""
        if isinstance(self.allowed_origins, str):
            return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return self.allowed_origins

    @property
    def rate_limit(self) -> str:
        """slowapi limit string, e.g. '60/60 seconds'."""
        return f"{self.rate_limit_requests}/{self.rate_limit_period} seconds"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def validate_settings() -> None:
    """Validate that the settings needed to reach the catalog are present."""
    settings = get_settings()
    errors = []

    if not settings.supabase_url:
        errors.append("SUPABASE_URL is required")
    if not settings.supabase_key:
        errors.append("SUPABASE_KEY is required")
    if settings.default_filter_mode not in ("strict", "show_all"):
        errors.append("DEFAULT_FILTER_MODE must be 'strict' or 'show_all'")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
