import logging
from pathlib import Path
from typing import Optional, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =========================
# Configuration (ENV-DRIVEN via Pydantic)
# =========================

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings read from environment and validated by Pydantic.

    Only a single `.env` file at the project root is read. Real environment
    variables always take precedence over `.env` values.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
    )

    # App/UI
    app_title: str = Field(default="Business Reports", alias="APP_TITLE")
    port: int = Field(default=8050, ge=1, le=65535, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Series storage
    series_store: Literal["JSON", "SQL"] = Field(default="JSON", alias="SERIES_STORE")
    data_dir: Path = Field(default=PROJECT_ROOT / "data", alias="DATA_DIR")
    db_url: str = Field(default="", alias="DB_URL")

    # Upstream totals
    totals_source: Literal["SYNTHETIC", "REST"] = Field(default="SYNTHETIC", alias="TOTALS_SOURCE")
    api_base_url: str = Field(default="", alias="API_BASE_URL")
    default_total_units: float = Field(default=192260, ge=0, alias="DEFAULT_TOTAL_UNITS")
    default_total_sales: float = Field(default=18657478, ge=0, alias="DEFAULT_TOTAL_SALES")

    # Generation bounds
    trailing_months: int = Field(default=13, ge=1, le=60, alias="TRAILING_MONTHS")
    max_range_days: int = Field(default=800, ge=1, alias="MAX_RANGE_DAYS")

    # Auth/JWT
    disable_auth: bool = Field(default=False, alias="DISABLE_AUTH")
    jwt_secret: str = Field(default="dev-secret", alias="JWT_SECRET")
    jwt_issuer: Optional[str] = Field(default=None, alias="JWT_ISSUER")
    jwt_audience: Optional[str] = Field(default=None, alias="JWT_AUDIENCE")

    # Cache
    cache_type: Literal["SimpleCache", "RedisCache"] = Field(default="SimpleCache", alias="CACHE_TYPE")
    cache_timeout_seconds: int = Field(default=24 * 60 * 60, ge=0, alias="CACHE_TIMEOUT_SECONDS")
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")

    @field_validator("series_store", "totals_source", "log_level", mode="before")
    @classmethod
    def _upper(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


# Singleton accessor to avoid repeated disk reads/parsing
_settings_singleton: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the singleton Settings instance, initializing it on first call."""
    global _settings_singleton
    if _settings_singleton is None:
        _settings_singleton = Settings()
    return _settings_singleton


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Root logging setup, called once from the composition root."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("sellerdash").setLevel(level)


# Convenience module-level constants used by app.py when running as a script
PORT: int = get_settings().port
DEBUG: bool = get_settings().debug
