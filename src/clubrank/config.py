"""
Configuration management for Club Ranking.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. Every variable is prefixed with
``CLUBRANK_`` and may also be set in a .env file.

Usage:
    from clubrank.config import settings
    print(settings.database_url)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clubrank.elo.constants import DEFAULT_ELO, DEFAULT_K_FACTOR, ELO_SCALE


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLUBRANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///./clubrank.db",
        description="SQLAlchemy connection URL (SQLite for dev, PostgreSQL in production)",
    )

    # Pool settings are ignored for SQLite URLs
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size",
    )

    # ==========================================================================
    # Rating Configuration
    # ==========================================================================

    elo_default_rating: int = Field(
        default=DEFAULT_ELO,
        description="Rating given to newly created players",
    )
    elo_k_factor: float = Field(
        default=DEFAULT_K_FACTOR,
        gt=0,
        description="Maximum rating points exchanged in a single match",
    )
    elo_scale: float = Field(
        default=ELO_SCALE,
        gt=0,
        description="Rating difference that maps to 10:1 win odds",
    )
    guard_rating_reapply: bool = Field(
        default=True,
        description=(
            "Reject a rating-affecting finalize of a match whose rating effect "
            "has already been applied"
        ),
    )

    # ==========================================================================
    # News Feed Configuration
    # ==========================================================================

    news_limit: int = Field(
        default=5,
        ge=1,
        description="Number of finished matches shown in the news feed",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )
    api_port: int = Field(
        default=8000,
        description="Port for the API server",
    )
    api_reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="console",
        description="Log format: 'console' (timestamped, verbose) or 'plain' (concise)",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"console", "plain"}:
            raise ValueError("log_format must be 'console' or 'plain'")
        return lower_v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
