"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "saas-market"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Database (SQLite for local dev, PostgreSQL for prod)
    database_url: str = "sqlite+aiosqlite:///./saas_market.db"

    # Frontend
    frontend_url: str = "http://localhost:5173"

    # API
    api_prefix: str = "/api"
    api_base_url: str = "http://localhost:8000"

    # Comparison state (client-side durable key-value store)
    comparison_storage_path: str = "./.comparison_state.json"
    comparison_storage_key: str = "marketplace_comparison"

    # Scoring
    score_recalc_batch_size: int = 50


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
