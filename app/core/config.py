from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str = "changeme"  # override in .env
    access_token_expire_minutes: int = 60
    password_hash_scheme: str = "bcrypt"

    # Database
    database_url: str

    # Redis
    redis_url: str | None = None
    draft_cache_ttl_seconds: int = 86400

    # Prescription form
    lookup_debounce_ms: int = 500
    history_default_limit: int = 100
    dashboard_recent_limit: int = 5

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
