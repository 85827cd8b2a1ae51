"""
Configuration Management for Shephard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (PostgREST) record store configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore"
    )
    
    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    key: str = Field(
        ...,
        description="Supabase anon or service key"
    )
    schema_name: str = Field(
        default="public",
        description="Postgres schema exposed through PostgREST"
    )
    
    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Strip trailing slashes so REST paths join cleanly."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("Supabase URL must start with http:// or https://")
        return v


class StoreSettings(BaseSettings):
    """Retry behaviour of the record store adapter."""
    
    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        extra="ignore"
    )
    
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for idempotent reads and RPC calls"
    )
    retry_max_wait: float = Field(
        default=10.0,
        ge=0.0,
        description="Upper bound in seconds for exponential backoff"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    
    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False gives console output)"
    )
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.
    
    Aggregates all sub-settings for easy access.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Note: These are loaded lazily to allow partial configuration
    
    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()
    
    @property
    def store(self) -> StoreSettings:
        return StoreSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}
    
    settings = get_settings()
    
    for name in ("supabase", "store", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
