"""
Configuration Management for the Quantor client

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The timings that shape user-visible behaviour (freshness window,
redirect delay, read retries) live next to the API location so they
can be read in one place and overridden in tests by constructing the
settings objects directly.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Location of the finance API and its full-page redirect targets."""

    model_config = SettingsConfigDict(
        env_prefix="QUANTOR_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:5000",
        description="Scheme and host of the finance API"
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Per-request timeout"
    )
    login_path: str = Field(
        default="/api/login",
        description="Login entry point (full-page redirect, not JSON)"
    )
    logout_path: str = Field(
        default="/api/logout",
        description="Logout entry point (full-page redirect, not JSON)"
    )
    redirect_delay_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Delay between the 'signed out' notice and the login redirect"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Resource keys start with '/', so the base must not end with one."""
        return v.rstrip("/")

    def url_for(self, resource_key: str) -> str:
        """Absolute URL for a resource key."""
        return f"{self.base_url}{resource_key}"


class CacheSettings(BaseSettings):
    """Read cache and read retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="QUANTOR_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    freshness_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="How long a fetched resource is served without a network call"
    )
    read_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Total attempts for a read (first try + automatic retries)"
    )
    read_retry_wait_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Pause before retrying a failed read"
    )


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the insights agent."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1500,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    currency_symbol: str = Field(
        default="R$",
        description="Currency symbol used in prompts and fallback texts"
    )
    recent_transactions_in_context: int = Field(
        default=5,
        ge=0,
        le=50,
        description="How many recent transactions the insights prompt includes"
    )


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

    # Loaded lazily so a missing Gemini key does not break the client

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def cache(self) -> CacheSettings:
        return CacheSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for every section that failed.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("api", "cache", "gemini", "app"):
        error: Optional[str] = None
        try:
            getattr(settings, name)
        except Exception as e:
            error = str(e)
        results[name] = error is None
        if error is not None:
            results[f"{name}_error"] = error

    return results
