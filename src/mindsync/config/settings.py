"""
MindSync Application Settings

Production-grade configuration management using Pydantic Settings.
All sensitive values are loaded from environment variables.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration (PostgreSQL in production)."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_DB_")

    url: Optional[str] = Field(
        default=None,
        description="Full async SQLAlchemy URL; overrides host/port/name when set",
    )
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="mindsync_db", description="Database name")
    user: str = Field(default="mindsync_user", description="Database user")
    password: SecretStr = Field(default=SecretStr("dev_password"), description="Database password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=20, ge=0, le=100, description="Max overflow connections")
    auto_create_schema: bool = Field(
        default=False,
        description="Create tables at startup (tests and local development)",
    )

    @property
    def async_url(self) -> str:
        """Generate async database URL for SQLAlchemy."""
        if self.url:
            return self.url
        password = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def is_sqlite(self) -> bool:
        return self.async_url.startswith("sqlite")


class JWTSettings(BaseSettings):
    """JWT authentication configuration."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_JWT_")

    secret_key: SecretStr = Field(default=SecretStr("dev_jwt_secret_key_not_for_production"), description="Access token signing secret")
    refresh_secret_key: SecretStr = Field(default=SecretStr("dev_jwt_refresh_secret_not_for_production"), description="Refresh token signing secret")
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=15, ge=1, le=1440)
    refresh_token_expire_days: int = Field(default=7, ge=1, le=30)


class OpenAISettings(BaseSettings):
    """OpenAI API configuration."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_OPENAI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="OpenAI API key")
    model: str = Field(default="gpt-3.5-turbo", description="Model identifier")
    max_tokens: int = Field(default=500, ge=50, le=4096)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class GeminiSettings(BaseSettings):
    """Google Gemini API configuration."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_GEMINI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="Gemini API key")
    model: str = Field(default="gemini-1.5-flash", description="Model identifier")
    max_tokens: int = Field(default=500, ge=50, le=8192)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class ChatSettings(BaseSettings):
    """Chat dispatch configuration."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_CHAT_")

    max_message_length: int = Field(default=2000, ge=1, le=10000)
    history_window: int = Field(default=12, ge=0, le=100, description="Most recent turns sent as model context")
    max_prior_messages: int = Field(default=50, ge=0, le=500)
    completion_timeout_seconds: float = Field(default=20.0, gt=0, le=120)
    crisis_min_severity: Literal["low", "medium", "high"] = Field(
        default="low",
        description="Lowest crisis tier that diverts a message to the resource path",
    )
    default_language: Literal["es", "en", "pt"] = Field(default="es")
    resources_path: Optional[str] = Field(default=None, description="Optional JSON override for crisis resources")
    conversation_max_idle_minutes: int = Field(default=120, ge=1)
    conversation_sweep_interval_seconds: int = Field(default=600, ge=1)


class SecuritySettings(BaseSettings):
    """Account security configuration."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_SECURITY_")

    max_login_attempts: int = Field(default=5, ge=1, le=50)
    lock_duration_minutes: int = Field(default=120, ge=1)
    password_min_length: int = Field(default=6, ge=4, le=128)


class SentrySettings(BaseSettings):
    """Sentry error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="MINDSYNC_SENTRY_")

    dsn: SecretStr = Field(default=SecretStr(""), description="Sentry DSN (empty disables tracking)")
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with MINDSYNC_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        db_url = settings.database.async_url
    """

    model_config = SettingsConfigDict(
        env_prefix="MINDSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )

    # LLM Provider selection
    llm_primary_provider: Literal["openai", "gemini"] = Field(
        default="openai",
        description="Completion provider (openai, gemini)"
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    def exposes_error_detail(self) -> bool:
        """Whether unexpected error messages may be returned to clients."""
        return self.debug or self.env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, pass a Settings instance to create_application instead.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
