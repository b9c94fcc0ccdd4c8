"""
Storefront Admin Dashboard
Centralized Configuration Management

Pydantic settings with environment variable support, validation, and type
safety. Every section can be overridden through the environment or a `.env`
file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storefront_admin.enums import OrderStatus


class DatabaseSettings(BaseSettings):
    """Relational store configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="storefront", description="Database name")
    user: str = Field(default="storefront", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full async URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL, asyncpg unless DATABASE_URL says otherwise"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis Cache Configuration"""

    model_config = SettingsConfigDict(env_prefix="REDIS_", populate_by_name=True)

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[SecretStr] = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    max_connections: int = Field(default=20, description="Max connections")
    socket_timeout: int = Field(default=2, description="Socket timeout in seconds")
    decode_responses: bool = Field(default=True, description="Decode responses to strings")
    enabled: bool = Field(default=True, description="Connect to Redis on startup")
    url: Optional[str] = Field(default=None, alias="REDIS_URL", description="Redis URL (overrides host/port)")

    def get_url(self) -> str:
        """Redis connection URL - uses REDIS_URL if set, otherwise builds from host/port"""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class SecuritySettings(BaseSettings):
    """Staff authentication and session configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    secret_key: SecretStr = Field(default="change-me-in-production", alias="SECRET_KEY", description="Session signing key")
    auth_magic: SecretStr = Field(default="auth-magic-change-me", alias="AUTH_MAGIC", description="Password hashing pepper")
    session_cookie: str = Field(default="admin_session", alias="SESSION_COOKIE", description="Session cookie name")
    session_max_age: int = Field(default=14 * 24 * 3600, alias="SESSION_MAX_AGE", description="Session lifetime in seconds")
    session_https_only: bool = Field(default=False, alias="SESSION_HTTPS_ONLY", description="Send cookie over HTTPS only")

    # Login throttling
    login_max_attempts: int = Field(default=5, alias="LOGIN_MAX_ATTEMPTS", description="Login attempts per window")
    login_window_seconds: int = Field(default=60, alias="LOGIN_WINDOW_SECONDS", description="Login throttle window")


class AdminSettings(BaseSettings):
    """Back-office dashboard configuration"""

    model_config = SettingsConfigDict(env_prefix="ADMIN_")

    route: str = Field(default="admin", description="URL prefix of the admin screens")

    # Recommended plugins
    package_repo_url: str = Field(
        default="https://package-api.example.com",
        description="Plugin repository base URL",
    )
    plugin_fetch_timeout: float = Field(default=5.0, description="Plugin fetch timeout in seconds")
    plugin_ca_bundle: Optional[str] = Field(default=None, description="CA bundle path for the plugin repository")
    plugin_cache_ttl: int = Field(default=600, description="Recommended plugin cache TTL in seconds")

    # Password policy
    password_min_length: int = Field(default=8, description="Minimum staff password length")
    password_max_length: int = Field(default=32, description="Maximum staff password length")

    # Status exclusions
    order_status_excludes: List[OrderStatus] = Field(
        default=[
            OrderStatus.PENDING,
            OrderStatus.PROCESSING,
            OrderStatus.CANCEL,
            OrderStatus.DELIVERED,
        ],
        description="Statuses hidden from the order status summary",
    )
    sales_excludes: List[OrderStatus] = Field(
        default=[
            OrderStatus.PROCESSING,
            OrderStatus.CANCEL,
            OrderStatus.PENDING,
        ],
        description="Statuses not counted as sales",
    )

    @field_validator("route")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        """Store the route without surrounding slashes"""
        v = v.strip("/")
        if not v:
            raise ValueError("Admin route must not be empty")
        return v

    @property
    def prefix(self) -> str:
        return f"/{self.route}"

    @property
    def plugin_verify(self):
        """Value for requests' `verify`: a CA bundle path or the default trust store"""
        return self.plugin_ca_bundle or True


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="storefront-admin", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
