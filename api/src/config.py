"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Database connection (SQLAlchemy async URL)
- Bearer token validation (issuer, audience, signing keys)
- API settings (prefix, documentation, CORS)
- Security settings
- Logging and metrics

All settings support environment variable overrides and .env file loading.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    prefix "TASK_API_" (e.g., TASK_API_DATABASE_URL).

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="Task Management API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )
    api_prefix: str = Field(
        default="/api",
        description="API URL prefix"
    )

    debug: bool = Field(
        default=False,
        description="Debug mode - enables verbose logging and error traces"
    )
    environment: str = Field(
        default="production",
        description="Environment: development|staging|production"
    )
    docs_enabled: bool = Field(
        default=False,
        description="Serve OpenAPI documentation outside the development environment"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=8000,
        description="API bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # Database Settings
    # =========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./tasks.db",
        description="SQLAlchemy async connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL queries to logs (useful for debugging)"
    )
    database_pool_pre_ping: bool = Field(
        default=True,
        description="Test connections before using (prevents stale connections)"
    )
    database_create_schema: bool = Field(
        default=True,
        description="Create missing tables at startup"
    )

    # =========================================================================
    # Bearer Token Settings
    # =========================================================================

    auth_issuer: str = Field(
        default="https://login.example.com/task-management/v2.0",
        description="Expected iss claim of bearer tokens"
    )
    auth_audience: str = Field(
        default="api://task-management",
        description="Expected aud claim of bearer tokens"
    )
    auth_algorithms: List[str] = Field(
        default=["HS256"],
        description="Accepted JWT signing algorithms"
    )
    auth_secret_key: Optional[str] = Field(
        default=None,
        description="Shared secret for HS* tokens",
        min_length=32
    )
    auth_public_key: Optional[str] = Field(
        default=None,
        description="PEM encoded public key for RS* tokens"
    )
    auth_jwks_url: Optional[str] = Field(
        default=None,
        description="JWKS document of the identity issuer, fetched at startup"
    )
    auth_leeway_seconds: int = Field(
        default=0,
        description="Clock skew tolerated on exp/nbf/iat",
        ge=0,
        le=300
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware"
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials (cookies, authorization headers) in CORS"
    )
    cors_allow_methods: List[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods"
    )
    cors_allow_headers: List[str] = Field(
        default=["*"],
        description="Allowed HTTP headers"
    )

    # =========================================================================
    # Security Settings
    # =========================================================================

    security_require_https: bool = Field(
        default=False,
        description="Redirect plain HTTP requests to HTTPS"
    )
    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )
    security_hsts_max_age: int = Field(
        default=31536000,  # 1 year
        description="HSTS max age (seconds)"
    )

    # =========================================================================
    # Monitoring
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    metrics_endpoint: str = Field(
        default="/metrics",
        description="Metrics endpoint path"
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: List[str]) -> List[str]:
        """Validate CORS origins are not empty."""
        if not v:
            return ["*"]
        return v

    @field_validator("auth_algorithms")
    @classmethod
    def validate_auth_algorithms(cls, v: List[str]) -> List[str]:
        """Validate JWT algorithms are supported."""
        allowed = ["HS256", "HS384", "HS512", "RS256", "RS384", "RS512"]
        if not v:
            raise ValueError("auth_algorithms must not be empty")
        for algorithm in v:
            if algorithm not in allowed:
                raise ValueError(f"auth_algorithms entries must be one of {allowed}, got: {algorithm}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def serve_docs(self) -> bool:
        """OpenAPI documentation is served in development or when forced on."""
        return self.is_development or self.docs_enabled

    @property
    def is_sqlite(self) -> bool:
        """Check if the database URL points at SQLite."""
        return self.database_url.startswith("sqlite")

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="TASK_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and shared
    across the application. Settings are loaded from:
    1. Environment variables with TASK_API_ prefix
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
