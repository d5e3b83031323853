"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field

DEFAULT_JWT_SECRET = "dev-secret-key"


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RateLimiterConfig(BaseModel):
    """Rate limiter configuration model."""

    requests: int = Field(
        default=5, description="Number of requests allowed per window"
    )
    window_ms: int = Field(default=60000, description="Time window in milliseconds")
    enabled: bool = Field(default=True, description="Enable rate limiting")
    per_endpoint: bool = Field(
        default=True, description="Apply rate limiting per endpoint"
    )
    per_method: bool = Field(
        default=True, description="Apply rate limiting per HTTP method"
    )


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=True, description="Enable Redis service")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    socket_timeout: float = Field(default=2.0, description="Socket timeout in seconds")

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.url)


class JWTConfig(BaseModel):
    """Settings for the HS256 access tokens issued at login."""

    secret: str = Field(
        default=DEFAULT_JWT_SECRET, description="Shared secret used to sign tokens"
    )
    algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256", description="Signing algorithm"
    )
    issuer: str = Field(default="storefront-api", description="Issuer claim")
    expires_in_seconds: int = Field(
        default=2 * 24 * 3600, description="Access token lifetime (two days)"
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")


class SecurityConfig(BaseModel):
    """Password hashing settings."""

    bcrypt_rounds: int = Field(
        default=12, ge=4, le=31, description="bcrypt cost factor"
    )


class OrdersConfig(BaseModel):
    """Order workflow switches."""

    debit_stock: bool = Field(
        default=True,
        description="Debit product stock when an order is placed and credit it back on cancel",
    )
    enforce_transitions: bool = Field(
        default=True,
        description="Only allow forward status transitions (PENDING->PAID->CANCELLED)",
    )
    default_page_size: int = Field(default=10, description="Default page size")
    max_page_size: int = Field(default=100, description="Largest accepted page size")


class OTPConfig(BaseModel):
    """One-time password settings."""

    ttl_seconds: int = Field(default=300, description="How long an OTP stays valid")
    key_prefix: str = Field(default="otp:", description="Storage key prefix")


class EmailConfig(BaseModel):
    """Outbound email provider settings."""

    enabled: bool = Field(default=False, description="Deliver emails through the provider")
    api_url: str = Field(default="", description="Provider send endpoint")
    api_key: str | None = Field(default=None, description="Provider API key")
    sender: str = Field(default="no-reply@example.com", description="From address")
    sender_name: str = Field(default="Storefront", description="From display name")
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout")


class ExchangeConfig(BaseModel):
    """Currency conversion provider settings."""

    base_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest",
        description="Rates endpoint; the source currency is appended as a path segment",
    )
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout")


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./storefront.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="0.0.0.0", description="Application host")
    port: int = Field(default=5000, description="Application port")
    expose_internal_errors: bool | None = Field(
        default=None,
        description="Include the underlying message in 500 responses (defaults to on outside production)",
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def show_error_details(self) -> bool:
        if self.expose_internal_errors is None:
            return self.environment != "production"
        return self.expose_internal_errors


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="Access token configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
    orders: OrdersConfig = Field(
        default_factory=OrdersConfig, description="Order workflow configuration"
    )
    otp: OTPConfig = Field(default_factory=OTPConfig, description="OTP configuration")
    email: EmailConfig = Field(
        default_factory=EmailConfig, description="Email configuration"
    )
    exchange: ExchangeConfig = Field(
        default_factory=ExchangeConfig, description="Exchange rate configuration"
    )
    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Rate limiter configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    def validate_runtime(self) -> None:
        """Fail fast on settings that are unsafe for the current environment."""
        if self.app.environment != "production":
            return
        if self.jwt.secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT secret must be configured in production")
        if "*" in self.app.cors.origins and self.app.cors.allow_credentials:
            raise ValueError(
                "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
            )
