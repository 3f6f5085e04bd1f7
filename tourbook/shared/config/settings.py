# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_INSECURE_SECRETS = ("dev", "development", "test", "secret", "")

_SECTION_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    env_parse_none_str="none",
    validate_by_name=True,
)


def _parse_flag(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class ServerConfig(BaseSettings):
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, ge=1, le=65535, alias="PORT")

    model_config = _SECTION_CONFIG


class DatabaseConfig(BaseSettings):
    url: str = Field("mongodb://localhost:27017", alias="MONGODB_URL")
    name: str = Field("tourbook", alias="MONGODB_DATABASE")
    timeout_ms: int = Field(5000, ge=100, alias="MONGODB_TIMEOUT_MS")

    model_config = _SECTION_CONFIG


class AuthConfig(BaseSettings):
    jwt_secret: str = Field("dev", alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    jwt_expires_in_days: int = Field(90, ge=1, alias="JWT_EXPIRES_IN_DAYS")
    jwt_cookie_expires_in_days: int = Field(90, ge=1, alias="JWT_COOKIE_EXPIRES_IN")
    password_reset_ttl_minutes: int = Field(10, ge=1, alias="PASSWORD_RESET_TTL_MINUTES")

    model_config = _SECTION_CONFIG


class EmailConfig(BaseSettings):
    sender: str = Field("Tourbook <hello@tourbook.io>", alias="EMAIL_FROM")
    smtp_host: str | None = Field(None, alias="SMTP_HOST")
    smtp_port: int = Field(587, alias="SMTP_PORT")
    smtp_username: str | None = Field(None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(True, alias="SMTP_USE_TLS")
    smtp_timeout: float = Field(10.0, ge=0.1, alias="SMTP_TIMEOUT")

    model_config = _SECTION_CONFIG

    @field_validator("smtp_use_tls", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        return _parse_flag(value)


class PaymentsConfig(BaseSettings):
    stripe_secret_key: str | None = Field(None, alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: str | None = Field(None, alias="STRIPE_WEBHOOK_SECRET")
    stripe_api_base: str = Field("https://api.stripe.com", alias="STRIPE_API_BASE")
    currency: str = Field("usd", alias="PAYMENT_CURRENCY")
    timeout: float = Field(15.0, ge=0.1, alias="STRIPE_TIMEOUT")
    webhook_tolerance_seconds: int = Field(300, ge=1, alias="STRIPE_WEBHOOK_TOLERANCE")

    # Retries apply to transport failures only, never to Stripe rejections
    max_retries: int = Field(2, ge=0, alias="STRIPE_RETRIES")
    backoff_base: float = Field(0.5, ge=0.0, alias="STRIPE_BACKOFF_BASE")
    backoff_cap: float = Field(4.0, ge=0.0, alias="STRIPE_BACKOFF_CAP")

    model_config = _SECTION_CONFIG


class QueryConfig(BaseSettings):
    # QUERY_MAX_LIMIT=none disables the ceiling on `limit`
    max_limit: int | None = Field(1000, ge=1, alias="QUERY_MAX_LIMIT")

    model_config = _SECTION_CONFIG


class SecurityConfig(BaseSettings):
    # Cookie security
    cookie_secure: bool = Field(False, alias="COOKIE_SECURE")
    cookie_samesite: str = Field("Lax", alias="COOKIE_SAMESITE")

    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(100, ge=1, alias="RL_LIMIT")
    rate_limit_window: float = Field(3600.0, ge=0.1, alias="RL_WINDOW")

    # Reverse proxies in front of the app whose X-Forwarded-* headers are trusted
    trusted_proxy_hops: int = Field(0, ge=0, alias="TRUSTED_PROXY_HOPS")

    # Body size
    max_body_bytes: int = Field(10 * 1024, ge=1, alias="MAX_BODY_BYTES")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    model_config = _SECTION_CONFIG

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("cookie_secure", "enable_rate_limit", "enable_hsts", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        return _parse_flag(value)


def _server_config_factory() -> ServerConfig:
    return ServerConfig()  # type: ignore[call-arg]


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _auth_config_factory() -> AuthConfig:
    return AuthConfig()  # type: ignore[call-arg]


def _email_config_factory() -> EmailConfig:
    return EmailConfig()  # type: ignore[call-arg]


def _payments_config_factory() -> PaymentsConfig:
    return PaymentsConfig()  # type: ignore[call-arg]


def _query_config_factory() -> QueryConfig:
    return QueryConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_to_file: bool = Field(True, alias="LOG_TO_FILE")
    log_file: str = Field("instance/tourbook.log", alias="LOG_FILE")

    server: ServerConfig = Field(default_factory=_server_config_factory)
    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    auth: AuthConfig = Field(default_factory=_auth_config_factory)
    email: EmailConfig = Field(default_factory=_email_config_factory)
    payments: PaymentsConfig = Field(default_factory=_payments_config_factory)
    query: QueryConfig = Field(default_factory=_query_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        validate_by_name=True,
    )

    @field_validator("debug_logging", "log_to_file", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_flag(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.auth.jwt_secret in _INSECURE_SECRETS or len(self.auth.jwt_secret) < 32:
            print(
                "\n❌ CRITICAL SECURITY ERROR: Insecure JWT_SECRET detected in production!\n"
                "   JWT_SECRET must be a random value of at least 32 characters.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")
        if self.query.max_limit is None:
            warnings.append("⚠️  QUERY_MAX_LIMIT is unset, page size is unbounded")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print(
                "   Consider enabling these security features in production.\n",
                file=sys.stderr,
            )

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")

    def secure_cookies(self) -> bool:
        return self.security.cookie_secure or self.is_production()

    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_logging else self.log_level.upper()


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "EmailConfig",
    "PaymentsConfig",
    "QueryConfig",
    "SecurityConfig",
    "ServerConfig",
    "load_config",
]
