"""Configuration management for Jules MCP."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class JulesSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_key: SecretStr | None = Field(default=None, validation_alias="JULES_API_KEY")
    api_base_url: str = Field(
        default="https://jules.googleapis.com", validation_alias="JULES_API_BASE_URL"
    )
    api_version: str = Field(default="v1alpha", validation_alias="JULES_API_VERSION")
    log_level: str = Field(default="INFO", validation_alias="JULES_LOG_LEVEL")
    request_timeout: float = Field(default=60.0, validation_alias="JULES_REQUEST_TIMEOUT")
    create_max_attempts: int = Field(default=3, validation_alias="JULES_CREATE_MAX_ATTEMPTS")
    create_backoff_seconds: float = Field(
        default=1.0, validation_alias="JULES_CREATE_BACKOFF_SECONDS"
    )
    stream_poll_interval: float = Field(
        default=2.0, validation_alias="JULES_STREAM_POLL_INTERVAL"
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "JULES_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("request_timeout", "stream_poll_interval")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeouts and poll intervals must be > 0")
        return value

    @field_validator("create_max_attempts")
    @classmethod
    def _validate_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("JULES_CREATE_MAX_ATTEMPTS must be >= 1")
        return value

    @field_validator("create_backoff_seconds")
    @classmethod
    def _validate_backoff(cls, value: float) -> float:
        if value < 0:
            raise ValueError("JULES_CREATE_BACKOFF_SECONDS must be >= 0")
        return value

    @property
    def api_configured(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value().strip())


@lru_cache(maxsize=1)
def get_settings() -> JulesSettings:
    """Return cached settings instance."""

    return JulesSettings()


__all__ = ["JulesSettings", "get_settings"]
