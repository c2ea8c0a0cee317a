"""Settings loader for the rancher environment exporter."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_VARIABLES = ("API_ACCESS_KEY", "API_SECRET_KEY")


class ConfigError(ValueError):
    """Raised when the exporter cannot be configured from the environment."""

    def __init__(self, message: str, missing: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class ExporterSettings(BaseSettings):
    # required
    api_access_key: str = Field(env="API_ACCESS_KEY")
    api_secret_key: str = Field(env="API_SECRET_KEY")

    # optional
    host: str = Field(default="localhost", env="HOST")
    port: int = Field(default=8080, env="PORT")
    listen_port: int = Field(default=9010, env="LISTEN_PORT")
    update_interval: int = Field(default=5000, env="UPDATE_INTERVAL")

    api_scheme: str = Field(default="http", env="API_SCHEME")
    listen_host: str = Field(default="0.0.0.0", env="LISTEN_HOST")
    request_timeout: float = Field(default=10.0, env="REQUEST_TIMEOUT")
    max_concurrency: int = Field(default=16, env="MAX_CONCURRENCY")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("api_access_key", "api_secret_key")
    @classmethod
    def validate_credential(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("credential must not be empty")
        return candidate

    @field_validator("port", "listen_port", "update_interval")
    @classmethod
    def validate_positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be positive")
        return value

    @field_validator("max_concurrency")
    @classmethod
    def validate_concurrency(cls, value: int) -> int:
        if value < 0:
            raise ValueError("MAX_CONCURRENCY must be zero (unbounded) or positive")
        return value

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Value must be positive")
        return value

    @field_validator("api_scheme")
    @classmethod
    def validate_scheme(cls, value: str) -> str:
        scheme = value.strip().lower()
        if scheme not in ("http", "https"):
            raise ValueError("API_SCHEME must be http or https")
        return scheme

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper() or "INFO"
        if level == "WARN":
            level = "WARNING"
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return level

    @property
    def base_url(self) -> str:
        return f"{self.api_scheme}://{self.host}:{self.port}"

    @property
    def update_interval_seconds(self) -> float:
        return self.update_interval / 1000.0


def load_settings(**overrides: Any) -> ExporterSettings:
    """Build settings from the environment, raising ConfigError on bad input."""
    try:
        return ExporterSettings(**overrides)
    except ValidationError as exc:
        missing: list[str] = []
        problems: list[str] = []
        for error in exc.errors():
            field = str(error["loc"][0]) if error.get("loc") else "?"
            variable = field.upper()
            if error.get("type") == "missing" or variable in REQUIRED_VARIABLES:
                missing.append(variable)
            else:
                problems.append(f"{variable}: {error.get('msg')}")
        if missing:
            message = "Missing environment variable for option: " + ", ".join(missing)
        else:
            message = "Invalid exporter configuration: " + "; ".join(problems)
        raise ConfigError(message, missing=missing) from exc


__all__ = ["ConfigError", "ExporterSettings", "REQUIRED_VARIABLES", "load_settings"]
