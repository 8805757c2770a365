"""Configuration management for the relay.

Rules:
- YAML provides defaults for non-secret config.
- Environment variables (PORT, LOG_LEVEL, ENVIRONMENT) and .env override YAML.
- We do NOT inject YAML into os.environ.
- No config file is not an error: the relay runs on built-in defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _check_environment(v: str) -> str:
    if str(v).upper() not in {"DEV", "PROD"}:
        raise ValueError("Environment must be 'DEV' or 'PROD'")
    return str(v).upper()


def _check_log_level(v: str) -> str:
    valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if str(v).upper() not in valid:
        raise ValueError(f"Log level must be one of: {sorted(valid)}")
    return str(v).upper()


class APIConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: List[str] = Field(default=["*"])


class ApprovalConfig(BaseModel):
    """Signal approval workflow settings."""

    auto_approve_window_sec: int = Field(default=30, ge=0, le=3600, description="Countdown reported to the dashboard")
    default_lot: float = Field(default=0.1, gt=0)
    default_comment: str = Field(default="ORACLEX")
    cmd_id_prefix: str = Field(default="OX_")

    @field_validator("cmd_id_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not str(v).strip():
            raise ValueError("cmd_id_prefix must not be empty")
        return str(v).strip()


class ReceiptsConfig(BaseModel):
    max_retained: int = Field(default=1000, ge=1, le=1_000_000)


class RelayConfig(BaseSettings):
    """Main configuration class for the relay."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(default="DEV")
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

    api: APIConfig = Field(default_factory=APIConfig)
    approval: ApprovalConfig = Field(default_factory=ApprovalConfig)
    receipts: ReceiptsConfig = Field(default_factory=ReceiptsConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        return _check_environment(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return _check_log_level(v)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "RelayConfig":
        """Load configuration from YAML, then apply env overrides on top."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        return apply_env_overrides(base)


def apply_env_overrides(base: RelayConfig) -> RelayConfig:
    """Hosting platforms hand the listen port over as a bare PORT variable."""
    port = os.getenv("PORT")
    if port:
        try:
            base.api = APIConfig.model_validate({**base.api.model_dump(), "port": port})
        except ValidationError as e:
            raise ValueError(f"Invalid PORT {port!r}: {e}")

    if os.getenv("LOG_LEVEL"):
        base.log_level = _check_log_level(os.getenv("LOG_LEVEL", base.log_level))

    if os.getenv("ENVIRONMENT"):
        base.environment = _check_environment(os.getenv("ENVIRONMENT", base.environment))

    return base


def load_config(config_path: Optional[Path] = None) -> RelayConfig:
    """Load configuration from YAML + .env (env wins)."""

    load_dotenv(dotenv_path=Path(".env"))

    if config_path is None:
        possible_paths = [Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml")]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            return apply_env_overrides(RelayConfig())

    return RelayConfig.from_yaml(config_path)
