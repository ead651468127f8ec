"""Centralized configuration for metricgate.

Uses Pydantic BaseSettings with environment variable loading and validation.
All MG_* environment variables are validated at import time.
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Policy
    acl_file: str = Field(
        default="prometheus-acl.yml", description="YAML policy mapping roles to metric ACLs"
    )

    # Admin
    admin_keys: str = Field(
        default="", description="Comma-separated admin API keys for policy reload (empty = dev mode)"
    )

    # Logging
    log_format: str = Field(default="text", description="Log format: text or json")
    log_level: str = Field(default="INFO", description="Python log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")  # noqa: S104
    port: int = Field(default=8080, ge=1, le=65535, description="Server bind port")

    model_config = {"env_prefix": "MG_", "case_sensitive": False, "extra": "ignore"}

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            msg = f"MG_LOG_FORMAT must be 'text' or 'json', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if not isinstance(logging.getLevelName(v), int):
            msg = f"MG_LOG_LEVEL must be a logging level name, got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def admin_key_set(self) -> set[str]:
        """Return parsed set of admin keys."""
        return {k.strip() for k in self.admin_keys.split(",") if k.strip()}


# Singleton, validated at import time.
settings = Settings()
