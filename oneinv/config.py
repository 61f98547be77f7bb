"""Application configuration using Pydantic Settings."""

import json
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # General
    ENVIRONMENT: str = "production"

    # OpenNebula XML-RPC API
    ONE_API_URL: str = "http://localhost:2633/RPC2"
    ONE_CREDENTIALS: str = "oneadmin:oneadmin"
    ONE_TIMEOUT: float = 30.0  # seconds, per request

    # Inventory selection
    CLUSTER_NAME: str = ""

    # Name pattern template
    PATTERN_FULL: str = r"^([a-z]{2}).+([a-z]{2})$"
    PATTERN_PREFIX: str = "^"
    PATTERN_INFIX: str = ".+"
    PATTERN_SUFFIX: str = "$"

    # Placement check
    DATACENTERS: Annotated[List[str], NoDecode] = []
    VM_NAME_PATTERN: str = ".*"

    @field_validator("DATACENTERS", mode="before")
    @classmethod
    def assemble_datacenters(cls, v: str | List[str]) -> List[str]:
        """Parse datacenters from a comma separated string or a JSON list."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        elif isinstance(v, str):
            return json.loads(v)
        raise ValueError(v)

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "console"  # json or console

    # OpenTelemetry Configuration
    OTEL_SERVICE_NAME: str = "oneinv"
    OTEL_TRACE_SAMPLE_RATE: float = 1.0  # 1.0 = 100% sampling
    OTEL_EXPORT_CONSOLE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
