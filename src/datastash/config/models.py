# src/datastash/config/models.py
"""
Pydantic models for datastash configuration.

Each model maps to one table of the TOML configuration:

    [http]     -> HTTPConfig
    [data]     -> DataConfig
    [cache]    -> CacheConfig
    [storage]  -> StorageConfig
    [uid]      -> UIDConfig
    [logging]  -> LoggingConfig

Defaults here match default_config.toml so that ``AppConfig()`` is a
usable configuration on its own (tests rely on that).
"""

import logging
import string
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_UID_CHARS = string.digits + string.ascii_lowercase + string.ascii_uppercase


class HTTPConfig(BaseModel):
    """Data API listener settings."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=2001, ge=1, le=65535, description="TCP port")
    max_request_body: int = Field(
        default=1024, ge=1, description="Maximum accepted request body size in bytes"
    )


class DataConfig(BaseModel):
    """Persistent record store settings."""

    path: str = Field(default="./data", description="Directory holding one JSON file per record")
    scan_concurrency: int = Field(
        default=8, ge=1, le=256, description="Parallel file reads during startup reconciliation"
    )


class CacheConfig(BaseModel):
    """Memory tier settings."""

    data_ttl: int = Field(
        default=86400, ge=0, description="Default TTL in seconds for records posted without a ttl"
    )
    max_items: int = Field(default=0, ge=0, description="Maximum live entries (0 = unlimited)")
    cleanup_interval_seconds: int = Field(
        default=60, ge=1, le=3600, description="How often expired entries are purged"
    )


class StorageConfig(BaseModel):
    """Tiered storage coordinator settings."""

    serialize_writes: bool = Field(
        default=True, description="Serialize concurrent puts that target the same UID"
    )


class UIDConfig(BaseModel):
    """UID generation and validation settings."""

    chars: str = Field(default=DEFAULT_UID_CHARS, min_length=1)
    format: str = Field(default="X" * 32, min_length=1)
    validator_regexp: str = Field(default="[0-9a-zA-Z]{32}", min_length=1)


class LoggingConfig(BaseModel):
    """Settings consumed by :func:`datastash.logging_config.configure_logging`."""

    console_enabled: bool = False
    console_level: str = "WARNING"
    file_enabled: bool = True
    file_level: str = "DEBUG"
    file_directory: str = "./logs"
    file_mode: Literal["per_run", "single"] = "single"
    rotation_max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    rotation_backup_count: int = Field(default=5, ge=0)
    display_min_level: str = "INFO"
    components: Dict[str, str] = Field(default_factory=dict)

    @field_validator("console_level", "file_level", "display_min_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        """Validate log level names."""
        level_upper = v.upper()
        if not isinstance(logging.getLevelName(level_upper), int):
            raise ValueError(f"Invalid log level: {v}")
        return level_upper


class AppConfig(BaseModel):
    """Root configuration model."""

    http: HTTPConfig = Field(default_factory=HTTPConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    uid: UIDConfig = Field(default_factory=UIDConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def logging_dict(self) -> Dict[str, Any]:
        """Logging section as a plain dict, dropping empty component overrides."""
        section = self.logging.model_dump()
        if not section["components"]:
            section.pop("components")
        return section
