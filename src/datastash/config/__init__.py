# src/datastash/config/__init__.py
"""
Configuration package for datastash.

Configuration is layered, lowest precedence first:
    - default_config.toml: packaged defaults
    - User config: ./datastash.toml, or an explicit path
    - Environment variables: prefix DATASTASH_, nested keys joined with a
      double underscore, e.g. DATASTASH_HTTP__PORT=8080
    - Explicit overrides passed to load_config()

The merged result is validated by the pydantic models in .models.
"""

from .loader import load_config
from .models import (
    AppConfig,
    CacheConfig,
    DataConfig,
    HTTPConfig,
    LoggingConfig,
    StorageConfig,
    UIDConfig,
)

__all__ = [
    "AppConfig",
    "CacheConfig",
    "DataConfig",
    "HTTPConfig",
    "LoggingConfig",
    "StorageConfig",
    "UIDConfig",
    "load_config",
]
