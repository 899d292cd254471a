# src/datastash/config/loader.py
"""
Layered configuration loading.

Dynaconf merges the packaged defaults, an optional user TOML file and
``DATASTASH_*`` environment variables; the result is validated by
:class:`~datastash.config.models.AppConfig`.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dynaconf import Dynaconf
from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import AppConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "DATASTASH"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "default_config.toml"
USER_CONFIG_NAME = "datastash.toml"

# Dynaconf bookkeeping keys that are not part of our schema
_INTERNAL_KEYS = {"load_dotenv", "environments", "settings_files", "envvar_prefix"}


def _lower_keys(value: Any) -> Any:
    """Recursively lower-case dict keys; later duplicates win."""
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_file_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> AppConfig:
    """
    Load and validate the application configuration.

    Precedence, highest first: ``overrides``, ``DATASTASH_*`` environment
    variables, the user config file, the packaged defaults.

    Args:
        config_file_path: Explicit TOML file. Must exist if given. When
            omitted, ``./datastash.toml`` is used if present.
        overrides: Nested dict applied last (used by tests and the CLI).

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigError: If the explicit file is missing or validation fails.
    """
    settings_files = [str(DEFAULT_CONFIG_PATH)]
    if config_file_path is not None:
        path = Path(config_file_path).expanduser()
        # Dynaconf silently accepts missing files
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        settings_files.append(str(path))
    elif Path(USER_CONFIG_NAME).is_file():
        settings_files.append(str(Path(USER_CONFIG_NAME).resolve()))

    try:
        settings = Dynaconf(
            envvar_prefix=ENV_PREFIX,
            settings_files=settings_files,
            environments=False,
            load_dotenv=False,
            merge_enabled=True,
        )
        raw_config = {
            k: v for k, v in _lower_keys(settings.as_dict()).items() if k not in _INTERNAL_KEYS
        }
    except Exception as e:
        raise ConfigError(f"Unable to read configuration: {e}") from e

    if overrides:
        raw_config = _deep_merge(raw_config, _lower_keys(overrides))

    try:
        config = AppConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Unable to parse configuration: {e}") from e

    logger.debug("Configuration loaded from %s", settings_files)
    return config
