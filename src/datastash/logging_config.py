# src/datastash/logging_config.py
"""
Logging setup for the datastash service.

Configures the root logger once per process with:

- A console handler gated by :class:`DisplayFilter`. With
  ``console_enabled=False`` (the default) only records logged with
  ``extra={"display": True}`` reach the console, so startup milestones
  ("42 persistent records loaded", "listening on ...") stay visible while
  per-request chatter goes to the file only.
- An optional file handler: ``file_mode="single"`` appends to one
  rotating file, ``file_mode="per_run"`` creates a timestamped file per
  process start.
- Per-component level overrides (``uvicorn.access`` and friends).

Usage:
    from datastash.logging_config import configure_logging, log_display

    configure_logging(app_name="datastash", config=app_config.logging_dict())

    logger = logging.getLogger("datastash.startup")
    log_display(logger, logging.INFO, "Listening on %s:%d", host, port)
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "console_enabled": False,
    "console_level": "WARNING",
    "console_format": "%(levelname)s - %(message)s",
    "file_enabled": True,
    "file_level": "DEBUG",
    "file_directory": "./logs",
    "file_mode": "single",
    "file_name_pattern": "{app}_{timestamp:%Y%m%d_%H%M%S}.log",
    "file_single_name": "{app}.log",
    "file_format": "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)",
    "rotation_max_bytes": 10 * 1024 * 1024,  # 10 MB
    "rotation_backup_count": 5,
    "display_min_level": "INFO",
    "components": {
        "datastash": "DEBUG",
        "uvicorn": "INFO",
        "uvicorn.access": "WARNING",
        "fastapi": "WARNING",
        "asyncio": "WARNING",
    },
}


class DisplayFilter(logging.Filter):
    """Controls which log records pass through to the console handler.

    When console output is globally enabled every record passes and the
    handler level does the filtering. Otherwise only records carrying
    ``record.display = True`` at or above ``display_min_level`` pass.
    """

    def __init__(
        self,
        console_globally_enabled: bool = False,
        display_min_level: int = logging.INFO,
    ) -> None:
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True

        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level

        return False


def _level(name: Any, default: int) -> int:
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


class UnifiedLoggingManager:
    """
    Singleton manager for process-wide logging configuration.

    Ensures logging is only configured once and allows runtime adjustment
    of component levels.
    """

    _instance: Optional["UnifiedLoggingManager"] = None
    _configured: bool = False
    _log_file_path: Path | None = None
    _console_handler: logging.Handler | None = None
    _file_handler: logging.Handler | None = None

    def __new__(cls) -> "UnifiedLoggingManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_instance(cls) -> "UnifiedLoggingManager":
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_log_file_path(cls) -> Path | None:
        return cls._log_file_path

    def configure(
        self,
        app_name: str = "datastash",
        config: dict[str, Any] | None = None,
        force_reconfigure: bool = False,
    ) -> Path | None:
        """
        Configure the root logger.

        Args:
            app_name: Used in the log file name.
            config: Logging section; missing keys fall back to DEFAULT_LOGGING_CONFIG.
            force_reconfigure: Reconfigure even if already configured.

        Returns:
            Path to the log file, or None when file logging is off or unavailable.
        """
        if self._configured and not force_reconfigure:
            return self._log_file_path

        log_config = {**DEFAULT_LOGGING_CONFIG, **(config or {})}

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.DEBUG)

        console_globally_enabled = bool(log_config.get("console_enabled", False))
        display_filter = DisplayFilter(
            console_globally_enabled=console_globally_enabled,
            display_min_level=_level(log_config.get("display_min_level"), logging.INFO),
        )

        console_handler = logging.StreamHandler(sys.stderr)
        if console_globally_enabled:
            console_handler.setLevel(_level(log_config.get("console_level"), logging.WARNING))
        else:
            # The filter is the only gate
            console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(log_config["console_format"]))
        console_handler.addFilter(display_filter)
        root_logger.addHandler(console_handler)
        UnifiedLoggingManager._console_handler = console_handler

        file_handler, log_file_path = None, None
        if log_config.get("file_enabled", True):
            file_handler, log_file_path = self._create_file_handler(log_config, app_name)
            if file_handler:
                root_logger.addHandler(file_handler)
        UnifiedLoggingManager._file_handler = file_handler

        for component_name, level_str in log_config.get("components", {}).items():
            logging.getLogger(component_name).setLevel(_level(level_str, logging.INFO))

        UnifiedLoggingManager._configured = True
        UnifiedLoggingManager._log_file_path = log_file_path

        if log_file_path:
            logging.getLogger(__name__).debug("Logging configured. Log file: %s", log_file_path)

        return log_file_path

    def _create_file_handler(
        self, config: dict[str, Any], app_name: str
    ) -> tuple[logging.Handler | None, Path | None]:
        """Create the file handler for ``single`` or ``per_run`` mode."""
        log_dir = Path(os.path.expanduser(config["file_directory"]))

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            sys.stderr.write(f"Warning: Cannot create log directory {log_dir}: {e}\n")
            return None, None

        if config.get("file_mode") == "per_run":
            timestamp = datetime.now()
            try:
                filename = config["file_name_pattern"].format(app=app_name, timestamp=timestamp)
            except (KeyError, ValueError):
                filename = f"{app_name}_{timestamp.strftime('%Y%m%d_%H%M%S')}.log"
            log_file_path = log_dir / filename
            try:
                handler: logging.Handler = logging.FileHandler(log_file_path, encoding="utf-8")
            except OSError as e:
                sys.stderr.write(f"Warning: Cannot create log file {log_file_path}: {e}\n")
                return None, None
        else:
            try:
                filename = config["file_single_name"].format(app=app_name)
            except (KeyError, ValueError):
                filename = f"{app_name}.log"
            log_file_path = log_dir / filename
            try:
                handler = RotatingFileHandler(
                    log_file_path,
                    maxBytes=config.get("rotation_max_bytes", 10 * 1024 * 1024),
                    backupCount=config.get("rotation_backup_count", 5),
                    encoding="utf-8",
                )
            except OSError as e:
                sys.stderr.write(f"Warning: Cannot create log file {log_file_path}: {e}\n")
                return None, None

        handler.setLevel(_level(config.get("file_level"), logging.DEBUG))
        handler.setFormatter(logging.Formatter(config["file_format"]))
        return handler, log_file_path

    def set_component_level(self, component: str, level: str | int) -> None:
        """Change a specific component's log level at runtime."""
        resolved = _level(level, -1)
        if resolved >= 0:
            logging.getLogger(component).setLevel(resolved)


def configure_logging(
    app_name: str = "datastash",
    config: dict[str, Any] | None = None,
    force_reconfigure: bool = False,
) -> Path | None:
    """
    Configure logging for the process. Call once, early in startup.

    Example:
        configure_logging(
            app_name="datastash",
            config={"console_enabled": True, "console_level": "DEBUG"},
        )
    """
    return UnifiedLoggingManager.get_instance().configure(
        app_name=app_name,
        config=config,
        force_reconfigure=force_reconfigure,
    )


def log_display(
    logger: logging.Logger,
    level: int,
    msg: str,
    *args: Any,
    **kwargs: Any,
) -> None:
    """Log a message that also reaches the console in silent mode.

    Wraps ``logger.log()`` and merges ``display=True`` into ``extra``.
    ``display_min_level`` still applies.
    """
    extra = kwargs.pop("extra", None) or {}
    extra["display"] = True
    kwargs["extra"] = extra
    logger.log(level, msg, *args, **kwargs)


def get_log_file_path() -> Path | None:
    """Get the current log file path."""
    return UnifiedLoggingManager.get_log_file_path()


def set_component_level(component: str, level: str | int) -> None:
    """Change a specific component's log level at runtime."""
    UnifiedLoggingManager.get_instance().set_component_level(component, level)
