# src/datastash/cli.py
"""
Command-line entry point for the datastash service.

    datastash [--config PATH] [--host HOST] [--port PORT] [--data-dir DIR] [-v]

Loads the configuration, configures logging and serves the Data API with
uvicorn until interrupted.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import uvicorn

from . import __version__
from .api_server import create_app
from .config import load_config
from .exceptions import ConfigError
from .logging_config import configure_logging, log_display

logger = logging.getLogger("datastash.cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="datastash",
        description="Serve the datastash Data API",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        help="Path to a TOML configuration file (default: ./datastash.toml if present)",
    )
    parser.add_argument("--host", help="Override http.host")
    parser.add_argument("--port", type=int, help="Override http.port")
    parser.add_argument("--data-dir", help="Override data.path")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log everything to the console",
    )
    return parser


def _overrides_from_args(parsed: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if parsed.host:
        overrides.setdefault("http", {})["host"] = parsed.host
    if parsed.port:
        overrides.setdefault("http", {})["port"] = parsed.port
    if parsed.data_dir:
        overrides.setdefault("data", {})["path"] = parsed.data_dir
    if parsed.verbose:
        overrides["logging"] = {"console_enabled": True, "console_level": "DEBUG"}
    return overrides


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0 on clean shutdown, 2 on configuration errors.
    """
    parsed = create_parser().parse_args(args)

    try:
        config = load_config(parsed.config, overrides=_overrides_from_args(parsed))
    except ConfigError as e:
        sys.stderr.write(f"datastash: {e}\n")
        return 2

    configure_logging(app_name="datastash", config=config.logging_dict())
    log_display(logger, logging.INFO, "datastash %s starting on %s:%d", __version__, config.http.host, config.http.port)

    uvicorn.run(
        create_app(config),
        host=config.http.host,
        port=config.http.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
