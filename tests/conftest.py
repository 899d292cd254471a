# tests/conftest.py
"""
Shared fixtures for the datastash test suite.
"""

from pathlib import Path

import pytest

from datastash.config.models import AppConfig, DataConfig, LoggingConfig, UIDConfig
from datastash.uid import UIDGenerator


@pytest.fixture
def uid_generator() -> UIDGenerator:
    """UID generator with the default 32-character alphanumeric format."""
    return UIDGenerator.from_config(UIDConfig())


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """An empty data directory for the file store."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def app_config(data_dir: Path) -> AppConfig:
    """Default configuration pointing at the temporary data directory."""
    return AppConfig(
        data=DataConfig(path=str(data_dir)),
        logging=LoggingConfig(file_enabled=False),
    )
