"""
Shared fixtures for all tests.

Points CONFIG_PATH at the repository config.yaml so tests do not depend
on the working directory.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]

os.environ.setdefault("CONFIG_PATH", str(PROJECT_ROOT / "config.yaml"))


@pytest.fixture
def config_path() -> Path:
    """Path of the repository configuration file."""
    return PROJECT_ROOT / "config.yaml"
