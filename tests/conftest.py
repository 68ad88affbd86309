"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todo_md.config import ConfigModel  # noqa: E402


@pytest.fixture
def config():
    """Default parser configuration."""
    return ConfigModel()


@pytest.fixture
def now():
    """A fixed moment: Wednesday 2024-01-10, noon."""
    return datetime(2024, 1, 10, 12, 0)
