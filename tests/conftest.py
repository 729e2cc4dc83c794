"""Shared pytest fixtures for scopelens tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from dotenv import load_dotenv
from hypothesis import settings

from scopelens.core.config import get_config, reload_config

# Load environment variables from .env file
load_dotenv()

# Configure hypothesis for property-based testing
settings.register_profile("ci", max_examples=100, deadline=None)
settings.register_profile("dev", max_examples=20, deadline=None)
settings.load_profile("dev")


@pytest.fixture
def php_fixtures_path() -> Path:
    """Directory of the PHP source fixtures."""
    return Path(__file__).parent / "fixtures" / "php"


@pytest.fixture
def fresh_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Reload configuration without SCOPELENS_ environment overrides."""
    import os

    for key in list(os.environ):
        if key.startswith("SCOPELENS_"):
            monkeypatch.delenv(key)
    reload_config()
    yield
    # Rebuilt lazily, once the environment is restored
    get_config.cache_clear()
