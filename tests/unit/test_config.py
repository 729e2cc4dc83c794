"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from scopelens.core.config import ScopeLensConfig, get_config, reload_config


class TestScopeLensConfig:
    """Tests for ScopeLensConfig."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        # Clear env and disable .env file loading
        with patch.dict(os.environ, {}, clear=True):
            config = ScopeLensConfig(_env_file=None)

            assert config.read_method_prefixes == ["get", "is"]
            assert config.write_method_prefixes == ["set", "is"]
            assert config.source_encoding == "utf-8"
            assert config.evaluate_constants is False
            assert config.max_array_nesting == 32

    def test_env_override(self) -> None:
        """Test environment variable override."""
        with patch.dict(
            os.environ,
            {
                "SCOPELENS_SOURCE_ENCODING": "latin-1",
                "SCOPELENS_EVALUATE_CONSTANTS": "true",
                "SCOPELENS_READ_METHOD_PREFIXES": '["get", "has"]',
            },
        ):
            config = ScopeLensConfig(_env_file=None)
            assert config.source_encoding == "latin-1"
            assert config.evaluate_constants is True
            assert config.read_method_prefixes == ["get", "has"]

    def test_validation_array_nesting(self) -> None:
        """Test array nesting bounds."""
        with patch.dict(os.environ, {"SCOPELENS_MAX_ARRAY_NESTING": "0"}):
            with pytest.raises(ValueError):
                ScopeLensConfig(_env_file=None)

        with patch.dict(os.environ, {"SCOPELENS_MAX_ARRAY_NESTING": "1000"}):
            with pytest.raises(ValueError):
                ScopeLensConfig(_env_file=None)

    def test_unknown_settings_are_ignored(self) -> None:
        with patch.dict(os.environ, {"SCOPELENS_UNKNOWN": "1"}):
            config = ScopeLensConfig(_env_file=None)
            assert not hasattr(config, "unknown")


class TestConfigCaching:
    """Tests for configuration caching."""

    def test_get_config_cached(self) -> None:
        """Test that get_config returns cached instance."""
        reload_config()  # Clear cache first
        config1 = get_config()
        config2 = get_config()
        assert config1 is config2

    def test_reload_config_clears_cache(self) -> None:
        """Test that reload_config clears cache."""
        config1 = get_config()
        config2 = reload_config()
        config3 = get_config()

        assert config1 is not config2
        assert config2 is config3
