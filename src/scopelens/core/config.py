"""Global configuration for scopelens.

This module provides centralized configuration management with support for
environment variables and sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class ScopeLensConfig(BaseSettings):
    """scopelens configuration settings.

    Values can be overridden via environment variables with SCOPELENS_ prefix.
    Example: SCOPELENS_SOURCE_ENCODING=latin-1 overrides source_encoding.
    List values are given as JSON: SCOPELENS_READ_METHOD_PREFIXES='["get"]'.
    """

    # Accessor naming convention
    read_method_prefixes: list[str] = Field(
        default_factory=lambda: ["get", "is"],
        description="Method name prefixes tried when looking for a field read accessor",
    )
    write_method_prefixes: list[str] = Field(
        default_factory=lambda: ["set", "is"],
        description="Method name prefixes tried when looking for a field write accessor",
    )

    # Source files
    source_encoding: str = Field(
        default="utf-8",
        description="Encoding used to decode PHP source files",
    )
    evaluate_constants: bool = Field(
        default=False,
        description="Evaluate constant values when a SourceFile is created without flags",
    )
    max_array_nesting: int = Field(
        default=32,
        ge=1,
        le=256,
        description="Maximum nesting depth accepted by the constant evaluator",
    )

    model_config = {
        "env_prefix": "SCOPELENS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_config() -> ScopeLensConfig:
    """Get cached configuration instance.

    Returns:
        ScopeLensConfig singleton instance.
    """
    return ScopeLensConfig()


def reload_config() -> ScopeLensConfig:
    """Reload configuration (clears cache).

    Returns:
        Fresh ScopeLensConfig instance.
    """
    get_config.cache_clear()
    return get_config()
