"""Registry of loaded PHP symbols.

A SourceFile only reads tokens; it never loads the code it describes. When
the host knows that the symbols of a file are available (the PHP runtime of
a bridge, stubs generated for a project...), it registers one handle per
symbol here. The registry then backs the resolved mode of SourceFile and the
global lookup of the name resolver.

PHP class and function names are case-insensitive, so are the registry keys.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from scopelens.core.errors import SymbolNotLoadedError

logger = logging.getLogger(__name__)


def normalize_symbol_name(name: str) -> str:
    return name.lstrip("\\").lower()


class SymbolRegistry:
    """Native handles of loaded classes, interfaces, traits and functions."""

    def __init__(self) -> None:
        self._types: dict[str, Any] = {}
        self._functions: dict[str, Any] = {}
        self._files: dict[str, Path] = {}

    def register_type(self, name: str, handle: Any, source_file: str | Path | None = None) -> None:
        """Register a class, interface or trait.

        Args:
            name: Qualified name of the structure.
            handle: Native handle returned by lookups.
            source_file: PHP file declaring the structure.
        """
        key = normalize_symbol_name(name)
        if key in self._types:
            logger.debug(f"Replacing registered type {name}")
        self._types[key] = handle
        if source_file is not None:
            self._files[key] = Path(source_file)

    def register_function(
        self, name: str, handle: Any, source_file: str | Path | None = None
    ) -> None:
        """Register a free function."""
        key = normalize_symbol_name(name)
        self._functions[key] = handle
        if source_file is not None:
            self._files[key] = Path(source_file)

    def has_type(self, name: str) -> bool:
        return normalize_symbol_name(name) in self._types

    def has_function(self, name: str) -> bool:
        return normalize_symbol_name(name) in self._functions

    def get_type(self, name: str) -> Any:
        """Get the handle of a structure.

        Raises:
            SymbolNotLoadedError: If the structure is not registered.
        """
        try:
            return self._types[normalize_symbol_name(name)]
        except KeyError as exc:
            raise SymbolNotLoadedError(f"{name} is not loaded") from exc

    def get_function(self, name: str) -> Any:
        """Get the handle of a free function.

        Raises:
            SymbolNotLoadedError: If the function is not registered.
        """
        try:
            return self._functions[normalize_symbol_name(name)]
        except KeyError as exc:
            raise SymbolNotLoadedError(f"{name} is not loaded") from exc

    def source_file(self, name: str) -> Path | None:
        """Get the file declaring a registered symbol, if known."""
        return self._files.get(normalize_symbol_name(name))

    def name_of(self, handle: Any) -> str | None:
        """Get the (normalized) name a handle was registered under."""
        for table in (self._types, self._functions):
            for key, value in table.items():
                if value is handle:
                    return key
        return None
