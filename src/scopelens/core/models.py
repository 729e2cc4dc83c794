"""Data models shared by the PHP source scanner and its callers.

This module defines the declaration kinds, the file inspection flags, the
lookup options of the name resolver and the Constant value object.
"""

from __future__ import annotations

from enum import Enum, IntFlag
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeclarationKind(str, Enum):
    """Kind of top-level or nested declaration."""

    NAMESPACE = "namespace"
    USE = "use"
    CONST = "const"
    FUNCTION = "function"
    INTERFACE = "interface"
    TRAIT = "trait"
    CLASS = "class"


# Order in which the name resolver probes declaration kinds.
RESOLUTION_ORDER: tuple[DeclarationKind, ...] = (
    DeclarationKind.INTERFACE,
    DeclarationKind.TRAIT,
    DeclarationKind.CLASS,
    DeclarationKind.FUNCTION,
    DeclarationKind.CONST,
)

STRUCTURE_KINDS: tuple[DeclarationKind, ...] = (
    DeclarationKind.INTERFACE,
    DeclarationKind.TRAIT,
    DeclarationKind.CLASS,
)


class FileFlags(IntFlag):
    """SourceFile inspection flags."""

    NONE = 0
    # Constant values can be evaluated.
    SAFE = 0x01
    # Structures may be looked up in the symbol registry on demand.
    AUTOLOADABLE = 0x02
    # The file symbols are known to the symbol registry.
    LOADED = 0x04


class LookupOptions(BaseModel):
    """Options of the qualified name lookup."""

    namespaces: list[str] | None = Field(
        None, description="Namespaces to search in (default: all file namespaces)"
    )
    global_lookup: bool = Field(
        False, description="Check candidates against the symbol registry"
    )


class Constant(BaseModel):
    """Free or structure constant."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Constant local name")
    value: Any = Field(None, description="Evaluated value, or the source expression")
    doc_comment: str = Field("", description="Documentation comment")
    expression: str = Field("", description="Source expression of the value")

    def __str__(self) -> str:
        return str(self.value)
