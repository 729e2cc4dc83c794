"""Core module containing configuration, shared models and errors."""

from scopelens.core.config import ScopeLensConfig, get_config, reload_config
from scopelens.core.errors import (
    FieldAccessError,
    FieldNotFoundError,
    FieldNotReadableError,
    FieldNotWritableError,
    InvalidArgumentError,
    InvalidInputError,
    MalformedInputError,
    NotFoundError,
    ScopeLensError,
    SourceFileNotFoundError,
    SymbolNotFoundError,
    SymbolNotLoadedError,
    UnsupportedExpressionError,
)
from scopelens.core.models import (
    RESOLUTION_ORDER,
    STRUCTURE_KINDS,
    Constant,
    DeclarationKind,
    FileFlags,
    LookupOptions,
)

__all__ = [
    "Constant",
    "DeclarationKind",
    "FieldAccessError",
    "FieldNotFoundError",
    "FieldNotReadableError",
    "FieldNotWritableError",
    "FileFlags",
    "InvalidArgumentError",
    "InvalidInputError",
    "LookupOptions",
    "MalformedInputError",
    "NotFoundError",
    "RESOLUTION_ORDER",
    "STRUCTURE_KINDS",
    "ScopeLensConfig",
    "ScopeLensError",
    "SourceFileNotFoundError",
    "SymbolNotFoundError",
    "SymbolNotLoadedError",
    "UnsupportedExpressionError",
    "get_config",
    "reload_config",
]
