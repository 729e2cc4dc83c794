"""Exception hierarchy shared by the source scanner and the field access layer.

Every error carries a short message and optional details. Most classes also
derive from the closest builtin exception so callers that only know the
standard library (``LookupError``, ``ValueError``...) can still catch them.
"""

from __future__ import annotations


class ScopeLensError(Exception):
    """Base class of all scopelens errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class InvalidInputError(ScopeLensError, TypeError):
    """A token visitor received something that is neither text nor tokens."""


class InvalidArgumentError(ScopeLensError, ValueError):
    """A caller supplied a value of the wrong shape."""


class MalformedInputError(ScopeLensError):
    """The token stream violates an expected local grammar fragment."""

    def __init__(self, message: str, line: int = -1, details: str | None = None) -> None:
        if line >= 0:
            message = f"{message} at line {line}"
        super().__init__(message, details)
        self.line = line


class UnsupportedExpressionError(MalformedInputError):
    """A constant expression cannot be evaluated by the literal evaluator."""


class NotFoundError(ScopeLensError, LookupError):
    """A requested element does not exist."""


class SourceFileNotFoundError(NotFoundError, FileNotFoundError):
    """The PHP source file does not exist."""


class SymbolNotFoundError(NotFoundError, ValueError):
    """A name cannot be resolved to a declaration of the file."""

    def __init__(self, name: str, details: str | None = None) -> None:
        super().__init__(f"{name} not found", details)
        self.name = name


class SymbolNotLoadedError(NotFoundError):
    """A declaration exists in the file but the symbol registry does not know it."""


class FieldNotFoundError(NotFoundError, AttributeError):
    """A field is not declared by a class."""


class FieldAccessError(ScopeLensError, AttributeError):
    """No access path satisfies the requested field requirements."""

    def __init__(self, owner: str, field_name: str, message: str) -> None:
        super().__init__(f"{owner}.{field_name} {message}")
        self.owner = owner
        self.field_name = field_name


class FieldNotReadableError(FieldAccessError):
    """The field cannot be read under the requested policy."""

    def __init__(self, owner: str, field_name: str) -> None:
        super().__init__(owner, field_name, "is not readable")


class FieldNotWritableError(FieldAccessError):
    """The field cannot be written under the requested policy."""

    def __init__(self, owner: str, field_name: str) -> None:
        super().__init__(owner, field_name, "is not writable")
