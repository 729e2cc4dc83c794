"""Declaration index of one PHP source file.

The index is filled once by the declaration scanner and then only read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from scopelens.core.models import DeclarationKind
from scopelens.php.scope import Scope
from scopelens.php.tokens import Token

logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = "\\"


def join_name(namespace: str, name: str) -> str:
    """Prefix a name with a namespace (the global namespace is the empty string)."""
    return f"{namespace}{NAMESPACE_SEPARATOR}{name}" if namespace else name


def local_name(name: str) -> str:
    """Last segment of a qualified name."""
    return name.rstrip(NAMESPACE_SEPARATOR).rsplit(NAMESPACE_SEPARATOR, 1)[-1]


@dataclass(frozen=True)
class Declaration:
    """Where and how an element is declared.

    Attributes:
        kind: Declaration kind.
        name: Qualified name (the imported name for a ``use`` statement).
        scope: Scope the declaration owns, or the scope it appears in for
            declarations that do not open one (``use``, ``const``).
        token: Declaration keyword token.
        doc_comment: Documentation comment preceding the declaration.
    """

    kind: DeclarationKind
    name: str
    scope: Scope
    token: Token
    doc_comment: str = ""

    @property
    def line(self) -> int:
        return self.token.line


def _empty_tables() -> dict[DeclarationKind, dict[str, Any]]:
    return {kind: {} for kind in DeclarationKind}


class DeclarationIndex(BaseModel):
    """Declarations of a file, bucketed by kind and keyed by qualified name.

    ``definitions`` holds the value exposed to callers for each declaration:

    - NAMESPACE: the namespace name
    - USE: the alias of the imported name
    - CONST: a Constant
    - FUNCTION, INTERFACE, TRAIT, CLASS: the qualified name, or the native
      handle when the file is loaded

    ``metadata`` holds the matching Declaration records.
    """

    definitions: dict[DeclarationKind, dict[str, Any]] = Field(default_factory=_empty_tables)
    metadata: dict[DeclarationKind, dict[str, Any]] = Field(default_factory=_empty_tables)

    def add(self, declaration: Declaration, value: Any) -> None:
        """Register a declaration. A second declaration of the same name wins.

        Namespaces are the exception: a namespace opened again keeps its
        first declaration.
        """
        table = self.definitions[declaration.kind]
        if declaration.name in table:
            if declaration.kind is DeclarationKind.NAMESPACE:
                return
            logger.warning(
                f"{declaration.kind.value} {declaration.name} declared again "
                f"at line {declaration.line}, previous declaration is discarded"
            )
        table[declaration.name] = value
        self.metadata[declaration.kind][declaration.name] = declaration

    def elements(self, kind: DeclarationKind) -> dict[str, Any]:
        return dict(self.definitions[kind])

    def names(self, kind: DeclarationKind) -> list[str]:
        return list(self.definitions[kind])

    def contains(self, kind: DeclarationKind, name: str) -> bool:
        return name in self.definitions[kind]

    def value(self, kind: DeclarationKind, name: str) -> Any:
        """Get the value of a declaration. Raises KeyError if not declared."""
        return self.definitions[kind][name]

    def declaration(self, kind: DeclarationKind, name: str) -> Declaration | None:
        return self.metadata[kind].get(name)

    def lookup(self, kind: DeclarationKind, name: str) -> str | None:
        """Find the key of a declaration by qualified or local name.

        A name without namespace separator is also searched in every
        namespace declared by the file.
        """
        table = self.definitions[kind]
        if name in table:
            return name
        if NAMESPACE_SEPARATOR in name:
            return None
        for namespace in self.definitions[DeclarationKind.NAMESPACE]:
            candidate = join_name(namespace, name)
            if candidate in table:
                return candidate
        return None

    def imports(self) -> dict[str, str]:
        """Imported names, keyed by alias."""
        return {alias: name for name, alias in self.definitions[DeclarationKind.USE].items()}
