"""Declarations of a PHP source file, read without executing it.

SourceFile is the entry point of the PHP side of scopelens. The file is
tokenized and indexed on first use, then every query is answered from the
cached DeclarationIndex:

    source = SourceFile("src/Food.php", FileFlags.SAFE)
    source.get_namespaces()             # ["Food\\Fruit", "Food\\Fish"]
    source.qualified_name("Apple")      # "Food\\Fruit\\Apple"
    source.get_constant("VERSION").value

Names given to ``has_*``/``get_*`` may be qualified, local to one of the file
namespaces, or aliases of ``use`` statements.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from scopelens.core.config import get_config
from scopelens.core.errors import (
    InvalidArgumentError,
    SourceFileNotFoundError,
    SymbolNotFoundError,
    SymbolNotLoadedError,
)
from scopelens.core.models import (
    STRUCTURE_KINDS,
    Constant,
    DeclarationKind,
    FileFlags,
    LookupOptions,
)
from scopelens.php.registry import SymbolRegistry
from scopelens.php.resolver import PhpNameResolver
from scopelens.php.scanner import PhpDeclarationScanner
from scopelens.php.symbols import Declaration, DeclarationIndex
from scopelens.php.tokenizer import PhpTokenizer
from scopelens.php.tokens import Token

logger = logging.getLogger(__name__)

_RESOLVED_FLAGS = FileFlags.LOADED | FileFlags.AUTOLOADABLE


class SourceFile:
    """Namespaces, imports, constants, functions and structures of a PHP file."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        flags: FileFlags | int | None = None,
        registry: SymbolRegistry | None = None,
    ) -> None:
        """Open a PHP source file.

        Args:
            path: PHP file path.
            flags: Inspection flags. When omitted, SAFE is set according to
                the ``evaluate_constants`` setting.
            registry: Symbol registry used in resolved mode and for global
                name lookups.

        Raises:
            InvalidArgumentError: If path is not a string or a path.
            SourceFileNotFoundError: If the file does not exist.
        """
        if not isinstance(path, (str, os.PathLike)):
            raise InvalidArgumentError(
                "File path or class handle expected", details=f"got {type(path).__name__}"
            )
        file_path = Path(path)
        if not file_path.is_file():
            raise SourceFileNotFoundError(f"{file_path}: File not found")

        self._path: Path | None = file_path.resolve()
        self._source: str | None = None
        self._init(flags, registry)

    @classmethod
    def from_class(
        cls,
        handle: Any,
        registry: SymbolRegistry,
        flags: FileFlags | int | None = None,
    ) -> SourceFile:
        """Open the file declaring a registered structure or function.

        The LOADED flag is set since the symbols of the file are known to
        the registry.

        Raises:
            InvalidArgumentError: If the handle is not registered or its
                source file is unknown.
        """
        name = registry.name_of(handle)
        source_path = registry.source_file(name) if name is not None else None
        if source_path is None:
            raise InvalidArgumentError(
                f"Failed to get source file name of {handle!r}",
                details="handle is not registered with a source file",
            )
        if flags is None:
            flags = FileFlags.SAFE if get_config().evaluate_constants else FileFlags.NONE
        return cls(source_path, FileFlags(flags) | FileFlags.LOADED, registry)

    @classmethod
    def from_source(
        cls,
        source: str,
        flags: FileFlags | int | None = None,
        registry: SymbolRegistry | None = None,
    ) -> SourceFile:
        """Inspect in-memory PHP source text."""
        instance = cls.__new__(cls)
        instance._path = None
        instance._source = source
        instance._init(flags, registry)
        return instance

    def _init(self, flags: FileFlags | int | None, registry: SymbolRegistry | None) -> None:
        if flags is None:
            flags = FileFlags.SAFE if get_config().evaluate_constants else FileFlags.NONE
        self._flags = FileFlags(flags)
        self._registry = registry
        self._tokens: list[Token] | None = None
        self._index: DeclarationIndex | None = None
        self._scanner: PhpDeclarationScanner | None = None
        self._resolver: PhpNameResolver | None = None
        self._structure_constants: dict[str, dict[str, Constant]] = {}

    # ------------------------------------------------------------------
    # File
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path | None:
        """Absolute file path, None for in-memory source."""
        return self._path

    @property
    def flags(self) -> FileFlags:
        return self._flags

    @property
    def tokens(self) -> list[Token]:
        if self._tokens is None:
            if self._source is None:
                encoding = get_config().source_encoding
                self._source = self._path.read_text(encoding=encoding)
            self._tokens = PhpTokenizer().tokenize(self._source)
        return self._tokens

    def declaration_index(self) -> DeclarationIndex:
        """Get the declaration index, building it on first call.

        Raises:
            MalformedInputError: If a declaration is malformed.
            SymbolNotLoadedError: If the file is LOADED and a declared
                symbol is not in the registry.
        """
        if self._index is None:
            label = self._path or "<source>"
            logger.debug(f"Indexing {label}")
            self._scanner = PhpDeclarationScanner(
                self.tokens,
                evaluate=bool(self._flags & FileFlags.SAFE),
                value_factory=self._bind if self._flags & FileFlags.LOADED else None,
            )
            self._index = self._scanner.scan()
            self._resolver = PhpNameResolver(self._index, self._registry)
        return self._index

    def get_declaration(self, kind: DeclarationKind, name: str) -> Declaration:
        """Get the declaration metadata (scope, token, doc comment) of an element.

        Raises:
            SymbolNotFoundError: If the file does not declare the element.
        """
        key = self._find(kind, name)
        if key is None:
            raise SymbolNotFoundError(name, details=f"no {kind.value} declaration")
        return self.declaration_index().declaration(kind, key)

    # ------------------------------------------------------------------
    # Namespaces and imports
    # ------------------------------------------------------------------

    def get_namespaces(self) -> list[str]:
        """Namespaces declared in the file, in declaration order."""
        return self.declaration_index().names(DeclarationKind.NAMESPACE)

    def has_namespace(self, name: str) -> bool:
        return name.lstrip("\\") in self.get_namespaces()

    def get_use_statements(self) -> dict[str, str]:
        """Imported names mapped to their alias."""
        return self.declaration_index().elements(DeclarationKind.USE)

    # ------------------------------------------------------------------
    # Constants
    # ------------------------------------------------------------------

    def get_constants(self) -> dict[str, Constant]:
        return self.declaration_index().elements(DeclarationKind.CONST)

    def get_constant_names(self) -> list[str]:
        return self.declaration_index().names(DeclarationKind.CONST)

    def has_constant(self, name: str) -> bool:
        return self._find(DeclarationKind.CONST, name) is not None

    def get_constant(self, name: str) -> Constant:
        """Get a constant declared at file or namespace level.

        Raises:
            SymbolNotFoundError: If the file does not declare the constant.
        """
        return self._get(DeclarationKind.CONST, name)

    def get_structure_constants(self, structure: str) -> dict[str, Constant]:
        """Constants declared in an interface, trait or class body.

        The structure body is scanned on first request only.

        Raises:
            SymbolNotFoundError: If the file does not declare the structure.
        """
        kind = self.get_structure_kind(structure)
        if kind is None:
            raise SymbolNotFoundError(structure)
        key = self._find(kind, structure)
        if key not in self._structure_constants:
            declaration = self.declaration_index().declaration(kind, key)
            logger.debug(f"Reading constants of {key}")
            self._structure_constants[key] = self._scanner.scan_structure_constants(
                declaration.scope
            )
        return dict(self._structure_constants[key])

    def get_structure_constant(self, structure: str, name: str) -> Constant:
        """Get a constant declared in an interface, trait or class body.

        Raises:
            SymbolNotFoundError: If the structure or the constant is not
                declared.
        """
        constants = self.get_structure_constants(structure)
        if name not in constants:
            raise SymbolNotFoundError(f"{structure}::{name}")
        return constants[name]

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def get_functions(self) -> dict[str, Any]:
        return self.declaration_index().elements(DeclarationKind.FUNCTION)

    def get_function_names(self) -> list[str]:
        return self.declaration_index().names(DeclarationKind.FUNCTION)

    def has_function(self, name: str) -> bool:
        return self._find(DeclarationKind.FUNCTION, name) is not None

    def get_function(self, name: str) -> Any:
        """Get a free function: its qualified name, or its handle in resolved mode.

        Raises:
            SymbolNotFoundError: If the file does not declare the function.
            SymbolNotLoadedError: In resolved mode, if the registry does not
                know the function.
        """
        return self._get(DeclarationKind.FUNCTION, name)

    # ------------------------------------------------------------------
    # Structures
    # ------------------------------------------------------------------

    def get_interfaces(self) -> dict[str, Any]:
        return self.declaration_index().elements(DeclarationKind.INTERFACE)

    def get_interface_names(self) -> list[str]:
        return self.declaration_index().names(DeclarationKind.INTERFACE)

    def has_interface(self, name: str) -> bool:
        return self._find(DeclarationKind.INTERFACE, name) is not None

    def get_interface(self, name: str) -> Any:
        return self._get(DeclarationKind.INTERFACE, name)

    def get_traits(self) -> dict[str, Any]:
        return self.declaration_index().elements(DeclarationKind.TRAIT)

    def get_trait_names(self) -> list[str]:
        return self.declaration_index().names(DeclarationKind.TRAIT)

    def has_trait(self, name: str) -> bool:
        return self._find(DeclarationKind.TRAIT, name) is not None

    def get_trait(self, name: str) -> Any:
        return self._get(DeclarationKind.TRAIT, name)

    def get_classes(self) -> dict[str, Any]:
        return self.declaration_index().elements(DeclarationKind.CLASS)

    def get_class_names(self) -> list[str]:
        return self.declaration_index().names(DeclarationKind.CLASS)

    def has_class(self, name: str) -> bool:
        return self._find(DeclarationKind.CLASS, name) is not None

    def get_class(self, name: str) -> Any:
        return self._get(DeclarationKind.CLASS, name)

    def get_structures(self) -> dict[str, Any]:
        """Interfaces, then traits, then classes."""
        structures: dict[str, Any] = {}
        for kind in STRUCTURE_KINDS:
            structures.update(self.declaration_index().elements(kind))
        return structures

    def get_structure_names(self) -> list[str]:
        """Names of interfaces, then traits, then classes, each in declaration order."""
        names: list[str] = []
        for kind in STRUCTURE_KINDS:
            names.extend(self.declaration_index().names(kind))
        return names

    def has_structure(self, name: str) -> bool:
        return self.get_structure_kind(name) is not None

    def get_structure(self, name: str) -> Any:
        """Get an interface, trait or class.

        Raises:
            SymbolNotFoundError: If the file does not declare the structure.
        """
        kind = self.get_structure_kind(name)
        if kind is None:
            raise SymbolNotFoundError(name)
        return self._get(kind, name)

    def get_structure_kind(self, name: str) -> DeclarationKind | None:
        """Tell whether a structure is an interface, a trait or a class."""
        for kind in STRUCTURE_KINDS:
            if self._find(kind, name) is not None:
                return kind
        return None

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def qualified_name(
        self,
        name: str,
        kinds: DeclarationKind | Iterable[DeclarationKind] | None = None,
        options: LookupOptions | None = None,
    ) -> str:
        """Resolve a name used in the file. See PhpNameResolver.qualified_name."""
        self.declaration_index()
        return self._resolver.qualified_name(name, kinds, options)

    def fully_qualified_name(
        self,
        name: str,
        kinds: DeclarationKind | Iterable[DeclarationKind] | None = None,
        options: LookupOptions | None = None,
    ) -> str:
        self.declaration_index()
        return self._resolver.fully_qualified_name(name, kinds, options)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find(self, kind: DeclarationKind, name: str) -> str | None:
        index = self.declaration_index()
        key = index.lookup(kind, name.lstrip("\\"))
        if key is not None:
            return key
        imported = index.imports()
        if name in imported:
            return index.lookup(kind, imported[name])
        return None

    def _get(self, kind: DeclarationKind, name: str) -> Any:
        key = self._find(kind, name)
        if key is None:
            raise SymbolNotFoundError(name, details=f"no {kind.value} declaration")
        value = self.declaration_index().value(kind, key)
        if kind is DeclarationKind.CONST or not isinstance(value, str):
            return value
        if self._flags & _RESOLVED_FLAGS:
            return self._bind(kind, key)
        return value

    def _bind(self, kind: DeclarationKind, name: str) -> Any:
        if self._registry is None:
            raise SymbolNotLoadedError(f"{name} is not loaded", details="no symbol registry")
        if kind is DeclarationKind.FUNCTION:
            return self._registry.get_function(name)
        return self._registry.get_type(name)
