"""Resolution of short PHP names to qualified names."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from scopelens.core.errors import SymbolNotFoundError
from scopelens.core.models import RESOLUTION_ORDER, DeclarationKind, LookupOptions
from scopelens.php.registry import SymbolRegistry
from scopelens.php.symbols import NAMESPACE_SEPARATOR, DeclarationIndex, join_name

logger = logging.getLogger(__name__)


class PhpNameResolver:
    """Resolve names the way PHP does inside one file."""

    def __init__(self, index: DeclarationIndex, registry: SymbolRegistry | None = None) -> None:
        self._index = index
        self._registry = registry

    def qualified_name(
        self,
        name: str,
        kinds: DeclarationKind | Iterable[DeclarationKind] | None = None,
        options: LookupOptions | None = None,
    ) -> str:
        """Resolve a name to the qualified name of a declaration.

        Resolution order:
        1. A name starting with ``\\`` is already fully qualified
        2. Imported names, by alias
        3. Declarations of the file, trying the name itself then the name in
           each namespace; for each candidate, kinds are probed in
           RESOLUTION_ORDER
        4. Symbols of the registry, if global lookup is requested

        Args:
            name: Short, relative or fully qualified name.
            kinds: Declaration kinds to consider (default: all but namespace
                and use).
            options: Namespaces to search in and global lookup switch.

        Returns:
            Qualified name, without leading separator.

        Raises:
            SymbolNotFoundError: If no declaration matches.
        """
        if name.startswith(NAMESPACE_SEPARATOR):
            return name[1:]

        imports = self._index.imports()
        if name in imports:
            return imports[name]

        options = options or LookupOptions()
        namespaces = options.namespaces
        if namespaces is None:
            namespaces = self._index.names(DeclarationKind.NAMESPACE)
        candidates = [name] + [join_name(namespace, name) for namespace in namespaces]
        requested = self._requested_kinds(kinds)

        for candidate in candidates:
            for kind in requested:
                if self._index.contains(kind, candidate):
                    return candidate

        if options.global_lookup and self._registry is not None:
            for candidate in candidates:
                if self._registry.has_type(candidate):
                    return candidate
        elif options.global_lookup:
            logger.debug(f"Global lookup of {name} requested without symbol registry")

        raise SymbolNotFoundError(name)

    def fully_qualified_name(
        self,
        name: str,
        kinds: DeclarationKind | Iterable[DeclarationKind] | None = None,
        options: LookupOptions | None = None,
    ) -> str:
        """Same as qualified_name, with a leading ``\\``."""
        return NAMESPACE_SEPARATOR + self.qualified_name(name, kinds, options)

    @staticmethod
    def _requested_kinds(
        kinds: DeclarationKind | Iterable[DeclarationKind] | None,
    ) -> list[DeclarationKind]:
        if kinds is None:
            return list(RESOLUTION_ORDER)
        if isinstance(kinds, DeclarationKind):
            kinds = [kinds]
        wanted = set(kinds)
        return [kind for kind in RESOLUTION_ORDER if kind in wanted]
