"""Token scopes.

Kept separate from the visitor so the index and the callers can depend on
the value type without importing the traversal machinery.
"""

from __future__ import annotations

from dataclasses import dataclass

from scopelens.php.tokens import Token, TokenKind


@dataclass
class Scope:
    """A range of tokens forming one lexical block.

    A scope is opened by a ``{`` (or by the statement that starts a file or a
    brace-less namespace) and closed by the matching ``}``. Once closed it is
    not modified anymore.

    Attributes:
        level: Block depth, equal to the number of scopes open when this one
            was opened.
        parent_decl_token: Declaration token owning the enclosing scope.
        decl_token: Declaration token owning this scope (``class``,
            ``function``, ``namespace``, the open tag for the file scope),
            None for anonymous blocks.
        start_index: Index of the first token of the scope.
        end_index: Index of the last token of the scope, -1 while open.
        braceless: True for a ``namespace Foo;`` scope.
    """

    level: int = 0
    parent_decl_token: Token | None = None
    decl_token: Token | None = None
    start_index: int = -1
    end_index: int = -1
    braceless: bool = False

    @property
    def decl_kind(self) -> TokenKind | None:
        return self.decl_token.kind if self.decl_token is not None else None

    @property
    def parent_decl_kind(self) -> TokenKind | None:
        return self.parent_decl_token.kind if self.parent_decl_token is not None else None

    @property
    def is_closed(self) -> bool:
        return self.end_index >= 0

    def contains(self, index: int) -> bool:
        """Tell whether a token index lies within the scope."""
        if index < self.start_index:
            return False
        return not self.is_closed or index <= self.end_index
