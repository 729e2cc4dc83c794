"""PHP source token visitor.

The visitor walks a flat token stream once and reconstructs the block
structure of the file: every ``{``/``}`` pair becomes a Scope, and the
scope is bound to the declaration keyword (``namespace``, ``class``,
``interface``, ``trait``, ``function``) that introduced it. No syntax tree is
built; the whole state is a stack of open scopes and one pending declaration.

Iteration is pull-based: scope events for a token are raised right before
the token is yielded, so a consumer that stops iterating leaves the rest of
the stream unvisited.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from enum import Enum
from typing import Any

from scopelens.core.errors import InvalidInputError
from scopelens.php.scope import Scope
from scopelens.php.tokenizer import PhpTokenizer
from scopelens.php.tokens import Token, TokenKind

logger = logging.getLogger(__name__)


class ScopeEvent(str, Enum):
    """Scope event raised while traversing tokens."""

    # A "{" was encountered, or a statement opening a scope.
    OPEN = "open"
    # A "}" was encountered, or the scope was closed at the end of the range.
    CLOSE = "close"


ScopeEventHandler = Callable[[ScopeEvent, Scope, "TokenScopeVisitor"], Any]
TokenCallback = Callable[[int, Token, "Scope | None"], Any]

# Owners of a scope in which "function" declares a free function or a method.
FUNCTION_OWNERS = frozenset(
    {TokenKind.OPEN_TAG, TokenKind.NAMESPACE, TokenKind.TRAIT, TokenKind.CLASS}
)

RawToken = Token | tuple[Any, str, int] | str


class TokenScopeVisitor:
    """Traverses PHP tokens and tracks the scope of each one."""

    def __init__(
        self,
        source: str | bytes | Iterable[RawToken],
        tokenizer: PhpTokenizer | None = None,
    ) -> None:
        """Initialize the visitor.

        Args:
            source: PHP source text, a sequence of Token, or an iterable of
                ``(kind, text, line)`` tuples.
            tokenizer: Tokenizer used when ``source`` is text.

        Raises:
            InvalidInputError: If ``source`` is neither text nor tokens.
        """
        if isinstance(source, (str, bytes)):
            self._tokens: list[RawToken] = list((tokenizer or PhpTokenizer()).tokenize(source))
        elif isinstance(source, Iterable) and not isinstance(source, dict):
            self._tokens = list(source)
        else:
            raise InvalidInputError(
                "Sequence of tokens or PHP source code text expected",
                details=f"got {type(source).__name__}",
            )

        self._range_start = 0
        self._range_end = len(self._tokens)
        self._event_handler: ScopeEventHandler | None = None
        self._reset()

    # ------------------------------------------------------------------
    # Range
    # ------------------------------------------------------------------

    @property
    def start_index(self) -> int:
        return self._range_start

    @property
    def end_index(self) -> int:
        return self._range_end

    def set_start_index(self, offset: int) -> None:
        self._range_start = max(0, min(len(self._tokens), offset))
        self._range_end = max(self._range_start, self._range_end)
        self._reset()

    def set_end_index(self, offset: int) -> None:
        self._range_end = max(0, min(len(self._tokens), offset))
        self._range_start = min(self._range_end, self._range_start)
        self._reset()

    def set_index_range(self, start: int, end: int) -> None:
        """Restrict the traversal to tokens in ``[start, end)``.

        Raises:
            InvalidInputError: If ``end`` is lower than ``start``.
        """
        if end < start:
            raise InvalidInputError("Invalid token range", details=f"{start} > {end}")
        count = len(self._tokens)
        self._range_start = max(0, min(count, start))
        self._range_end = max(0, min(count, end))
        self._reset()

    def __len__(self) -> int:
        return self._range_end - self._range_start

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def set_scope_event_handler(self, handler: ScopeEventHandler | None) -> None:
        """Register the callable receiving ``(event, scope, visitor)`` scope events."""
        if handler is not None and not callable(handler):
            raise InvalidInputError("None or callable expected")
        self._event_handler = handler

    @property
    def current_scope(self) -> Scope | None:
        """Innermost open scope, None outside of any scope."""
        return self._stack[-1] if self._stack else None

    @property
    def tokens(self) -> Sequence[RawToken]:
        return self._tokens

    def token(self, index: int) -> Token:
        """Get the token at ``index`` of the whole stream."""
        raw = self._tokens[index]
        if isinstance(raw, Token) and raw.index == index:
            return raw
        if isinstance(raw, Token):
            token = dataclasses.replace(raw, index=index)
        else:
            token = Token.from_tuple(raw, index)
        self._tokens[index] = token
        return token

    def __iter__(self) -> Iterator[tuple[int, Token]]:
        self._reset()
        for index in range(self._range_start, self._range_end):
            self._index = index
            token = self.token(index)
            self._process(index, token)
            yield index, token
        self._index = self._range_end
        if self._stack:
            logger.debug(f"Closing {len(self._stack)} scope(s) left open at end of range")
        while self._stack:
            self._close_scope(self._range_end)

    def traverse(self, callback: TokenCallback | None = None) -> None:
        """Visit every token of the range.

        Args:
            callback: Optional callable invoked with the token index, the
                token and the current scope.
        """
        for index, token in self:
            if callback is not None:
                callback(index, token, self.current_scope)

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    @staticmethod
    def skip_whitespace(tokens: Sequence[Token], index: int, count: int = -1) -> int:
        """Get the index of the first token at or after ``index`` that is not
        whitespace or a comment.

        Returns ``count`` (the stream size by default) if there is none.
        """
        if count < 0:
            count = len(tokens)
        while index < count:
            if not tokens[index].is_ignorable():
                return index
            index += 1
        return index

    @staticmethod
    def previous_significant(tokens: Sequence[Token], index: int) -> int:
        """Get the index of the last non-ignorable token before ``index``, or -1."""
        index -= 1
        while index >= 0 and tokens[index].is_ignorable():
            index -= 1
        return index

    @staticmethod
    def get_doc_comment(
        tokens: Sequence[Token], index: int, skip: Iterable[str] = ()
    ) -> str:
        """Read the documentation comment ending at or before ``index``.

        Reads backward through whitespace and comments; any other token stops
        the scan, except keywords listed in ``skip`` (declaration modifiers).
        """
        skipped = {text.lower() for text in skip}
        comment = ""
        while index >= 0:
            token = tokens[index]
            if token.kind is TokenKind.DOC_COMMENT:
                comment = token.text + comment
            elif token.text.lower() in skipped:
                pass
            elif not token.is_ignorable():
                break
            index -= 1
        return comment

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._index = self._range_start
        self._stack: list[Scope] = []
        self._pending = -1

    def _process(self, index: int, token: Token) -> None:
        kind = token.kind
        if kind is TokenKind.OPEN_TAG:
            if not self._stack:
                self._pending = index
                self._open_scope(index)
        elif kind is TokenKind.NAMESPACE:
            if self._is_relative_name_operator(index):
                return
            self._close_braceless_namespace(index)
            self._pending = index
        elif kind is TokenKind.INTERFACE or kind is TokenKind.TRAIT:
            self._pending = index
        elif kind is TokenKind.CLASS:
            if not self._follows_double_colon(index):
                self._pending = index
        elif kind is TokenKind.FUNCTION:
            scope = self.current_scope
            if scope is not None and scope.decl_kind in FUNCTION_OWNERS:
                self._pending = index
        elif kind is TokenKind.PUNCT:
            text = token.text
            if text == ";":
                self._terminate_statement(index)
            elif text == "{":
                self._open_scope(index)
            elif text == "}":
                self._close_scope(index)

    def _terminate_statement(self, index: int) -> None:
        if self._pending < 0:
            return
        pending_kind = self.token(self._pending).kind
        if pending_kind is TokenKind.NAMESPACE:
            self._open_scope(index, braceless=True)
        elif pending_kind is TokenKind.FUNCTION:
            # Abstract or interface method: no body
            self._pending = -1

    def _follows_double_colon(self, index: int) -> bool:
        previous = index - 1
        while previous >= self._range_start and self.token(previous).is_ignorable():
            previous -= 1
        return previous >= self._range_start and self.token(previous).kind is TokenKind.DOUBLE_COLON

    def _is_relative_name_operator(self, index: int) -> bool:
        following = index + 1
        while following < self._range_end and self.token(following).is_ignorable():
            following += 1
        return following < self._range_end and self.token(following).kind is TokenKind.NS_SEPARATOR

    def _close_braceless_namespace(self, index: int) -> None:
        if self._stack and self._stack[-1].braceless:
            self._close_scope(max(self._stack[-1].start_index, index - 1))

    def _open_scope(self, index: int, braceless: bool = False) -> Scope:
        scope = Scope(level=len(self._stack), start_index=index, braceless=braceless)
        if self._stack:
            scope.parent_decl_token = self._stack[-1].decl_token
        if self._pending >= 0:
            scope.decl_token = self.token(self._pending)
        self._pending = -1
        self._stack.append(scope)
        if self._event_handler is not None:
            self._event_handler(ScopeEvent.OPEN, scope, self)
        return scope

    def _close_scope(self, index: int) -> None:
        if not self._stack:
            logger.warning(f"Unbalanced closing bracket at token {index}")
            return
        scope = self._stack.pop()
        scope.end_index = min(index, self._range_end - 1)
        if self._event_handler is not None:
            self._event_handler(ScopeEvent.CLOSE, scope, self)
