"""PHP source tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    """Kind of a PHP source token."""

    OPEN_TAG = "T_OPEN_TAG"
    CLOSE_TAG = "T_CLOSE_TAG"
    INLINE_HTML = "T_INLINE_HTML"
    NAMESPACE = "T_NAMESPACE"
    USE = "T_USE"
    AS = "T_AS"
    CONST = "T_CONST"
    FUNCTION = "T_FUNCTION"
    INTERFACE = "T_INTERFACE"
    TRAIT = "T_TRAIT"
    CLASS = "T_CLASS"
    KEYWORD = "T_KEYWORD"
    IDENTIFIER = "T_STRING"
    NS_SEPARATOR = "T_NS_SEPARATOR"
    DOUBLE_COLON = "T_DOUBLE_COLON"
    VARIABLE = "T_VARIABLE"
    STRING = "T_CONSTANT_ENCAPSED_STRING"
    NUMBER = "T_LNUMBER"
    WHITESPACE = "T_WHITESPACE"
    COMMENT = "T_COMMENT"
    DOC_COMMENT = "T_DOC_COMMENT"
    PUNCT = "T_PUNCT"


IGNORABLE_KINDS = frozenset({TokenKind.WHITESPACE, TokenKind.COMMENT, TokenKind.DOC_COMMENT})


@dataclass(frozen=True, slots=True)
class Token:
    """One token of a PHP source token stream.

    Attributes:
        kind: Token kind.
        text: Token text, exactly as written in the source.
        line: 1-based source line of the first character, -1 if unknown.
        index: Position of the token in its stream.
    """

    kind: TokenKind
    text: str
    line: int = -1
    index: int = -1

    @classmethod
    def from_tuple(cls, raw: tuple[TokenKind | str, str, int] | str, index: int) -> Token:
        """Wrap a raw ``(kind, text, line)`` tuple.

        A bare string is a punctuation token of unknown line.
        """
        if isinstance(raw, str):
            return cls(TokenKind.PUNCT, raw, -1, index)
        kind, text, line = raw
        return cls(TokenKind(kind), text, line, index)

    def as_tuple(self) -> tuple[TokenKind, str, int]:
        return (self.kind, self.text, self.line)

    def is_(self, *what: TokenKind | str) -> bool:
        """Tell whether the token matches any of the given kinds or texts."""
        for item in what:
            if isinstance(item, TokenKind):
                if self.kind is item:
                    return True
            elif self.text == item:
                return True
        return False

    def is_punct(self, text: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == text

    def is_ignorable(self) -> bool:
        return self.kind in IGNORABLE_KINDS

    def __str__(self) -> str:
        return self.text
