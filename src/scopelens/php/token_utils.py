"""PHP token stream utility helpers."""

from __future__ import annotations

import re
from collections.abc import Sequence

from scopelens.core.errors import MalformedInputError
from scopelens.php.tokens import Token, TokenKind
from scopelens.php.visitor import TokenScopeVisitor

IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_\x80-￿][a-zA-Z0-9_\x80-￿]*$")

_OPENING_BRACKETS = {"(": ")", "[": "]", "{": "}"}

# Keywords allowed between a documentation comment and a declaration.
STRUCTURE_MODIFIERS = ("abstract", "final", "readonly")
MEMBER_MODIFIERS = ("public", "protected", "private", "final", "static", "abstract")


class PhpTokenUtils:
    """Utility helpers reading declaration headers from a token list."""

    @staticmethod
    def skip_whitespace(tokens: Sequence[Token], index: int) -> int:
        return TokenScopeVisitor.skip_whitespace(tokens, index)

    @staticmethod
    def token_at(tokens: Sequence[Token], index: int) -> Token | None:
        return tokens[index] if 0 <= index < len(tokens) else None

    @staticmethod
    def is_identifier(token: Token | None) -> bool:
        if token is None:
            return False
        if token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            return False
        return IDENTIFIER_PATTERN.match(token.text) is not None

    @staticmethod
    def read_qualified_name(tokens: Sequence[Token], index: int) -> tuple[str, int]:
        """Read a contiguous run of name and namespace separator tokens.

        Args:
            tokens: Source tokens.
            index: Index of the first token of the name.

        Returns:
            The name (empty if ``index`` does not start a name) and the index
            of the first token after it.
        """
        parts: list[str] = []
        count = len(tokens)
        while index < count:
            token = tokens[index]
            if token.kind is TokenKind.NS_SEPARATOR:
                parts.append(token.text)
            elif token.kind is TokenKind.IDENTIFIER and IDENTIFIER_PATTERN.match(token.text):
                parts.append(token.text)
            elif token.kind is TokenKind.NAMESPACE and index + 1 < count and (
                tokens[index + 1].kind is TokenKind.NS_SEPARATOR
            ):
                # namespace\relative\Name
                parts.append(token.text)
            elif parts and parts[-1] == "\\" and PhpTokenUtils.is_identifier(token):
                # Reserved word used as a name segment (App\Enum)
                parts.append(token.text)
            else:
                break
            index += 1
        return "".join(parts), index

    @staticmethod
    def read_constant_expression(
        tokens: Sequence[Token], index: int
    ) -> tuple[list[Token], int, str]:
        """Read the value expression of a constant declarator.

        Args:
            tokens: Source tokens.
            index: Index of the ``=`` token following the constant name.

        Returns:
            The significant tokens of the expression, the index of the token
            that ended it, and that token's text (``;``, ``,`` or an empty
            string at the end of the stream).

        Raises:
            MalformedInputError: If ``index`` is not a ``=`` token.
        """
        token = PhpTokenUtils.token_at(tokens, index)
        if token is None or not token.is_punct("="):
            line = token.line if token is not None else (tokens[-1].line if tokens else -1)
            raise MalformedInputError('Expect "=" after constant name', line)

        index = PhpTokenUtils.skip_whitespace(tokens, index + 1)
        expression: list[Token] = []
        closing: list[str] = []
        count = len(tokens)
        while index < count:
            token = tokens[index]
            text = token.text
            if token.kind is TokenKind.PUNCT:
                if not closing and text in (";", ","):
                    return expression, index, text
                if text in _OPENING_BRACKETS:
                    closing.append(_OPENING_BRACKETS[text])
                elif closing and text == closing[-1]:
                    closing.pop()
            if not token.is_ignorable():
                expression.append(token)
            index += 1
        return expression, index, ""

    @staticmethod
    def expression_text(expression: Sequence[Token]) -> str:
        return "".join(token.text for token in expression)

    @staticmethod
    def previous_significant(tokens: Sequence[Token], index: int) -> Token | None:
        position = TokenScopeVisitor.previous_significant(tokens, index)
        return tokens[position] if position >= 0 else None
