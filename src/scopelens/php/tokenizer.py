"""PHP tokenizer built on tree-sitter-php.

The scope visitor only needs a flat token stream. This module parses the
source with tree-sitter and flattens the concrete syntax tree into its
leaves, in source order. Whitespace between two leaves becomes a whitespace
token and any other skipped text an inline HTML token, so joining every
token text reproduces the source exactly.
"""

from __future__ import annotations

import logging

import tree_sitter_php as tsphp
from tree_sitter import Language, Node, Parser

from scopelens.php.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

# Nodes emitted as a single token even though tree-sitter splits them.
_ATOMIC_NODES: dict[str, TokenKind] = {
    "comment": TokenKind.COMMENT,
    "string": TokenKind.STRING,
    "encapsed_string": TokenKind.STRING,
    "heredoc": TokenKind.STRING,
    "nowdoc": TokenKind.STRING,
    "shell_command_expression": TokenKind.STRING,
    "variable_name": TokenKind.VARIABLE,
    "integer": TokenKind.NUMBER,
    "float": TokenKind.NUMBER,
    "php_tag": TokenKind.OPEN_TAG,
    "php_end_tag": TokenKind.CLOSE_TAG,
    "text": TokenKind.INLINE_HTML,
}

_KEYWORDS: dict[str, TokenKind] = {
    "namespace": TokenKind.NAMESPACE,
    "use": TokenKind.USE,
    "as": TokenKind.AS,
    "const": TokenKind.CONST,
    "function": TokenKind.FUNCTION,
    "interface": TokenKind.INTERFACE,
    "trait": TokenKind.TRAIT,
    "class": TokenKind.CLASS,
}

_PUNCTUATION: dict[str, TokenKind] = {
    "\\": TokenKind.NS_SEPARATOR,
    "::": TokenKind.DOUBLE_COLON,
    "?>": TokenKind.CLOSE_TAG,
}


class PhpTokenizer:
    """Turns PHP source text into a flat list of tokens."""

    def __init__(self) -> None:
        self._language = Language(tsphp.language_php())
        self._parser = Parser(self._language)

    def tokenize(self, source: str | bytes) -> list[Token]:
        """Tokenize PHP source.

        Args:
            source: PHP source text. Bytes are decoded as UTF-8.

        Returns:
            Tokens in source order, each carrying its stream index.
        """
        content = source.encode("utf-8") if isinstance(source, str) else source
        tree = self._parser.parse(content)
        if tree.root_node.has_error:
            logger.debug("tree-sitter reported syntax errors, tokens are best-effort")

        tokens: list[Token] = []
        position = 0
        line = 1
        for node in self._leaves(tree.root_node):
            if node.start_byte > position:
                gap = content[position : node.start_byte].decode("utf-8", errors="replace")
                kind = TokenKind.WHITESPACE
                if not gap.isspace():
                    logger.debug(f"Unparsed text {gap!r} at line {line}")
                    kind = TokenKind.INLINE_HTML
                tokens.append(Token(kind, gap, line, len(tokens)))
            if node.end_byte <= position:
                continue
            text = content[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
            line = node.start_point[0] + 1
            tokens.append(Token(self._kind(node, text), text, line, len(tokens)))
            position = node.end_byte
            line = node.end_point[0] + 1

        if position < len(content):
            tail = content[position:].decode("utf-8", errors="replace")
            kind = TokenKind.WHITESPACE if tail.isspace() else TokenKind.INLINE_HTML
            tokens.append(Token(kind, tail, line, len(tokens)))
        return tokens

    def token_tuples(self, source: str | bytes) -> list[tuple[TokenKind, str, int]]:
        """Tokenize PHP source into raw ``(kind, text, line)`` tuples."""
        return [token.as_tuple() for token in self.tokenize(source)]

    @staticmethod
    def _leaves(root: Node):
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in _ATOMIC_NODES or node.child_count == 0:
                if node.end_byte > node.start_byte:
                    yield node
                continue
            stack.extend(reversed(node.children))

    @staticmethod
    def _kind(node: Node, text: str) -> TokenKind:
        node_type = node.type
        if node_type in _ATOMIC_NODES:
            kind = _ATOMIC_NODES[node_type]
            if kind is TokenKind.COMMENT and text.startswith("/**") and text != "/**/":
                return TokenKind.DOC_COMMENT
            return kind
        if node.is_named:
            return TokenKind.IDENTIFIER
        lowered = node_type.lower()
        if lowered in _KEYWORDS:
            return _KEYWORDS[lowered]
        if node_type in _PUNCTUATION:
            return _PUNCTUATION[node_type]
        if node_type.isidentifier():
            return TokenKind.KEYWORD
        return TokenKind.PUNCT
