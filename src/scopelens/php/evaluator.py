"""Literal evaluation of PHP constant expressions.

Constant values are kept as source text unless the file is flagged as safe
to evaluate. This evaluator turns the tokens of a constant expression into a
Python value. It only understands literals and operators over literals;
function calls, class constants and variables are rejected.

PHP to Python mapping:

- ``null``/``true``/``false`` -> ``None``/``True``/``False``
- integers in any base, floats -> ``int``/``float``
- strings, heredoc and nowdoc -> ``str``
- arrays without keys -> ``list``; arrays with keys -> ``dict``
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Any

from scopelens.core.config import get_config
from scopelens.core.errors import UnsupportedExpressionError
from scopelens.php.tokens import Token, TokenKind

ConstantLookup = Callable[[str], Any]

_SINGLE_QUOTE_ESCAPE = re.compile(r"\\([\\'])")
_DOUBLE_QUOTE_ESCAPE = re.compile(
    r"\\(?:([nrtvef\\$\"])|([0-7]{1,3})|x([0-9A-Fa-f]{1,2})|u\{([0-9A-Fa-f]+)\})"
)
_INTERPOLATION = re.compile(r"(?<!\\)\$[A-Za-z_{]|(?<!\\)\{\$")
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "e": "\x1b",
    "f": "\f",
    "\\": "\\",
    "$": "$",
    '"': '"',
}
_HEREDOC = re.compile(
    r"^<<<[ \t]*(?P<quote>['\"]?)(?P<label>[A-Za-z_][A-Za-z0-9_]*)(?P=quote)\r?\n"
    r"(?P<body>.*?)(?:\r?\n)?(?P<indent>[ \t]*)(?P=label)$",
    re.DOTALL,
)

# Class constant references resolved by the lookup (self::NAME).
_RELATIVE_SCOPES = ("self", "static")

# Binary operators by precedence, lowest first.
_BINARY_LEVELS: tuple[tuple[str, ...], ...] = (
    ("||", "or"),
    ("&&", "and"),
    ("|",),
    ("^",),
    ("&",),
    (".",),
    ("<<", ">>"),
    ("+", "-"),
    ("*", "/", "%"),
)


def php_string(value: Any) -> str:
    """Convert a value to string the way PHP does in a string context."""
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, dict)):
        raise UnsupportedExpressionError("Array to string conversion")
    return str(value)


def parse_number(text: str) -> int | float:
    """Parse a PHP integer or float literal."""
    literal = text.replace("_", "").lower()
    try:
        if literal.startswith("0x"):
            return int(literal[2:], 16)
        if literal.startswith("0b"):
            return int(literal[2:], 2)
        if literal.startswith("0o"):
            return int(literal[2:], 8)
        if any(c in literal for c in ".e") or literal in ("inf", "nan"):
            return float(literal)
        if len(literal) > 1 and literal.startswith("0"):
            return int(literal, 8)
        return int(literal)
    except ValueError as exc:
        raise UnsupportedExpressionError(f"Invalid number literal {text!r}") from exc


def parse_string(text: str, line: int = -1) -> str:
    """Decode a PHP string literal, heredoc or nowdoc."""
    if text[:1] in ("b", "B") and text[1:2] in ("'", '"'):
        text = text[1:]
    if text.startswith("'") and text.endswith("'") and len(text) >= 2:
        return _SINGLE_QUOTE_ESCAPE.sub(r"\1", text[1:-1])
    if text.startswith('"') and text.endswith('"') and len(text) >= 2:
        return _decode_double_quoted(text[1:-1], line)
    match = _HEREDOC.match(text)
    if match:
        indent = match.group("indent")
        lines = match.group("body").split("\n")
        if indent:
            lines = [l[len(indent) :] if l.startswith(indent) else l.lstrip(" \t") for l in lines]
        body = "\n".join(lines)
        if match.group("quote") == "'":
            return body
        return _decode_double_quoted(body, line)
    raise UnsupportedExpressionError(f"Unsupported string literal {text!r}", line)


def _decode_double_quoted(body: str, line: int) -> str:
    if _INTERPOLATION.search(body):
        raise UnsupportedExpressionError("String interpolation cannot be evaluated", line)

    def replace(match: re.Match[str]) -> str:
        simple, octal, hexa, unicode = match.groups()
        if simple is not None:
            return _SIMPLE_ESCAPES[simple]
        if octal is not None:
            return chr(int(octal, 8) & 0xFF)
        if hexa is not None:
            return chr(int(hexa, 16))
        return chr(int(unicode, 16))

    return _DOUBLE_QUOTE_ESCAPE.sub(replace, body)


class ConstantEvaluator:
    """Evaluates the significant tokens of one constant expression."""

    def __init__(
        self,
        tokens: Sequence[Token],
        lookup: ConstantLookup | None = None,
        max_nesting: int | None = None,
    ) -> None:
        """Initialize the evaluator.

        Args:
            tokens: Expression tokens, whitespace and comments excluded.
            lookup: Resolves a constant name used in the expression to its
                value. Raises LookupError if unknown.
            max_nesting: Maximum depth of nested arrays and parentheses.
        """
        self._tokens = list(tokens)
        self._lookup = lookup
        self._max_nesting = max_nesting or get_config().max_array_nesting
        self._position = 0
        self._depth = 0

    def evaluate(self) -> Any:
        """Evaluate the expression.

        Raises:
            UnsupportedExpressionError: If the expression is empty, invalid or
                uses a construct that is not a literal.
        """
        if not self._tokens:
            raise UnsupportedExpressionError("Empty constant expression")
        value = self._binary(0)
        if self._position < len(self._tokens):
            token = self._tokens[self._position]
            raise UnsupportedExpressionError(f"Unexpected {token.text!r}", token.line)
        return value

    # Parsing

    def _peek(self) -> Token | None:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _peek_text(self) -> str | None:
        token = self._peek()
        return token.text.lower() if token is not None else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            last = self._tokens[-1]
            raise UnsupportedExpressionError("Unexpected end of constant expression", last.line)
        self._position += 1
        return token

    def _expect(self, text: str) -> None:
        token = self._advance()
        if token.text != text:
            raise UnsupportedExpressionError(f"Expected {text!r}, got {token.text!r}", token.line)

    def _binary(self, level: int) -> Any:
        if level == len(_BINARY_LEVELS):
            return self._unary()
        operators = _BINARY_LEVELS[level]
        left = self._binary(level + 1)
        while self._peek_text() in operators:
            operator = self._advance().text.lower()
            right = self._binary(level + 1)
            left = self._apply(operator, left, right)
        return left

    def _unary(self) -> Any:
        text = self._peek_text()
        if text in ("-", "+", "!", "~"):
            token = self._advance()
            operand = self._unary()
            try:
                if text == "-":
                    return -operand
                if text == "+":
                    return +operand
                if text == "~":
                    return ~operand
            except TypeError as exc:
                raise UnsupportedExpressionError(
                    f"Invalid operand for {text!r}", token.line
                ) from exc
            return not operand
        return self._primary()

    def _primary(self) -> Any:
        token = self._advance()
        kind = token.kind
        text = token.text
        lowered = text.lower()

        if kind is TokenKind.NUMBER:
            return parse_number(text)
        if kind is TokenKind.STRING:
            return parse_string(text, token.line)
        if lowered == "null":
            return None
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        if text == "(":
            self._enter(token)
            value = self._binary(0)
            self._expect(")")
            self._depth -= 1
            return value
        if text == "[":
            return self._array(token, "]")
        if lowered == "array" and self._peek_text() == "(":
            self._advance()
            return self._array(token, ")")
        if kind in (TokenKind.IDENTIFIER, TokenKind.NS_SEPARATOR) or lowered in _RELATIVE_SCOPES:
            return self._constant_reference(token)
        raise UnsupportedExpressionError(f"Cannot evaluate {text!r}", token.line)

    def _array(self, opening: Token, closing: str) -> list[Any] | dict[Any, Any]:
        self._enter(opening)
        items: list[tuple[Any, Any]] = []
        keyed = False
        while self._peek_text() != closing:
            value = self._binary(0)
            if self._peek_text() == "=>":
                self._advance()
                key = value
                value = self._binary(0)
                keyed = True
                items.append((key, value))
            else:
                items.append((None, value))
            if self._peek_text() == ",":
                self._advance()
            elif self._peek_text() != closing:
                token = self._advance()
                raise UnsupportedExpressionError(f"Unexpected {token.text!r} in array", token.line)
        self._advance()
        self._depth -= 1

        if not keyed:
            return [value for _, value in items]
        result: dict[Any, Any] = {}
        next_key = 0
        for key, value in items:
            if key is None:
                key = next_key
            elif isinstance(key, bool):
                key = int(key)
            elif isinstance(key, float):
                key = int(key)
            elif isinstance(key, str) and key.lstrip("-").isdigit() and key == str(int(key)):
                key = int(key)
            if isinstance(key, int):
                next_key = max(next_key, key + 1)
            result[key] = value
        return result

    def _constant_reference(self, token: Token) -> Any:
        name = token.text
        while self._peek() is not None and self._peek().kind in (
            TokenKind.IDENTIFIER,
            TokenKind.NS_SEPARATOR,
        ):
            name += self._advance().text
        following = self._peek()
        if following is not None and following.text == "::" and name.lower() in _RELATIVE_SCOPES:
            self._advance()
            member = self._advance()
            name = f"{name.lower()}::{member.text}"
        elif following is not None and following.text in ("(", "::"):
            raise UnsupportedExpressionError(f"Cannot evaluate {name}{self._peek().text}", token.line)
        if self._lookup is None:
            raise UnsupportedExpressionError(f"Unknown constant {name}", token.line)
        try:
            return self._lookup(name)
        except LookupError as exc:
            raise UnsupportedExpressionError(f"Unknown constant {name}", token.line) from exc

    def _enter(self, token: Token) -> None:
        self._depth += 1
        if self._depth > self._max_nesting:
            raise UnsupportedExpressionError("Constant expression is nested too deeply", token.line)

    @staticmethod
    def _apply(operator: str, left: Any, right: Any) -> Any:
        try:
            if operator == ".":
                return php_string(left) + php_string(right)
            if operator in ("||", "or"):
                return bool(left) or bool(right)
            if operator in ("&&", "and"):
                return bool(left) and bool(right)
            if operator == "+":
                if isinstance(left, dict) and isinstance(right, dict):
                    return {**right, **left}
                return left + right
            if operator == "-":
                return left - right
            if operator == "*":
                return left * right
            if operator == "/":
                if isinstance(left, int) and isinstance(right, int) and left % right == 0:
                    return left // right
                return left / right
            if operator == "%":
                # Sign of the dividend
                dividend, divisor = int(left), int(right)
                remainder = abs(dividend) % abs(divisor)
                return -remainder if dividend < 0 else remainder
            if operator == "|":
                return left | right
            if operator == "^":
                return left ^ right
            if operator == "&":
                return left & right
            if operator == "<<":
                return left << right
            return left >> right
        except (TypeError, ZeroDivisionError) as exc:
            raise UnsupportedExpressionError(f"Cannot apply {operator!r}", details=str(exc)) from exc
