"""PHP declaration scanner building the DeclarationIndex of one file."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from scopelens.core.errors import MalformedInputError, UnsupportedExpressionError
from scopelens.core.models import Constant, DeclarationKind
from scopelens.php.evaluator import ConstantEvaluator
from scopelens.php.scope import Scope
from scopelens.php.symbols import (
    NAMESPACE_SEPARATOR,
    Declaration,
    DeclarationIndex,
    join_name,
    local_name,
)
from scopelens.php.token_utils import MEMBER_MODIFIERS, STRUCTURE_MODIFIERS, PhpTokenUtils
from scopelens.php.tokens import Token, TokenKind
from scopelens.php.visitor import ScopeEvent, TokenScopeVisitor

logger = logging.getLogger(__name__)

_SCOPE_KINDS: dict[TokenKind, DeclarationKind] = {
    TokenKind.NAMESPACE: DeclarationKind.NAMESPACE,
    TokenKind.FUNCTION: DeclarationKind.FUNCTION,
    TokenKind.INTERFACE: DeclarationKind.INTERFACE,
    TokenKind.TRAIT: DeclarationKind.TRAIT,
    TokenKind.CLASS: DeclarationKind.CLASS,
}

# Owners of a scope in which a function is a method.
_METHOD_OWNERS = frozenset({TokenKind.CLASS, TokenKind.TRAIT, TokenKind.INTERFACE})

# Functions and structures resolved to a value (qualified name or native handle).
ValueFactory = Callable[[DeclarationKind, str], Any]


class PhpDeclarationScanner:
    """Index the namespaces, imports, constants, functions and structures of
    a token stream.

    The whole file is visited once. Scopes owned by a declaration are filed
    when they close; ``use`` and ``const`` statements do not open a scope and
    are picked while iterating, when they appear at file or namespace level.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        evaluate: bool = False,
        value_factory: ValueFactory | None = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            tokens: Tokens of the whole file, each carrying its stream index.
            evaluate: Evaluate constant values instead of keeping their
                source text.
            value_factory: Builds the indexed value of a function or
                structure from its qualified name. Defaults to the name.
        """
        self._tokens = list(tokens)
        self._evaluate = evaluate
        self._value_factory = value_factory
        self._namespace_scopes: list[tuple[Scope, str]] = []

    @property
    def tokens(self) -> list[Token]:
        return self._tokens

    def scan(self) -> DeclarationIndex:
        """Build the declaration index.

        Raises:
            MalformedInputError: If a constant declaration is malformed.
        """
        scopes: dict[DeclarationKind, list[Scope]] = {kind: [] for kind in _SCOPE_KINDS.values()}
        statements: list[tuple[Token, Scope]] = []

        def on_scope_event(event: ScopeEvent, scope: Scope, visitor: TokenScopeVisitor) -> None:
            if event is not ScopeEvent.CLOSE or scope.decl_token is None:
                return
            kind = _SCOPE_KINDS.get(scope.decl_token.kind)
            if kind is not None:
                scopes[kind].append(scope)

        visitor = TokenScopeVisitor(self._tokens)
        visitor.set_scope_event_handler(on_scope_event)
        for index, token in visitor:
            if token.kind is not TokenKind.USE and token.kind is not TokenKind.CONST:
                continue
            scope = visitor.current_scope
            if scope is not None and scope.level > 0 and scope.decl_kind is not TokenKind.NAMESPACE:
                continue
            if token.kind is TokenKind.CONST:
                previous = PhpTokenUtils.previous_significant(self._tokens, index)
                if previous is not None and previous.kind is TokenKind.USE:
                    # use const A\B;
                    continue
            statements.append((token, scope or Scope()))

        index = DeclarationIndex()
        self._namespace_scopes = []
        for scope in scopes[DeclarationKind.NAMESPACE]:
            name = self._declared_name(scope.decl_token)
            self._namespace_scopes.append((scope, name))
            if not name:
                logger.debug(f"Global namespace block at line {scope.decl_token.line}")
                continue
            index.add(Declaration(DeclarationKind.NAMESPACE, name, scope, scope.decl_token), name)

        for token, scope in statements:
            if token.kind is TokenKind.USE:
                self._add_use_statement(index, token, scope)
            else:
                self._add_constants(index, token, scope)

        for kind in (
            DeclarationKind.FUNCTION,
            DeclarationKind.INTERFACE,
            DeclarationKind.TRAIT,
            DeclarationKind.CLASS,
        ):
            for scope in scopes[kind]:
                self._add_scoped_declaration(index, kind, scope)

        logger.debug(
            f"Indexed {sum(len(index.names(kind)) for kind in DeclarationKind)} declaration(s)"
        )
        return index

    def scan_structure_constants(self, scope: Scope) -> dict[str, Constant]:
        """Read the constants declared in a structure body.

        Args:
            scope: Scope owned by the structure declaration.

        Returns:
            Constants keyed by name, in declaration order.
        """
        constants: dict[str, Constant] = {}
        if scope.start_index < 0 or scope.end_index < scope.start_index:
            return constants

        def lookup(name: str) -> Any:
            owner, _, key = name.rpartition("::")
            if owner in ("self", "static") and key in constants:
                return constants[key].value
            raise LookupError(name)

        visitor = TokenScopeVisitor(self._tokens)
        visitor.set_index_range(scope.start_index, scope.end_index)
        for index, token in visitor:
            if token.kind is not TokenKind.CONST:
                continue
            current = visitor.current_scope
            if current is None or current.level != 0:
                continue
            doc_comment = TokenScopeVisitor.get_doc_comment(
                self._tokens, index - 1, skip=MEMBER_MODIFIERS
            )
            for constant in self._read_constants(token, doc_comment, lookup):
                constants[constant.name] = constant
        return constants

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _add_use_statement(self, index: DeclarationIndex, token: Token, scope: Scope) -> None:
        tokens = self._tokens
        position = PhpTokenUtils.skip_whitespace(tokens, token.index + 1)
        following = PhpTokenUtils.token_at(tokens, position)
        if following is not None and following.kind in (TokenKind.FUNCTION, TokenKind.CONST):
            position = PhpTokenUtils.skip_whitespace(tokens, position + 1)

        while True:
            name, position = PhpTokenUtils.read_qualified_name(tokens, position)
            name = name.lstrip(NAMESPACE_SEPARATOR)
            if not name:
                logger.debug(f"Skipping use statement without name at line {token.line}")
                return
            if name.endswith(NAMESPACE_SEPARATOR):
                logger.debug(f"Group use statement at line {token.line} is not indexed")
                return

            position = PhpTokenUtils.skip_whitespace(tokens, position)
            alias = local_name(name)
            following = PhpTokenUtils.token_at(tokens, position)
            if following is not None and following.kind is TokenKind.AS:
                position = PhpTokenUtils.skip_whitespace(tokens, position + 1)
                alias_token = PhpTokenUtils.token_at(tokens, position)
                if not PhpTokenUtils.is_identifier(alias_token):
                    raise MalformedInputError("Alias expected after as", token.line)
                alias = alias_token.text
                position = PhpTokenUtils.skip_whitespace(tokens, position + 1)

            index.add(Declaration(DeclarationKind.USE, name, scope, token), alias)

            following = PhpTokenUtils.token_at(tokens, position)
            if following is None or not following.is_punct(","):
                return
            position = PhpTokenUtils.skip_whitespace(tokens, position + 1)

    def _add_constants(self, index: DeclarationIndex, token: Token, scope: Scope) -> None:
        namespace = self._namespace_of(token.index)
        doc_comment = TokenScopeVisitor.get_doc_comment(self._tokens, token.index - 1)

        def lookup(name: str) -> Any:
            name = name.lstrip(NAMESPACE_SEPARATOR)
            for candidate in (join_name(namespace, name), name):
                if index.contains(DeclarationKind.CONST, candidate):
                    return index.value(DeclarationKind.CONST, candidate).value
            raise LookupError(name)

        for constant in self._read_constants(token, doc_comment, lookup):
            qualified = join_name(namespace, constant.name)
            index.add(Declaration(DeclarationKind.CONST, qualified, scope, token, doc_comment), constant)

    def _add_scoped_declaration(
        self, index: DeclarationIndex, kind: DeclarationKind, scope: Scope
    ) -> None:
        token = scope.decl_token
        if kind is DeclarationKind.FUNCTION and scope.parent_decl_kind in _METHOD_OWNERS:
            return
        name = self._declared_name(token)
        if not name:
            logger.debug(f"Skipping anonymous {kind.value} at line {token.line}")
            return

        name = join_name(self._namespace_of(token.index), name)

        skip = STRUCTURE_MODIFIERS if kind is not DeclarationKind.FUNCTION else ()
        doc_comment = TokenScopeVisitor.get_doc_comment(self._tokens, token.index - 1, skip=skip)
        value = self._value_factory(kind, name) if self._value_factory else name
        index.add(Declaration(kind, name, scope, token, doc_comment), value)

    # ------------------------------------------------------------------
    # Token reading
    # ------------------------------------------------------------------

    def _declared_name(self, token: Token) -> str:
        tokens = self._tokens
        position = PhpTokenUtils.skip_whitespace(tokens, token.index + 1)
        following = PhpTokenUtils.token_at(tokens, position)
        if following is not None and following.is_punct("&"):
            position = PhpTokenUtils.skip_whitespace(tokens, position + 1)
        name, _ = PhpTokenUtils.read_qualified_name(tokens, position)
        return name

    def _read_constants(
        self, token: Token, doc_comment: str, lookup: Callable[[str], Any]
    ) -> Iterator[Constant]:
        """Read the declarators of a ``const`` statement.

        The constant name is the last identifier before ``=``, so typed
        constants (``const string NAME = ...``) are read like untyped ones.
        Constants are yielded one by one so that a declarator can refer to
        the previous ones.
        """
        tokens = self._tokens
        position = PhpTokenUtils.skip_whitespace(tokens, token.index + 1)
        while position < len(tokens):
            name_token: Token | None = None
            current = tokens[position]
            while not current.is_punct("=") and not current.is_punct(";") and not current.is_punct(","):
                if PhpTokenUtils.is_identifier(current):
                    name_token = current
                position = PhpTokenUtils.skip_whitespace(tokens, position + 1)
                if position >= len(tokens):
                    break
                current = tokens[position]
            if name_token is None:
                raise MalformedInputError("Constant name expected", token.line)

            expression, position, terminator = PhpTokenUtils.read_constant_expression(
                tokens, position
            )
            yield self._constant(name_token, expression, doc_comment, lookup)
            if terminator != ",":
                break
            position = PhpTokenUtils.skip_whitespace(tokens, position + 1)

    def _constant(
        self,
        name_token: Token,
        expression: list[Token],
        doc_comment: str,
        lookup: Callable[[str], Any],
    ) -> Constant:
        text = PhpTokenUtils.expression_text(expression)
        value: Any = text
        if self._evaluate:
            try:
                value = ConstantEvaluator(expression, lookup=lookup).evaluate()
            except UnsupportedExpressionError as exc:
                logger.warning(
                    f"Constant {name_token.text} at line {name_token.line} is kept as source text: {exc}"
                )
        return Constant(name=name_token.text, value=value, doc_comment=doc_comment, expression=text)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def _namespace_of(self, index: int) -> str:
        """Name of the innermost namespace enclosing a token, empty if global."""
        found: tuple[Scope, str] | None = None
        for scope, name in self._namespace_scopes:
            if scope.contains(index) and (found is None or scope.level > found[0].level):
                found = (scope, name)
        return found[1] if found is not None else ""
