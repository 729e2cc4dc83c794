"""Unit tests for the token scope visitor."""

from __future__ import annotations

import pytest

from scopelens.core.errors import InvalidInputError
from scopelens.php.scope import Scope
from scopelens.php.tokens import Token, TokenKind
from scopelens.php.visitor import ScopeEvent, TokenScopeVisitor

K = TokenKind


def raw(*items: tuple[TokenKind, str] | str) -> list[tuple[TokenKind, str, int] | str]:
    """Build raw tokens; bare strings are punctuation."""
    tokens: list[tuple[TokenKind, str, int] | str] = []
    for item in items:
        if isinstance(item, str):
            tokens.append(item)
        else:
            tokens.append((item[0], item[1], 1))
    return tokens


WS = (K.WHITESPACE, " ")
OPEN = (K.OPEN_TAG, "<?php")


def closed_scopes(visitor: TokenScopeVisitor) -> list[Scope]:
    scopes: list[Scope] = []

    def handler(event: ScopeEvent, scope: Scope, _visitor: TokenScopeVisitor) -> None:
        if event is ScopeEvent.CLOSE:
            scopes.append(scope)

    visitor.set_scope_event_handler(handler)
    visitor.traverse()
    return scopes


def owned_by(scopes: list[Scope], kind: TokenKind) -> list[Scope]:
    return [scope for scope in scopes if scope.decl_kind is kind]


class TestConstruction:
    def test_accepts_token_list(self) -> None:
        tokens = [Token(K.OPEN_TAG, "<?php", 1, 0), Token(K.PUNCT, ";", 1, 1)]
        visitor = TokenScopeVisitor(tokens)
        assert len(visitor) == 2
        assert visitor.token(1) is tokens[1]

    def test_accepts_raw_tuples(self) -> None:
        visitor = TokenScopeVisitor(iter(raw(OPEN, WS, ";")))
        token = visitor.token(2)
        assert token.kind is K.PUNCT
        assert token.text == ";"
        assert token.index == 2

    def test_raw_token_list_is_left_untouched(self) -> None:
        tokens = raw(OPEN, WS, "{", "}")
        visitor = TokenScopeVisitor(tokens)
        visitor.traverse()
        assert tokens == raw(OPEN, WS, "{", "}")
        assert visitor.token(2).text == "{"

    def test_accepts_source_text(self) -> None:
        visitor = TokenScopeVisitor("<?php class A {}")
        scopes = closed_scopes(visitor)
        assert [scope.decl_kind for scope in scopes] == [K.CLASS, K.OPEN_TAG]

    @pytest.mark.parametrize("source", [42, None, {"a": 1}, 3.5])
    def test_rejects_other_input(self, source: object) -> None:
        with pytest.raises(InvalidInputError):
            TokenScopeVisitor(source)  # type: ignore[arg-type]

    def test_invalid_input_is_a_type_error(self) -> None:
        with pytest.raises(TypeError):
            TokenScopeVisitor(7)  # type: ignore[arg-type]

    def test_rejects_non_callable_handler(self) -> None:
        visitor = TokenScopeVisitor(raw(OPEN))
        with pytest.raises(InvalidInputError):
            visitor.set_scope_event_handler("handler")  # type: ignore[arg-type]


class TestScopes:
    def test_open_tag_opens_file_scope(self) -> None:
        scopes = closed_scopes(TokenScopeVisitor(raw(OPEN, WS)))
        assert len(scopes) == 1
        assert scopes[0].level == 0
        assert scopes[0].decl_kind is K.OPEN_TAG
        assert scopes[0].start_index == 0
        assert scopes[0].end_index == 1

    def test_class_scope_is_owned_by_class_token(self) -> None:
        tokens = raw(OPEN, WS, (K.CLASS, "class"), WS, (K.IDENTIFIER, "A"), WS, "{", "}")
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        (class_scope,) = owned_by(scopes, K.CLASS)
        assert class_scope.level == 1
        assert class_scope.start_index == 6
        assert class_scope.end_index == 7
        assert class_scope.parent_decl_kind is K.OPEN_TAG
        assert class_scope.decl_token.index == 2

    def test_method_scope_parent_is_class(self) -> None:
        tokens = raw(
            OPEN, (K.CLASS, "class"), (K.IDENTIFIER, "A"), "{",
            (K.FUNCTION, "function"), (K.IDENTIFIER, "f"), "(", ")", "{", "}",
            "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        (method,) = owned_by(scopes, K.FUNCTION)
        assert method.level == 2
        assert method.parent_decl_kind is K.CLASS

    def test_anonymous_block_has_no_owner(self) -> None:
        tokens = raw(OPEN, (K.KEYWORD, "if"), "(", (K.IDENTIFIER, "true"), ")", "{", "}")
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        block = scopes[0]
        assert block.decl_token is None
        assert block.level == 1

    def test_interface_method_is_not_pending(self) -> None:
        tokens = raw(
            OPEN, (K.INTERFACE, "interface"), (K.IDENTIFIER, "I"), "{",
            (K.FUNCTION, "function"), (K.IDENTIFIER, "f"), "(", ")", ";",
            "}",
            "{", "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert owned_by(scopes, K.FUNCTION) == []
        assert len(owned_by(scopes, K.INTERFACE)) == 1
        # The block after the interface is anonymous
        assert [scope.decl_token for scope in scopes if scope.level == 1][-1] is None

    def test_abstract_method_clears_pending(self) -> None:
        tokens = raw(
            OPEN, (K.CLASS, "class"), (K.IDENTIFIER, "A"), "{",
            (K.KEYWORD, "abstract"), (K.FUNCTION, "function"), (K.IDENTIFIER, "f"), "(", ")", ";",
            (K.KEYWORD, "if"), "{", "}",
            "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert owned_by(scopes, K.FUNCTION) == []
        inner = [scope for scope in scopes if scope.level == 2]
        assert inner[0].decl_token is None

    def test_function_inside_function_is_not_pending(self) -> None:
        tokens = raw(
            OPEN, (K.FUNCTION, "function"), (K.IDENTIFIER, "f"), "(", ")", "{",
            (K.FUNCTION, "function"), "(", ")", "{", "}", ";",
            "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        functions = owned_by(scopes, K.FUNCTION)
        assert len(functions) == 1
        assert functions[0].level == 1

    def test_class_constant_literal_is_not_a_declaration(self) -> None:
        tokens = raw(
            OPEN, (K.IDENTIFIER, "Foo"), WS, (K.DOUBLE_COLON, "::"), WS, (K.CLASS, "class"), ";",
            (K.KEYWORD, "if"), "{", "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert owned_by(scopes, K.CLASS) == []

    def test_braced_namespaces(self) -> None:
        tokens = raw(
            OPEN,
            (K.NAMESPACE, "namespace"), WS, (K.IDENTIFIER, "A"), WS, "{",
            (K.CLASS, "class"), (K.IDENTIFIER, "X"), "{", "}",
            "}",
            (K.NAMESPACE, "namespace"), WS, (K.IDENTIFIER, "B"), WS, "{", "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        namespaces = owned_by(scopes, K.NAMESPACE)
        assert [scope.decl_token.index for scope in namespaces] == [1, 11]
        assert all(scope.level == 1 for scope in namespaces)
        (class_scope,) = owned_by(scopes, K.CLASS)
        assert class_scope.parent_decl_kind is K.NAMESPACE

    def test_braceless_namespace_extends_to_next_namespace(self) -> None:
        tokens = raw(
            OPEN,
            (K.NAMESPACE, "namespace"), WS, (K.IDENTIFIER, "A"), ";",
            (K.CLASS, "class"), (K.IDENTIFIER, "X"), "{", "}",
            (K.NAMESPACE, "namespace"), WS, (K.IDENTIFIER, "B"), ";",
            (K.CLASS, "class"), (K.IDENTIFIER, "Y"), "{", "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        first, second = owned_by(scopes, K.NAMESPACE)
        assert first.braceless and second.braceless
        assert first.start_index == 4
        assert first.end_index == 8
        assert second.start_index == 12
        assert second.end_index == len(tokens) - 1
        classes = owned_by(scopes, K.CLASS)
        assert first.contains(classes[0].start_index)
        assert second.contains(classes[1].start_index)

    def test_relative_namespace_operator_is_not_a_declaration(self) -> None:
        tokens = raw(
            OPEN,
            (K.NAMESPACE, "namespace"), (K.NS_SEPARATOR, "\\"), (K.IDENTIFIER, "f"), "(", ")", ";",
            (K.KEYWORD, "if"), "{", "}",
        )
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert owned_by(scopes, K.NAMESPACE) == []

    def test_second_open_tag_does_not_nest(self) -> None:
        tokens = raw(OPEN, WS, (K.CLOSE_TAG, "?>"), (K.INLINE_HTML, "<p/>"), OPEN, WS)
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert len(scopes) == 1
        assert scopes[0].end_index == len(tokens) - 1

    def test_unclosed_scopes_are_closed_at_end(self) -> None:
        tokens = raw(OPEN, (K.CLASS, "class"), (K.IDENTIFIER, "A"), "{", "{")
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert [scope.level for scope in scopes] == [2, 1, 0]
        assert all(scope.end_index == len(tokens) - 1 for scope in scopes)
        assert all(scope.is_closed for scope in scopes)

    def test_unbalanced_closing_bracket_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        tokens = raw("}", OPEN)
        scopes = closed_scopes(TokenScopeVisitor(tokens))
        assert len(scopes) == 1
        assert "Unbalanced" in caplog.text

    def test_open_event_precedes_token(self) -> None:
        visitor = TokenScopeVisitor(raw(OPEN, "{", "}"))
        events: list[tuple[ScopeEvent, int]] = []
        visitor.set_scope_event_handler(
            lambda event, scope, v: events.append((event, scope.start_index))
        )
        seen = []
        for index, _token in visitor:
            seen.append((index, list(events)))
        assert seen[1][1] == [(ScopeEvent.OPEN, 0), (ScopeEvent.OPEN, 1)]
        assert events[-1] == (ScopeEvent.CLOSE, 0)

    def test_current_scope(self) -> None:
        visitor = TokenScopeVisitor(raw(OPEN, (K.CLASS, "class"), "{", (K.CONST, "const"), "}"))
        levels = {}
        for index, _token in visitor:
            scope = visitor.current_scope
            levels[index] = scope.level if scope else None
        assert levels == {0: 0, 1: 0, 2: 1, 3: 1, 4: 0}

    def test_traverse_callback(self) -> None:
        visitor = TokenScopeVisitor(raw(OPEN, "{", "}"))
        calls: list[tuple[int, str, int | None]] = []
        visitor.traverse(
            lambda index, token, scope: calls.append(
                (index, token.text, scope.level if scope else None)
            )
        )
        assert calls == [(0, "<?php", 0), (1, "{", 1), (2, "}", 0)]

    def test_partial_iteration_leaves_scopes_unvisited(self) -> None:
        tokens = raw(OPEN, (K.CLASS, "class"), "{", "}", (K.CLASS, "class"), "{", "}")
        visitor = TokenScopeVisitor(tokens)
        closed: list[Scope] = []
        visitor.set_scope_event_handler(
            lambda event, scope, v: closed.append(scope) if event is ScopeEvent.CLOSE else None
        )
        for index, _token in visitor:
            if index == 3:
                break
        assert len(closed) == 1
        assert closed[0].end_index == 3


class TestRange:
    TOKENS = raw(
        OPEN,
        (K.CLASS, "class"), (K.IDENTIFIER, "A"), "{",
        (K.CONST, "const"), (K.IDENTIFIER, "X"), "=", (K.NUMBER, "1"), ";",
        (K.FUNCTION, "function"), (K.IDENTIFIER, "f"), "(", ")", "{", "}",
        "}",
    )

    def test_index_range_restricts_traversal(self) -> None:
        visitor = TokenScopeVisitor(self.TOKENS)
        visitor.set_index_range(3, 15)
        indexes = [index for index, _token in visitor]
        assert indexes == list(range(3, 15))
        assert len(visitor) == 12

    def test_body_scope_is_level_zero(self) -> None:
        visitor = TokenScopeVisitor(self.TOKENS)
        visitor.set_index_range(3, 15)
        levels = {}
        for index, token in visitor:
            if token.kind is K.CONST:
                levels["const"] = visitor.current_scope.level
        assert levels == {"const": 0}

    def test_range_is_clamped(self) -> None:
        visitor = TokenScopeVisitor(self.TOKENS)
        visitor.set_index_range(-5, 1000)
        assert visitor.start_index == 0
        assert visitor.end_index == len(self.TOKENS)

    def test_start_and_end_setters(self) -> None:
        visitor = TokenScopeVisitor(self.TOKENS)
        visitor.set_end_index(4)
        visitor.set_start_index(10)
        assert visitor.start_index == 10
        assert visitor.end_index == 10
        assert len(visitor) == 0

    def test_reversed_range_is_rejected(self) -> None:
        visitor = TokenScopeVisitor(self.TOKENS)
        with pytest.raises(InvalidInputError):
            visitor.set_index_range(5, 2)

    def test_forced_close_is_clamped_to_range(self) -> None:
        visitor = TokenScopeVisitor(self.TOKENS)
        visitor.set_index_range(3, 10)
        scopes = closed_scopes(visitor)
        assert scopes[-1].start_index == 3
        assert scopes[-1].end_index == 9


class TestHelpers:
    def test_skip_whitespace(self) -> None:
        tokens = [
            Token.from_tuple(item, index)
            for index, item in enumerate(
                raw(OPEN, WS, (K.COMMENT, "// c"), (K.DOC_COMMENT, "/** d */"), ";")
            )
        ]
        assert TokenScopeVisitor.skip_whitespace(tokens, 1) == 4
        assert TokenScopeVisitor.skip_whitespace(tokens, 5) == 5

    def test_previous_significant(self) -> None:
        tokens = [Token.from_tuple(item, index) for index, item in enumerate(raw(OPEN, WS, WS, ";"))]
        assert TokenScopeVisitor.previous_significant(tokens, 3) == 0
        assert TokenScopeVisitor.previous_significant(tokens, 0) == -1

    def test_get_doc_comment(self) -> None:
        tokens = [
            Token.from_tuple(item, index)
            for index, item in enumerate(
                raw(OPEN, WS, (K.DOC_COMMENT, "/** Doc */"), WS, (K.KEYWORD, "final"), WS, (K.CLASS, "class"))
            )
        ]
        assert TokenScopeVisitor.get_doc_comment(tokens, 5, skip=("final",)) == "/** Doc */"
        assert TokenScopeVisitor.get_doc_comment(tokens, 5) == ""

    def test_get_doc_comment_stops_at_code(self) -> None:
        tokens = [
            Token.from_tuple(item, index)
            for index, item in enumerate(raw((K.DOC_COMMENT, "/** Doc */"), ";", WS, (K.CLASS, "class")))
        ]
        assert TokenScopeVisitor.get_doc_comment(tokens, 2) == ""
