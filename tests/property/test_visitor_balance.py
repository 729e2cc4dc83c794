"""Property tests for scope tracking on arbitrary token streams.

For any stream of braces, declarations and filler tokens, every opened scope
is closed exactly once, levels match the nesting depth and scopes stay
within the visited range.
"""

from __future__ import annotations

from hypothesis import given, strategies as st

from scopelens.php.scope import Scope
from scopelens.php.tokens import TokenKind
from scopelens.php.visitor import ScopeEvent, TokenScopeVisitor

Raw = tuple[TokenKind, str, int]

token_choices: list[Raw] = [
    (TokenKind.PUNCT, "{", 1),
    (TokenKind.PUNCT, "}", 1),
    (TokenKind.PUNCT, ";", 1),
    (TokenKind.CLASS, "class", 1),
    (TokenKind.FUNCTION, "function", 1),
    (TokenKind.NAMESPACE, "namespace", 1),
    (TokenKind.IDENTIFIER, "Name", 1),
    (TokenKind.WHITESPACE, " ", 1),
    (TokenKind.DOUBLE_COLON, "::", 1),
]

token_streams = st.lists(st.sampled_from(token_choices), max_size=60).map(
    lambda tokens: [(TokenKind.OPEN_TAG, "<?php", 1), *tokens]
)


def visit(raw: list[Raw], start: int = 0, end: int | None = None) -> tuple[list[Scope], list[Scope]]:
    opened: list[Scope] = []
    closed: list[Scope] = []

    def on_event(event: ScopeEvent, scope: Scope, visitor: TokenScopeVisitor) -> None:
        if event is ScopeEvent.OPEN:
            assert scope.level == len(opened) - len(closed)
            opened.append(scope)
        else:
            closed.append(scope)

    visitor = TokenScopeVisitor(raw)
    visitor.set_index_range(start, len(raw) if end is None else end)
    visitor.set_scope_event_handler(on_event)
    visitor.traverse()
    return opened, closed


@given(raw=token_streams)
def test_every_scope_is_closed_once(raw: list[Raw]) -> None:
    opened, closed = visit(raw)

    assert len(opened) == len(closed)
    assert {id(scope) for scope in opened} == {id(scope) for scope in closed}
    for scope in closed:
        assert scope.is_closed
        assert 0 <= scope.start_index <= scope.end_index < len(raw)


@given(raw=token_streams)
def test_scopes_nest(raw: list[Raw]) -> None:
    _, closed = visit(raw)

    for scope in closed:
        for other in closed:
            if other is scope or other.level <= scope.level:
                continue
            if scope.contains(other.start_index) and not scope.braceless:
                assert other.end_index <= scope.end_index


@given(raw=token_streams, data=st.data())
def test_range_bounds_scopes(raw: list[Raw], data: st.DataObject) -> None:
    start = data.draw(st.integers(min_value=0, max_value=len(raw)))
    end = data.draw(st.integers(min_value=start, max_value=len(raw)))
    opened, closed = visit(raw, start, end)

    assert len(opened) == len(closed)
    for scope in closed:
        assert start <= scope.start_index
        assert scope.end_index < max(end, start + 1)
