"""Property tests for the declaration index of generated PHP files.

For any file made of namespaces holding classes, functions and constants:

- indexing the same source twice gives identical declarations
- every declaration resolves back to itself from its local, qualified and
  fully qualified names
- queries are idempotent and the index is built once
"""

from __future__ import annotations

from typing import Any

from hypothesis import HealthCheck, given, settings, strategies as st

from scopelens.core.models import DeclarationKind, FileFlags
from scopelens.php.source_file import SourceFile

# "Q" keeps generated names clear of PHP reserved words
identifier = st.from_regex(r"Q[a-z]{1,6}", fullmatch=True)


@st.composite
def php_program(draw: st.DrawFn) -> dict[str, Any]:
    """Generate the declarations of a PHP file and its source text.

    Returns:
        Dict with the namespaces, the expected qualified names per kind,
        the constant values and the source.
    """
    names = draw(st.lists(identifier, min_size=4, max_size=16, unique_by=str.lower))
    namespace_count = draw(st.integers(min_value=1, max_value=3))
    namespaces = [f"App\\{name}" for name in names[:namespace_count]]
    braced = draw(st.booleans())

    expected: dict[DeclarationKind, list[str]] = {
        DeclarationKind.CLASS: [],
        DeclarationKind.FUNCTION: [],
        DeclarationKind.CONST: [],
    }
    values: dict[str, int] = {}
    positions: dict[str, tuple[int, int]] = {}
    blocks: dict[str, list[str]] = {namespace: [] for namespace in namespaces}
    for name in names[namespace_count:]:
        namespace = draw(st.sampled_from(namespaces))
        kind = draw(
            st.sampled_from([DeclarationKind.CLASS, DeclarationKind.FUNCTION, DeclarationKind.CONST])
        )
        qualified = f"{namespace}\\{name}"
        positions[qualified] = (namespaces.index(namespace), len(blocks[namespace]))
        if kind is DeclarationKind.CLASS:
            blocks[namespace].append(f"class {name}\n{{\n\tconst SIZE = 1;\n}}\n")
        elif kind is DeclarationKind.FUNCTION:
            blocks[namespace].append(f"function {name}()\n{{\n\treturn 1;\n}}\n")
        else:
            value = draw(st.integers(min_value=0, max_value=10_000))
            values[qualified] = value
            blocks[namespace].append(f"const {name} = {value};\n")
        expected[kind].append(qualified)

    parts = ["<?php\n"]
    for namespace in namespaces:
        body = "\n".join(blocks[namespace])
        if braced:
            parts.append(f"namespace {namespace}\n{{\n{body}}}\n")
        else:
            parts.append(f"namespace {namespace};\n\n{body}\n")

    # Declarations are indexed in source order, per kind
    ordered = {
        kind: sorted(qualified_names, key=positions.__getitem__)
        for kind, qualified_names in expected.items()
    }
    return {
        "namespaces": namespaces,
        "expected": ordered,
        "values": values,
        "source": "".join(parts),
    }


@given(program=php_program())
@settings(suppress_health_check=[HealthCheck.too_slow])
def test_declarations_are_indexed(program: dict[str, Any]) -> None:
    source = SourceFile.from_source(program["source"], FileFlags.SAFE)

    assert source.get_namespaces() == program["namespaces"]
    assert source.get_class_names() == program["expected"][DeclarationKind.CLASS]
    assert source.get_function_names() == program["expected"][DeclarationKind.FUNCTION]
    assert source.get_constant_names() == program["expected"][DeclarationKind.CONST]
    for qualified, value in program["values"].items():
        assert source.get_constant(qualified).value == value


@given(program=php_program())
@settings(suppress_health_check=[HealthCheck.too_slow])
def test_indexing_is_deterministic(program: dict[str, Any]) -> None:
    first = SourceFile.from_source(program["source"])
    second = SourceFile.from_source(program["source"])

    assert first.declaration_index().definitions == second.declaration_index().definitions


@given(program=php_program())
@settings(suppress_health_check=[HealthCheck.too_slow])
def test_names_resolve_to_themselves(program: dict[str, Any]) -> None:
    source = SourceFile.from_source(program["source"])

    for kind, qualified_names in program["expected"].items():
        for qualified in qualified_names:
            local = qualified.rpartition("\\")[2]
            fully_qualified = source.fully_qualified_name(qualified, kind)
            assert fully_qualified == "\\" + qualified
            assert source.qualified_name(fully_qualified.lstrip("\\"), kind) == qualified
            assert source.qualified_name(local, kind) == qualified
            assert source.qualified_name(local) == qualified


@given(program=php_program())
@settings(suppress_health_check=[HealthCheck.too_slow])
def test_queries_are_idempotent(program: dict[str, Any]) -> None:
    source = SourceFile.from_source(program["source"])

    index = source.declaration_index()
    assert source.get_structures() == source.get_structures()
    assert source.get_constants() == source.get_constants()
    assert source.declaration_index() is index

    for qualified in program["expected"][DeclarationKind.CLASS]:
        constants = source.get_structure_constants(qualified)
        assert source.get_structure_constants(qualified) == constants
        assert list(constants) == ["SIZE"]
