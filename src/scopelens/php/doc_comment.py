"""PHPDoc documentation comment parsing."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

_COMMENT_PREFIX = re.compile(r"^(?:/\*{2}\**\s*|\*+\s*)")
_COMMENT_SUFFIX = re.compile(r"\s*\*+/$")
_COMMENT_END = re.compile(r"^\*+/")
_PROPERTY_DECLARATION = re.compile(r"(?P<types>[^\s]+)(?:\s+(?P<documentation>.*))?")
_VARIABLE_DECLARATION = re.compile(
    r"(?P<type>.*?)\s+\$(?P<name>[a-zA-Z_][a-zA-Z0-9_]*)(?:\s+(?P<documentation>.*))?"
)
_RETURN_DECLARATION = re.compile(r"(?P<type>.*?)(?:(?:\s+(?P<documentation>.*))|$)")
_TYPE_NAME = r"(?:\\)?[a-zA-Z_][a-zA-Z0-9_]*(?:\\[a-zA-Z_][a-zA-Z0-9_]*)*"
_TYPE_ARRAY_OF_TYPE = re.compile(rf"^(?P<type>{_TYPE_NAME})\[\]$")
_TYPE_MAP = re.compile(rf"array<\s*(?P<key>{_TYPE_NAME})\s*,\s*(?P<value>{_TYPE_NAME})\s*>")


class TypeDocumentation(BaseModel):
    """Types and description given by a @param, @var or @return tag."""

    types: list[str] = Field(default_factory=list, description="Declared types")
    documentation: str = Field("", description="Free text following the types")


class TypeProperties(BaseModel):
    """Decomposition of a PHPDoc type declaration."""

    type: str = Field(..., description="Type name without decoration")
    key: str | None = Field(None, description="Key type for array types")
    value: str | None = Field(None, description="Value type for array types")


class DocComment:
    """Normalized content of a ``/** ... */`` comment.

    Each logical line is either free text or a line starting with a ``@tag``.
    Continuation lines are joined to the line they continue, and empty lines
    separate paragraphs.
    """

    def __init__(self, text: str) -> None:
        self._lines: list[str] = []
        content = ""
        for raw in text.splitlines():
            line = raw.strip()
            if _COMMENT_END.match(line):
                continue
            line = _COMMENT_PREFIX.sub("", line)
            line = _COMMENT_SUFFIX.sub("", line)

            if not line or line.startswith("@"):
                if content:
                    self._lines.append(content)
                content = line
                continue

            if content:
                content += " "
            content += line

        if content:
            self._lines.append(content)

    @staticmethod
    def type_declaration_properties(declaration: str) -> TypeProperties:
        """Decompose a type declaration appearing in @param, @var or @return.

        ``Foo[]`` is an array of integer keys and Foo values, ``array<K,V>`` a
        map of K to V. Any other declaration is returned as is.
        """
        match = _TYPE_ARRAY_OF_TYPE.search(declaration)
        if match:
            return TypeProperties(type="array", key="integer", value=match.group("type"))
        match = _TYPE_MAP.search(declaration)
        if match:
            return TypeProperties(type="array", key=match.group("key"), value=match.group("value"))
        return TypeProperties(type=declaration)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def text_lines(self) -> list[str]:
        """Lines that are not tags."""
        return [line for line in self._lines if not line.startswith("@")]

    def abstract(self) -> str | None:
        """First text line, if any."""
        text_lines = self.text_lines()
        return text_lines[0] if text_lines else None

    def details(self, glue: str | None = None) -> list[str] | str | None:
        """All text lines except the first one.

        Args:
            glue: If set, join the lines with it.
        """
        text_lines = self.text_lines()[1:]
        if not text_lines:
            return None
        if glue:
            return glue.join(text_lines)
        return text_lines

    def tags(self, name: str) -> list[str]:
        """Content of every line with the given tag."""
        return [content for content in self._iter_tag(name)]

    def tag(self, name: str, index: int = 0) -> str | None:
        """Content of the nth line with the given tag."""
        tags = self.tags(name)
        if 0 <= index < len(tags):
            return tags[index]
        return None

    def has_tag(self, name: str) -> bool:
        return next(self._iter_tag(name), None) is not None

    def parameter(self, name: str) -> TypeDocumentation | None:
        """Type and documentation of a function parameter."""
        return self._find_variable_declaration("param", name)

    def variable(self, name: str | None = None) -> TypeDocumentation | None:
        """Type and documentation of a variable.

        Args:
            name: Variable name. If None, use the first @var tag.
        """
        if name:
            return self._find_variable_declaration("var", name)

        var = self.tag("var")
        if var is None:
            return None
        types = var
        documentation = ""
        match = _PROPERTY_DECLARATION.match(var)
        if match:
            types = match.group("types")
            documentation = match.group("documentation") or ""
        return TypeDocumentation(types=types.split("|"), documentation=documentation)

    def return_(self) -> TypeDocumentation | None:
        """Types and documentation given by the @return tag."""
        tag = self.tag("return")
        if not tag:
            return None
        match = _RETURN_DECLARATION.match(tag)
        if match is None:
            return TypeDocumentation(documentation=tag)
        return TypeDocumentation(
            types=match.group("type").split("|"),
            documentation=match.group("documentation") or "",
        )

    def __str__(self) -> str:
        body = "\n\n".join(f" * {line}" for line in self._lines)
        return f"/**\n{body}\n */\n"

    def _iter_tag(self, name: str):
        prefix = f"@{name}"
        for line in self._lines:
            if not line.startswith(prefix):
                continue
            content = line[len(prefix) :]
            if content:
                trimmed = content.lstrip()
                # @name but not @nameAndSomething
                if content == trimmed:
                    continue
                content = trimmed
            yield content

    def _find_variable_declaration(self, tag: str, name: str) -> TypeDocumentation | None:
        for text in self.tags(tag):
            match = _VARIABLE_DECLARATION.match(text)
            if match and match.group("name") == name:
                return TypeDocumentation(
                    types=match.group("type").split("|"),
                    documentation=match.group("documentation") or "",
                )
        return None
