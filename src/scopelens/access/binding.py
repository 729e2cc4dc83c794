"""Field bindings chosen by the field access policy.

A binding is one of three variants, each implementing the same small set of
operations explicitly:

- DirectField: the field itself, made accessible when required
- AccessorMethods: a getter and/or a setter, with the field as fallback
- Unresolved: no legal access path was found
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from scopelens.access.introspect import FieldInfo, MethodInfo
from scopelens.core.errors import FieldNotReadableError, FieldNotWritableError


@dataclass(frozen=True)
class DirectField:
    """Read and write the field attribute."""

    field: FieldInfo

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def owner(self) -> str:
        return self.field.owner_name

    def can_read(self) -> bool:
        return self.field.accessible

    def can_write(self) -> bool:
        return self.field.accessible

    def read(self, obj: Any) -> Any:
        return self.field.get_value(obj)

    def write(self, obj: Any, value: Any) -> None:
        self.field.set_value(obj, value)

    def is_public(self) -> bool:
        return self.field.is_public()

    def doc(self) -> str | None:
        return self.field.type_text()

    def __str__(self) -> str:
        return f"{self.owner}.{self.name}"


@dataclass(frozen=True)
class AccessorMethods:
    """Read and write through accessor methods.

    A direction without accessor uses the field, if any.
    """

    owner: str
    name: str
    read_method: MethodInfo | None = None
    write_method: MethodInfo | None = None
    field: FieldInfo | None = None

    def can_read(self) -> bool:
        return self.read_method is not None or (self.field is not None and self.field.accessible)

    def can_write(self) -> bool:
        return self.write_method is not None or (self.field is not None and self.field.accessible)

    def read(self, obj: Any) -> Any:
        """Invoke the getter, or read the field.

        Raises:
            FieldNotReadableError: If there is neither getter nor accessible field.
        """
        if self.read_method is not None:
            return self.read_method.invoke(obj)
        if self.field is None:
            raise FieldNotReadableError(self.owner, self.name)
        return self.field.get_value(obj)

    def write(self, obj: Any, value: Any) -> None:
        """Invoke the setter, or write the field.

        Raises:
            FieldNotWritableError: If there is neither setter nor accessible field.
        """
        if self.write_method is not None:
            self.write_method.invoke(obj, value)
            return
        if self.field is None:
            raise FieldNotWritableError(self.owner, self.name)
        self.field.set_value(obj, value)

    def is_public(self) -> bool:
        if self.field is not None:
            return self.field.is_public()
        method = self.read_method or self.write_method
        return method is not None and method.is_public()

    def doc(self) -> str | None:
        for method in (self.read_method, self.write_method):
            if method is not None and method.doc():
                return method.doc()
        return self.field.type_text() if self.field is not None else None

    def __str__(self) -> str:
        return f"{self.owner}.{self.name}"


@dataclass(frozen=True)
class Unresolved:
    """No access path. Reads and writes go to the plain field, if declared."""

    owner: str
    name: str
    field: FieldInfo | None = None

    def can_read(self) -> bool:
        return self.field is not None and self.field.accessible

    def can_write(self) -> bool:
        return self.field is not None and self.field.accessible

    def read(self, obj: Any) -> Any:
        if self.field is None:
            raise FieldNotReadableError(self.owner, self.name)
        return self.field.get_value(obj)

    def write(self, obj: Any, value: Any) -> None:
        if self.field is None:
            raise FieldNotWritableError(self.owner, self.name)
        self.field.set_value(obj, value)

    def is_public(self) -> bool:
        return False

    def doc(self) -> str | None:
        return None

    def __str__(self) -> str:
        return f"{self.owner}.{self.name}"


Binding = Union[DirectField, AccessorMethods, Unresolved]
