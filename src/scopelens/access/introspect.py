"""Class, field and method handles used by the field access layer.

Python has no access modifiers; the naming convention stands for them:

- ``name``: public
- ``_name``: protected
- ``__name``: private, stored under the mangled ``_Class__name`` attribute

The declared fields of a class are the names of its own annotations
(``ClassVar`` excluded) and of its own ``__slots__``. Fields are addressed by
their public name, the declared name without leading underscores.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import re
import typing
from enum import Enum
from typing import Any

from scopelens.core.errors import (
    FieldNotFoundError,
    FieldNotReadableError,
    FieldNotWritableError,
    InvalidArgumentError,
)

logger = logging.getLogger(__name__)

_CLASS_VAR_TEXT = re.compile(r"^\s*(?:typing\.)?ClassVar\b")
_SLOT_EXCLUDES = frozenset({"__dict__", "__weakref__"})


class Visibility(str, Enum):
    """Field or method visibility derived from its name."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


def public_name(name: str) -> str:
    """Declared name without its leading underscores."""
    return name.lstrip("_")


def visibility_of(name: str) -> Visibility:
    if name.startswith("__") and name.endswith("__"):
        return Visibility.PUBLIC
    if name.startswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def mangle(owner: type, name: str) -> str:
    """Attribute name under which Python stores a name declared in a class body."""
    if visibility_of(name) is not Visibility.PRIVATE:
        return name
    class_name = owner.__name__.lstrip("_")
    if not class_name:
        return name
    return f"_{class_name}{name}"


def _demangle(owner: type, name: str) -> str:
    prefix = f"_{owner.__name__.lstrip('_')}__"
    if name.startswith(prefix) and len(name) > len(prefix):
        return "__" + name[len(prefix) :]
    return name


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return _CLASS_VAR_TEXT.match(annotation) is not None
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def class_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class FieldInfo:
    """Handle on one declared field of a class.

    A non-public field can only be read or written once the handle is made
    accessible. This cannot be revoked, but it only affects this handle.
    """

    def __init__(self, owner: type, declared_name: str, annotation: Any = None) -> None:
        self.owner = owner
        self.declared_name = declared_name
        self.name = public_name(declared_name)
        self.annotation = annotation
        self.visibility = visibility_of(declared_name)
        self.attribute = mangle(owner, declared_name)
        self._accessible = self.visibility is Visibility.PUBLIC

    @property
    def owner_name(self) -> str:
        return class_name(self.owner)

    @property
    def accessible(self) -> bool:
        return self._accessible

    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC

    def is_protected(self) -> bool:
        return self.visibility is Visibility.PROTECTED

    def is_private(self) -> bool:
        return self.visibility is Visibility.PRIVATE

    def set_accessible(self, accessible: bool = True) -> None:
        if accessible:
            self._accessible = True
        elif self._accessible and not self.is_public():
            logger.debug(f"{self} stays accessible")

    def copy(self) -> FieldInfo:
        """New handle on the same field, with the default accessibility."""
        return FieldInfo(self.owner, self.declared_name, self.annotation)

    def get_value(self, obj: Any) -> Any:
        """Read the field of an instance.

        Raises:
            FieldNotReadableError: If the field is not accessible.
            AttributeError: If the instance has no value for the field.
        """
        if not self._accessible:
            raise FieldNotReadableError(self.owner_name, self.name)
        return getattr(obj, self.attribute)

    def set_value(self, obj: Any, value: Any) -> None:
        """Write the field of an instance.

        Raises:
            FieldNotWritableError: If the field is not accessible.
        """
        if not self._accessible:
            raise FieldNotWritableError(self.owner_name, self.name)
        setattr(obj, self.attribute, value)

    def type_text(self) -> str | None:
        """Annotation of the field, as text."""
        if self.annotation is None:
            return None
        if isinstance(self.annotation, str):
            return self.annotation
        if isinstance(self.annotation, type):
            return self.annotation.__name__
        return str(self.annotation).replace("typing.", "")

    def __repr__(self) -> str:
        return f"<FieldInfo {self.owner_name}.{self.declared_name}>"


class MethodInfo:
    """Handle on one method of a class."""

    def __init__(self, owner: type, name: str, function: Any) -> None:
        self.owner = owner
        self.name = name
        self._function = function

    @property
    def owner_name(self) -> str:
        return class_name(self.owner)

    @property
    def visibility(self) -> Visibility:
        return visibility_of(self.name)

    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC

    def is_static(self) -> bool:
        return isinstance(self._function, (staticmethod, classmethod))

    @property
    def parameter_count(self) -> int:
        """Number of parameters, ``self`` and ``cls`` excluded."""
        function = self._function
        bound_first = not isinstance(function, staticmethod)
        if isinstance(function, (staticmethod, classmethod)):
            function = function.__func__
        try:
            parameters = list(inspect.signature(function).parameters.values())
        except (TypeError, ValueError):
            return 0
        if bound_first and parameters:
            parameters = parameters[1:]
        return len(parameters)

    def doc(self) -> str | None:
        return inspect.getdoc(self._function)

    def invoke(self, obj: Any, *args: Any) -> Any:
        bound = self._function.__get__(obj, type(obj))
        return bound(*args)

    def __repr__(self) -> str:
        return f"<MethodInfo {self.owner_name}.{self.name}>"


class ClassInfo:
    """Fields and methods of a class."""

    def __init__(self, cls: type, cache: ClassInfoCache | None = None) -> None:
        self.type = cls
        self.name = class_name(cls)
        self._cache = cache
        self._fields: dict[str, FieldInfo] = {}
        for declared_name, annotation in self._declared_fields(cls):
            field = FieldInfo(cls, declared_name, annotation)
            self._fields.setdefault(field.name, field)

    @staticmethod
    def _declared_fields(cls: type) -> list[tuple[str, Any]]:
        declared: list[tuple[str, Any]] = []
        try:
            annotations = inspect.get_annotations(cls)
        except NameError:
            annotations = dict(cls.__dict__.get("__annotations__", {}))
        for name, annotation in annotations.items():
            if _is_class_var(annotation):
                continue
            declared.append((_demangle(cls, name), annotation))

        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in _SLOT_EXCLUDES:
                continue
            declared.append((slot, None))
        return declared

    @property
    def parent(self) -> ClassInfo | None:
        """Info of the next class of the MRO, None when it is ``object``."""
        mro = self.type.__mro__
        if len(mro) < 2 or mro[1] is object:
            return None
        if self._cache is not None:
            return self._cache.get(mro[1])
        return ClassInfo(mro[1])

    def ancestors(self) -> list[ClassInfo]:
        ancestors: list[ClassInfo] = []
        parent = self.parent
        while parent is not None:
            ancestors.append(parent)
            parent = parent.parent
        return ancestors

    def own_fields(self) -> list[FieldInfo]:
        return [field.copy() for field in self._fields.values()]

    def has_field(self, name: str) -> bool:
        return self.find_field(name) is not None

    def find_field(self, name: str) -> FieldInfo | None:
        """Find a field declared by this class, or a non-private inherited one.

        Returns:
            A new handle on the field, or None.
        """
        name = public_name(name)
        if name in self._fields:
            return self._fields[name].copy()
        for ancestor in self.ancestors():
            field = ancestor._fields.get(name)
            if field is not None and not field.is_private():
                return field.copy()
        return None

    def get_field(self, name: str) -> FieldInfo:
        """Get a field declared by this class, or a non-private inherited one.

        Raises:
            FieldNotFoundError: If there is no such field.
        """
        field = self.find_field(name)
        if field is None:
            raise FieldNotFoundError(f"{name} is not a field of {self.name}")
        return field

    def get_fields(self) -> list[FieldInfo]:
        """Own fields, then non-private inherited fields not redeclared."""
        fields = {name: field.copy() for name, field in self._fields.items()}
        for ancestor in self.ancestors():
            for name, field in ancestor._fields.items():
                if name not in fields and not field.is_private():
                    fields[name] = field.copy()
        return list(fields.values())

    def has_method(self, name: str) -> bool:
        return self.find_method(name) is not None

    def find_method(self, name: str) -> MethodInfo | None:
        """Find a method of the class or of its ancestors."""
        for cls in self.type.__mro__:
            if cls is object:
                break
            function = cls.__dict__.get(name)
            if function is None:
                continue
            if inspect.isfunction(function) or isinstance(function, (staticmethod, classmethod)):
                return MethodInfo(cls, name, function)
            return None
        return None

    def __repr__(self) -> str:
        return f"<ClassInfo {self.name}>"


class ClassInfoCache:
    """Process-local cache of ClassInfo, keyed by lower-cased class name."""

    def __init__(self) -> None:
        self._classes: dict[str, ClassInfo] = {}

    def get(self, target: Any) -> ClassInfo:
        """Get the info of a class.

        Args:
            target: ClassInfo, class, instance, or dotted class name
                (``package.module.Class``).

        Raises:
            InvalidArgumentError: If a class name cannot be imported.
        """
        if isinstance(target, ClassInfo):
            return target
        if isinstance(target, str):
            cls = self._import(target)
        elif isinstance(target, type):
            cls = target
        else:
            cls = type(target)

        key = class_name(cls).lower()
        info = self._classes.get(key)
        if info is None or info.type is not cls:
            if info is not None:
                logger.debug(f"Replacing cached class info of {key}")
            info = ClassInfo(cls, self)
            self._classes[key] = info
        return info

    def clear(self) -> None:
        self._classes.clear()

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._classes

    @staticmethod
    def _import(dotted: str) -> type:
        module_name, _, attribute_path = dotted.rpartition(".")
        attributes = [attribute_path]
        while module_name:
            try:
                obj: Any = importlib.import_module(module_name)
            except ImportError:
                module_name, _, parent = module_name.rpartition(".")
                attributes.insert(0, parent)
                continue
            for attribute in attributes:
                obj = getattr(obj, attribute, None)
                if obj is None:
                    break
            if isinstance(obj, type):
                return obj
            break
        raise InvalidArgumentError(f"{dotted} is not an importable class name")
