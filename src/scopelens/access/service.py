"""Field access policy.

The service decides how a field value is read or written: directly, through
an accessor method, or by exposing a non-public field. The decision depends
on the field visibility, the accessor methods found by naming convention and
the AccessFlags of the request.

Accessor naming convention: for the field ``enabled`` and the prefix ``is``,
``is_enabled`` then ``isEnabled`` are tried. A write accessor must accept at
least one argument, which separates an ``is_enabled(self)`` getter from an
``is_enabled(self, value)`` setter. This is a convention, nothing in Python
enforces it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from functools import lru_cache
from typing import Any

from scopelens.access.binding import AccessorMethods, Binding, DirectField, Unresolved
from scopelens.access.flags import AccessFlags, has_flags
from scopelens.access.introspect import ClassInfo, ClassInfoCache, FieldInfo, MethodInfo, public_name
from scopelens.core.config import get_config
from scopelens.core.errors import FieldNotReadableError, FieldNotWritableError

logger = logging.getLogger(__name__)


def accessor_names(prefix: str, name: str) -> list[str]:
    """Accessor method names for a field, snake case first."""
    name = public_name(name)
    camel = "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)
    return [f"{prefix}_{name}", f"{prefix}{camel}"]


class FieldAccessService:
    """Read and write object fields under an access policy."""

    def __init__(
        self,
        cache: ClassInfoCache | None = None,
        read_method_prefixes: Iterable[str] | None = None,
        write_method_prefixes: Iterable[str] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            cache: Class info cache. A new one is created if omitted.
            read_method_prefixes: Read accessor prefixes (default from config).
            write_method_prefixes: Write accessor prefixes (default from config).
        """
        config = get_config()
        self._cache = cache if cache is not None else ClassInfoCache()
        self._read_prefixes = list(
            read_method_prefixes if read_method_prefixes is not None else config.read_method_prefixes
        )
        self._write_prefixes = list(
            write_method_prefixes
            if write_method_prefixes is not None
            else config.write_method_prefixes
        )

    @property
    def cache(self) -> ClassInfoCache:
        return self._cache

    def set_read_method_prefixes(self, prefixes: Iterable[str]) -> None:
        self._read_prefixes = list(prefixes)

    def set_write_method_prefixes(self, prefixes: Iterable[str]) -> None:
        self._write_prefixes = list(prefixes)

    def get_class_info(self, target: Any) -> ClassInfo:
        """Get the (cached) info of a class, an instance's class or a dotted class name."""
        return self._cache.get(target)

    # ------------------------------------------------------------------
    # Accessor methods
    # ------------------------------------------------------------------

    def find_read_method(self, target: Any, name: str) -> MethodInfo | None:
        """Find the getter of a field: the first method named after a read prefix."""
        info = self.get_class_info(target)
        for prefix in self._read_prefixes:
            for method_name in accessor_names(prefix, name):
                method = info.find_method(method_name)
                if method is not None:
                    return method
        return None

    def find_write_method(self, target: Any, name: str) -> MethodInfo | None:
        """Find the setter of a field.

        Candidates that accept no argument are skipped.
        """
        info = self.get_class_info(target)
        for prefix in self._write_prefixes:
            for method_name in accessor_names(prefix, name):
                method = info.find_method(method_name)
                if method is None:
                    continue
                if method.parameter_count == 0:
                    continue
                return method
        return None

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    def get_field_handle(self, target: Any, name: str, flags: int = 0) -> Binding:
        """Choose how to access a field.

        Args:
            target: Class, instance or dotted class name.
            name: Field public name.
            flags: AccessFlags of the request.

        Returns:
            The binding. Unresolved when no access path exists and neither
            READABLE nor WRITABLE is required.

        Raises:
            FieldNotReadableError: If READABLE is required and the field
                cannot be read.
            FieldNotWritableError: If WRITABLE is required and the field
                cannot be written.
        """
        info = self.get_class_info(target)
        flags = AccessFlags(flags)
        field = self._locate_field(info, name, has_flags(flags, AccessFlags.EXPOSE_INHERITED))
        return self._bind(info, public_name(name), field, flags)

    def _locate_field(self, info: ClassInfo, name: str, inherited: bool) -> FieldInfo | None:
        current: ClassInfo | None = info
        while current is not None:
            field = current.find_field(name)
            if field is not None:
                return field
            if not inherited:
                return None
            current = current.parent
        return None

    def _bind(
        self, info: ClassInfo, name: str, field: FieldInfo | None, flags: AccessFlags
    ) -> Binding:
        read_method: MethodInfo | None = None
        write_method: MethodInfo | None = None
        if has_flags(flags, AccessFlags.ALLOW_READ_METHOD):
            read_method = self._find_accessor(info, field, name, self.find_read_method)
        if has_flags(flags, AccessFlags.ALLOW_WRITE_METHOD):
            write_method = self._find_accessor(info, field, name, self.find_write_method)

        if field is not None and field.is_public():
            if not has_flags(flags, AccessFlags.FORCE_READ_METHOD):
                read_method = None
            if not has_flags(flags, AccessFlags.FORCE_WRITE_METHOD):
                write_method = None
        elif field is not None and has_flags(flags, AccessFlags.EXPOSE_HIDDEN):
            field.set_accessible(True)

        direct = field is not None and field.accessible
        if has_flags(flags, AccessFlags.READABLE) and read_method is None and not direct:
            raise FieldNotReadableError(info.name, name)
        if has_flags(flags, AccessFlags.WRITABLE) and write_method is None and not direct:
            raise FieldNotWritableError(info.name, name)

        if read_method is not None or write_method is not None:
            return AccessorMethods(info.name, name, read_method, write_method, field)
        if direct:
            return DirectField(field)
        return Unresolved(info.name, name, field)

    def _find_accessor(
        self,
        info: ClassInfo,
        field: FieldInfo | None,
        name: str,
        finder: Callable[[Any, str], MethodInfo | None],
    ) -> MethodInfo | None:
        # Most derived class first, then the class declaring the field.
        method = finder(info, name)
        if method is None and field is not None and field.owner is not info.type:
            method = finder(field.owner, name)
        return method

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def get_value(
        self,
        obj: Any,
        field: str | FieldInfo | Binding,
        flags: int = 0,
        default: Any = None,
    ) -> Any:
        """Read a field value.

        Args:
            obj: Instance to read from.
            field: Field name, field handle or binding.
            flags: AccessFlags of the request.
            default: Returned when the field cannot be read and READABLE is
                not required.

        Raises:
            FieldNotReadableError: If READABLE is required and the field
                cannot be read.
        """
        flags = AccessFlags(flags)
        if isinstance(field, (DirectField, AccessorMethods, Unresolved)):
            binding = field
        elif isinstance(field, FieldInfo):
            binding = self._bind(self.get_class_info(obj), field.name, field, flags)
        else:
            binding = self.get_field_handle(obj, field, flags)

        if not binding.can_read():
            if has_flags(flags, AccessFlags.READABLE):
                raise FieldNotReadableError(binding.owner, binding.name)
            return default
        return binding.read(obj)

    def get_values(self, obj: Any, flags: int = 0) -> dict[str, Any]:
        """Read every readable field of an instance.

        With EXPOSE_INHERITED, fields of ancestor classes are read first and
        with EXPOSE_HIDDEN. Fields that cannot be read are omitted.

        Returns:
            Values keyed by field public name.
        """
        flags = AccessFlags(flags) & ~AccessFlags.RW
        info = self.get_class_info(obj)
        values: dict[str, Any] = {}
        self._populate_values(values, info, obj, flags, info)
        return values

    def _populate_values(
        self,
        values: dict[str, Any],
        info: ClassInfo,
        obj: Any,
        flags: AccessFlags,
        derived: ClassInfo,
    ) -> None:
        parent = info.parent
        if has_flags(flags, AccessFlags.EXPOSE_INHERITED) and parent is not None:
            self._populate_values(values, parent, obj, flags | AccessFlags.EXPOSE_HIDDEN, derived)

        for field in info.get_fields():
            binding = self._bind(derived, field.name, field, flags)
            if binding.can_read():
                values[field.name] = binding.read(obj)

    def set_value(self, obj: Any, name: str, value: Any, flags: int = 0) -> None:
        """Write a field value.

        Raises:
            FieldNotWritableError: If the field cannot be written.
        """
        binding = self.get_field_handle(obj, name, flags)
        binding.write(obj, value)

    def set_values(self, obj: Any, values: Mapping[str, Any], flags: int = 0) -> None:
        """Write several field values.

        Fields that cannot be written are skipped.
        """
        info = self.get_class_info(obj)
        for name, value in values.items():
            try:
                self.get_field_handle(info, name, flags).write(obj, value)
            except Exception as exc:
                logger.debug(f"Skipping {info.name}.{name}: {exc}")


@lru_cache
def get_access_service() -> FieldAccessService:
    """Get the process default service.

    Returns:
        FieldAccessService singleton instance.
    """
    return FieldAccessService()
