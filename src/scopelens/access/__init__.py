"""Object field access under a visibility and accessor policy."""

from scopelens.access.binding import AccessorMethods, Binding, DirectField, Unresolved
from scopelens.access.flags import AccessFlags, has_flags
from scopelens.access.introspect import (
    ClassInfo,
    ClassInfoCache,
    FieldInfo,
    MethodInfo,
    Visibility,
)
from scopelens.access.service import FieldAccessService, accessor_names, get_access_service

__all__ = [
    "AccessFlags",
    "AccessorMethods",
    "Binding",
    "ClassInfo",
    "ClassInfoCache",
    "DirectField",
    "FieldAccessService",
    "FieldInfo",
    "MethodInfo",
    "Unresolved",
    "Visibility",
    "accessor_names",
    "get_access_service",
    "has_flags",
]
