"""Field access requirement flags."""

from __future__ import annotations

from enum import IntFlag


class AccessFlags(IntFlag):
    """Requirements and permissions of a field access request."""

    NONE = 0
    # Non-public fields can be read and written directly.
    EXPOSE_HIDDEN = 0x01
    # The field must be writable. Fail otherwise.
    WRITABLE = 0x02
    # The field must be readable. Fail otherwise.
    READABLE = 0x04
    RW = READABLE | WRITABLE
    # Look for the field in ancestor classes.
    EXPOSE_INHERITED = 0x08
    # A non-public field can be written through its setter.
    ALLOW_WRITE_METHOD = 0x20
    # A non-public field can be read through its getter.
    ALLOW_READ_METHOD = 0x40
    ALLOW_RW_METHODS = ALLOW_READ_METHOD | ALLOW_WRITE_METHOD
    # Always write through the setter when one exists, even for public fields.
    FORCE_WRITE_METHOD = 0x200 | ALLOW_WRITE_METHOD
    # Always read through the getter when one exists, even for public fields.
    FORCE_READ_METHOD = 0x400 | ALLOW_READ_METHOD
    FORCE_RW_METHODS = FORCE_READ_METHOD | FORCE_WRITE_METHOD


def has_flags(flags: int, required: int) -> bool:
    """Tell whether every bit of ``required`` is set in ``flags``."""
    return (flags & required) == required
