"""Exception classes raised by vgid.

Every error derives from GlobalIdError, which is itself a ValueError, so
callers can catch the whole family or branch on a specific kind.
"""

from __future__ import annotations


class GlobalIdError(ValueError):
    """Raised when a global ID cannot be registered, encoded or decoded."""


class DuplicateRegistrationError(GlobalIdError):
    """Raised when a type, prefix or parser key is already registered."""


class InvalidPrefixError(GlobalIdError):
    """Raised when a prefix cannot be used in the wire format."""


class UnregisteredTypeError(GlobalIdError):
    """Raised when a type has no prefix, or a prefix has no type."""


class UnknownTypeError(UnregisteredTypeError):
    """Raised when no parser exists for a type at all."""


class UnknownVersionError(GlobalIdError):
    """Raised when a type is known but the requested version is not."""


class MalformedPayloadError(GlobalIdError):
    """Raised when an encoded ID is corrupt or structurally invalid."""


class NullValueError(GlobalIdError):
    """Raised when encoding a global ID that carries no value."""


class SerializationError(GlobalIdError):
    """Raised when a parser produces a tree the binary codec cannot pack."""


class TypeMismatchError(GlobalIdError):
    """Raised when a decoded ID is not of the expected type."""


__all__ = [
    "DuplicateRegistrationError",
    "GlobalIdError",
    "InvalidPrefixError",
    "MalformedPayloadError",
    "NullValueError",
    "SerializationError",
    "TypeMismatchError",
    "UnknownTypeError",
    "UnknownVersionError",
    "UnregisteredTypeError",
]
