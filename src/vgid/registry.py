"""Registries that drive encode/decode dispatch.

Both registries are plain in-memory maps with no locking. Populate them once
at startup, then share them freely between threads for encoding and decoding.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from vgid.exceptions import (
    DuplicateRegistrationError,
    GlobalIdError,
    InvalidPrefixError,
    UnknownTypeError,
    UnknownVersionError,
)


if TYPE_CHECKING:
    from collections.abc import ItemsView

    from vgid.globalid import Parser


logger = logging.getLogger(__name__)

# The decoder splits on the first '_', so a prefix may never contain one.
# The rest of the URL-safe base64 alphabet is allowed.
_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")
_PREFIX_MAX_LENGTH = 64


def _validate_prefix(prefix: str) -> None:
    """Validate that a prefix is usable in the wire format.

    Raises:
        InvalidPrefixError: If prefix is invalid.
    """
    if not isinstance(prefix, str):
        raise InvalidPrefixError(f"Prefix must be a string, got {type(prefix).__name__}")
    if len(prefix) > _PREFIX_MAX_LENGTH:
        raise InvalidPrefixError(
            f"Prefix must be at most {_PREFIX_MAX_LENGTH} characters, got {len(prefix)}"
        )
    if "_" in prefix:
        raise InvalidPrefixError(f"Prefix must not contain the '_' separator, got {prefix!r}")
    if not _PREFIX_PATTERN.match(prefix):
        raise InvalidPrefixError(
            f"Prefix must be non-empty and contain only letters, digits and '-', got {prefix!r}"
        )


class TypeRegistry:
    """Bidirectional map between logical type names and wire prefixes.

    Entries are only ever added. Registering a type or a prefix a second
    time is an error rather than an overwrite, so a prefix keeps meaning the
    same type for the lifetime of the registry.

    Example:
        types = TypeRegistry()
        types.register_type("Organization", "org")
        types.get_prefix("Organization")  # 'org'
        types.get_type("org")  # 'Organization'
    """

    def __init__(self) -> None:
        self._prefixes: dict[str, str] = {}
        self._types: dict[str, str] = {}

    def register_type(self, type_name: str, prefix: str) -> None:
        """Register a type under a prefix.

        Args:
            type_name: The logical type name.
            prefix: The short token used in encoded IDs. Must not contain '_'.

        Raises:
            GlobalIdError: If type_name is empty or not a string.
            InvalidPrefixError: If prefix cannot be used in the wire format.
            DuplicateRegistrationError: If the type or the prefix is taken.
        """
        if not isinstance(type_name, str) or not type_name:
            raise GlobalIdError(f"Type name must be a non-empty string, got {type_name!r}")
        _validate_prefix(prefix)

        if type_name in self._prefixes:
            raise DuplicateRegistrationError(
                f"Type {type_name!r} is already registered with prefix "
                f"{self._prefixes[type_name]!r}"
            )
        if prefix in self._types:
            raise DuplicateRegistrationError(
                f"Prefix {prefix!r} is already registered for type {self._types[prefix]!r}"
            )

        self._prefixes[type_name] = prefix
        self._types[prefix] = type_name
        logger.debug(f"Registered type {type_name!r} with prefix {prefix!r}")

    def get_prefix(self, type_name: str) -> str | None:
        """Return the prefix registered for a type, or None."""
        return self._prefixes.get(type_name)

    def get_type(self, prefix: str) -> str | None:
        """Return the type registered under a prefix, or None."""
        return self._types.get(prefix)

    def items(self) -> ItemsView[str, str]:
        """Return a view of (type name, prefix) pairs."""
        return self._prefixes.items()

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._prefixes

    def __len__(self) -> int:
        return len(self._prefixes)

    def __repr__(self) -> str:
        return f"TypeRegistry({self._prefixes!r})"


class ParserRegistry:
    """Map from (prefix, version) to the parser for that payload format.

    Parsers can be registered by prefix or by type name; either way they are
    stored under the prefix, which is the key the decoder recovers from the
    wire. There is no notion of a latest version: the version is always
    explicit, carried inside every encoded ID.

    Args:
        types: The type registry that parser keys are checked against.
        allow_overwrite: Whether registering the same (prefix, version) again
            replaces the earlier parser. When False, it raises
            DuplicateRegistrationError instead.

    Example:
        parsers = ParserRegistry(types)
        parsers.register_parser("org", "1.0.0", IdentityParser())
        parsers.get_parser("org", "1.0.0")
    """

    def __init__(self, types: TypeRegistry, *, allow_overwrite: bool = True) -> None:
        self._types = types
        self._allow_overwrite = allow_overwrite
        self._parsers: dict[str, dict[str, Parser]] = {}

    @property
    def types(self) -> TypeRegistry:
        """The type registry this parser registry validates against."""
        return self._types

    def _resolve_prefix(self, type_or_prefix: str) -> str | None:
        if self._types.get_type(type_or_prefix) is not None:
            return type_or_prefix
        return self._types.get_prefix(type_or_prefix)

    def register_parser(self, type_or_prefix: str, version: str, parser: Parser) -> None:
        """Register the parser for one version of a type.

        Args:
            type_or_prefix: A registered prefix, or a registered type name.
                A registered prefix wins if the value is both.
            version: The payload format version the parser handles.
            parser: An object implementing `format` and `parse`.

        Raises:
            UnknownTypeError: If the key is not known to the type registry.
            GlobalIdError: If version is empty or not a string.
            DuplicateRegistrationError: If the (prefix, version) pair already
                has a parser and overwriting is disabled.
        """
        prefix = self._resolve_prefix(type_or_prefix)
        if prefix is None:
            raise UnknownTypeError(f"Type {type_or_prefix!r} is not registered in the TypeRegistry")
        if not isinstance(version, str) or not version:
            raise GlobalIdError(f"Version must be a non-empty string, got {version!r}")

        versions = self._parsers.setdefault(prefix, {})
        if version in versions:
            if not self._allow_overwrite:
                raise DuplicateRegistrationError(
                    f"A parser is already registered for {prefix!r} version {version!r}"
                )
            logger.debug(f"Replacing parser for {prefix!r} version {version!r}")
        versions[version] = parser
        logger.debug(
            f"Registered parser {type(parser).__name__} for {prefix!r} version {version!r}"
        )

    def get_parser(self, type_or_prefix: str, version: str) -> Parser:
        """Return the parser for a version of a type.

        Raises:
            UnknownTypeError: If no parser is registered for the type at all.
            UnknownVersionError: If the type has parsers, but not for version.
        """
        prefix = self._resolve_prefix(type_or_prefix)
        versions = self._parsers.get(prefix) if prefix is not None else None
        if not versions:
            raise UnknownTypeError(f"No parsers registered for type {type_or_prefix!r}")
        parser = versions.get(version)
        if parser is None:
            raise UnknownVersionError(
                f"No parser registered for type {type_or_prefix!r} and version {version!r}"
            )
        return parser

    def versions(self, type_or_prefix: str) -> tuple[str, ...]:
        """Return the registered versions of a type, in registration order."""
        prefix = self._resolve_prefix(type_or_prefix)
        if prefix is None:
            return ()
        return tuple(self._parsers.get(prefix, {}))


__all__ = ["ParserRegistry", "TypeRegistry"]
