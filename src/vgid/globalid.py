"""Versioned global IDs - the value object and the parser protocol."""

from __future__ import annotations

import json
from typing import Any, Protocol, Self, runtime_checkable

from vgid.exceptions import GlobalIdError, MalformedPayloadError, SerializationError


def _freeze(value: Any) -> Any:  # noqa: ANN401
    """Convert a JSON-like tree into a hashable equivalent."""
    if isinstance(value, dict):
        return frozenset((k, _freeze(v)) for k, v in value.items())
    if isinstance(value, list | tuple):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, set):
        return frozenset(value)
    return value


class GlobalId[V]:
    """An immutable (type, version, value) triple.

    The type is a stable logical name such as 'Organization'. The version
    selects which parser interprets the value when the ID is encoded or
    decoded, so the value's shape can change between versions without
    invalidating IDs that were issued earlier.

    Example:
        >>> org_id = GlobalId("Organization", "1.0.0", {"id": "uuid", "systemId": "123"})
        >>> org_id.type
        'Organization'

    Note:
        The value is opaque to vgid. A None value is accepted here but
        rejected by the Encoder, since an encoded ID must carry a payload.
    """

    __slots__ = ("_type", "_value", "_version")

    def __init__(self, type: str, version: str, value: V) -> None:  # noqa: A002
        """Initialize a GlobalId.

        Args:
            type: The logical type name (must be a non-empty string).
            version: The payload format version (must be a non-empty string).
            value: The payload, interpreted by the parser for (type, version).

        Raises:
            GlobalIdError: If type or version is empty or not a string.
        """
        if not isinstance(type, str) or not type:
            raise GlobalIdError(f"GlobalId type must be a non-empty string, got {type!r}")
        if not isinstance(version, str) or not version:
            raise GlobalIdError(f"GlobalId version must be a non-empty string, got {version!r}")
        self._type = type
        self._version = version
        self._value = value

    @property
    def type(self) -> str:
        """The logical type name (e.g., 'Organization')."""
        return self._type

    @property
    def version(self) -> str:
        """The version of the parser that formats the value."""
        return self._version

    @property
    def value(self) -> V:
        """The payload carried by this ID."""
        return self._value

    def __repr__(self) -> str:
        return f"GlobalId({self._type!r}, {self._version!r}, {self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, GlobalId):
            return (
                self._type == other._type
                and self._version == other._version
                and self._value == other._value
            )
        return NotImplemented

    def __hash__(self) -> int:
        """Hash by content, so IDs with dict or list values work as dict keys.

        Values holding objects that cannot be frozen fall back to hashing the
        type and version only.
        """
        try:
            return hash((self._type, self._version, _freeze(self._value)))
        except TypeError:
            return hash((self._type, self._version))

    def __copy__(self) -> Self:
        """Return self (GlobalIds are immutable)."""
        return self

    def __reduce__(self) -> tuple[type[Self], tuple[str, str, V]]:
        """Support pickling for multiprocessing, caching, etc."""
        return (type(self), (self._type, self._version, self._value))


@runtime_checkable
class Parser(Protocol):
    """Converts a domain value to a serializable tree and back.

    A tree is anything msgpack can pack: None, bool, int, float, str, bytes,
    lists and string-keyed dicts of those. `format` and `parse` must be exact
    inverses for every value the version is expected to carry; vgid does not
    check this.

    Example:
        class OrganizationParserV1:
            def format(self, value: Organization) -> dict[str, str]:
                return {"id": value.id, "systemId": value.system_id}

            def parse(self, tree: dict[str, str]) -> Organization:
                return Organization(id=tree["id"], system_id=tree["systemId"])
    """

    def format(self, value: Any) -> Any:  # noqa: ANN401
        """Convert a value into a serializable tree."""
        ...

    def parse(self, tree: Any) -> Any:  # noqa: ANN401
        """Convert a serializable tree back into a value."""
        ...


class IdentityParser:
    """Parser for values that already are serializable trees."""

    def format(self, value: Any) -> Any:  # noqa: ANN401
        return value

    def parse(self, tree: Any) -> Any:  # noqa: ANN401
        return tree


class JsonStringParser:
    """Parser for values held as JSON text.

    The text is stored as its parsed tree, which packs far smaller than the
    text itself, and rendered back as compact JSON with sorted keys on parse.
    """

    def format(self, value: str) -> Any:  # noqa: ANN401
        try:
            return json.loads(value)
        except (TypeError, json.JSONDecodeError) as e:
            raise SerializationError(f"Expected a JSON string, got {value!r}") from e

    def parse(self, tree: Any) -> str:  # noqa: ANN401
        try:
            return json.dumps(tree, separators=(",", ":"))
        except (TypeError, ValueError, RecursionError) as e:
            raise MalformedPayloadError(f"Payload cannot be rendered as JSON: {e}") from e


__all__ = ["GlobalId", "IdentityParser", "JsonStringParser", "Parser"]
