"""Encoding GlobalIds to wire strings and decoding them back.

Wire format: '<prefix>_<payload>', where payload is the base64url (unpadded)
encoding of a msgpack envelope `[formatted_value, version]`, zlib-compressed
unless compression is disabled in CodecSettings.
"""

from __future__ import annotations

import base64
import binascii
import re
import zlib
from typing import TYPE_CHECKING, Any

import msgpack

from vgid.exceptions import (
    MalformedPayloadError,
    NullValueError,
    SerializationError,
    TypeMismatchError,
    UnregisteredTypeError,
)
from vgid.globalid import GlobalId
from vgid.settings import DEFAULT_SETTINGS, CodecSettings


if TYPE_CHECKING:
    from vgid.registry import ParserRegistry, TypeRegistry


_SEPARATOR = "_"
_ENVELOPE_LENGTH = 2

# Unpadded base64url; '+', '/' and '=' are rejected rather than tolerated
_PAYLOAD_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def _b64url_encode(data: bytes) -> str:
    """Encode bytes as base64url with the '=' padding stripped."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(payload: str) -> bytes:
    """Decode unpadded base64url, rejecting anything outside the alphabet.

    Raises:
        MalformedPayloadError: If payload is not valid unpadded base64url.
    """
    if not _PAYLOAD_PATTERN.fullmatch(payload):
        raise MalformedPayloadError("Payload contains characters outside the base64url alphabet")
    padded = payload + "=" * (-len(payload) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise MalformedPayloadError(f"Invalid base64url payload: {e}") from e


def _canonical(tree: Any) -> Any:  # noqa: ANN401
    """Rebuild a tree with every map's keys in sorted order.

    msgpack writes maps in insertion order; sorting makes equal values pack
    to identical bytes.
    """
    if isinstance(tree, dict):
        return {key: _canonical(tree[key]) for key in sorted(tree)}
    if isinstance(tree, list | tuple):
        return [_canonical(item) for item in tree]
    return tree


def _pack_envelope(formatted: Any, version: str) -> bytes:  # noqa: ANN401
    try:
        return msgpack.packb([_canonical(formatted), version], use_bin_type=True)
    except (TypeError, ValueError, OverflowError, RecursionError) as e:
        raise SerializationError(f"Parser output cannot be serialized: {e}") from e


def _unpack_envelope(data: bytes) -> tuple[Any, str]:
    """Unpack and shape-check the `[formatted_value, version]` envelope.

    Raises:
        MalformedPayloadError: If data is not a msgpack envelope.
    """
    try:
        envelope = msgpack.unpackb(data, raw=False)
    except (msgpack.UnpackException, ValueError) as e:
        raise MalformedPayloadError(f"Invalid binary envelope: {e}") from e
    if not isinstance(envelope, list) or len(envelope) != _ENVELOPE_LENGTH:
        raise MalformedPayloadError(
            f"Envelope must be a {_ENVELOPE_LENGTH}-element array, got {type(envelope).__name__}"
        )
    formatted, version = envelope
    if not isinstance(version, str) or not version:
        raise MalformedPayloadError(f"Envelope version must be a non-empty string, got {version!r}")
    return formatted, version


def _decompress(data: bytes, max_size: int) -> bytes:
    """Inflate a complete zlib stream of at most max_size bytes.

    Raises:
        MalformedPayloadError: If the stream is corrupt, truncated, followed by
            trailing bytes or inflates past max_size.
    """
    decompressor = zlib.decompressobj()
    try:
        result = decompressor.decompress(data, max_size)
    except zlib.error as e:
        raise MalformedPayloadError(f"Invalid compressed payload: {e}") from e
    if not decompressor.eof:
        if len(result) >= max_size:
            raise MalformedPayloadError(f"Decompressed payload exceeds {max_size} bytes")
        raise MalformedPayloadError("Compressed payload is truncated")
    if decompressor.unused_data:
        raise MalformedPayloadError("Compressed payload has trailing data")
    return result


class Encoder:
    """Turns GlobalIds into wire strings.

    Args:
        types: Resolves the type name to its prefix.
        parsers: Resolves (prefix, version) to the parser that formats the value.
        settings: Pipeline configuration; defaults to CodecSettings().
    """

    def __init__(
        self,
        types: TypeRegistry,
        parsers: ParserRegistry,
        settings: CodecSettings | None = None,
    ) -> None:
        self._types = types
        self._parsers = parsers
        self._settings = settings or DEFAULT_SETTINGS

    @property
    def settings(self) -> CodecSettings:
        """The pipeline configuration this encoder was built with."""
        return self._settings

    def encode(self, global_id: GlobalId[Any]) -> str:
        """Encode a GlobalId as '<prefix>_<base64url payload>'.

        Raises:
            UnregisteredTypeError: If the type has no registered prefix.
            NullValueError: If the ID's value is None.
            UnknownTypeError: If no parser is registered for the type.
            UnknownVersionError: If no parser is registered for the version.
            SerializationError: If the parser output cannot be packed.
        """
        prefix = self._types.get_prefix(global_id.type)
        if prefix is None:
            raise UnregisteredTypeError(f"Type {global_id.type!r} is not registered")

        if global_id.value is None:
            raise NullValueError(f"Cannot encode {global_id.type!r} ID without a value")

        parser = self._parsers.get_parser(prefix, global_id.version)
        formatted = parser.format(global_id.value)
        data = _pack_envelope(formatted, global_id.version)
        if self._settings.compress:
            data = zlib.compress(data, self._settings.compression_level)

        return f"{prefix}{_SEPARATOR}{_b64url_encode(data)}"


class Decoder:
    """Turns wire strings back into GlobalIds.

    The prefix and the version are both read from the encoded string itself;
    nothing supplied by the caller is trusted to pick the parser.

    Args:
        types: Resolves the prefix back to its type name.
        parsers: Resolves (prefix, version) to the parser that rebuilds the value.
        settings: Pipeline configuration; must match the encoder's.
    """

    def __init__(
        self,
        types: TypeRegistry,
        parsers: ParserRegistry,
        settings: CodecSettings | None = None,
    ) -> None:
        self._types = types
        self._parsers = parsers
        self._settings = settings or DEFAULT_SETTINGS

    @property
    def settings(self) -> CodecSettings:
        """The pipeline configuration this decoder was built with."""
        return self._settings

    def decode(self, encoded: str, expected_type: str | None = None) -> GlobalId[Any]:
        """Decode a wire string into a GlobalId.

        Args:
            encoded: The string produced by Encoder.encode.
            expected_type: If given, the decoded ID must be of this type.

        Raises:
            MalformedPayloadError: If the string is not a well-formed ID.
            UnknownTypeError: If no parser is registered for the prefix.
            UnknownVersionError: If no parser is registered for the version.
            UnregisteredTypeError: If the prefix has no registered type.
            TypeMismatchError: If expected_type is given and does not match.
        """
        if not isinstance(encoded, str):
            raise MalformedPayloadError(
                f"Encoded global ID must be a string, got {type(encoded).__name__}"
            )

        prefix, separator, payload = encoded.partition(_SEPARATOR)
        if not separator or not payload:
            raise MalformedPayloadError(
                f"Global ID must be in format '<prefix>_<payload>', got {encoded!r}"
            )

        data = _b64url_decode(payload)
        if self._settings.compress:
            data = _decompress(data, self._settings.max_payload_size)
        elif len(data) > self._settings.max_payload_size:
            raise MalformedPayloadError(
                f"Payload exceeds {self._settings.max_payload_size} bytes"
            )
        formatted, version = _unpack_envelope(data)

        parser = self._parsers.get_parser(prefix, version)
        value = parser.parse(formatted)

        type_name = self._types.get_type(prefix)
        if type_name is None:
            raise UnregisteredTypeError(f"Prefix {prefix!r} is not registered in the TypeRegistry")
        if expected_type is not None and type_name != expected_type:
            raise TypeMismatchError(f"Expected type {expected_type!r}, got {type_name!r}")

        return GlobalId(type_name, version, value)


class GlobalIdCodec:
    """An Encoder and a Decoder sharing the same registries and settings.

    Example:
        types = TypeRegistry()
        types.register_type("Organization", "org")
        parsers = ParserRegistry(types)
        parsers.register_parser("org", "1.0.0", IdentityParser())

        codec = GlobalIdCodec(types, parsers)
        encoded = codec.encode(GlobalId("Organization", "1.0.0", {"id": "uuid"}))
        codec.decode(encoded)  # GlobalId('Organization', '1.0.0', {'id': 'uuid'})
    """

    def __init__(
        self,
        types: TypeRegistry,
        parsers: ParserRegistry,
        settings: CodecSettings | None = None,
    ) -> None:
        self.types = types
        self.parsers = parsers
        self.settings = settings or DEFAULT_SETTINGS
        self.encoder = Encoder(types, parsers, self.settings)
        self.decoder = Decoder(types, parsers, self.settings)

    def encode(self, global_id: GlobalId[Any]) -> str:
        """Encode a GlobalId. See Encoder.encode."""
        return self.encoder.encode(global_id)

    def decode(self, encoded: str, expected_type: str | None = None) -> GlobalId[Any]:
        """Decode a wire string. See Decoder.decode."""
        return self.decoder.decode(encoded, expected_type)


__all__ = ["Decoder", "Encoder", "GlobalIdCodec"]
