"""Versioned Global IDs - type-tagged identifiers whose payload can evolve."""

from __future__ import annotations

from vgid.codec import Decoder, Encoder, GlobalIdCodec
from vgid.exceptions import (
    DuplicateRegistrationError,
    GlobalIdError,
    InvalidPrefixError,
    MalformedPayloadError,
    NullValueError,
    SerializationError,
    TypeMismatchError,
    UnknownTypeError,
    UnknownVersionError,
    UnregisteredTypeError,
)
from vgid.globalid import GlobalId, IdentityParser, JsonStringParser, Parser
from vgid.registry import ParserRegistry, TypeRegistry
from vgid.settings import CodecSettings


__all__ = [
    "CodecSettings",
    "Decoder",
    "DuplicateRegistrationError",
    "Encoder",
    "GlobalId",
    "GlobalIdCodec",
    "GlobalIdError",
    "IdentityParser",
    "InvalidPrefixError",
    "JsonStringParser",
    "MalformedPayloadError",
    "NullValueError",
    "Parser",
    "ParserRegistry",
    "SerializationError",
    "TypeMismatchError",
    "TypeRegistry",
    "UnknownTypeError",
    "UnknownVersionError",
    "UnregisteredTypeError",
]
