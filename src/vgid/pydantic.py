"""Pydantic integration for global IDs.

Provides an Annotated marker that validates wire strings into GlobalIds and
serializes them back, plus a parser built on pydantic's TypeAdapter.

Example:
    from typing import Annotated, Any
    from pydantic import BaseModel
    from vgid import GlobalId
    from vgid.pydantic import GlobalIdField

    OrganizationId = Annotated[GlobalId[Any], GlobalIdField(codec, "Organization")]

    class Membership(BaseModel):
        organization_id: OrganizationId
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from pydantic import TypeAdapter, ValidationError
from pydantic_core import CoreSchema, PydanticSerializationError, core_schema

from vgid.exceptions import (
    GlobalIdError,
    MalformedPayloadError,
    SerializationError,
    TypeMismatchError,
)
from vgid.globalid import GlobalId


if TYPE_CHECKING:
    from vgid.codec import GlobalIdCodec


class GlobalIdField:
    """Annotated metadata that makes a GlobalId field validate and serialize.

    On input, accepts either an encoded string (decoded through the codec) or
    a GlobalId instance. On output, always serializes to the encoded string.

    Args:
        codec: The codec used to decode input and encode output.
        type_name: If given, only IDs of this type are accepted.
    """

    __slots__ = ("codec", "type_name")

    def __init__(self, codec: GlobalIdCodec, type_name: str | None = None) -> None:
        self.codec = codec
        self.type_name = type_name

    def __repr__(self) -> str:
        return f"GlobalIdField(type_name={self.type_name!r})"

    def __deepcopy__(self, memo: dict[int, Any]) -> Self:
        """Return self (the codec and its registries are shared, never copied)."""
        return self

    def validate(self, v: GlobalId[Any] | str) -> GlobalId[Any]:
        """Coerce a string or GlobalId into a GlobalId of the expected type."""
        if isinstance(v, str):
            return self.codec.decode(v, self.type_name)
        if isinstance(v, GlobalId):
            if self.type_name is not None and v.type != self.type_name:
                raise TypeMismatchError(f"Expected type {self.type_name!r}, got {v.type!r}")
            return v
        raise GlobalIdError(f"Expected GlobalId or str, got {type(v).__name__}")

    def __get_pydantic_core_schema__(
        self,
        source_type: Any,  # noqa: ANN401, ARG002
        handler: Any,  # noqa: ANN401, ARG002
    ) -> CoreSchema:
        """Pydantic integration for validation and serialization."""
        return core_schema.json_or_python_schema(
            json_schema=core_schema.chain_schema(
                [
                    core_schema.str_schema(),
                    core_schema.no_info_plain_validator_function(self.validate),
                ]
            ),
            python_schema=core_schema.no_info_plain_validator_function(self.validate),
            serialization=core_schema.plain_serializer_function_ser_schema(self.codec.encode),
        )


class ModelParser:
    """Parser for any type pydantic can validate and dump.

    Values are formatted with `dump_python(mode="json")`, so UUIDs, datetimes
    and nested models become plain trees, and parsed back with
    `validate_python`. Typical use is one pydantic model per version:

        parsers.register_parser("org", "2.0.0", ModelParser(OrganizationKeyV2))
    """

    def __init__(self, tp: Any) -> None:  # noqa: ANN401
        self.type = tp
        self._adapter: TypeAdapter[Any] = TypeAdapter(tp)

    def __repr__(self) -> str:
        return f"ModelParser({self.type!r})"

    def format(self, value: Any) -> Any:  # noqa: ANN401
        try:
            return self._adapter.dump_python(value, mode="json")
        except PydanticSerializationError as e:
            raise SerializationError(f"Cannot format value as {self.type!r}: {e}") from e

    def parse(self, tree: Any) -> Any:  # noqa: ANN401
        try:
            return self._adapter.validate_python(tree)
        except ValidationError as e:
            raise MalformedPayloadError(f"Payload is not a valid {self.type!r}: {e}") from e


__all__ = ["GlobalIdField", "ModelParser"]
