"""SQLAlchemy integration for global IDs.

Provides a TypeDecorator and helpers for storing GlobalIds as TEXT columns,
encoded on write and decoded on read.

Example:
    from sqlalchemy.orm import DeclarativeBase, Mapped
    from vgid import GlobalId
    from vgid.sqlalchemy import global_id_column

    class Base(DeclarativeBase):
        pass

    class Membership(Base):
        __tablename__ = "memberships"

        id: Mapped[GlobalId[Any]] = global_id_column(codec, "Membership", primary_key=True)
        organization_id: Mapped[GlobalId[Any] | None] = global_id_column(codec, "Organization")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypedDict, Unpack, cast

from sqlalchemy import Text
from sqlalchemy.orm import mapped_column
from sqlalchemy.types import TypeDecorator

from vgid.exceptions import TypeMismatchError
from vgid.globalid import GlobalId


if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Dialect
    from sqlalchemy.orm import MappedColumn

    from vgid.codec import GlobalIdCodec


class GlobalIdColumnKwargs(TypedDict, total=False):
    """Keyword arguments for global_id_column, matching mapped_column's common options."""

    primary_key: bool
    nullable: bool
    default: object
    default_factory: Callable[[], object]
    index: bool
    unique: bool
    insert_default: object
    onupdate: object


class GlobalIdColumn(TypeDecorator[GlobalId[Any]]):
    """SQLAlchemy TypeDecorator for GlobalId storage as TEXT.

    Args:
        codec: The codec used to encode on write and decode on read.
        type_name: If given, only IDs of this type may be stored.

    Example:
        id: Mapped[GlobalId[Any]] = mapped_column(
            GlobalIdColumn(codec, "Organization"), primary_key=True
        )
    """

    impl = Text
    cache_ok = True

    def __init__(self, codec: GlobalIdCodec, type_name: str | None = None) -> None:
        """Initialize with the codec and the expected type."""
        self.codec = codec
        self.type_name = type_name
        super().__init__()

    def process_bind_param(
        self,
        value: GlobalId[Any] | str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> str | None:
        """Encode a GlobalId for database storage.

        Strings are decoded first, so malformed or mistyped IDs are caught at
        write time rather than read time.
        """
        if value is None:
            return None
        if isinstance(value, GlobalId):
            if self.type_name is not None and value.type != self.type_name:
                raise TypeMismatchError(f"Expected type {self.type_name!r}, got {value.type!r}")
            return self.codec.encode(value)
        self.codec.decode(value, self.type_name)
        return value

    def process_result_value(
        self,
        value: str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> GlobalId[Any] | None:
        """Decode a database string into a GlobalId."""
        if value is None:
            return None
        return self.codec.decode(value, self.type_name)


def global_id_column(
    codec: GlobalIdCodec,
    type_name: str | None = None,
    **kwargs: Unpack[GlobalIdColumnKwargs],
) -> MappedColumn[Any]:
    """Create a mapped_column storing GlobalIds (pure SQLAlchemy).

    Args:
        codec: The codec used to encode and decode the column values.
        type_name: If given, only IDs of this type may be stored.
        **kwargs: Additional arguments passed to mapped_column.
            Supports: primary_key, nullable, default, default_factory,
            index, unique, insert_default, onupdate.

    Returns:
        A mapped_column configured with the appropriate GlobalIdColumn.
    """
    return mapped_column(GlobalIdColumn(codec, type_name), **kwargs)


class GlobalIdFieldKwargs(TypedDict, total=False):
    """Keyword arguments for global_id_field, matching SQLModel Field's common options."""

    default: object
    default_factory: Callable[[], object]
    primary_key: bool
    index: bool
    unique: bool


def global_id_field(
    codec: GlobalIdCodec,
    type_name: str | None = None,
    **kwargs: Unpack[GlobalIdFieldKwargs],
) -> Any:  # noqa: ANN401 - return type matches SQLModel's Field
    """Create a SQLModel Field storing GlobalIds.

    Pair it with a GlobalIdField annotation so pydantic validation and
    serialization agree with the column:

        OrganizationId = Annotated[GlobalId[Any], GlobalIdField(codec, "Organization")]

        class Membership(SQLModel, table=True):
            organization_id: OrganizationId = global_id_field(
                codec, "Organization", primary_key=True
            )
    """
    # Import here to avoid hard dependency on sqlmodel
    from sqlmodel import Field

    # SQLModel's sa_type is typed as type[Any] but accepts TypeEngine instances.
    sa_type = cast("type[Any]", GlobalIdColumn(codec, type_name))
    return Field(sa_type=sa_type, **kwargs)


__all__ = ["GlobalIdColumn", "global_id_column", "global_id_field"]
