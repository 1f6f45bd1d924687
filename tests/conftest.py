"""Shared test fixtures and Hypothesis strategies."""

from __future__ import annotations

import base64
import json
import zlib
from typing import Annotated, Any
from uuid import UUID, uuid4

import msgpack
import pytest
from hypothesis import strategies as st
from pydantic import BaseModel

from vgid import (
    GlobalId,
    GlobalIdCodec,
    IdentityParser,
    JsonStringParser,
    ParserRegistry,
    TypeRegistry,
)
from vgid.pydantic import GlobalIdField, ModelParser


# =============================================================================
# Registries and Codecs
# =============================================================================

ORGANIZATION = "Organization"
MEMBERSHIP = "Membership"


class OrganizationKeyV2(BaseModel):
    """Second-generation organization key: a real UUID plus a numeric system id."""

    id: UUID
    system_id: int


def build_registries() -> tuple[TypeRegistry, ParserRegistry]:
    """Build the registries used across the test suite."""
    types = TypeRegistry()
    types.register_type(ORGANIZATION, "org")
    types.register_type(MEMBERSHIP, "mbr")

    parsers = ParserRegistry(types)
    parsers.register_parser("org", "0.1.0", JsonStringParser())
    parsers.register_parser("org", "1.0.0", IdentityParser())
    parsers.register_parser("org", "2.0.0", ModelParser(OrganizationKeyV2))
    parsers.register_parser(MEMBERSHIP, "1.0.0", IdentityParser())
    return types, parsers


shared_codec = GlobalIdCodec(*build_registries())

OrganizationId = Annotated[GlobalId[Any], GlobalIdField(shared_codec, ORGANIZATION)]
MembershipId = Annotated[GlobalId[Any], GlobalIdField(shared_codec, MEMBERSHIP)]
AnyId = Annotated[GlobalId[Any], GlobalIdField(shared_codec)]


def new_organization_id() -> GlobalId[dict[str, str]]:
    return GlobalId(ORGANIZATION, "1.0.0", {"id": str(uuid4()), "systemId": "123"})


def new_membership_id() -> GlobalId[dict[str, str]]:
    return GlobalId(MEMBERSHIP, "1.0.0", {"id": str(uuid4())})


def make_encoded(prefix: str, envelope: Any, *, compress: bool = True) -> str:  # noqa: ANN401
    """Hand-build an encoded ID around an arbitrary envelope."""
    data = msgpack.packb(envelope, use_bin_type=True)
    if compress:
        data = zlib.compress(data)
    payload = base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")
    return f"{prefix}_{payload}"


def compact_json(value: Any) -> str:  # noqa: ANN401
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


@pytest.fixture
def types() -> TypeRegistry:
    return TypeRegistry()


@pytest.fixture
def parsers(types: TypeRegistry) -> ParserRegistry:
    return ParserRegistry(types)


@pytest.fixture
def codec() -> GlobalIdCodec:
    """A fresh codec over freshly built registries."""
    return GlobalIdCodec(*build_registries())


# =============================================================================
# Hypothesis Strategies
# =============================================================================

# Strategy for valid prefixes (URL-safe, no '_' separator)
prefix_strategy = st.from_regex(r"[A-Za-z0-9-]{1,20}", fullmatch=True)

# Scalars msgpack round-trips exactly (NaN is excluded since NaN != NaN)
scalar_strategy = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-(2**63), max_value=2**64 - 1)
    | st.floats(allow_nan=False)
    | st.text(max_size=20)
    | st.binary(max_size=20)
)

# JSON-like trees: scalars, lists and string-keyed dicts
tree_strategy = st.recursive(
    scalar_strategy,
    lambda children: (
        st.lists(children, max_size=5) | st.dictionaries(st.text(max_size=10), children, max_size=5)
    ),
    max_leaves=20,
)

# Trees usable as a GlobalId value (None is rejected by the encoder)
value_strategy = tree_strategy.filter(lambda v: v is not None)
