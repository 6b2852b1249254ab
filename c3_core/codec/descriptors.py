"""
c3_core.codec.descriptors
-------------------------
Field descriptors: the vocabulary a Schema is written in.

A Schema is a plain ``dict`` mapping field name to descriptor. Insertion
order is the wire order.

    ORDER = {
        "operation": FixedLiteral(b"\\x06"),
        "account": FixedAddress(),
        "nonce": Number(),
        ...
    }
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..errors import UnknownTypeTag

# NOTE: append only. A kind's index is written into every self-describing
# blob, and those blobs are hashed into on-chain commitments.
TYPE_TAGS = (
    "uint",
    "number",
    "address",
    "double",
    "boolean",
    "string",
    "byte",
    "bytes",
    "base64",
    "object",
    "hash",
    "array",
    "emptyString",
    "fixed",
    "signature",
    "ratio",
)

assert len(TYPE_TAGS) < 128, "too many type tags"

_TAG_BY_KIND = {kind: tag for tag, kind in enumerate(TYPE_TAGS)}


def tag_of(kind: str) -> int:
    try:
        return _TAG_BY_KIND[kind]
    except KeyError:
        raise UnknownTypeTag(f"no type tag for kind {kind!r}") from None


def kind_of(tag: int) -> str:
    if not 0 <= tag < len(TYPE_TAGS):
        raise UnknownTypeTag(f"unknown type tag {tag}")
    return TYPE_TAGS[tag]


def _check_size(size: Optional[int], what: str) -> None:
    if size is not None and (not isinstance(size, int) or isinstance(size, bool) or size <= 0):
        raise ValueError(f"{what} must be a positive byte count, got {size!r}")


@dataclass(frozen=True)
class FixedAddress:
    """32-byte address/public key. 20-byte EVM keys are left-padded."""
    kind = "address"


@dataclass(frozen=True)
class Byte:
    kind = "byte"


@dataclass(frozen=True)
class Double:
    """IEEE-754 binary64, little-endian on the wire."""
    kind = "double"


@dataclass(frozen=True)
class Boolean:
    kind = "boolean"


@dataclass(frozen=True)
class EmptyString:
    """Occupies no bytes; its only value is ``""``."""
    kind = "emptyString"


@dataclass(frozen=True)
class VariableBytes:
    size: Optional[int] = None
    kind = "bytes"

    def __post_init__(self):
        _check_size(self.size, "bytes size")


@dataclass(frozen=True)
class Utf8String:
    size: Optional[int] = None
    kind = "string"

    def __post_init__(self):
        _check_size(self.size, "string size")


@dataclass(frozen=True)
class Base64Bytes:
    """Same wire form as VariableBytes; values are base64 text."""
    size: Optional[int] = None
    kind = "base64"

    def __post_init__(self):
        _check_size(self.size, "base64 size")


@dataclass(frozen=True)
class UnsignedInt:
    width: int = 8
    kind = "uint"

    def __post_init__(self):
        _check_size(self.width, "uint width")


@dataclass(frozen=True)
class Number:
    """Wire-identical to UnsignedInt; kept apart for its own type tag."""
    width: int = 8
    kind = "number"

    def __post_init__(self):
        _check_size(self.width, "number width")


@dataclass(frozen=True)
class Signature:
    """Base64 signature, right-padded with zeros to 65 bytes."""
    kind = "signature"


@dataclass(frozen=True)
class Object:
    schema: Dict[str, "FieldDescriptor"]
    kind = "object"


@dataclass(frozen=True)
class Array:
    element: "FieldDescriptor"
    kind = "array"


@dataclass(frozen=True)
class Hash:
    """32-byte commitment to the self-describing encoding of a nested value."""
    schema: Dict[str, "FieldDescriptor"]
    kind = "hash"


@dataclass(frozen=True)
class FixedLiteral:
    """Constant bytes. Carries no value."""
    value: bytes
    kind = "fixed"

    def __post_init__(self):
        if not isinstance(self.value, (bytes, bytearray)) or len(self.value) == 0:
            raise ValueError("fixed literal must be non-empty bytes")

    @classmethod
    def from_hex(cls, value_hex: str) -> "FixedLiteral":
        return cls(bytes.fromhex(value_hex))


FieldDescriptor = Union[
    FixedAddress, Byte, Double, Boolean, EmptyString, VariableBytes, Utf8String,
    Base64Bytes, UnsignedInt, Number, Signature, Object, Array, Hash, FixedLiteral,
]

Schema = Dict[str, FieldDescriptor]
