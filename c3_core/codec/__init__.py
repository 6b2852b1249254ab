"""
c3_core.codec
-------------
Schema-driven packed binary codec. Every structured value that is hashed,
signed or parsed from on-chain state goes through here.
"""

from .descriptors import (
    TYPE_TAGS,
    Array,
    Base64Bytes,
    Boolean,
    Byte,
    Double,
    EmptyString,
    FieldDescriptor,
    FixedAddress,
    FixedLiteral,
    Hash,
    Number,
    Object,
    Schema,
    Signature,
    UnsignedInt,
    Utf8String,
    VariableBytes,
    kind_of,
    tag_of,
)
from .packing import decode, decode_exact, encode
from .schema import decode_schema, encode_schema

__all__ = [
    "TYPE_TAGS",
    "Array",
    "Base64Bytes",
    "Boolean",
    "Byte",
    "Double",
    "EmptyString",
    "FieldDescriptor",
    "FixedAddress",
    "FixedLiteral",
    "Hash",
    "Number",
    "Object",
    "Schema",
    "Signature",
    "UnsignedInt",
    "Utf8String",
    "VariableBytes",
    "kind_of",
    "tag_of",
    "encode",
    "decode",
    "decode_exact",
    "encode_schema",
    "decode_schema",
]
