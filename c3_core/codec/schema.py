"""
c3_core.codec.schema
--------------------
Serialization of a Schema itself, used by self-describing blobs.

Layout, per schema:

    [field count: 1 byte]
    per field:
        [name length: 1 byte][name: utf-8][type tag: 1 byte][extra]

``extra`` depends on the kind:

    string / bytes / base64   1 size byte (0 = length-prefixed)
    object / hash             8-byte length + nested schema
    array                     8-byte length + nested schema {"value": element}
    fixed                     8-byte length + literal bytes
    anything else             nothing

Integer widths are not part of the serialized form; a decoded schema always
carries the default width. Counts, names and sizes are capped below 128 to
leave room for varints later.
"""

from __future__ import annotations
from typing import Tuple

from ..errors import FieldOutOfRange, InsufficientBytes, SchemaMismatch, UnknownTypeTag
from ..utils import decode_uint, encode_uint
from .descriptors import (
    Array, Base64Bytes, Boolean, Byte, Double, EmptyString, FixedAddress, FixedLiteral,
    Hash, Number, Object, Schema, Signature, UnsignedInt, Utf8String, VariableBytes,
    kind_of, tag_of,
)

_MAX_SMALL = 128
_ARRAY_FIELD = "value"

_SIMPLE = {
    "uint": UnsignedInt,
    "number": Number,
    "address": FixedAddress,
    "double": Double,
    "boolean": Boolean,
    "byte": Byte,
    "emptyString": EmptyString,
    "signature": Signature,
}
_SIZED = {
    "string": Utf8String,
    "bytes": VariableBytes,
    "base64": Base64Bytes,
}


def encode_schema(schema: Schema) -> bytes:
    if len(schema) >= _MAX_SMALL:
        raise FieldOutOfRange(f"too many fields in schema: {len(schema)}")

    chunks = [bytes([len(schema)])]
    for name, desc in schema.items():
        raw_name = name.encode("utf-8")
        if len(raw_name) >= _MAX_SMALL:
            raise FieldOutOfRange(f"field name too long: {name!r}")
        chunks.append(bytes([len(raw_name)]))
        chunks.append(raw_name)
        chunks.append(bytes([tag_of(desc.kind)]))

        if desc.kind in _SIZED:
            if desc.size is not None and desc.size >= _MAX_SMALL:
                raise FieldOutOfRange(f"{name}: sized field too large for a schema: {desc.size}")
            chunks.append(bytes([desc.size or 0]))
        elif desc.kind in ("object", "hash"):
            nested = encode_schema(desc.schema)
            chunks.append(encode_uint(len(nested), 8))
            chunks.append(nested)
        elif desc.kind == "array":
            nested = encode_schema({_ARRAY_FIELD: desc.element})
            chunks.append(encode_uint(len(nested), 8))
            chunks.append(nested)
        elif desc.kind == "fixed":
            chunks.append(encode_uint(len(desc.value), 8))
            chunks.append(bytes(desc.value))

    return b"".join(chunks)


def _take(data: bytes, offset: int, n: int) -> bytes:
    if offset + n > len(data):
        raise InsufficientBytes(f"schema needs {n} bytes at offset {offset}, {len(data) - offset} left")
    return data[offset:offset + n]


def decode_schema_at(data: bytes, offset: int = 0) -> Tuple[Schema, int]:
    """Decode one schema starting at ``offset``; returns (schema, next offset)."""
    count = _take(data, offset, 1)[0]
    offset += 1

    schema: Schema = {}
    for _ in range(count):
        name_len = _take(data, offset, 1)[0]
        offset += 1
        name = _take(data, offset, name_len).decode("utf-8")
        offset += name_len
        kind = kind_of(_take(data, offset, 1)[0])
        offset += 1

        if kind in _SIMPLE:
            schema[name] = _SIMPLE[kind]()
        elif kind in _SIZED:
            size = _take(data, offset, 1)[0]
            offset += 1
            schema[name] = _SIZED[kind](size or None)
        elif kind in ("object", "hash", "array"):
            length = decode_uint(_take(data, offset, 8), 8)
            offset += 8
            nested, _ = decode_schema_at(_take(data, offset, length))
            offset += length
            if kind == "array":
                if list(nested) != [_ARRAY_FIELD]:
                    raise SchemaMismatch(f"{name}: array element schema must be a single {_ARRAY_FIELD!r} field")
                schema[name] = Array(nested[_ARRAY_FIELD])
            elif kind == "hash":
                schema[name] = Hash(nested)
            else:
                schema[name] = Object(nested)
        elif kind == "fixed":
            length = decode_uint(_take(data, offset, 8), 8)
            offset += 8
            if length == 0:
                raise SchemaMismatch(f"{name}: empty fixed literal")
            schema[name] = FixedLiteral(_take(data, offset, length))
            offset += length
        else:
            raise UnknownTypeTag(f"{name}: type {kind!r} has no descriptor")

    return schema, offset


def decode_schema(data: bytes) -> Schema:
    schema, _ = decode_schema_at(data)
    return schema
