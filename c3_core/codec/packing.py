"""
c3_core.codec.packing
---------------------
Deterministic packed encoding of schema-typed values.

Fields are written in schema order with no padding. Integers are big-endian
in their declared width. Unsized byte/string fields carry a 2-byte length,
arrays a 1-byte count. A self-describing blob is

    [8-byte schema length][schema bytes][data bytes]

``Hash`` fields always commit to the self-describing form of the nested
value, so a commitment stays checkable after the enclosing schema changes.

Decoding never keeps a hidden cursor: every reader takes an offset and
returns the next one.
"""

from __future__ import annotations
import base64, binascii, struct
from typing import Any, List, Mapping, Optional, Tuple

from ..crypto import HASH_LENGTH, MAX_SIGNATURE_LENGTH, sha512_256
from ..errors import FieldOutOfRange, InsufficientBytes, SchemaMismatch
from ..logger import get_logger
from ..utils import decode_uint, encode_uint, pad_left, pad_right
from .descriptors import FieldDescriptor, Schema
from .schema import decode_schema, encode_schema

log = get_logger("C3.Codec")

ADDRESS_LENGTH = 32
EVM_KEY_LENGTH = 20
MAX_DYNAMIC_LENGTH = 0xFFFF
MAX_ARRAY_LENGTH = 127


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _expect_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise SchemaMismatch(f"{name}: expected integer, got {type(v).__name__}")
    return v


def _encode_uint(name: str, v: Any, width: int) -> bytes:
    v = _expect_int(name, v)
    if v < 0 or v >= 1 << (width * 8):
        raise FieldOutOfRange(f"{name}: {v} does not fit in {width} unsigned bytes")
    return encode_uint(v, width)


def _encode_sized(name: str, raw: bytes, size: Optional[int]) -> bytes:
    if size is None:
        if len(raw) > MAX_DYNAMIC_LENGTH:
            raise FieldOutOfRange(f"{name}: {len(raw)} bytes exceeds the {MAX_DYNAMIC_LENGTH} byte limit")
        return encode_uint(len(raw), 2) + raw
    if len(raw) != size:
        raise FieldOutOfRange(f"{name}: expected exactly {size} bytes, got {len(raw)}")
    return raw


def _b64_to_bytes(name: str, v: Any) -> bytes:
    if not isinstance(v, str):
        raise SchemaMismatch(f"{name}: expected base64 text, got {type(v).__name__}")
    try:
        return base64.b64decode(v.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as ex:
        raise SchemaMismatch(f"{name}: invalid base64 {v!r}") from ex


def _encode_field(name: str, desc: FieldDescriptor, v: Any) -> bytes:
    kind = desc.kind

    if kind == "fixed":
        return bytes(desc.value)

    if v is None:
        raise SchemaMismatch(f"field {name!r} missing from value")

    if kind == "object":
        if not isinstance(v, Mapping):
            raise SchemaMismatch(f"{name}: expected mapping, got {type(v).__name__}")
        return encode(v, desc.schema)

    if kind == "hash":
        if isinstance(v, (bytes, bytearray)):
            if len(v) != HASH_LENGTH:
                raise FieldOutOfRange(f"{name}: precomputed hash must be {HASH_LENGTH} bytes, got {len(v)}")
            return bytes(v)
        if not isinstance(v, Mapping):
            raise SchemaMismatch(f"{name}: expected mapping to hash, got {type(v).__name__}")
        return sha512_256(encode(v, desc.schema, self_describing=True))

    if kind == "array":
        if not isinstance(v, (list, tuple)):
            raise SchemaMismatch(f"{name}: expected list, got {type(v).__name__}")
        if len(v) > MAX_ARRAY_LENGTH:
            raise FieldOutOfRange(f"{name}: array of {len(v)} exceeds {MAX_ARRAY_LENGTH} elements")
        return bytes([len(v)]) + b"".join(_encode_field(f"{name}[{i}]", desc.element, item) for i, item in enumerate(v))

    if kind == "address":
        if not isinstance(v, (bytes, bytearray)):
            raise SchemaMismatch(f"{name}: expected address bytes, got {type(v).__name__}")
        if len(v) == EVM_KEY_LENGTH:
            return pad_left(bytes(v), ADDRESS_LENGTH)
        if len(v) != ADDRESS_LENGTH:
            raise FieldOutOfRange(f"{name}: address must be {EVM_KEY_LENGTH} or {ADDRESS_LENGTH} bytes, got {len(v)}")
        return bytes(v)

    if kind == "bytes":
        if not isinstance(v, (bytes, bytearray)):
            raise SchemaMismatch(f"{name}: expected bytes, got {type(v).__name__}")
        return _encode_sized(name, bytes(v), desc.size)

    if kind == "base64":
        return _encode_sized(name, _b64_to_bytes(name, v), desc.size)

    if kind == "string":
        if not isinstance(v, str):
            raise SchemaMismatch(f"{name}: expected str, got {type(v).__name__}")
        return _encode_sized(name, v.encode("utf-8"), desc.size)

    if kind == "emptyString":
        if v != "":
            raise SchemaMismatch(f"{name}: expected empty string, got {v!r}")
        return b""

    if kind == "signature":
        raw = _b64_to_bytes(name, v)
        if len(raw) > MAX_SIGNATURE_LENGTH:
            raise FieldOutOfRange(f"{name}: signature longer than {MAX_SIGNATURE_LENGTH} bytes")
        return pad_right(raw, MAX_SIGNATURE_LENGTH)

    if kind == "double":
        if not isinstance(v, (int, float)) or isinstance(v, bool):
            raise SchemaMismatch(f"{name}: expected float, got {type(v).__name__}")
        return struct.pack("<d", float(v))

    if kind == "boolean":
        if not isinstance(v, bool):
            raise SchemaMismatch(f"{name}: expected bool, got {type(v).__name__}")
        return b"\x01" if v else b"\x00"

    if kind == "byte":
        return _encode_uint(name, v, 1)

    if kind in ("uint", "number"):
        return _encode_uint(name, v, desc.width)

    raise SchemaMismatch(f"{name}: unsupported descriptor {desc!r}")


def encode(value: Mapping[str, Any], schema: Schema, self_describing: bool = False) -> bytes:
    """Encode ``value`` field by field in ``schema`` order."""
    if not isinstance(value, Mapping):
        raise SchemaMismatch(f"expected mapping, got {type(value).__name__}")

    chunks: List[bytes] = []
    if self_describing:
        packed_schema = encode_schema(schema)
        chunks.append(encode_uint(len(packed_schema), 8))
        chunks.append(packed_schema)

    for name, desc in schema.items():
        chunks.append(_encode_field(name, desc, value.get(name)))

    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _take(data: bytes, offset: int, n: int, name: str) -> bytes:
    if offset + n > len(data):
        raise InsufficientBytes(f"{name}: needs {n} bytes at offset {offset}, only {max(len(data) - offset, 0)} left")
    return data[offset:offset + n]


def _decode_sized(data: bytes, offset: int, size: Optional[int], name: str) -> Tuple[bytes, int]:
    if size is None:
        size = decode_uint(_take(data, offset, 2, name), 2)
        offset += 2
    return _take(data, offset, size, name), offset + size


def _decode_field(data: bytes, offset: int, name: str, desc: FieldDescriptor) -> Tuple[Any, int]:
    kind = desc.kind

    if kind == "object":
        return _decode_fields(data, offset, desc.schema)

    if kind == "hash":
        return _take(data, offset, HASH_LENGTH, name), offset + HASH_LENGTH

    if kind == "array":
        count = _take(data, offset, 1, name)[0]
        offset += 1
        items = []
        for i in range(count):
            item, offset = _decode_field(data, offset, f"{name}[{i}]", desc.element)
            items.append(item)
        return items, offset

    if kind == "address":
        return _take(data, offset, ADDRESS_LENGTH, name), offset + ADDRESS_LENGTH

    if kind == "bytes":
        return _decode_sized(data, offset, desc.size, name)

    if kind == "base64":
        raw, offset = _decode_sized(data, offset, desc.size, name)
        return base64.b64encode(raw).decode("ascii"), offset

    if kind == "string":
        raw, offset = _decode_sized(data, offset, desc.size, name)
        try:
            return raw.decode("utf-8"), offset
        except UnicodeDecodeError as ex:
            raise SchemaMismatch(f"{name}: invalid utf-8") from ex

    if kind == "emptyString":
        return "", offset

    if kind == "signature":
        raw = _take(data, offset, MAX_SIGNATURE_LENGTH, name)
        return base64.b64encode(raw).decode("ascii"), offset + MAX_SIGNATURE_LENGTH

    if kind == "double":
        return struct.unpack("<d", _take(data, offset, 8, name))[0], offset + 8

    if kind == "boolean":
        return _take(data, offset, 1, name)[0] == 1, offset + 1

    if kind == "byte":
        return _take(data, offset, 1, name)[0], offset + 1

    if kind in ("uint", "number"):
        return decode_uint(_take(data, offset, desc.width, name), desc.width), offset + desc.width

    if kind == "fixed":
        literal = bytes(desc.value)
        got = _take(data, offset, len(literal), name)
        if got != literal:
            raise SchemaMismatch(f"{name}: expected literal {literal.hex()}, got {got.hex()}")
        return literal, offset + len(literal)

    raise SchemaMismatch(f"{name}: unsupported descriptor {desc!r}")


def _decode_fields(data: bytes, offset: int, schema: Schema) -> Tuple[dict, int]:
    result = {}
    for name, desc in schema.items():
        result[name], offset = _decode_field(data, offset, name, desc)
    return result, offset


def decode(data: bytes, schema: Optional[Schema] = None, offset: int = 0) -> Tuple[dict, int]:
    """Decode one value starting at ``offset``.

    Returns ``(value, bytes_consumed)`` so back-to-back records can be read
    by feeding the running total in as the next offset. Without a schema the
    blob must be self-describing.
    """
    start = offset
    data = bytes(data)
    if schema is None:
        length = decode_uint(_take(data, offset, 8, "schema length"), 8)
        offset += 8
        schema = decode_schema(_take(data, offset, length, "schema"))
        offset += length

    value, offset = _decode_fields(data, offset, schema)
    return value, offset - start


def decode_exact(data: bytes, schema: Optional[Schema] = None) -> dict:
    """Decode a buffer that must hold exactly one value."""
    value, consumed = decode(data, schema)
    if consumed != len(data):
        log.debug(f"[DECODE] {len(data) - consumed} trailing bytes left over")
        raise SchemaMismatch(f"consumed {consumed} of {len(data)} bytes")
    return value
