import pytest

from c3_core.codec import (
    Array, Base64Bytes, Boolean, Byte, FixedLiteral, Hash, Number, Object, Signature,
    UnsignedInt, Utf8String, VariableBytes, decode_schema, encode_schema,
)
from c3_core.codec.schema import decode_schema_at
from c3_core.errors import FieldOutOfRange, InsufficientBytes, SchemaMismatch, UnknownTypeTag
from c3_core.utils import encode_uint


def test_simple_field_layout():
    # count, name length, name, tag (byte = 6)
    assert encode_schema({"x": Byte()}) == b"\x01\x01x\x06"


def test_sized_fields_carry_size_byte():
    assert encode_schema({"s": Utf8String(10)}) == b"\x01\x01s\x05\x0a"
    assert encode_schema({"s": Utf8String()}) == b"\x01\x01s\x05\x00"


def test_nested_schemas_round_trip():
    schema = {
        "obj": Object({"a": Number(), "b": Boolean()}),
        "list": Array(VariableBytes(32)),
        "h": Hash({"inner": Base64Bytes()}),
        "lit": FixedLiteral(b"\x06\x07"),
        "sig": Signature(),
        "name": Utf8String(12),
    }
    assert decode_schema(encode_schema(schema)) == schema


def test_array_wraps_element_in_value_field():
    nested = encode_schema({"value": Byte()})
    expected = b"\x01\x01a\x0b" + encode_uint(len(nested), 8) + nested
    assert encode_schema({"a": Array(Byte())}) == expected


def test_integer_widths_are_not_serialized():
    assert decode_schema(encode_schema({"u": UnsignedInt(2)})) == {"u": UnsignedInt()}


def test_decode_at_offset_returns_next_offset():
    packed = encode_schema({"x": Byte()})
    schema, end = decode_schema_at(b"\xff" + packed, 1)
    assert schema == {"x": Byte()}
    assert end == len(packed) + 1


def test_reserved_ratio_tag_is_rejected():
    with pytest.raises(UnknownTypeTag):
        decode_schema(b"\x01\x01r\x0f")


def test_tag_out_of_table():
    with pytest.raises(UnknownTypeTag):
        decode_schema(b"\x01\x01r\xc8")


def test_array_with_wrong_element_name():
    nested = encode_schema({"other": Byte()})
    with pytest.raises(SchemaMismatch):
        decode_schema(b"\x01\x01a\x0b" + encode_uint(len(nested), 8) + nested)


def test_truncated_schema():
    packed = encode_schema({"name": Utf8String()})
    with pytest.raises(InsufficientBytes):
        decode_schema(packed[:-1])


def test_limits():
    with pytest.raises(FieldOutOfRange):
        encode_schema({"x" * 128: Byte()})
    with pytest.raises(FieldOutOfRange):
        encode_schema({"s": VariableBytes(200)})
    with pytest.raises(FieldOutOfRange):
        encode_schema({f"f{i}": Byte() for i in range(128)})
