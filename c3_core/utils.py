"""
c3_core.utils
-------------
Byte-level helpers shared by the codec, the chain capabilities and the account
id scheme: base64/base16/base32 text encodings and fixed-width big-endian
integers.
"""

from __future__ import annotations
import base64
from typing import Union

BytesOrB64 = Union[bytes, bytearray, str]


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)


def to_bytes(value: BytesOrB64) -> bytes:
    """Accept raw bytes or their base64 transport form."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise TypeError(f"expected bytes or base64 text, got {type(value).__name__}")
    return b64d(value)


def b16d(s: str) -> bytes:
    if s.startswith(("0x", "0X")):
        s = s[2:]
    return bytes.fromhex(s)


def b32e(b: bytes) -> str:
    """RFC4648 base32 without padding."""
    return base64.b32encode(b).decode("ascii").rstrip("=")


def b32d(s: str) -> bytes:
    """Inverse of b32e; raises ValueError on a malformed input."""
    pad = "=" * ((8 - len(s) % 8) % 8)
    try:
        return base64.b32decode(s + pad)
    except ValueError as ex:
        # binascii.Error, or non-ascii input
        raise ValueError(f"invalid base32: {ex}") from ex


def encode_uint(value: int, width: int) -> bytes:
    if value < 0 or value >= 1 << (width * 8):
        raise OverflowError(f"{value} does not fit in {width} bytes")
    return value.to_bytes(width, "big")


def decode_uint(data: bytes, width: int) -> int:
    if len(data) < width:
        raise ValueError(f"expected {width} bytes, got {len(data)}")
    return int.from_bytes(data[:width], "big")


def encode_int64(value: int) -> bytes:
    # two's complement, as stored on-chain for signed amounts
    if not -(1 << 63) <= value < 1 << 63:
        raise OverflowError(f"{value} does not fit in a signed 64-bit integer")
    if value < 0:
        value += 1 << 64
    return encode_uint(value, 8)


def pad_left(b: bytes, length: int) -> bytes:
    if len(b) > length:
        raise ValueError(f"value length {len(b)} exceeds {length}")
    return b.rjust(length, b"\x00")


def pad_right(b: bytes, length: int) -> bytes:
    if len(b) > length:
        raise ValueError(f"value length {len(b)} exceeds {length}")
    return b.ljust(length, b"\x00")
