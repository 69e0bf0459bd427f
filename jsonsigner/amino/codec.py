# jsonsigner/amino/codec.py
"""
Amino binary primitives: concrete-type prefixes, uvarints and
length-prefixed byte fields.
"""

import hashlib
from typing import Tuple


def name_prefix(name: str) -> bytes:
    """4-byte prefix amino derives from a registered concrete type name."""
    bz = hashlib.sha256(name.encode("utf-8")).digest()
    while bz[0] == 0x00:
        bz = bz[1:]
    # next three bytes are the disambiguation bytes
    bz = bz[3:]
    while bz[0] == 0x00:
        bz = bz[1:]
    return bz[:4]


def encode_uvarint(n: int) -> bytes:
    if n < 0:
        raise ValueError("uvarint must be non-negative")
    out = bytearray()
    while n >= 0x80:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def decode_uvarint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Return (value, new offset)."""
    result = 0
    shift = 0
    pos = offset
    while True:
        if pos >= len(data):
            raise ValueError("truncated uvarint")
        b = data[pos]
        pos += 1
        result |= (b & 0x7F) << shift
        if not b & 0x80:
            return result, pos
        shift += 7
        if shift >= 64:
            raise ValueError("uvarint overflows 64 bits")


def encode_byte_slice(data: bytes) -> bytes:
    return encode_uvarint(len(data)) + data


def decode_byte_slice(data: bytes, offset: int = 0) -> Tuple[bytes, int]:
    length, pos = decode_uvarint(data, offset)
    end = pos + length
    if end > len(data):
        raise ValueError(f"byte slice of length {length} overruns buffer")
    return data[pos:end], end


def strip_length_prefix(data: bytes) -> bytes:
    length, pos = decode_uvarint(data)
    if length != len(data) - pos:
        raise ValueError(f"length prefix {length} does not match payload of {len(data) - pos} bytes")
    return data[pos:]
