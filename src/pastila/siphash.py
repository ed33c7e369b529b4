"""
ClickHouse-compatible sipHash128.

The backend verifies every inserted row with ``sipHash128(content)``, so the
content hash computed here must match ClickHouse byte-for-byte. ClickHouse's
128-bit variant is not the reference SipHash-2-4-128: it finalizes once and
returns ``v0 ^ v1`` and ``v2 ^ v3`` as two little-endian 64-bit words.
"""
from __future__ import annotations

import struct

__all__ = ["siphash128"]

_MASK = 0xFFFFFFFFFFFFFFFF


def _rotl(x: int, b: int) -> int:
    return ((x << b) | (x >> (64 - b))) & _MASK


def _round(v0: int, v1: int, v2: int, v3: int):
    v0 = (v0 + v1) & _MASK
    v1 = _rotl(v1, 13) ^ v0
    v0 = _rotl(v0, 32)
    v2 = (v2 + v3) & _MASK
    v3 = _rotl(v3, 16) ^ v2
    v0 = (v0 + v3) & _MASK
    v3 = _rotl(v3, 21) ^ v0
    v2 = (v2 + v1) & _MASK
    v1 = _rotl(v1, 17) ^ v2
    v2 = _rotl(v2, 32)
    return v0, v1, v2, v3


def siphash128(data: bytes, key0: int = 0, key1: int = 0) -> bytes:
    """
    Compute ClickHouse ``sipHash128`` of ``data``.

    Args:
        data: Bytes to hash
        key0: First 64-bit key half (ClickHouse uses 0)
        key1: Second 64-bit key half (ClickHouse uses 0)

    Returns:
        16-byte digest in the byte order ClickHouse stores it
    """
    v0 = 0x736F6D6570736575 ^ key0
    v1 = 0x646F72616E646F6D ^ key1
    v2 = 0x6C7967656E657261 ^ key0
    v3 = 0x7465646279746573 ^ key1

    length = len(data)
    full = length - (length % 8)

    for (word,) in struct.iter_unpack("<Q", data[:full]):
        v3 ^= word
        v0, v1, v2, v3 = _round(v0, v1, v2, v3)
        v0, v1, v2, v3 = _round(v0, v1, v2, v3)
        v0 ^= word

    # Tail bytes, with the total length modulo 256 in the last byte.
    tail = data[full:] + bytes(7 - (length - full)) + bytes([length & 0xFF])
    (word,) = struct.unpack("<Q", tail)

    v3 ^= word
    v0, v1, v2, v3 = _round(v0, v1, v2, v3)
    v0, v1, v2, v3 = _round(v0, v1, v2, v3)
    v0 ^= word

    v2 ^= 0xFF
    for _ in range(4):
        v0, v1, v2, v3 = _round(v0, v1, v2, v3)

    return struct.pack("<QQ", v0 ^ v1, v2 ^ v3)
