"""Minimal protobuf wire-format reading and writing."""

from __future__ import annotations

import struct
from typing import Iterator

VARINT, FIXED64, LENGTH, FIXED32 = 0, 1, 2, 5
_MASK64 = (1 << 64) - 1


class DecodeError(ValueError):
    """Raised when bytes are not valid protobuf wire data."""


def encode_varint(value: int) -> bytes:
    """Encode an integer as a varint; negatives use 64-bit two's complement."""
    if value < 0:
        value &= _MASK64
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, pos: int) -> tuple[int, int]:
    """Decode a varint at ``pos``; return the value and the next position."""
    result = 0
    for shift in range(0, 70, 7):
        if pos >= len(data):
            raise DecodeError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _MASK64, pos
    raise DecodeError("varint too long")


def to_signed(value: int, bits: int) -> int:
    """Reinterpret an unsigned integer as two's complement of ``bits`` width."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def iter_fields(data: bytes) -> Iterator[tuple[int, int, int | bytes]]:
    """Yield ``(field number, wire type, value)`` for every field in ``data``."""
    pos = 0
    while pos < len(data):
        key, pos = decode_varint(data, pos)
        number, wire_type = key >> 3, key & 7
        if number == 0:
            raise DecodeError("field number zero")
        if wire_type == VARINT:
            value, pos = decode_varint(data, pos)
            yield number, wire_type, value
        elif wire_type in (FIXED64, FIXED32):
            size = 8 if wire_type == FIXED64 else 4
            if pos + size > len(data):
                raise DecodeError("truncated fixed field")
            yield number, wire_type, data[pos:pos + size]
            pos += size
        elif wire_type == LENGTH:
            length, pos = decode_varint(data, pos)
            if pos + length > len(data):
                raise DecodeError("truncated length-delimited field")
            yield number, wire_type, bytes(data[pos:pos + length])
            pos += length
        else:
            raise DecodeError(f"unsupported wire type {wire_type}")


class Writer:
    """Builds a message; scalar fields equal to their default are omitted."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def _key(self, number: int, wire_type: int) -> None:
        self._buf += encode_varint((number << 3) | wire_type)

    def varint_field(self, number: int, value: int) -> "Writer":
        if value:
            self._key(number, VARINT)
            self._buf += encode_varint(value)
        return self

    def int_field(self, number: int, value: int) -> "Writer":
        return self.varint_field(number, value & _MASK64 if value < 0 else value)

    def bool_field(self, number: int, value: bool) -> "Writer":
        return self.varint_field(number, 1 if value else 0)

    def double_field(self, number: int, value: float) -> "Writer":
        if value != 0.0:
            self._key(number, FIXED64)
            self._buf += struct.pack("<d", value)
        return self

    def bytes_field(self, number: int, value: bytes) -> "Writer":
        if value:
            self._key(number, LENGTH)
            self._buf += encode_varint(len(value)) + bytes(value)
        return self

    def string_field(self, number: int, value: str) -> "Writer":
        return self.bytes_field(number, value.encode("utf-8"))

    def message_field(self, number: int, value: bytes | None) -> "Writer":
        if value is not None:
            self._key(number, LENGTH)
            self._buf += encode_varint(len(value)) + bytes(value)
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)