"""Reader for the protobuf wire format, as used by ONNX model files."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Iterator, Optional

DEFAULT_MAX_DEPTH = 16

_MASK32 = (1 << 32) - 1
_MASK64 = (1 << 64) - 1


class WireType(enum.IntEnum):
    """Wire types as recorded on parsed fields."""

    VARINT = 0
    LENGTH_DELIMITED = 2
    INVALID = -1


class _MalformedVarint(Exception):
    """Raised internally when a varint is truncated or too long."""


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _read_varint(buf: bytes, pos: int) -> tuple[int, int]:
    """Decode one LEB128 varint starting at ``pos``; return (value, new_pos)."""
    value = 0
    shift = 0
    end = len(buf)
    while pos < end:
        byte = buf[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value & _MASK64, pos
        shift += 7
        if shift >= 64:
            raise _MalformedVarint("varint too long")
    raise _MalformedVarint("truncated varint")


@dataclass(frozen=True)
class Field:
    """One field of a parsed message.

    Fixed 64-bit fields are recorded as ``VARINT`` with a value of zero and
    their eight raw bytes in ``data``; fixed 32-bit fields are recorded as
    ``LENGTH_DELIMITED`` with their four raw bytes in ``data``.
    """

    field_number: int
    wire_type: WireType
    varint_value: int = 0
    data: bytes = b""

    def as_message(self, max_depth: int = DEFAULT_MAX_DEPTH) -> "Message":
        """Parse this length-delimited field as a nested message."""
        if self.wire_type is not WireType.LENGTH_DELIMITED:
            raise ValueError(
                f"field {self.field_number} is not length-delimited"
            )
        return parse_message(self.data, max_depth)


class Message:
    """An ordered collection of parsed fields."""

    def __init__(self, fields: Optional[list[Field]] = None) -> None:
        self.fields: list[Field] = list(fields or [])
        self._first: dict[int, Field] = {}
        for f in self.fields:
            self._first.setdefault(f.field_number, f)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __repr__(self) -> str:
        return f"Message({self.fields!r})"

    def find(self, field_number: int) -> Optional[Field]:
        """Return the first field with ``field_number``, or None."""
        return self._first.get(field_number)

    def find_all(self, field_number: int) -> list[Field]:
        """Return every field with ``field_number`` in message order."""
        return [f for f in self.fields if f.field_number == field_number]

    def get_int64(self, field_number: int, default: int = 0) -> int:
        """Return a varint field as a signed 64-bit integer."""
        f = self.find(field_number)
        if f is None or f.wire_type is not WireType.VARINT:
            return default
        return _to_signed(f.varint_value, 64)

    def get_int32(self, field_number: int, default: int = 0) -> int:
        """Return a varint field truncated to a signed 32-bit integer."""
        return _to_signed(self.get_int64(field_number, default), 32)

    def get_float(self, field_number: int, default: float = 0.0) -> float:
        """Return a float field stored as fixed32 or as a raw varint."""
        f = self.find(field_number)
        if f is None:
            return default
        if f.wire_type is WireType.LENGTH_DELIMITED and len(f.data) == 4:
            return struct.unpack("<f", f.data)[0]
        if f.wire_type is WireType.VARINT:
            return struct.unpack("<f", struct.pack("<I", f.varint_value & _MASK32))[0]
        return default

    def get_bytes(self, field_number: int) -> Optional[bytes]:
        """Return the payload of a length-delimited field, or None."""
        f = self.find(field_number)
        if f is None or f.wire_type is not WireType.LENGTH_DELIMITED:
            return None
        return f.data

    def get_bool(self, field_number: int, default: bool = False) -> bool:
        """Return a varint field interpreted as a boolean."""
        return self.get_int32(field_number, int(default)) != 0


def _read_field(buf: bytes, pos: int) -> Optional[tuple[Field, int]]:
    """Read one field; return None where parsing has to stop."""
    end = len(buf)
    try:
        tag, pos = _read_varint(buf, pos)
    except _MalformedVarint:
        return None

    number = _to_signed(tag >> 3, 32)
    wire = tag & 0x07
    if number == 0:
        return None

    if wire == 0:
        try:
            value, pos = _read_varint(buf, pos)
        except _MalformedVarint:
            return None
        return Field(number, WireType.VARINT, value), pos
    if wire == 1:
        if pos + 8 > end:
            return None
        return Field(number, WireType.VARINT, 0, buf[pos:pos + 8]), pos + 8
    if wire == 2:
        try:
            length, pos = _read_varint(buf, pos)
        except _MalformedVarint:
            return None
        if pos + length > end:
            return None
        return (
            Field(number, WireType.LENGTH_DELIMITED, 0, buf[pos:pos + length]),
            pos + length,
        )
    if wire == 5:
        if pos + 4 > end:
            return None
        return Field(number, WireType.LENGTH_DELIMITED, 0, buf[pos:pos + 4]), pos + 4
    return None


def parse_message(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Message:
    """Parse ``data`` into a Message.

    Parsing stops quietly at the first malformed, truncated or unsupported
    field; the fields read before it are kept.
    """
    if max_depth <= 0:
        raise ValueError("maximum nesting depth reached")
    buf = bytes(data)
    fields: list[Field] = []
    pos = 0
    while pos < len(buf):
        result = _read_field(buf, pos)
        if result is None:
            break
        f, pos = result
        fields.append(f)
    return Message(fields)


def decode_packed_varints(data: bytes, max_values: Optional[int] = None) -> list[int]:
    """Decode packed varints as signed 64-bit integers."""
    buf = bytes(data)
    values: list[int] = []
    pos = 0
    while pos < len(buf) and (max_values is None or len(values) < max_values):
        try:
            value, pos = _read_varint(buf, pos)
        except _MalformedVarint as exc:
            raise ValueError(f"malformed packed varints: {exc}") from None
        values.append(_to_signed(value, 64))
    return values


def decode_float_data(data: bytes, max_values: Optional[int] = None) -> list[float]:
    """Decode packed little-endian binary32 floats; trailing bytes are ignored."""
    buf = bytes(data)
    count = len(buf) // 4
    if max_values is not None:
        count = min(count, max(max_values, 0))
    return list(struct.unpack_from(f"<{count}f", buf)) if count else []