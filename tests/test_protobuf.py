import struct

import pytest

from forgeops.protobuf import (
    Field,
    Message,
    WireType,
    decode_float_data,
    decode_packed_varints,
    parse_message,
)


def _varint(value):
    value &= (1 << 64) - 1
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _tag(number, wire):
    return _varint((number << 3) | wire)


def _varint_field(number, value):
    return _tag(number, 0) + _varint(value)


def _bytes_field(number, payload):
    return _tag(number, 2) + _varint(len(payload)) + payload


def test_documented_varint_example():
    msg = parse_message(b"\x08\x96\x01")
    assert msg.get_int64(1, -1) == 150
    assert len(msg) == 1


def test_length_delimited_field():
    msg = parse_message(_bytes_field(2, b"hello"))
    assert msg.get_bytes(2) == b"hello"
    assert msg.find(2).wire_type is WireType.LENGTH_DELIMITED


def test_find_all_and_find_first():
    data = _varint_field(3, 1) + _varint_field(4, 9) + _varint_field(3, 2) + _varint_field(3, 3)
    msg = parse_message(data)
    assert [f.varint_value for f in msg.find_all(3)] == [1, 2, 3]
    assert msg.find(3).varint_value == 1
    assert msg.find_all(7) == []
    assert msg.find(7) is None


def test_missing_field_gives_default():
    msg = parse_message(_varint_field(1, 5))
    assert msg.get_int64(2, 42) == 42
    assert msg.get_int32(2, 17) == 17
    assert msg.get_float(2, 1.25) == 1.25
    assert msg.get_bytes(2) is None


def test_int_on_length_delimited_gives_default():
    msg = parse_message(_bytes_field(1, b"abc"))
    assert msg.get_int64(1, 99) == 99


def test_negative_int64_and_int32():
    msg = parse_message(_varint_field(1, -5) + _varint_field(2, -3))
    assert msg.get_int64(1) == -5
    assert msg.get_int32(2) == -3


def test_int32_truncates_high_bits():
    msg = parse_message(_varint_field(1, (1 << 32) + 7))
    assert msg.get_int64(1) == (1 << 32) + 7
    assert msg.get_int32(1) == 7


def test_float_fixed32():
    data = _tag(4, 5) + struct.pack("<f", 2.5)
    msg = parse_message(data)
    assert msg.get_float(4) == 2.5
    assert msg.find(4).data == struct.pack("<f", 2.5)


def test_float_from_varint_reinterpreted():
    bits = struct.unpack("<I", struct.pack("<f", 3.25))[0]
    msg = parse_message(_varint_field(5, bits))
    assert msg.get_float(5) == 3.25


def test_fixed64_recorded_as_varint_with_raw_bytes():
    raw = struct.pack("<d", 6.5)
    msg = parse_message(_tag(6, 1) + raw + _varint_field(7, 11))
    field = msg.find(6)
    assert field.wire_type is WireType.VARINT
    assert field.varint_value == 0
    assert field.data == raw
    assert msg.get_int64(7) == 11


def test_nested_message():
    inner = _varint_field(1, 8) + _bytes_field(2, b"name")
    msg = parse_message(_bytes_field(3, inner))
    nested = msg.find(3).as_message()
    assert nested.get_int64(1) == 8
    assert nested.get_bytes(2) == b"name"


def test_as_message_on_varint_raises():
    msg = parse_message(_varint_field(1, 3))
    with pytest.raises(ValueError):
        msg.find(1).as_message()


def test_zero_depth_raises():
    with pytest.raises(ValueError):
        parse_message(b"\x08\x01", 0)


def test_nested_depth_is_passed_through():
    field = Field(1, WireType.LENGTH_DELIMITED, 0, _varint_field(1, 2))
    with pytest.raises(ValueError):
        field.as_message(0)
    assert field.as_message(1).get_int64(1) == 2


def test_truncated_data_keeps_earlier_fields():
    data = _varint_field(1, 4) + _tag(2, 2) + _varint(5) + b"hel"
    msg = parse_message(data)
    assert len(msg) == 1
    assert msg.find(2) is None


def test_field_zero_stops_parsing():
    data = _varint_field(1, 4) + b"\x00\x01" + _varint_field(2, 6)
    msg = parse_message(data)
    assert [f.field_number for f in msg] == [1]


def test_unknown_wire_type_stops_parsing():
    data = _varint_field(1, 4) + _tag(2, 3) + _varint_field(3, 6)
    msg = parse_message(data)
    assert [f.field_number for f in msg] == [1]


def test_overlong_varint_stops_parsing():
    data = _varint_field(1, 4) + _tag(2, 0) + b"\xff" * 11
    msg = parse_message(data)
    assert [f.field_number for f in msg] == [1]


def test_large_field_number():
    msg = parse_message(_varint_field(200, 12) + _varint_field(200, 13))
    assert msg.get_int64(200) == 12
    assert len(msg.find_all(200)) == 2


def test_bool_field():
    msg = parse_message(_varint_field(1, 1) + _varint_field(2, 0))
    assert msg.get_bool(1) is True
    assert msg.get_bool(2) is False
    assert msg.get_bool(3, True) is True


def test_empty_message():
    msg = parse_message(b"")
    assert len(msg) == 0
    assert isinstance(msg, Message) and list(msg) == []


def test_packed_varints_round_trip():
    values = [0, 1, 127, 128, 300, 1 << 40, -1, -224]
    data = b"".join(_varint(v) for v in values)
    assert decode_packed_varints(data) == values


def test_packed_varints_max_values():
    data = b"".join(_varint(v) for v in [5, 6, 7, 8])
    assert decode_packed_varints(data, 2) == [5, 6]


def test_packed_varints_truncated_raises():
    with pytest.raises(ValueError):
        decode_packed_varints(_varint(5) + b"\x80")


def test_packed_varints_empty():
    assert decode_packed_varints(b"") == []


def test_float_data_round_trip():
    values = [0.5, -2.0, 3.75, 1024.0]
    data = struct.pack("<4f", *values)
    assert decode_float_data(data) == values


def test_float_data_ignores_trailing_and_caps():
    data = struct.pack("<3f", 1.5, 2.5, 4.5) + b"\x01\x02"
    assert decode_float_data(data) == [1.5, 2.5, 4.5]
    assert decode_float_data(data, 2) == [1.5, 2.5]
    assert decode_float_data(b"") == []