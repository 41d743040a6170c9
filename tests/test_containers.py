import datetime
import sys

import pytest

from magistrate.containers import (
    POINTER,
    serialize_array,
    serialize_duration,
    serialize_function,
    serialize_optional,
    serialize_raw_pointer,
)
from magistrate.dispatch import dispatch
from magistrate.primitives import BOOL, FLOAT64, INT32, INT64, SIZE
from magistrate.registry import SerializableBase
from magistrate.serializers import Footprinter, Packer, Sizer, Unpacker

SAMPLE_SIZE = 5


def _round_trip(step):
    sizer = Sizer()
    step(sizer)
    packer = Packer(sizer.size())
    step(packer)
    data = packer.extract_packed_buffer()
    unpacker = Unpacker(data)
    return data, step(unpacker), unpacker


class Point:
    def __init__(self, x=0):
        self.x = x

    def serialize(self, s):
        self.x = dispatch(s, self.x, INT32)


class Sample:
    def __init__(self, d=0.0):
        self.d = d

    def serialize(self, s):
        self.d = dispatch(s, self.d, FLOAT64)
        if isinstance(s, Footprinter):
            s.add_bytes(SAMPLE_SIZE)


class Shape(SerializableBase):
    def __init__(self, a=0):
        self.a = a

    def serialize(self, s):
        self.a = dispatch(s, self.a, INT32)


class Circle(Shape):
    def __init__(self, a=0, r=0.0):
        super().__init__(a)
        self.r = r

    def serialize(self, s):
        self.r = dispatch(s, self.r, FLOAT64)


def test_array_round_trip_without_length_prefix():
    values = [1, 2, 3]
    data, result, unpacker = _round_trip(
        lambda s: serialize_array(s, [None] * 3 if s.is_unpacking() else values, INT32)
    )
    assert result == values
    assert len(data) == 3 * INT32.size
    assert unpacker.remaining == 0


def test_array_wire_bytes_little_endian():
    data, _, _ = _round_trip(lambda s: serialize_array(s, [1, 2], INT32))
    assert data == b"\x01\x00\x00\x00\x02\x00\x00\x00"


def test_array_footprint_counts_elements_only():
    fp = Footprinter()
    serialize_array(fp, [1, 2, 3], INT32)
    assert fp.memory_footprint() == 3 * INT32.size


def test_array_empty():
    data, result, _ = _round_trip(lambda s: serialize_array(s, [], INT32))
    assert result == []
    assert data == b""


def test_array_of_objects_reconstructs():
    points = [Point(1), Point(2)]
    _, result, _ = _round_trip(
        lambda s: serialize_array(s, [None, None] if s.is_unpacking() else points, Point)
    )
    assert [p.x for p in result] == [1, 2]
    assert all(isinstance(p, Point) for p in result)


@pytest.mark.parametrize(
    "duration",
    [datetime.timedelta(milliseconds=300), datetime.timedelta(hours=24)],
)
def test_duration_round_trip(duration):
    data, result, _ = _round_trip(lambda s: serialize_duration(s, duration))
    assert result == duration
    assert len(data) == INT64.size


def test_duration_keeps_microseconds_and_sign():
    duration = datetime.timedelta(days=-2, microseconds=7)
    _, result, _ = _round_trip(lambda s: serialize_duration(s, duration))
    assert result == duration


def test_duration_footprint():
    fp = Footprinter()
    serialize_duration(fp, datetime.timedelta(seconds=1))
    assert fp.memory_footprint() == INT64.size


def test_duration_rejects_other_types():
    with pytest.raises(TypeError):
        serialize_duration(Sizer(), 5)


def test_function_footprint_counts_object():
    def fn():
        return 1

    fp = Footprinter()
    assert serialize_function(fp, fn) is fn
    assert fp.memory_footprint() == sys.getsizeof(fn)


def test_function_only_footprints():
    with pytest.raises(TypeError):
        serialize_function(Packer(8), len)
    with pytest.raises(TypeError):
        serialize_function(Footprinter(), 3)


def test_raw_pointer_null_counts_pointer():
    fp = Footprinter()
    assert serialize_raw_pointer(fp, None, INT32) is None
    assert fp.memory_footprint() == POINTER.size


def test_raw_pointer_follows_target():
    fp = Footprinter()
    serialize_raw_pointer(fp, 5, INT32)
    assert fp.memory_footprint() == POINTER.size + INT32.size


def test_raw_pointer_to_object_counts_extra_bytes():
    fp = Footprinter()
    serialize_raw_pointer(fp, Sample(), Sample)
    assert fp.memory_footprint() == POINTER.size + FLOAT64.size + SAMPLE_SIZE


def test_raw_pointer_opaque_not_followed():
    fp = Footprinter()
    serialize_raw_pointer(fp, Sample(), object)
    assert fp.memory_footprint() == POINTER.size


def test_raw_pointer_only_footprints():
    with pytest.raises(TypeError):
        serialize_raw_pointer(Sizer(), 5, INT32)


def test_optional_none_round_trip():
    data, result, _ = _round_trip(lambda s: serialize_optional(s, None, INT32))
    assert result is None
    assert data == BOOL.pack(True)


def test_optional_value_round_trip():
    data, result, _ = _round_trip(
        lambda s: serialize_optional(s, None if s.is_unpacking() else 42, INT32)
    )
    assert result == 42
    assert data == BOOL.pack(False) + INT32.pack(42)


def test_optional_fills_existing_object():
    source = Point(17)
    target = Point(0)
    _, result, _ = _round_trip(
        lambda s: serialize_optional(s, target if s.is_unpacking() else source, Point)
    )
    assert result is target
    assert target.x == 17


def test_optional_footprint():
    empty = Footprinter()
    serialize_optional(empty, None, Sample)
    assert empty.memory_footprint() == POINTER.size

    full = Footprinter()
    serialize_optional(full, Sample(), Sample)
    assert full.memory_footprint() == POINTER.size + FLOAT64.size + SAMPLE_SIZE


def test_optional_polymorphic_round_trip():
    circle = Circle(3, 1.5)
    _, result, unpacker = _round_trip(
        lambda s: serialize_optional(s, None if s.is_unpacking() else circle, Shape)
    )
    assert type(result) is Circle
    assert (result.a, result.r) == (3, 1.5)
    assert unpacker.remaining == 0


def test_optional_unpack_needs_spec():
    data = BOOL.pack(False) + INT32.pack(1)
    with pytest.raises(TypeError):
        serialize_optional(Unpacker(data), None)