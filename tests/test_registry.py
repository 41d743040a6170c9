import pytest

from magistrate.dispatch import dispatch
from magistrate.primitives import FLOAT64, INT32
from magistrate.registry import (
    RegistryError,
    SerializableBase,
    register_derived,
    serialize_polymorphic,
    type_for_index,
    type_index,
)
from magistrate.serializers import Footprinter, Packer, Sizer, Unpacker


class Shape(SerializableBase):
    def __init__(self, a=0):
        self.a = a

    def serialize(self, s):
        self.a = dispatch(s, self.a, INT32)


class Circle(Shape):
    def __init__(self, a=0, radius=0.0):
        super().__init__(a)
        self.radius = radius

    def serialize(self, s):
        self.radius = dispatch(s, self.radius, FLOAT64)


class Square(Shape):
    def __init__(self, a=0, side=0):
        super().__init__(a)
        self.side = side

    def serialize(self, s):
        self.side = dispatch(s, self.side, INT32)


class TaggedCircle(Circle):
    pass


class Unrelated:
    pass


def _pack(obj, base):
    sizer = Sizer()
    serialize_polymorphic(sizer, obj, base)
    packer = Packer(sizer.size())
    serialize_polymorphic(packer, obj, base)
    assert packer.used_buffer_size() == sizer.size()
    return packer.extract_packed_buffer()


def test_root_has_index_zero():
    assert type_index(Shape) == 0


def test_indices_are_distinct_and_resolve_back():
    classes = [Shape, Circle, Square, TaggedCircle]
    indices = [type_index(cls) for cls in classes]
    assert len(set(indices)) == len(classes)
    for cls, index in zip(classes, indices):
        assert type_for_index(Shape, index) is cls


def test_register_derived_is_idempotent():
    assert register_derived(Circle, Shape) == type_index(Circle)


def test_register_derived_rejects_non_subclass():
    with pytest.raises(TypeError):
        register_derived(Unrelated, Shape)


def test_type_index_of_unregistered_raises():
    with pytest.raises(RegistryError):
        type_index(Unrelated)


def test_type_for_index_out_of_range_raises():
    with pytest.raises(RegistryError):
        type_for_index(Shape, 10_000)


def test_type_for_index_rejects_type_outside_base():
    with pytest.raises(RegistryError):
        type_for_index(Circle, type_index(Square))


def test_round_trip_builds_concrete_type():
    buf = _pack(Circle(7, 2.5), Shape)
    out = serialize_polymorphic(Unpacker(buf), None, Shape)
    assert type(out) is Circle
    assert out.a == 7
    assert out.radius == 2.5


def test_buffer_starts_with_type_index_then_base_fields():
    obj = Square(11, 4)
    buf = _pack(obj, Shape)
    assert buf[:INT32.size] == INT32.pack(type_index(Square))
    assert buf[INT32.size:2 * INT32.size] == INT32.pack(11)


def test_in_place_unpack_fills_existing_object():
    buf = _pack(Square(3, 9), Shape)
    target = Square()
    out = serialize_polymorphic(Unpacker(buf), target, Shape)
    assert out is target
    assert (target.a, target.side) == (3, 9)


def test_in_place_unpack_into_wrong_type_raises():
    buf = _pack(Square(3, 9), Shape)
    with pytest.raises(RegistryError):
        serialize_polymorphic(Unpacker(buf), Circle(), Shape)


def test_subclass_without_own_serialize_keeps_parent_fields():
    buf = _pack(TaggedCircle(5, 1.25), Shape)
    out = serialize_polymorphic(Unpacker(buf), None, Circle)
    assert type(out) is TaggedCircle
    assert (out.a, out.radius) == (5, 1.25)


def test_packing_object_outside_base_raises():
    with pytest.raises(TypeError):
        serialize_polymorphic(Sizer(), Square(), Circle)


def test_packing_none_raises():
    with pytest.raises(ValueError):
        serialize_polymorphic(Sizer(), None, Shape)


def test_footprint_matches_size():
    obj = Circle(1, 3.0)
    sizer = Sizer()
    serialize_polymorphic(sizer, obj, Shape)
    printer = Footprinter()
    serialize_polymorphic(printer, obj, Shape)
    assert printer.memory_footprint() == sizer.size()


def test_plain_dispatch_serializes_whole_chain():
    obj = Circle(8, 0.5)
    sizer = Sizer()
    dispatch(sizer, obj)
    packer = Packer(sizer.size())
    dispatch(packer, obj)
    out = dispatch(Unpacker(packer.extract_packed_buffer()), None, Circle)
    assert type(out) is Circle
    assert (out.a, out.radius) == (8, 0.5)


def test_polymorphic_size_exceeds_plain_size_by_index():
    obj = Square(2, 6)
    plain = Sizer()
    dispatch(plain, obj)
    poly = Sizer()
    serialize_polymorphic(poly, obj, Shape)
    assert poly.size() - plain.size() == INT32.size