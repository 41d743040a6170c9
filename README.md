# magistrate

`magistrate` turns Python objects into compact byte buffers and back again.
An object describes its fields once, in a `serialize(self, s)` method or a
registered function, and that one description drives every pass over it:

- **sizing** (`Sizer`) works out how many bytes the packed form needs,
- **packing** (`Packer`) writes the object into a buffer of exactly that size,
- **unpacking** (`Unpacker`) reads the object back out of the buffer,
- **footprinting** (`Footprinter`) estimates how much memory the object holds.

These passes live in `magistrate.serializers`; the pass a serializer performs
is given by its `mode`, a `Mode` member. The package needs nothing outside the
standard library.

## Installing

```
pip install magistrate
```

## Serializing an object

The whole-object entry points live in `magistrate.api`:

```python
from magistrate.api import serialize, deserialize, get_size
from magistrate.examples import NestedRecord

record = NestedRecord()
info = serialize(record)            # a SerializedInfo
print(info.size, "bytes")           # info.buffer holds the bytes

copy = deserialize(NestedRecord, info.buffer)
print(copy.describe())

assert get_size(record) == info.size
```

`serialize` sizes the object, packs it, and raises `RuntimeError` if the two
passes disagree. `deserialize` accepts a `SerializedInfo` or any bytes-like
buffer, and its first argument may be a class or a `Scalar`.
`deserialize_in_place(buffer, obj)` fills an existing mutable object instead
of building a new one and returns it.

### Files

```python
from magistrate.api import serialize_to_file, deserialize_from_file

serialize_to_file(record, "record.bin")      # returns the number of bytes written
restored = deserialize_from_file(NestedRecord, "record.bin")
```

`deserialize_in_place_from_file(path, obj)` is the in-place variant.

### Memory footprint

`get_memory_footprint(obj, extra=0)` runs a footprinting pass and returns an
estimate of the memory held by `obj`, plus `extra` bytes. Fixed-size values
count their encoded width; objects with no way to be traversed are not
rejected but counted with `sys.getsizeof`.

### Custom traversals

`traverse(obj, serializer)` walks `obj` with a serializer of your own (an
instance or a class) and returns it. Subclass `magistrate.serializers.Serializer`
and implement `contiguous_bytes(data, size, count)`, which is called for every
run of raw bytes. Setting a `dispatcher` attribute on the serializer replaces
`magistrate.dispatch.BasicDispatcher`, so you can intercept each object as it
is visited.

## Values and encodings

Fixed-size values are `magistrate.primitives.Scalar` encodings, written
little-endian: `BOOL`, `CHAR`, `INT8` … `UINT64`, `FLOAT32`, `FLOAT64` and
`SIZE`. Unannotated Python values map through `DEFAULT_SCALARS`: `bool` to
`BOOL`, `int` to `INT32`, `float` to `FLOAT64`. An `enum.Enum` is written as
its value, using the `Scalar` in the class's `__underlying__` attribute or
`INT32` if there is none.

Inside a `serialize` method, `magistrate.dispatch.dispatch(s, value, spec)`
handles one field and returns it (or the value read back when unpacking);
`dispatch_many(s, values, spec)` handles a run of values of one kind, fixed-size
ones as a single contiguous block. Assign the result back to the field:

```python
from magistrate.dispatch import dispatch
from magistrate.primitives import INT32

class Point:
    def __init__(self):
        self.x = 0
        self.y = 0

    def serialize(self, s):
        self.x = dispatch(s, self.x, INT32)
        self.y = dispatch(s, self.y, INT32)
```

## Making your own types serializable

A class takes part in one of three ways:

- **intrusively**, by defining its own `serialize(self, s)` method;
- **non-intrusively**, by registering a function `func(s, obj)` with
  `magistrate.traits.register_serialize(cls, func)` or the
  `magistrate.traits.nonintrusive_serializer(cls)` decorator;
- **as raw bytes**, by decorating a class whose annotated fields are all
  `Scalar` encodings or `bool`/`int`/`float` with
  `magistrate.primitives.byte_copyable`.

To be built during unpacking a class must be reconstructible: it has a callable
`reconstruct` attribute returning an instance, a constructor needing no
arguments, or a constructor taking a single
`magistrate.dispatch.SerializeConstructTag` argument.
`magistrate.dispatch.reconstruct(cls)` tries these in that order. The checks
`is_serializable`, `is_reconstructible`, `has_intrusive_serialize` and
`has_nonintrusive_serialize` in `magistrate.traits`, and `is_byte_copyable` in
`magistrate.primitives`, let you test a class up front.

## Containers and references

`magistrate.containers` provides:

- `serialize_array(s, items, spec)` — a fixed-length sequence whose length is
  not written;
- `serialize_duration(s, duration)` — a `datetime.timedelta` as a count of
  microseconds (also used automatically when a `timedelta` is passed to the
  `api` functions);
- `serialize_optional(s, value, spec)` — a value that may be `None`, preceded
  by a null flag;
- `serialize_function(s, func)` and `serialize_raw_pointer(s, target, spec)` —
  footprinting only; any other pass raises `TypeError`.

## Class hierarchies

Objects held through a base class can be serialized with their real type
intact. Derive the root of the hierarchy from
`magistrate.registry.SerializableBase`; every subclass is registered with the
hierarchy when it is defined (`register_derived(cls, base)` does the same by
hand and returns the index). Each class's `serialize` handles only the fields
it adds; parents' fields are serialized first, root to leaf.

`serialize_polymorphic(s, obj, base)` writes the type index before the fields
and, when unpacking, builds (or fills) an object of the recorded type.
`type_index(cls)` and `type_for_index(base, index)` look types up; a missing
or mismatched type raises `magistrate.registry.RegistryError`.
`serialize_optional` uses this automatically for hierarchy classes.

## Examples

`magistrate.examples` holds a few small records: `BasicRecord` and
`NestedRecord`/`InnerRecord` serialize themselves, `PlainRecord` uses a
registered function. Run them with:

```
magistrate-examples            # all examples
magistrate-examples nested     # one of: basic, plain, nested
```

Each example prints a record, serializes it, reports the buffer size and
prints the record rebuilt from the buffer.

## What it does not do

There is no built-in handling of variable-length collections: `str`, `list`,
`dict`, `set` and the like are not serialized directly, and a sequence's length
is never written for you. A class holding such fields must write the length and
elements itself. Buffers carry no header, version or type tag for the top-level
object, so the reader must know what type to expect.

## Running the tests

```
pip install "magistrate[test]"
pytest
```