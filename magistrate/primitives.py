"""Fixed-size scalar encodings and byte-copyable record types."""

from __future__ import annotations

import struct
import typing
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "Scalar",
    "BOOL",
    "CHAR",
    "INT8",
    "UINT8",
    "INT16",
    "UINT16",
    "INT32",
    "UINT32",
    "INT64",
    "UINT64",
    "FLOAT32",
    "FLOAT64",
    "SIZE",
    "DEFAULT_SCALARS",
    "byte_copyable",
    "is_byte_copyable",
]


@dataclass(frozen=True)
class Scalar:
    """A fixed-size value encoded little-endian with a :mod:`struct` format."""

    name: str
    format: str
    _struct: struct.Struct = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_struct", struct.Struct("<" + self.format))

    @property
    def size(self) -> int:
        """Number of bytes one value occupies."""
        return self._struct.size

    def pack(self, value: Any) -> bytes:
        """Encode ``value`` into exactly :attr:`size` bytes."""
        try:
            return self._struct.pack(value)
        except struct.error as exc:
            raise ValueError(f"cannot encode {value!r} as {self.name}: {exc}") from exc

    def unpack(self, data: bytes) -> Any:
        """Decode a value from exactly :attr:`size` bytes."""
        if len(data) != self.size:
            raise ValueError(
                f"{self.name} needs {self.size} bytes, got {len(data)}"
            )
        return self._struct.unpack(bytes(data))[0]


BOOL = Scalar("bool", "?")
CHAR = Scalar("char", "c")
INT8 = Scalar("int8", "b")
UINT8 = Scalar("uint8", "B")
INT16 = Scalar("int16", "h")
UINT16 = Scalar("uint16", "H")
INT32 = Scalar("int32", "i")
UINT32 = Scalar("uint32", "I")
INT64 = Scalar("int64", "q")
UINT64 = Scalar("uint64", "Q")
FLOAT32 = Scalar("float32", "f")
FLOAT64 = Scalar("float64", "d")
SIZE = Scalar("size", "Q")

DEFAULT_SCALARS: dict[type, Scalar] = {
    bool: BOOL,
    int: INT32,
    float: FLOAT64,
}

# Names under which annotations written as text may refer to encodings.
_NAMED_HINTS: dict[str, Any] = {
    "BOOL": BOOL,
    "CHAR": CHAR,
    "INT8": INT8,
    "UINT8": UINT8,
    "INT16": INT16,
    "UINT16": UINT16,
    "INT32": INT32,
    "UINT32": UINT32,
    "INT64": INT64,
    "UINT64": UINT64,
    "FLOAT32": FLOAT32,
    "FLOAT64": FLOAT64,
    "SIZE": SIZE,
    "bool": bool,
    "int": int,
    "float": float,
}


def _is_class_var(hint: Any) -> bool:
    if isinstance(hint, str):
        text = hint.strip()
        return text.split("[", 1)[0].rsplit(".", 1)[-1] == "ClassVar"
    return hint is typing.ClassVar or typing.get_origin(hint) is typing.ClassVar


def _resolve_hint(hint: Any) -> Any:
    if isinstance(hint, str):
        return _NAMED_HINTS.get(hint.strip().rsplit(".", 1)[-1], hint)
    return hint


def _resolve_field(owner: type, name: str, hint: Any) -> Scalar:
    hint = _resolve_hint(hint)
    if isinstance(hint, Scalar):
        return hint
    if isinstance(hint, type) and hint in DEFAULT_SCALARS:
        return DEFAULT_SCALARS[hint]
    raise TypeError(
        f"field {owner.__name__}.{name} has type {hint!r}, "
        "which has no fixed-size encoding"
    )


def _own_annotations(klass: type) -> dict[str, Any]:
    return dict(klass.__dict__.get("__annotations__", {}))


def byte_copyable(cls: type) -> type:
    """Mark ``cls`` as copied field by field as raw bytes.

    Every annotated field must be a :class:`Scalar` or one of the types in
    :data:`DEFAULT_SCALARS`.
    """
    if not isinstance(cls, type):
        raise TypeError("byte_copyable expects a class")
    fields: dict[str, Scalar] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, hint in _own_annotations(klass).items():
            if _is_class_var(hint):
                continue
            fields[name] = _resolve_field(cls, name, hint)
    cls.__byte_fields__ = tuple(fields.items())
    cls.__byte_struct__ = struct.Struct(
        "<" + "".join(scalar.format for scalar in fields.values())
    )
    cls.__byte_copyable__ = True
    return cls


def is_byte_copyable(cls: Any) -> bool:
    """Whether ``cls`` is a scalar or a class marked byte-copyable."""
    if isinstance(cls, Scalar):
        return True
    return bool(getattr(cls, "__byte_copyable__", False)) and hasattr(
        cls, "__byte_struct__"
    )


def _object_size(cls: type) -> int:
    return cls.__byte_struct__.size


def _pack_object(obj: Any) -> bytes:
    cls = type(obj)
    if not is_byte_copyable(cls):
        raise TypeError(f"{cls.__name__} is not byte-copyable")
    values = [getattr(obj, name) for name, _ in cls.__byte_fields__]
    try:
        return cls.__byte_struct__.pack(*values)
    except struct.error as exc:
        raise ValueError(f"cannot encode {cls.__name__}: {exc}") from exc


def _unpack_object(cls: type, data: bytes, into: Any = None) -> Any:
    if not is_byte_copyable(cls):
        raise TypeError(f"{cls.__name__} is not byte-copyable")
    layout = cls.__byte_struct__
    if len(data) != layout.size:
        raise ValueError(
            f"{cls.__name__} needs {layout.size} bytes, got {len(data)}"
        )
    obj = into if into is not None else cls.__new__(cls)
    for (name, _), value in zip(cls.__byte_fields__, layout.unpack(bytes(data))):
        setattr(obj, name, value)
    return obj