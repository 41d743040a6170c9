"""Whole-object serialization to and from byte buffers and files."""

from __future__ import annotations

import datetime
import enum
import os
from pathlib import Path
from typing import Any, Union

from .containers import serialize_duration
from .dispatch import dispatch
from .primitives import DEFAULT_SCALARS
from .serializers import Footprinter, Packer, Serializer, Sizer, Unpacker

__all__ = [
    "SerializedInfo",
    "serialize",
    "deserialize",
    "deserialize_in_place",
    "get_size",
    "get_memory_footprint",
    "serialize_to_file",
    "deserialize_from_file",
    "deserialize_in_place_from_file",
    "traverse",
]

PathLike = Union[str, "os.PathLike[str]"]


class SerializedInfo:
    """The bytes produced by serializing an object."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @property
    def buffer(self) -> bytes:
        """The packed bytes."""
        return self._data

    @property
    def size(self) -> int:
        """Number of packed bytes."""
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SerializedInfo(size={self.size})"


def _run(s: Serializer, obj: Any, spec: Any) -> Any:
    kind = spec if spec is not None else type(obj)
    if isinstance(kind, type) and issubclass(kind, datetime.timedelta):
        return serialize_duration(s, obj)
    if isinstance(spec, type):
        spec = DEFAULT_SCALARS.get(spec, spec)
    return dispatch(s, obj, spec)


def _buffer_bytes(buffer: Any) -> bytes:
    if isinstance(buffer, SerializedInfo):
        return buffer.buffer
    return bytes(buffer)


def serialize(obj: Any) -> SerializedInfo:
    """Size, then pack ``obj`` into a new buffer."""
    sizer = Sizer()
    _run(sizer, obj, None)
    packer = Packer(sizer.size())
    _run(packer, obj, None)
    if packer.used_buffer_size() != sizer.size():
        raise RuntimeError(
            f"packing used {packer.used_buffer_size()} bytes, "
            f"sizing predicted {sizer.size()}"
        )
    return SerializedInfo(packer.extract_packed_buffer())


def deserialize(cls: Any, buffer: Any) -> Any:
    """Build a new ``cls`` (a class or a scalar) from ``buffer``."""
    return _run(Unpacker(_buffer_bytes(buffer)), None, cls)


def deserialize_in_place(buffer: Any, obj: Any) -> Any:
    """Read ``buffer`` into the existing mutable object ``obj``; return it."""
    if (
        obj is None
        or type(obj) in DEFAULT_SCALARS
        or isinstance(obj, (enum.Enum, datetime.timedelta))
    ):
        raise TypeError(f"cannot deserialize in place into {type(obj).__name__}")
    dispatch(Unpacker(_buffer_bytes(buffer)), obj, type(obj))
    return obj


def get_size(obj: Any) -> int:
    """Number of bytes :func:`serialize` will produce for ``obj``."""
    sizer = Sizer()
    _run(sizer, obj, None)
    return sizer.size()


def get_memory_footprint(obj: Any, extra: int = 0) -> int:
    """Estimated memory held by ``obj``, plus ``extra`` bytes."""
    footprinter = Footprinter()
    footprinter.add_bytes(extra)
    _run(footprinter, obj, None)
    return footprinter.memory_footprint()


def serialize_to_file(obj: Any, path: PathLike) -> int:
    """Serialize ``obj`` into the file at ``path``; return the bytes written."""
    info = serialize(obj)
    Path(path).write_bytes(info.buffer)
    return info.size


def deserialize_from_file(cls: Any, path: PathLike) -> Any:
    """Build a new ``cls`` from the file at ``path``."""
    return deserialize(cls, Path(path).read_bytes())


def deserialize_in_place_from_file(path: PathLike, obj: Any) -> Any:
    """Read the file at ``path`` into the existing object ``obj``; return it."""
    return deserialize_in_place(Path(path).read_bytes(), obj)


def traverse(obj: Any, serializer: Any) -> Serializer:
    """Run ``obj`` through a serializer (an instance or a class); return it."""
    s = serializer() if isinstance(serializer, type) else serializer
    if not isinstance(s, Serializer):
        raise TypeError(f"{serializer!r} is not a serializer")
    _run(s, obj, None)
    return s