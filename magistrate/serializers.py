"""Serializer passes: footprinting, sizing, packing and unpacking."""

from __future__ import annotations

import enum
import sys
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from .primitives import Scalar

__all__ = ["Mode", "Serializer", "Footprinter", "Sizer", "Packer", "Unpacker"]


class Mode(enum.Enum):
    """The pass a serializer performs over an object graph."""

    NONE = enum.auto()
    FOOTPRINTING = enum.auto()
    SIZING = enum.auto()
    PACKING = enum.auto()
    UNPACKING = enum.auto()


def _span(size: int, count: int) -> int:
    if size < 0 or count < 0:
        raise ValueError("size and count must be non-negative")
    return size * count


class Serializer(ABC):
    """Base of every pass; subclasses decide what happens to raw bytes."""

    dispatcher: ClassVar[Any] = None

    def __init__(self, mode: Mode) -> None:
        self.mode = Mode(mode)
        self.virtual_disabled = False

    def is_footprinting(self) -> bool:
        return self.mode is Mode.FOOTPRINTING

    def is_sizing(self) -> bool:
        return self.mode is Mode.SIZING

    def is_packing(self) -> bool:
        return self.mode is Mode.PACKING

    def is_unpacking(self) -> bool:
        return self.mode is Mode.UNPACKING

    @abstractmethod
    def contiguous_bytes(self, data: bytes | None, size: int, count: int) -> bytes | None:
        """Handle ``count`` elements of ``size`` bytes; return the bytes seen."""


class Footprinter(Serializer):
    """Estimates the memory an object graph occupies."""

    def __init__(self) -> None:
        super().__init__(Mode.FOOTPRINTING)
        self._num_bytes = 0

    def contiguous_bytes(self, data, size, count):
        self._num_bytes += _span(size, count)
        return data

    def count_bytes(self, value: Any) -> None:
        """Add the size of ``value``: a scalar's width, else its object size."""
        if isinstance(value, Scalar):
            self._num_bytes += value.size
        else:
            self._num_bytes += sys.getsizeof(value)

    def add_bytes(self, count: int) -> None:
        if count < 0:
            raise ValueError("byte count must be non-negative")
        self._num_bytes += count

    def memory_footprint(self) -> int:
        return self._num_bytes


class Sizer(Serializer):
    """Computes the buffer size a packing pass will need."""

    def __init__(self) -> None:
        super().__init__(Mode.SIZING)
        self._num_bytes = 0

    def contiguous_bytes(self, data, size, count):
        self._num_bytes += _span(size, count)
        return data

    def size(self) -> int:
        return self._num_bytes


class Packer(Serializer):
    """Writes bytes into a buffer of a size fixed in advance."""

    def __init__(self, size: int) -> None:
        super().__init__(Mode.PACKING)
        if size < 0:
            raise ValueError("buffer size must be non-negative")
        self._size = size
        self._buffer: bytearray | None = bytearray(size)
        self._used = 0

    def contiguous_bytes(self, data, size, count):
        length = _span(size, count)
        if self._buffer is None:
            raise RuntimeError("packed buffer has already been extracted")
        if data is None or len(data) != length:
            got = "no data" if data is None else f"{len(data)} bytes"
            raise ValueError(f"expected {length} bytes to pack, got {got}")
        if self._used + length > self._size:
            raise BufferError(
                f"packing {length} bytes overruns buffer of {self._size} "
                f"({self._used} used)"
            )
        self._buffer[self._used:self._used + length] = data
        self._used += length
        return bytes(data)

    def extract_packed_buffer(self) -> bytes:
        """Hand over the packed bytes; the packer cannot be used afterwards."""
        if self._buffer is None:
            raise RuntimeError("packed buffer has already been extracted")
        result = bytes(self._buffer)
        self._buffer = None
        return result

    def used_buffer_size(self) -> int:
        return self._used


class Unpacker(Serializer):
    """Reads bytes back out of a packed buffer in order."""

    def __init__(self, buffer: bytes) -> None:
        super().__init__(Mode.UNPACKING)
        self._data = bytes(buffer)
        self._offset = 0

    @property
    def remaining(self) -> int:
        """Bytes not yet read."""
        return len(self._data) - self._offset

    def contiguous_bytes(self, data, size, count):
        length = _span(size, count)
        if length > self.remaining:
            raise BufferError(
                f"reading {length} bytes past end of buffer "
                f"({self.remaining} remaining)"
            )
        chunk = self._data[self._offset:self._offset + length]
        self._offset += length
        return chunk