"""Serialization of fixed arrays, durations, callables, pointers and optional values."""

from __future__ import annotations

import datetime
from typing import Any, Callable, Iterable

from .dispatch import dispatch, dispatch_many
from .primitives import BOOL, INT64, SIZE, Scalar
from .registry import SerializableBase, serialize_polymorphic
from .serializers import Footprinter, Serializer

__all__ = [
    "POINTER",
    "serialize_array",
    "serialize_duration",
    "serialize_function",
    "serialize_raw_pointer",
    "serialize_optional",
]

POINTER: Scalar = SIZE
"""Width counted for a pointer when footprinting."""

_ONE_MICROSECOND = datetime.timedelta(microseconds=1)


def _is_polymorphic(spec: Any) -> bool:
    return (
        isinstance(spec, type)
        and issubclass(spec, SerializableBase)
        and spec is not SerializableBase
    )


def _follow(s: Serializer, value: Any, spec: Any) -> Any:
    if _is_polymorphic(spec):
        return serialize_polymorphic(s, value, spec)
    return dispatch(s, value, spec)


def serialize_array(s: Serializer, items: Iterable[Any], spec: Any = None) -> list[Any]:
    """Serialize a fixed-length sequence; its length is not written.

    When unpacking, ``items`` supplies the length and may hold ``None``
    placeholders or existing objects to fill. Returns the resulting list.
    """
    return dispatch_many(s, items, spec)


def serialize_duration(
    s: Serializer, duration: datetime.timedelta | None
) -> datetime.timedelta:
    """Serialize a :class:`datetime.timedelta` as a count of microseconds."""
    if s.is_unpacking():
        micros = dispatch(s, None, INT64)
        return datetime.timedelta(microseconds=micros)
    if not isinstance(duration, datetime.timedelta):
        raise TypeError(f"expected a timedelta, not {type(duration).__name__}")
    dispatch(s, duration // _ONE_MICROSECOND, INT64)
    return duration


def serialize_function(s: Serializer, func: Callable[..., Any]) -> Callable[..., Any]:
    """Account for a callable; only footprinting is supported."""
    if not callable(func):
        raise TypeError(f"{func!r} is not callable")
    if not isinstance(s, Footprinter):
        raise TypeError("callables can only be footprinted")
    s.count_bytes(func)
    return func


def serialize_raw_pointer(s: Serializer, target: Any, spec: Any = None) -> Any:
    """Account for a reference and follow it; only footprinting is supported.

    A ``None`` target counts only the pointer. A ``spec`` of :class:`object`
    marks an opaque handle, which is counted but never followed.
    """
    if not isinstance(s, Footprinter):
        raise TypeError("raw pointers can only be footprinted")
    s.count_bytes(POINTER)
    if target is not None and spec is not object:
        _follow(s, target, spec)
    return target


def serialize_optional(s: Serializer, value: Any, spec: Any = None) -> Any:
    """Serialize a value that may be ``None``, preceded by a null flag.

    When unpacking, an existing ``value`` is filled in place if the buffer
    holds one. Classes of a :class:`SerializableBase` hierarchy are written
    with their concrete type. Returns the value, or ``None``.
    """
    if isinstance(s, Footprinter):
        is_null = value is None
        s.count_bytes(POINTER)
    else:
        is_null = dispatch(s, value is None, BOOL)
    if is_null:
        return None
    return _follow(s, value, spec)