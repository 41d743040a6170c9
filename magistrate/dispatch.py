"""Dispatch of values to the serializer according to how their type is stored."""

from __future__ import annotations

import enum
import logging
from typing import Any, Iterable

from .primitives import (
    DEFAULT_SCALARS,
    INT32,
    Scalar,
    _object_size,
    _pack_object,
    _unpack_object,
    is_byte_copyable,
)
from .serializers import Footprinter, Mode, Serializer
from .traits import (
    _lookup_nonintrusive,
    _required_init_params,
    has_intrusive_serialize,
    has_nonintrusive_serialize,
    is_reconstructible,
)

__all__ = [
    "SerializeConstructTag",
    "SERIALIZE_CONSTRUCT_TAG",
    "BasicDispatcher",
    "reconstruct",
    "dispatch",
    "dispatch_many",
]

_log = logging.getLogger(__name__)
_footprint_warned: set[type] = set()


class SerializeConstructTag:
    """Passed to a constructor to ask for an instance that is about to be filled."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "SerializeConstructTag()"


SERIALIZE_CONSTRUCT_TAG = SerializeConstructTag()


class BasicDispatcher:
    """Calls a class's own ``serialize`` or its registered serialize function.

    A serializer can replace this by setting its ``dispatcher`` attribute to
    another class or instance offering the same two methods.
    """

    def serialize_intrusive(self, s: Serializer, obj: Any) -> None:
        obj.serialize(s)

    def serialize_nonintrusive(self, s: Serializer, obj: Any) -> None:
        func = _lookup_nonintrusive(type(obj))
        if func is None:
            raise TypeError(
                f"no serialize function registered for {type(obj).__name__}"
            )
        func(s, obj)


_BASIC_DISPATCHER = BasicDispatcher()


def _dispatcher_for(s: Serializer) -> Any:
    chosen = getattr(s, "dispatcher", None)
    if chosen is None:
        return _BASIC_DISPATCHER
    if isinstance(chosen, type):
        return chosen()
    return chosen


def reconstruct(cls: type) -> Any:
    """Build an instance of ``cls`` ready to have its fields read into it.

    Tries, in order, a callable ``cls.reconstruct()``, a constructor needing
    no arguments, and a constructor taking a :class:`SerializeConstructTag`.
    """
    if not isinstance(cls, type):
        raise TypeError("reconstruct expects a class")
    factory = getattr(cls, "reconstruct", None)
    if callable(factory):
        obj = factory()
        if not isinstance(obj, cls):
            raise TypeError(
                f"{cls.__name__}.reconstruct() returned {type(obj).__name__}"
            )
        return obj
    if not is_reconstructible(cls):
        raise TypeError(f"{cls.__name__} has no way to be reconstructed")
    needs_tag = bool(_required_init_params(cls))
    return cls(SerializeConstructTag()) if needs_tag else cls()


def _resolve_spec(value: Any, spec: Any) -> Any:
    if spec is None:
        if value is None:
            raise TypeError("a spec is needed when the value is None")
        kind = type(value)
        return DEFAULT_SCALARS.get(kind, kind)
    if isinstance(spec, Scalar) or isinstance(spec, type):
        return spec
    raise TypeError(f"spec must be a Scalar or a class, not {spec!r}")


def _is_enum(spec: Any) -> bool:
    return isinstance(spec, type) and issubclass(spec, enum.Enum)


def _enum_scalar(spec: type) -> Scalar:
    underlying = getattr(spec, "__underlying__", None)
    return underlying if isinstance(underlying, Scalar) else INT32


def _carries_data(s: Serializer) -> bool:
    return s.is_packing() or s.mode is Mode.NONE


def _dispatch_scalar(s: Serializer, value: Any, scalar: Scalar) -> Any:
    if s.is_unpacking():
        return scalar.unpack(s.contiguous_bytes(None, scalar.size, 1))
    data = scalar.pack(value) if _carries_data(s) else None
    s.contiguous_bytes(data, scalar.size, 1)
    return value


def _dispatch_enum(s: Serializer, value: Any, spec: type) -> Any:
    scalar = _enum_scalar(spec)
    if s.is_unpacking():
        return spec(_dispatch_scalar(s, None, scalar))
    raw = value.value if isinstance(value, spec) else value
    _dispatch_scalar(s, raw, scalar)
    return value


def _dispatch_bytes(s: Serializer, value: Any, spec: type) -> Any:
    size = _object_size(spec)
    if s.is_unpacking():
        return _unpack_object(spec, s.contiguous_bytes(None, size, 1), into=value)
    data = _pack_object(value) if _carries_data(s) else None
    s.contiguous_bytes(data, size, 1)
    return value


def _footprint_only(s: Footprinter, value: Any, spec: type) -> None:
    if spec not in _footprint_warned:
        _footprint_warned.add(spec)
        _log.debug(
            "simplified footprinting in use: %s will not be traversed",
            spec.__name__,
        )
    s.count_bytes(value)


def _apply_static(s: Serializer, value: Any, spec: type) -> Any:
    obj = value
    if obj is None:
        if not s.is_unpacking():
            raise ValueError(f"no {spec.__name__} instance to serialize")
        obj = reconstruct(spec)
    dispatcher = _dispatcher_for(s)
    if has_intrusive_serialize(spec):
        dispatcher.serialize_intrusive(s, obj)
        parent = getattr(obj, "serialize_parent", None)
        this = getattr(obj, "serialize_this", None)
        if callable(parent) and callable(this):
            parent(s)
            this(s)
    else:
        dispatcher.serialize_nonintrusive(s, obj)
    return obj


def _dispatch_object(s: Serializer, value: Any, spec: type) -> Any:
    if not (has_intrusive_serialize(spec) or has_nonintrusive_serialize(spec)):
        if isinstance(s, Footprinter):
            _footprint_only(s, value, spec)
            return value
        raise TypeError(f"{spec.__name__} is not serializable")
    hook = getattr(spec, "__virtual_serialize__", None)
    if callable(hook) and value is not None:
        if s.virtual_disabled:
            s.virtual_disabled = False
        else:
            return hook(s, value)
    return _apply_static(s, value, spec)


def dispatch(s: Serializer, value: Any, spec: Any = None) -> Any:
    """Run ``value`` through ``s`` and return it, or the value read back.

    ``spec`` is a :class:`Scalar` or a class; when omitted it is inferred from
    ``value``. When unpacking, ``value`` may be ``None`` to build a new object
    or an existing instance to fill in place.
    """
    spec = _resolve_spec(value, spec)
    if isinstance(spec, Scalar):
        return _dispatch_scalar(s, value, spec)
    if _is_enum(spec):
        return _dispatch_enum(s, value, spec)
    if is_byte_copyable(spec):
        return _dispatch_bytes(s, value, spec)
    return _dispatch_object(s, value, spec)


def _chunks(data: bytes, size: int) -> list[bytes]:
    return [data[start:start + size] for start in range(0, len(data), size)]


def dispatch_many(s: Serializer, values: Iterable[Any], spec: Any = None) -> list[Any]:
    """Run a sequence of values of one kind through ``s``; return the results.

    Fixed-size values are handed to the serializer as one contiguous block.
    """
    items = list(values)
    if not items:
        return []
    if spec is None:
        spec = _resolve_spec(next((v for v in items if v is not None), None), None)
    else:
        spec = _resolve_spec(None, spec)
    count = len(items)
    if isinstance(spec, Scalar):
        if s.is_unpacking():
            data = s.contiguous_bytes(None, spec.size, count)
            return [spec.unpack(chunk) for chunk in _chunks(data, spec.size)]
        data = b"".join(spec.pack(v) for v in items) if _carries_data(s) else None
        s.contiguous_bytes(data, spec.size, count)
        return items
    if is_byte_copyable(spec) and not _is_enum(spec):
        size = _object_size(spec)
        if s.is_unpacking():
            data = s.contiguous_bytes(None, size, count)
            return [
                _unpack_object(spec, chunk, into=item)
                for chunk, item in zip(_chunks(data, size), items)
            ]
        data = b"".join(_pack_object(v) for v in items) if _carries_data(s) else None
        s.contiguous_bytes(data, size, count)
        return items
    return [dispatch(s, item, spec) for item in items]