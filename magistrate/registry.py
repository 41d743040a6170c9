"""Type registry for serializing objects through a common base class."""

from __future__ import annotations

from typing import Any, Callable

from .dispatch import dispatch, reconstruct
from .primitives import INT32
from .serializers import Serializer
from .traits import _NONINTRUSIVE

__all__ = [
    "SerializableBase",
    "RegistryError",
    "register_derived",
    "type_index",
    "type_for_index",
    "serialize_polymorphic",
]

TYPE_INDEX = INT32

_OWN_SERIALIZE = "__own_serialize__"

# One list of registered types per hierarchy, keyed by the hierarchy's root.
_REGISTRIES: dict[type, list[type]] = {}


class RegistryError(LookupError):
    """A type or type index is missing from, or wrong for, a hierarchy."""


def _root_of(cls: type) -> type:
    candidates = [
        klass
        for klass in cls.__mro__
        if klass is not SerializableBase
        and isinstance(klass, type)
        and issubclass(klass, SerializableBase)
    ]
    if not candidates:
        raise TypeError(f"{cls.__name__} is not part of a serializable hierarchy")
    return candidates[-1]


def _own_serializers(klass: type, obj: Any) -> list[Callable[[Serializer], Any]]:
    steps: list[Callable[[Serializer], Any]] = []
    own = klass.__dict__.get(_OWN_SERIALIZE)
    if own is not None:
        steps.append(own.__get__(obj, klass))
    func = _NONINTRUSIVE.get(klass)
    if func is not None:
        steps.append(lambda s, _func=func: _func(s, obj))
    return steps


class SerializableBase:
    """Root of a hierarchy whose members serialize through their base.

    Each class's ``serialize(self, s)`` handles only the fields that class
    adds; the fields of every parent are serialized first, root to leaf.
    Every subclass is registered with its hierarchy when it is defined.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        own = cls.__dict__.get("serialize")
        if own is not None:
            setattr(cls, _OWN_SERIALIZE, own)
            delattr(cls, "serialize")
        root = _root_of(cls)
        register_derived(cls, root)

    def serialize(self, s: Serializer) -> None:
        """Serialize every level of this object's class, parents first."""
        for klass in reversed(type(self).__mro__):
            if klass is SerializableBase or not (
                isinstance(klass, type) and issubclass(klass, SerializableBase)
            ):
                continue
            for step in _own_serializers(klass, self):
                step(s)


def register_derived(cls: type, base: type) -> int:
    """Register ``cls`` in the hierarchy of ``base``; return its type index.

    Registering a class a second time returns the index it already has.
    """
    if not isinstance(cls, type) or not isinstance(base, type):
        raise TypeError("register_derived expects classes")
    if not issubclass(base, SerializableBase) or base is SerializableBase:
        raise TypeError(f"{base.__name__} is not part of a serializable hierarchy")
    if not issubclass(cls, base):
        raise TypeError(f"{cls.__name__} is not derived from {base.__name__}")
    registry = _REGISTRIES.setdefault(_root_of(base), [])
    if cls in registry:
        return registry.index(cls)
    registry.append(cls)
    return len(registry) - 1


def type_index(cls: type) -> int:
    """The index ``cls`` has within its hierarchy."""
    if not isinstance(cls, type):
        raise TypeError("type_index expects a class")
    if cls is SerializableBase or not issubclass(cls, SerializableBase):
        raise RegistryError(f"{cls.__name__} is not registered in any hierarchy")
    registry = _REGISTRIES.get(_root_of(cls), [])
    if cls not in registry:
        raise RegistryError(f"{cls.__name__} is not registered in its hierarchy")
    return registry.index(cls)


def type_for_index(base: type, index: int) -> type:
    """The registered type with ``index`` in the hierarchy of ``base``.

    The type found must be ``base`` or derived from it.
    """
    if not isinstance(base, type) or not issubclass(base, SerializableBase):
        raise TypeError("type_for_index expects a class of a serializable hierarchy")
    if base is SerializableBase:
        raise RegistryError("SerializableBase is not itself a hierarchy")
    registry = _REGISTRIES.get(_root_of(base), [])
    if not 0 <= index < len(registry):
        raise RegistryError(
            f"missing type index {index} in registry of {base.__name__}: "
            "a derived type was not registered"
        )
    found = registry[index]
    if not issubclass(found, base):
        raise RegistryError(
            f"type index {index} names {found.__name__}, "
            f"which is not derived from {base.__name__}"
        )
    return found


def serialize_polymorphic(s: Serializer, obj: Any, base: type) -> Any:
    """Serialize ``obj`` as its concrete type, identified within ``base``.

    The type index is written before the fields. When unpacking, ``obj`` may
    be ``None`` to build an instance of the recorded type, or an existing
    instance of exactly that type to fill in place. Returns the object.
    """
    if s.is_unpacking():
        index = dispatch(s, None, TYPE_INDEX)
        cls = type_for_index(base, index)
        if obj is None:
            obj = reconstruct(cls)
        elif type(obj) is not cls:
            raise RegistryError(
                f"buffer holds {cls.__name__}, cannot read it into "
                f"{type(obj).__name__}"
            )
    else:
        if obj is None:
            raise ValueError(f"no {base.__name__} instance to serialize")
        if not isinstance(obj, base):
            raise TypeError(
                f"{type(obj).__name__} is not derived from {base.__name__}"
            )
        dispatch(s, type_index(type(obj)), TYPE_INDEX)
    obj.serialize(s)
    return obj