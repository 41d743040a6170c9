"""Inspection of how a class can be serialized and reconstructed."""

from __future__ import annotations

from typing import Any, Callable, NamedTuple

from .primitives import is_byte_copyable

__all__ = [
    "register_serialize",
    "nonintrusive_serializer",
    "has_intrusive_serialize",
    "has_nonintrusive_serialize",
    "is_reconstructible",
    "is_serializable",
]

SerializeFunc = Callable[[Any, Any], Any]

_NONINTRUSIVE: dict[type, SerializeFunc] = {}

_CONSTRUCT_TAG_NAME = "SerializeConstructTag"


class _Param(NamedTuple):
    name: str
    annotation: Any
    positional: bool


def register_serialize(cls: type, func: SerializeFunc) -> SerializeFunc:
    """Register ``func(serializer, obj)`` as the serializer for ``cls``."""
    if not isinstance(cls, type):
        raise TypeError("register_serialize expects a class")
    if not callable(func):
        raise TypeError("serialize function must be callable")
    _NONINTRUSIVE[cls] = func
    return func


def nonintrusive_serializer(cls: type) -> Callable[[SerializeFunc], SerializeFunc]:
    """Decorator form of :func:`register_serialize`."""

    def decorator(func: SerializeFunc) -> SerializeFunc:
        return register_serialize(cls, func)

    return decorator


def _lookup_nonintrusive(cls: type) -> SerializeFunc | None:
    """The registered serializer for ``cls`` or its nearest base, if any."""
    for klass in getattr(cls, "__mro__", ()):
        func = _NONINTRUSIVE.get(klass)
        if func is not None:
            return func
    return None


def has_intrusive_serialize(cls: Any) -> bool:
    """Whether ``cls`` defines its own ``serialize(self, s)`` method."""
    return isinstance(cls, type) and callable(getattr(cls, "serialize", None))


def has_nonintrusive_serialize(cls: Any) -> bool:
    """Whether a serialize function has been registered for ``cls``."""
    return isinstance(cls, type) and _lookup_nonintrusive(cls) is not None


def _is_construct_tag(annotation: Any) -> bool:
    if isinstance(annotation, str):
        name = annotation.rsplit(".", 1)[-1]
    else:
        name = getattr(annotation, "__name__", None)
    return name == _CONSTRUCT_TAG_NAME


def _required_init_params(cls: type) -> list[_Param] | None:
    """Constructor parameters without defaults, or ``None`` if unknown."""
    init = cls.__init__
    if init is object.__init__:
        return []
    func = getattr(init, "__func__", init)
    code = getattr(func, "__code__", None)
    if code is None:
        return None
    defaults = getattr(func, "__defaults__", None) or ()
    kwdefaults = getattr(func, "__kwdefaults__", None) or {}
    annotations = getattr(func, "__annotations__", None) or {}
    names = code.co_varnames
    positional = names[1:code.co_argcount]
    keyword_only = names[code.co_argcount:code.co_argcount + code.co_kwonlyargcount]
    required_positional = positional[: len(positional) - len(defaults)]
    params = [_Param(n, annotations.get(n), True) for n in required_positional]
    params.extend(
        _Param(n, annotations.get(n), False)
        for n in keyword_only
        if n not in kwdefaults
    )
    return params


def is_reconstructible(cls: Any) -> bool:
    """Whether an instance of ``cls`` can be built before its fields are read.

    A class qualifies through a callable ``reconstruct`` attribute, a
    constructor needing no arguments, or a constructor taking a single
    construct-tag argument.
    """
    if not isinstance(cls, type):
        return False
    if callable(getattr(cls, "reconstruct", None)):
        return True
    required = _required_init_params(cls)
    if required is None:
        return False
    if not required:
        return True
    return (
        len(required) == 1
        and required[0].positional
        and _is_construct_tag(required[0].annotation)
    )


def is_serializable(cls: Any) -> bool:
    """Whether ``cls`` can be both traversed and rebuilt."""
    if is_byte_copyable(cls):
        return True
    traversable = has_intrusive_serialize(cls) or has_nonintrusive_serialize(cls)
    return traversable and is_reconstructible(cls)