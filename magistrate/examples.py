"""Small record types showing intrusive and registered serialization."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from .api import deserialize, serialize
from .dispatch import dispatch
from .primitives import INT32
from .serializers import Serializer
from .traits import nonintrusive_serializer

__all__ = ["BasicRecord", "PlainRecord", "InnerRecord", "NestedRecord", "main"]


@dataclass
class BasicRecord:
    """Two integers, serialized by the class's own ``serialize`` method."""

    a: int = 29
    b: int = 31

    def describe(self) -> str:
        return f"BasicRecord: a={self.a}, b={self.b}"

    def serialize(self, s: Serializer) -> None:
        self.a = dispatch(s, self.a, INT32)
        self.b = dispatch(s, self.b, INT32)


@dataclass
class PlainRecord:
    """Three integers, serialized by a function registered for the class."""

    a: int = 1
    b: int = 2
    c: int = 3

    def describe(self) -> str:
        return f"PlainRecord: a={self.a}, b={self.b}, c={self.c}"


@nonintrusive_serializer(PlainRecord)
def _serialize_plain(s: Serializer, record: PlainRecord) -> None:
    record.a = dispatch(s, record.a, INT32)
    record.b = dispatch(s, record.b, INT32)
    record.c = dispatch(s, record.c, INT32)


@dataclass
class InnerRecord:
    """A single integer, nested inside :class:`NestedRecord`."""

    c: int = 41

    def describe(self) -> str:
        return f"\t InnerRecord: c={self.c}"

    def serialize(self, s: Serializer) -> None:
        self.c = dispatch(s, self.c, INT32)


@dataclass
class NestedRecord:
    """Two integers and an :class:`InnerRecord`, serialized recursively."""

    a: int = 29
    b: int = 31
    inner: InnerRecord = field(default_factory=InnerRecord)

    def describe(self) -> str:
        return f"NestedRecord: a={self.a}, b={self.b}\n{self.inner.describe()}"

    def serialize(self, s: Serializer) -> None:
        self.a = dispatch(s, self.a, INT32)
        self.b = dispatch(s, self.b, INT32)
        self.inner = dispatch(s, self.inner, InnerRecord)


def _make_nested() -> NestedRecord:
    record = NestedRecord()
    record.a = 10
    return record


_EXAMPLES: dict[str, Callable[[], Any]] = {
    "basic": lambda: BasicRecord(11, 12),
    "plain": PlainRecord,
    "nested": _make_nested,
}


def _run_example(make: Callable[[], Any]) -> None:
    record = make()
    print(record.describe())
    info = serialize(record)
    print(f"size={info.size}")
    restored = deserialize(type(record), info.buffer)
    print(restored.describe())


def main(argv: Sequence[str] | None = None) -> int:
    """Serialize and restore the example records, printing each step."""
    parser = argparse.ArgumentParser(
        description="Serialize example records and read them back."
    )
    parser.add_argument(
        "example",
        nargs="?",
        default="all",
        choices=["all", *_EXAMPLES],
        help="which example to run (default: all)",
    )
    args = parser.parse_args(argv)
    names = list(_EXAMPLES) if args.example == "all" else [args.example]
    for name in names:
        _run_example(_EXAMPLES[name])
    return 0