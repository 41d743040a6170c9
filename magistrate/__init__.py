"""Serialization of Python objects to byte buffers, with sizing, footprinting and polymorphic dispatch."""

__version__ = "0.1.0"