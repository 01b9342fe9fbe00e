"""Exceptions raised by the keyed Bloom filter."""
from __future__ import annotations


class BloomFilterError(ValueError):
    """Base class for every error the filter raises."""


class InvalidConstructionArgument(BloomFilterError):
    """Raised when a filter cannot be sized from the given arguments."""


class MalformedWireInput(BloomFilterError):
    """Raised when serialized filter data cannot be decoded.

    Deserialization is all-or-nothing: when this is raised no filter has been
    built.
    """
