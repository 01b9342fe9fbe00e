"""Canonical wire structure for serialized Bloom filters.

A filter travels as a JSON object::

    {
      "bitmap": "<base64 of the packed bit array>",
      "total_bits": <positive integer>,
      "bits_per_entry": <positive integer>,
      "hash0": {"k0": <uint64>, "k1": <uint64>},
      "hash1": {"k0": <uint64>, "k1": <uint64>}
    }

Fields this module does not recognise are ignored at every level so that
filters written by newer producers remain readable.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from bf_keyed.bit_array import BitArray, byte_length
from bf_keyed.errors import MalformedWireInput
from bf_keyed.keyed_hash import KeyedHasher

logger = logging.getLogger(__name__)

BITMAP = "bitmap"
TOTAL_BITS = "total_bits"
BITS_PER_ENTRY = "bits_per_entry"
HASH0 = "hash0"
HASH1 = "hash1"


@dataclass(frozen=True)
class WireState:
    """Validated contents of a wire structure, ready to rebuild a filter."""

    bits: BitArray
    bits_per_entry: int
    hash0: KeyedHasher
    hash1: KeyedHasher


def encode(bits: BitArray, bits_per_entry: int, hash0: KeyedHasher, hash1: KeyedHasher) -> dict:
    """Return the wire structure for a filter's state."""
    return {
        BITMAP: base64.b64encode(bits.raw_bytes()).decode("ascii"),
        TOTAL_BITS: bits.total_bits,
        BITS_PER_ENTRY: bits_per_entry,
        HASH0: hash0.to_wire(),
        HASH1: hash1.to_wire(),
    }


def dumps(record: Mapping[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"))


def loads(text: str) -> WireState:
    """Parse JSON text and validate it as a wire structure."""
    try:
        record = json.loads(text)
    except (TypeError, ValueError) as exc:
        _reject(f"not valid JSON: {exc}", exc)
    return decode(record)


def decode(record: Any) -> WireState:
    """Validate a parsed wire structure.

    Raises:
        MalformedWireInput: If a required field is missing or mistyped, the
            bitmap is not base64, or its length disagrees with ``total_bits``.
    """
    if not isinstance(record, Mapping):
        _reject("top level is not an object")

    total_bits = _positive_int(record, TOTAL_BITS)
    bits_per_entry = _positive_int(record, BITS_PER_ENTRY)
    hash0 = _hasher(record, HASH0)
    hash1 = _hasher(record, HASH1)

    bitmap = _field(record, BITMAP)
    if not isinstance(bitmap, str):
        _reject(f"{BITMAP} is not a string")
    try:
        raw = base64.b64decode(bitmap, validate=True)
    except (binascii.Error, ValueError) as exc:
        _reject(f"{BITMAP} is not valid base64", exc)

    if len(raw) != byte_length(total_bits):
        _reject(
            f"{BITMAP} holds {len(raw)} bytes but {TOTAL_BITS}={total_bits} "
            f"needs {byte_length(total_bits)}"
        )

    return WireState(
        bits=BitArray.from_raw_bytes(raw, total_bits),
        bits_per_entry=bits_per_entry,
        hash0=hash0,
        hash1=hash1,
    )


def _reject(reason: str, cause: Exception | None = None):
    logger.warning("Rejected serialized Bloom filter: %s", reason)
    raise MalformedWireInput(reason) from cause


def _field(record: Mapping[str, Any], name: str) -> Any:
    if name not in record:
        _reject(f"missing field {name!r}")
    return record[name]


def _positive_int(record: Mapping[str, Any], name: str) -> int:
    value = _field(record, name)
    # bool is an int subclass; JSON true/false is never a size.
    if isinstance(value, bool) or not isinstance(value, int):
        _reject(f"{name} is not an integer")
    if value < 1:
        _reject(f"{name} must be positive")
    return value


def _hasher(record: Mapping[str, Any], name: str) -> KeyedHasher:
    seeds = _field(record, name)
    if not isinstance(seeds, Mapping):
        _reject(f"{name} is not an object")
    for seed in ("k0", "k1"):
        if seed not in seeds:
            _reject(f"missing field {name}.{seed}")
    try:
        return KeyedHasher.from_wire(seeds)
    except (TypeError, ValueError) as exc:
        _reject(f"{name}: {exc}", exc)
