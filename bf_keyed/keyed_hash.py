"""SipHash-2-4 hasher bound to a fixed 128-bit key.

The key is given as two 64-bit words ``k0`` and ``k1`` and laid out as ``k0``
little-endian followed by ``k1`` little-endian, which is how the reference
SipHash implementation reads its 16-byte key. Digests are therefore portable
across processes and across independent implementations that agree on the
seeds.
"""
from __future__ import annotations

import secrets
import struct
from typing import Any, Mapping

from siphash24 import siphash24

SEED_BITS = 64
UINT64_MASK = (1 << SEED_BITS) - 1

_KEY_STRUCT = struct.Struct("<QQ")


def _check_seed(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if not 0 <= value <= UINT64_MASK:
        raise ValueError(f"{name} must fit in an unsigned 64-bit word")
    return value


class KeyedHasher:
    """Immutable keyed 64-bit hash function."""

    __slots__ = ("_k0", "_k1", "_key")

    def __init__(self, k0: int, k1: int) -> None:
        self._k0 = _check_seed("k0", k0)
        self._k1 = _check_seed("k1", k1)
        self._key = _KEY_STRUCT.pack(self._k0, self._k1)

    @classmethod
    def random(cls) -> "KeyedHasher":
        """Return a hasher with seeds drawn from the system CSPRNG."""
        return cls(secrets.randbits(SEED_BITS), secrets.randbits(SEED_BITS))

    @classmethod
    def from_wire(cls, record: Mapping[str, Any]) -> "KeyedHasher":
        """Build a hasher from a ``{"k0": .., "k1": ..}`` mapping, seeds verbatim."""
        return cls(record["k0"], record["k1"])

    @property
    def k0(self) -> int:
        return self._k0

    @property
    def k1(self) -> int:
        return self._k1

    def digest(self, data: bytes) -> int:
        """Return the unsigned 64-bit SipHash-2-4 digest of ``data``."""
        # intdigest() is signed; the wire contract is uint64.
        return siphash24(data, key=self._key).intdigest() & UINT64_MASK

    def to_wire(self) -> dict:
        return {"k0": self._k0, "k1": self._k1}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyedHasher):
            return NotImplemented
        return self._k0 == other._k0 and self._k1 == other._k1

    def __hash__(self) -> int:
        return hash((self._k0, self._k1))

    def __repr__(self) -> str:
        return f"KeyedHasher(k0={self._k0:#018x}, k1={self._k1:#018x})"
