"""Bloom filter with portable keyed double hashing.

Each filter carries two SipHash-2-4 hashers with random 128-bit keys. The
``k`` probe positions for an item come from the Kirsch-Mitzenmacher
combination of the two digests, so every ``add`` or ``check`` costs exactly two
hash evaluations whatever the number of bits per entry.

The bitmap, sizing and hash keys serialize to a JSON wire structure (see
:mod:`bf_keyed.wire`) that independent implementations can read and write.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Iterator, Union

from bf_keyed import wire
from bf_keyed.bit_array import BitArray
from bf_keyed.errors import InvalidConstructionArgument
from bf_keyed.keyed_hash import UINT64_MASK, KeyedHasher

logger = logging.getLogger(__name__)

Item = Union[str, bytes]

_LN2 = math.log(2)


def _as_bytes(item: Item) -> bytes:
    if isinstance(item, str):
        return item.encode("utf-8")
    if isinstance(item, (bytes, bytearray)):
        return bytes(item)
    raise TypeError(f"items must be str or bytes, not {type(item).__name__}")


def probe_positions(
    data: bytes, total_bits: int, k: int, hash0: KeyedHasher, hash1: KeyedHasher
) -> Iterator[int]:
    """Yield the ``k`` bit positions probed for ``data``.

    Position ``i`` is ``(h0 + i * h1) mod total_bits``, with the sum wrapped to
    64 bits as unsigned machine arithmetic would. Repeated positions are
    yielded as-is.
    """
    h0 = hash0.digest(data)
    h1 = hash1.digest(data)
    for i in range(k):
        yield ((h0 + i * h1) & UINT64_MASK) % total_bits


def optimal_total_bits(expected_num_entries: int, fp_probability: float) -> int:
    """Bit array size m = -(n * ln p) / (ln 2)^2, rounded up."""
    return max(1, math.ceil(-(expected_num_entries * math.log(fp_probability)) / (_LN2 ** 2)))


def optimal_bits_per_entry(total_bits: int, expected_num_entries: int) -> int:
    """Probe count k = (m / n) * ln 2, rounded half up."""
    return max(1, math.floor((total_bits / expected_num_entries) * _LN2 + 0.5))


class BloomFilter:
    """Bloom filter backed by a packed bit array and two keyed hashers."""

    def __init__(self, total_bits: int, bits_per_entry: int) -> None:
        """Create an empty filter with fresh random hash keys.

        Args:
            total_bits: Number of bits in the filter.
            bits_per_entry: Number of bits probed per item (k).

        Raises:
            InvalidConstructionArgument: If either size is not a positive
                integer.
        """
        if isinstance(bits_per_entry, bool) or not isinstance(bits_per_entry, int):
            raise InvalidConstructionArgument("bits_per_entry must be an integer")
        if bits_per_entry <= 0:
            raise InvalidConstructionArgument("bits_per_entry must be positive")

        self._init_state(BitArray(total_bits), bits_per_entry, KeyedHasher.random(), KeyedHasher.random())
        logger.debug("Created Bloom filter: total_bits=%d bits_per_entry=%d", total_bits, bits_per_entry)

    def _init_state(
        self, bits: BitArray, bits_per_entry: int, hash0: KeyedHasher, hash1: KeyedHasher
    ) -> None:
        self._bits = bits
        self.total_bits = bits.total_bits
        self.bits_per_entry = bits_per_entry
        self.hash0 = hash0
        self.hash1 = hash1

    @classmethod
    def for_num_entries_and_fp_prob(
        cls, expected_num_entries: int, target_fp_probability: float
    ) -> "BloomFilter":
        """Create a filter sized for ``expected_num_entries`` items.

        Raises:
            InvalidConstructionArgument: If ``expected_num_entries`` is below 1
                or ``target_fp_probability`` is not strictly between 0 and 1.
        """
        if isinstance(expected_num_entries, bool) or not isinstance(expected_num_entries, int):
            raise InvalidConstructionArgument("expected_num_entries must be an integer")
        if expected_num_entries < 1:
            raise InvalidConstructionArgument("expected_num_entries must be at least 1")
        if not 0 < target_fp_probability < 1:
            raise InvalidConstructionArgument("target_fp_probability must be between 0 and 1")

        total_bits = optimal_total_bits(expected_num_entries, target_fp_probability)
        bits_per_entry = optimal_bits_per_entry(total_bits, expected_num_entries)
        logger.debug(
            "Sized Bloom filter for n=%d p=%g: total_bits=%d bits_per_entry=%d",
            expected_num_entries,
            target_fp_probability,
            total_bits,
            bits_per_entry,
        )
        return cls(total_bits, bits_per_entry)

    @classmethod
    def _reconstruct(cls, state: wire.WireState) -> "BloomFilter":
        # Seeds and bitmap are taken verbatim; never re-randomized.
        bloom = cls.__new__(cls)
        bloom._init_state(state.bits, state.bits_per_entry, state.hash0, state.hash1)
        return bloom

    def add(self, item: Item) -> None:
        """Insert ``item`` into the filter."""
        for position in self._positions(item):
            self._bits.set_bit(position)

    def update(self, items: Iterable[Item]) -> None:
        """Insert all ``items`` into the filter."""
        for item in items:
            self.add(item)

    def check(self, item: Item) -> bool:
        """Return False if ``item`` was definitely never added."""
        return all(self._bits.test_bit(position) for position in self._positions(item))

    def __contains__(self, item: Item) -> bool:
        return self.check(item)

    def _positions(self, item: Item) -> Iterator[int]:
        return probe_positions(_as_bytes(item), self.total_bits, self.bits_per_entry, self.hash0, self.hash1)

    def to_wire_structure(self) -> dict:
        """Return the JSON-ready wire structure for this filter."""
        return wire.encode(self._bits, self.bits_per_entry, self.hash0, self.hash1)

    def to_json(self) -> str:
        return wire.dumps(self.to_wire_structure())

    @classmethod
    def from_wire_structure(cls, record: Any) -> "BloomFilter":
        """Rebuild a filter from a parsed wire structure.

        Raises:
            MalformedWireInput: If ``record`` is not a valid wire structure.
        """
        return cls._reconstruct(wire.decode(record))

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "BloomFilter":
        """Rebuild a filter from its JSON text.

        Raises:
            MalformedWireInput: If ``text`` is not JSON or not a valid wire
                structure.
        """
        return cls._reconstruct(wire.loads(text))

    @property
    def bit_array(self) -> bytes:
        """Packed bit array bytes, as carried in the ``bitmap`` field."""
        return self._bits.raw_bytes()

    def fill_ratio(self) -> float:
        """Fraction of bits currently set."""
        return self._bits.count() / self.total_bits

    def estimate_false_positive_probability(self, num_entries: int) -> float:
        """Expected false-positive probability after ``num_entries`` inserts.

        Uses (1 - e^(-kn/m))^k.
        """
        if num_entries <= 0:
            return 0.0
        k = self.bits_per_entry
        return (1.0 - math.exp(-k * num_entries / self.total_bits)) ** k

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (
            self.bits_per_entry == other.bits_per_entry
            and self.hash0 == other.hash0
            and self.hash1 == other.hash1
            and self._bits == other._bits
        )

    def __repr__(self) -> str:
        return (
            f"BloomFilter(total_bits={self.total_bits}, bits_per_entry={self.bits_per_entry}, "
            f"fill_ratio={self.fill_ratio():.2%})"
        )
