"""Fixed-size bit vector packed into a bytearray.

Bit ``i`` lives in byte ``i >> 3`` at position ``i & 7`` counting from the
least-significant bit. This is the packing used on the wire, so
``raw_bytes()`` can be base64-encoded as-is.
"""
from __future__ import annotations

from bf_keyed.errors import InvalidConstructionArgument


def byte_length(total_bits: int) -> int:
    """Return the number of bytes needed to hold ``total_bits`` bits."""
    return (total_bits + 7) // 8


class BitArray:
    """Mutable bit vector backed by a bytearray."""

    __slots__ = ("total_bits", "_bytes")

    def __init__(self, total_bits: int) -> None:
        if isinstance(total_bits, bool) or not isinstance(total_bits, int):
            raise InvalidConstructionArgument("total_bits must be an integer")
        if total_bits <= 0:
            raise InvalidConstructionArgument("total_bits must be positive")

        self.total_bits = total_bits
        self._bytes = bytearray(byte_length(total_bits))

    @classmethod
    def from_raw_bytes(cls, data: bytes, total_bits: int) -> "BitArray":
        """Rebuild a bit array from its packed representation.

        Raises:
            ValueError: If ``data`` is not exactly ``ceil(total_bits / 8)``
                bytes long.
        """
        bits = cls(total_bits)
        if len(data) != len(bits._bytes):
            raise ValueError(
                f"expected {len(bits._bytes)} bytes for {total_bits} bits, got {len(data)}"
            )
        bits._bytes[:] = data
        return bits

    def set_bit(self, index: int) -> None:
        """Set the bit at ``index`` to 1."""
        self._check_index(index)
        self._bytes[index >> 3] |= 1 << (index & 7)

    def test_bit(self, index: int) -> bool:
        """Return True if the bit at ``index`` is 1."""
        self._check_index(index)
        return bool(self._bytes[index >> 3] & (1 << (index & 7)))

    def raw_bytes(self) -> bytes:
        """Return a copy of the packed storage."""
        return bytes(self._bytes)

    def count(self) -> int:
        """Return the number of set bits."""
        return sum(bin(byte).count("1") for byte in self._bytes)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.total_bits:
            raise IndexError(f"bit index {index} out of range for {self.total_bits} bits")

    def __len__(self) -> int:
        return self.total_bits

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitArray):
            return NotImplemented
        return self.total_bits == other.total_bits and self._bytes == other._bytes

    def __repr__(self) -> str:
        return f"BitArray(total_bits={self.total_bits}, set={self.count()})"
