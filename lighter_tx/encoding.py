"""
Field encoder: typed values -> Goldilocks field elements.

Each field type turns one value into one or more integers in ``[0, p)``
with ``p = 2**64 - 2**32 + 1``.  Nothing is scaled here; amounts and prices
arrive as integers already expressed in the market's fixed-point units.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from .constants import GOLDILOCKS_MODULUS
from .errors import EncodingError


def _check_int(name: str, value: Any) -> int:
    # bool is an int subclass; flags have their own type.
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(name, value, f"expected int, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class UInt:
    """Unsigned integer of ``bits`` width, one element."""

    bits: int

    @property
    def width(self) -> int:
        return 1

    def encode(self, name: str, value: Any) -> List[int]:
        v = _check_int(name, value)
        if v < 0:
            raise EncodingError(name, value, "must be non-negative")
        if v >= 1 << self.bits:
            raise EncodingError(name, value, f"exceeds u{self.bits}")
        if v >= GOLDILOCKS_MODULUS:
            raise EncodingError(name, value, "not below the field modulus")
        return [int(v)]


@dataclass(frozen=True)
class Flag:
    """Boolean flag, encoded as 0 or 1."""

    @property
    def width(self) -> int:
        return 1

    def encode(self, name: str, value: Any) -> List[int]:
        if isinstance(value, bool):
            return [int(value)]
        if isinstance(value, int) and value in (0, 1):
            return [value]
        raise EncodingError(name, value, "flag must be a bool or 0/1")


@dataclass(frozen=True)
class Wide:
    """Unsigned integer spread over ``bits // limb_bits`` little-endian elements."""

    bits: int
    limb_bits: int

    @property
    def width(self) -> int:
        return self.bits // self.limb_bits

    def encode(self, name: str, value: Any) -> List[int]:
        v = _check_int(name, value)
        if v < 0:
            raise EncodingError(name, value, "must be non-negative")
        if v >= 1 << self.bits:
            raise EncodingError(name, value, f"exceeds u{self.bits}")
        mask = (1 << self.limb_bits) - 1
        return [(v >> (i * self.limb_bits)) & mask for i in range(self.width)]


@dataclass(frozen=True)
class FixedBytes:
    """
    Byte string of exactly ``length`` bytes, cut into ``limb``-byte
    little-endian chunks.  Every chunk must be a canonical field element.
    """

    length: int
    limb: int = 8

    @property
    def width(self) -> int:
        return self.length // self.limb

    def encode(self, name: str, value: Any) -> List[int]:
        if not isinstance(value, (bytes, bytearray)):
            raise EncodingError(name, value, f"expected bytes, got {type(value).__name__}")
        if len(value) != self.length:
            raise EncodingError(name, value, f"expected {self.length} bytes, got {len(value)}")
        out = []
        for i in range(0, self.length, self.limb):
            limb = int.from_bytes(value[i:i + self.limb], "little")
            if limb >= GOLDILOCKS_MODULUS:
                raise EncodingError(name, value, f"limb {i // self.limb} is not a canonical field element")
            out.append(limb)
        return out


# Widths used across the preimage tables.
U8 = UInt(8)
U16 = UInt(16)
U32 = UInt(32)
U48 = UInt(48)
U60 = UInt(60)
FLAG = Flag()
USDC = Wide(64, 32)
PUBKEY = FixedBytes(40, 8)
MEMO = FixedBytes(32, 4)
