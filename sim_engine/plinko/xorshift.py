"""
PLINKO FAIR: Bit-Stream Generator

Xorshift32 seeded from the first 4 bytes (big-endian) of a combined seed.
One instance feeds both the peg field and the path walk of a single round,
so it must never be shared between rounds.
"""

import logging
import re

from sim_engine.plinko.hashing import digest_hex

logger = logging.getLogger("plinkofair.engine")

MASK32 = 0xFFFFFFFF
_HEX_BYTES = re.compile(r"(?:[0-9a-fA-F]{2})*")


class Xorshift32:
    """32-bit xorshift (13, 17, 5) returning floats in [0, 1)."""

    def __init__(self, seed: int):
        self.state = seed & MASK32
        # Zero is a fixed point of the shift/xor map.
        if self.state == 0:
            self.state = 1

    @classmethod
    def from_combined_seed(cls, combined_hex: str) -> "Xorshift32":
        return cls(seed_from_combined(combined_hex))

    def next_uint32(self) -> int:
        x = self.state
        x ^= (x << 13) & MASK32
        x ^= x >> 17
        x ^= (x << 5) & MASK32
        self.state = x
        return x

    def next_float(self) -> float:
        """Advance once and return state / 2^32."""
        return self.next_uint32() / 0x100000000


def seed_from_combined(combined_hex: str) -> int:
    """Read the generator seed from a combined-seed string.

    Valid hex with at least 4 bytes is used as-is. Anything else (odd
    length, non-hex characters, too short) is re-hashed first so the
    result is still deterministic for the same input.
    """
    raw = b""
    if _HEX_BYTES.fullmatch(combined_hex):
        raw = bytes.fromhex(combined_hex)
    if len(raw) < 4:
        logger.debug("Combined seed %r is not usable hex, re-hashing", combined_hex)
        raw = bytes.fromhex(digest_hex(combined_hex))
    return int.from_bytes(raw[:4], "big")
