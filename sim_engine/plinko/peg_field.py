"""
PLINKO FAIR: Peg Field Builder

Triangular field of per-peg left biases. Row r holds r+1 pegs. Pegs are
drawn row-major from the round's generator, so the generator handed in here
must be the same one the path walk continues from afterwards.
"""

import json
import math
from dataclasses import dataclass, field

from sim_engine.plinko.hashing import digest_hex
from sim_engine.plinko.xorshift import Xorshift32

ROWS = 12
BIAS_PRECISION = 6
BIAS_SPREAD = 0.2
BIAS_MIN = 0.5 - BIAS_SPREAD / 2
BIAS_MAX = 0.5 + BIAS_SPREAD / 2

_SCALE = 10 ** BIAS_PRECISION


def round_bias(value: float) -> float:
    """Round half-up to BIAS_PRECISION digits (values here are always > 0)."""
    return math.floor(value * _SCALE + 0.5) / _SCALE


@dataclass(frozen=True)
class Peg:
    left_bias: float

    def to_dict(self) -> dict:
        return {"leftBias": self.left_bias}


@dataclass(frozen=True)
class PegField:
    """Rows of pegs plus the SHA-256 fingerprint of their canonical JSON."""
    rows: tuple
    field_hash: str = field(default="")

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def bias(self, row: int, col: int) -> float:
        return self.rows[row][col].left_bias

    def to_list(self) -> list:
        return [[peg.to_dict() for peg in row] for row in self.rows]

    def canonical_json(self) -> str:
        return serialize_rows(self.rows)


def serialize_rows(rows) -> str:
    """Compact JSON with a fixed key, e.g. [[{"leftBias":0.422123}],...]."""
    return json.dumps(
        [[peg.to_dict() for peg in row] for row in rows],
        separators=(",", ":"),
    )


def build_peg_field(rng: Xorshift32, rows: int = ROWS) -> PegField:
    """Draw one bias per peg, row by row, column by column."""
    built = []
    for r in range(rows):
        row = []
        for _ in range(r + 1):
            raw = 0.5 + (rng.next_float() - 0.5) * BIAS_SPREAD
            raw = min(max(raw, BIAS_MIN), BIAS_MAX)
            row.append(Peg(left_bias=round_bias(raw)))
        built.append(tuple(row))

    frozen_rows = tuple(built)
    return PegField(rows=frozen_rows, field_hash=digest_hex(serialize_rows(frozen_rows)))
