"""
PLINKO FAIR: Path Simulator

Walks the ball down the field using the generator state left over from
field construction. One draw per row; bin = number of Right moves.
"""

import operator
from dataclasses import dataclass
from enum import Enum

from sim_engine.plinko.peg_field import PegField
from sim_engine.plinko.xorshift import Xorshift32

DROP_ADJUST_STEP = 0.01


class Direction(str, Enum):
    LEFT  = "Left"
    RIGHT = "Right"


@dataclass(frozen=True)
class PathResult:
    path: tuple               # Direction per row, top to bottom
    bin_index: int            # Count of RIGHT moves, 0..rows

    @property
    def path_names(self) -> list:
        return [d.value for d in self.path]


def check_drop_column(drop_column, rows: int) -> int:
    """Return drop_column as an int, or raise if it is outside [0, rows]."""
    column = operator.index(drop_column)
    if not 0 <= column <= rows:
        raise ValueError(f"drop column {column} outside [0, {rows}]")
    return column


def drop_adjustment(drop_column: int, rows: int) -> float:
    """Left-bias shift for the chosen column; zero at the centre column."""
    return (drop_column - rows // 2) * DROP_ADJUST_STEP


def simulate_path(peg_field: PegField, rng: Xorshift32, drop_column: int) -> PathResult:
    """Single forward pass, no retries.

    At row r the governing peg is min(pos, r), where pos counts the Right
    moves so far. The ball goes Left when the draw is below the adjusted
    bias, otherwise Right.
    """
    rows = peg_field.row_count
    drop_column = check_drop_column(drop_column, rows)

    path = []
    pos = 0
    for r in range(rows):
        peg_index = min(pos, r)
        adj = drop_adjustment(drop_column, rows)
        bias = min(max(peg_field.bias(r, peg_index) + adj, 0.0), 1.0)

        if rng.next_float() < bias:
            path.append(Direction.LEFT)
        else:
            path.append(Direction.RIGHT)
            pos += 1

    return PathResult(path=tuple(path), bin_index=pos)
