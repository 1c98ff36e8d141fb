"""Plinko paytable: symmetric multipliers indexed by bin (number of Right moves)."""
import math

from sim_engine.plinko.peg_field import ROWS

# 12 rows -> 13 bins, high at the edges, low in the centre
PAYOUT_TABLE = (10, 5, 2, 1, 0.5, 0.2, 0.2, 0.2, 0.5, 1, 2, 5, 10)


def payout_multiplier(bin_index: int, table=PAYOUT_TABLE) -> float:
    if not 0 <= bin_index < len(table):
        raise IndexError(f"bin {bin_index} outside paytable of {len(table)} bins")
    return table[bin_index]


def bin_probabilities(rows: int = ROWS) -> list:
    """Unbiased binomial landing probabilities for rows+1 bins."""
    return [math.comb(rows, k) / (2 ** rows) for k in range(rows + 1)]


def theoretical_rtp(table=PAYOUT_TABLE) -> float:
    """Expected multiplier for a fair 50/50 board with len(table)-1 rows."""
    rows = len(table) - 1
    return sum(p * m for p, m in zip(bin_probabilities(rows), table))
