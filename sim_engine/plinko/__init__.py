"""
PLINKO FAIR: Provably Fair Outcome Engine

Deterministic Plinko outcomes from a committed seed triple.
Pipeline: seeds -> SHA-256 combined seed -> xorshift32 -> peg field
(+ field hash) -> path walk on the same stream -> bin.

Usage:
    from sim_engine.plinko import commit, combine, compute_outcome, verify
    commit_hex = commit(server_seed, nonce)
    outcome = compute_outcome(combine(server_seed, client_seed, nonce), drop_column=6)
    report = verify(server_seed, client_seed, nonce, drop_column=6)
"""

from sim_engine.plinko.hashing import combined_seed, commitment, digest_hex
from sim_engine.plinko.path import Direction, PathResult, drop_adjustment, simulate_path
from sim_engine.plinko.paytable import PAYOUT_TABLE, payout_multiplier, theoretical_rtp
from sim_engine.plinko.peg_field import ROWS, Peg, PegField, build_peg_field, round_bias
from sim_engine.plinko.verifier import (
    Outcome, SeedMaterial, Verification,
    audit_round, combine, commit, compute_outcome, verify, verify_material,
)
from sim_engine.plinko.xorshift import Xorshift32, seed_from_combined

BIN_COUNT = ROWS + 1
DROP_COLUMNS = list(range(ROWS + 1))

__all__ = [
    "BIN_COUNT", "DROP_COLUMNS", "ROWS", "PAYOUT_TABLE",
    "Direction", "Outcome", "PathResult", "Peg", "PegField", "SeedMaterial",
    "Verification", "Xorshift32",
    "audit_round", "build_peg_field", "combine", "combined_seed", "commit",
    "commitment", "compute_outcome", "digest_hex", "drop_adjustment",
    "payout_multiplier", "round_bias", "seed_from_combined", "simulate_path",
    "theoretical_rtp", "verify", "verify_material",
]
