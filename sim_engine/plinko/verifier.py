"""
PLINKO FAIR: Outcome Verifier

The two operations the request layer calls (commit / compute_outcome) and
the stateless re-computation an auditor runs once the server seed has been
revealed. The issuing side and the auditor execute exactly the same code
path, so a verification "passes" iff the recomputed values match what was
published.

Usage:
    from sim_engine.plinko import commit, combine, compute_outcome, verify

    commit_hex = commit(server_seed, nonce)                 # publish this
    seed = combine(server_seed, client_seed, nonce)
    outcome = compute_outcome(seed, drop_column=6)          # bin + path
    report = verify(server_seed, client_seed, nonce, 6)     # after reveal
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, Field

from sim_engine.plinko.hashing import combined_seed, commitment
from sim_engine.plinko.path import Direction, check_drop_column, simulate_path
from sim_engine.plinko.peg_field import ROWS, build_peg_field
from sim_engine.plinko.xorshift import Xorshift32

logger = logging.getLogger("plinkofair.engine")


# ═══════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════

class SeedMaterial(BaseModel):
    """Revealed seed triple for one round."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    server_seed: str = Field(alias="serverSeed")
    client_seed: str = Field(alias="clientSeed")
    nonce: str


class Outcome(BaseModel):
    """Result of one drop: field fingerprint, decisions and landing bin."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    peg_map_hash: str = Field(alias="pegMapHash")
    path: list[Direction]
    bin_index: int = Field(alias="binIndex", ge=0)

    @property
    def right_moves(self) -> int:
        return sum(1 for d in self.path if d is Direction.RIGHT)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Verification(Outcome):
    """Outcome plus the commitment and combined seed it was derived from."""
    commit_hex: str = Field(alias="commitHex")
    combined_seed: str = Field(alias="combinedSeed")

    def verification_steps(self) -> list[str]:
        return [
            "1. commitHex = SHA-256(serverSeed + ':' + nonce), compare with the hash published before the round",
            "2. combinedSeed = SHA-256(serverSeed + ':' + clientSeed + ':' + nonce)",
            "3. Seed xorshift32 with the first 4 bytes of combinedSeed (big-endian)",
            f"4. Draw {ROWS * (ROWS + 1) // 2} peg biases row by row: "
            "round(0.5 + (rand() - 0.5) * 0.2, 6), pegMapHash = SHA-256(JSON of the field)",
            "5. Continue the same stream: per row, peg = min(pos, row), "
            "bias' = clamp(bias + (dropColumn - 6) * 0.01, 0, 1), Left if rand() < bias' else Right",
            "6. binIndex = number of Right moves",
        ]

    def to_audit_json(self) -> str:
        data = self.to_wire()
        data["verification_steps"] = self.verification_steps()
        return json.dumps(data, indent=2)


# ═══════════════════════════════════════════════════════════════
# External Operations
# ═══════════════════════════════════════════════════════════════

def commit(server_seed: str, nonce: str) -> str:
    return commitment(server_seed, nonce)


def combine(server_seed: str, client_seed: str, nonce: str) -> str:
    return combined_seed(server_seed, client_seed, nonce)


def compute_outcome(combined_seed_hex: str, drop_column: int, rows: int = ROWS) -> Outcome:
    """Build the field and walk the path from one generator instance.

    The drop column is checked before the first draw so a bad request
    fails without consuming anything.
    """
    drop_column = check_drop_column(drop_column, rows)

    rng = Xorshift32.from_combined_seed(combined_seed_hex)
    peg_field = build_peg_field(rng, rows)
    result = simulate_path(peg_field, rng, drop_column)

    logger.debug("Outcome seed=%s... col=%d bin=%d hash=%s...",
                 combined_seed_hex[:12], drop_column, result.bin_index,
                 peg_field.field_hash[:12])
    return Outcome(
        peg_map_hash=peg_field.field_hash,
        path=list(result.path),
        bin_index=result.bin_index,
    )


def verify(server_seed: str, client_seed: str, nonce: str,
           drop_column: int, rows: int = ROWS) -> Verification:
    """Recompute everything from the revealed seeds."""
    seed = combine(server_seed, client_seed, nonce)
    outcome = compute_outcome(seed, drop_column, rows)
    return Verification(
        commit_hex=commit(server_seed, nonce),
        combined_seed=seed,
        peg_map_hash=outcome.peg_map_hash,
        path=outcome.path,
        bin_index=outcome.bin_index,
    )


def verify_material(material: SeedMaterial, drop_column: int) -> Verification:
    return verify(material.server_seed, material.client_seed, material.nonce, drop_column)


def audit_round(published: dict, server_seed: str, client_seed: str,
                nonce: str, drop_column: int) -> list[str]:
    """Compare a published round record against a fresh recomputation.

    ``published`` may use the wire names (commitHex, pegMapHash, ...) or the
    snake_case field names. Fields absent from the record are not compared.
    Returns the wire names that differ; an empty list means consistent.
    """
    recomputed = verify(server_seed, client_seed, nonce, drop_column).to_wire()

    mismatches = []
    for name, info in Verification.model_fields.items():
        wire = info.alias or name
        if wire in published:
            claimed = published[wire]
        elif name in published:
            claimed = published[name]
        else:
            continue
        if wire == "path" and isinstance(claimed, str):
            claimed = json.loads(claimed)
        if claimed != recomputed[wire]:
            mismatches.append(wire)

    if mismatches:
        logger.debug("Audit mismatch on %s", ", ".join(mismatches))
    return mismatches
