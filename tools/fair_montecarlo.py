"""
PLINKO FAIR: Monte Carlo Validator

Drives the real provably-fair engine (commit/combine/compute_outcome) over
many reproducible rounds and reports the landing distribution and the
measured RTP of the paytable for a drop column.

Every round's seeds are derived from (base_seed, round index), so a run is
fully reproducible and any single round can be re-verified on its own.

Usage:
    from tools.fair_montecarlo import FairMonteCarlo
    mc = FairMonteCarlo(seed="audit-2026")

    result = mc.run(drop_column=6, n_rounds=50_000)
    print(result.summary())

    report = mc.sweep(n_rounds=10_000)     # every drop column 0..12
    print(report.to_json())
"""

from __future__ import annotations

import json
import logging
import statistics
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config.settings import FairConfig
from sim_engine.plinko import (
    PAYOUT_TABLE, ROWS, combine, compute_outcome, digest_hex,
    payout_multiplier, theoretical_rtp,
)
from sim_engine.plinko.path import check_drop_column

logger = logging.getLogger("plinkofair.montecarlo")


# ═══════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════

@dataclass
class FairSimulationResult:
    """Results from one drop column's simulation run."""
    drop_column: int
    n_rounds: int
    bin_counts: list[int]
    measured_rtp: float
    theoretical_rtp: float           # Unbiased binomial board, for reference
    rtp_delta: float
    mean_bin: float
    hit_frequency: float             # Share of rounds paying >= 1x
    std_dev: float = 0.0             # Of the per-round multiplier
    duration_seconds: float = 0.0
    rounds_per_second: float = 0.0
    seed: str = ""

    @property
    def bin_frequencies(self) -> list[float]:
        return [c / self.n_rounds for c in self.bin_counts] if self.n_rounds else []

    def summary(self) -> str:
        lines = [
            f"═══ Monte Carlo: drop column {self.drop_column} ═══",
            f"  Rounds:      {self.n_rounds:,}",
            f"  Theoretical: {self.theoretical_rtp*100:.4f}%  (unbiased 50/50 board)",
            f"  Measured:    {self.measured_rtp*100:.4f}%",
            f"  Delta:       {self.rtp_delta*100:.4f}%",
            f"  Mean bin:    {self.mean_bin:.3f}",
            f"  Hit Freq:    {self.hit_frequency*100:.2f}%",
            f"  Std Dev:     {self.std_dev:.4f}",
            f"  Speed:       {self.rounds_per_second:,.0f} rounds/sec",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "drop_column": self.drop_column,
            "n_rounds": self.n_rounds,
            "bin_counts": self.bin_counts,
            "theoretical_rtp_pct": round(self.theoretical_rtp * 100, 4),
            "measured_rtp_pct": round(self.measured_rtp * 100, 4),
            "rtp_delta_pct": round(self.rtp_delta * 100, 4),
            "mean_bin": round(self.mean_bin, 4),
            "hit_frequency_pct": round(self.hit_frequency * 100, 2),
            "std_dev": round(self.std_dev, 4),
            "performance": {
                "duration_s": round(self.duration_seconds, 2),
                "rounds_per_sec": int(self.rounds_per_second),
            },
            "seed": self.seed,
        }


@dataclass
class FairValidationReport:
    """Results across several drop columns."""
    results: list[FairSimulationResult] = field(default_factory=list)
    generated_at: str = ""
    total_rounds: int = 0
    total_duration: float = 0.0

    def __post_init__(self):
        self.generated_at = datetime.now(timezone.utc).isoformat()

    def add(self, result: FairSimulationResult):
        self.results.append(result)
        self.total_rounds += result.n_rounds
        self.total_duration += result.duration_seconds

    def summary(self) -> str:
        lines = [
            "═══════════════════════════════════════════════════",
            "    PLINKO FAIR DROP-COLUMN SWEEP",
            "═══════════════════════════════════════════════════",
            f"  Generated: {self.generated_at}",
            f"  Total Rounds: {self.total_rounds:,}",
            f"  Total Time: {self.total_duration:.1f}s",
            "",
        ]
        for r in self.results:
            lines.append(
                f"  col {r.drop_column:2d} | "
                f"rtp={r.measured_rtp*100:.2f}% "
                f"mean_bin={r.mean_bin:.2f} "
                f"hit={r.hit_frequency*100:.1f}%"
            )
        return "\n".join(lines)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps({
            "report_type": "Plinko Fair Monte Carlo",
            "generated_at": self.generated_at,
            "total_rounds": self.total_rounds,
            "total_duration_s": round(self.total_duration, 2),
            "columns": [r.to_dict() for r in self.results],
        }, indent=indent)


# ═══════════════════════════════════════════════════════════════
# Validator
# ═══════════════════════════════════════════════════════════════

def round_seeds(base_seed: str, index: int) -> tuple[str, str, str]:
    """(server_seed, client_seed, nonce) for round ``index`` of a run."""
    server_seed = digest_hex(f"{base_seed}:server:{index}")
    return server_seed, f"{base_seed}:client:{index}", str(index)


class FairMonteCarlo:
    """Measures the bin distribution produced by the fair engine."""

    def __init__(self, seed: str = None, paytable=PAYOUT_TABLE):
        self.base_seed = seed if seed is not None else FairConfig.SIM_SEED
        self.paytable = tuple(paytable)
        if len(self.paytable) != ROWS + 1:
            raise ValueError(f"paytable needs {ROWS + 1} entries, got {len(self.paytable)}")

    def run(self, drop_column: int, n_rounds: int = None) -> FairSimulationResult:
        n_rounds = n_rounds if n_rounds is not None else FairConfig.SIM_ROUNDS
        if n_rounds <= 0:
            raise ValueError(f"n_rounds must be positive, got {n_rounds}")
        drop_column = check_drop_column(drop_column, ROWS)

        counts = [0] * (ROWS + 1)
        payouts = []
        t0 = time.time()
        for i in range(n_rounds):
            server_seed, client_seed, nonce = round_seeds(self.base_seed, i)
            outcome = compute_outcome(combine(server_seed, client_seed, nonce), drop_column)
            counts[outcome.bin_index] += 1
            payouts.append(payout_multiplier(outcome.bin_index, self.paytable))
        duration = time.time() - t0

        measured = sum(payouts) / n_rounds
        expected = theoretical_rtp(self.paytable)
        mean_bin = sum(b * c for b, c in enumerate(counts)) / n_rounds
        logger.info(f"Column {drop_column}: {n_rounds:,} rounds, rtp={measured:.4f} "
                    f"in {duration:.2f}s")

        return FairSimulationResult(
            drop_column=drop_column,
            n_rounds=n_rounds,
            bin_counts=counts,
            measured_rtp=measured,
            theoretical_rtp=expected,
            rtp_delta=abs(measured - expected),
            mean_bin=mean_bin,
            std_dev=statistics.pstdev(payouts),
            hit_frequency=sum(1 for p in payouts if p >= 1) / n_rounds,
            duration_seconds=duration,
            rounds_per_second=n_rounds / duration if duration > 0 else 0,
            seed=f"{self.base_seed}:col{drop_column}",
        )

    def sweep(self, n_rounds: int = None, columns=None) -> FairValidationReport:
        """Run every drop column (or the given ones) with the same seeds."""
        report = FairValidationReport()
        for col in (columns if columns is not None else range(ROWS + 1)):
            report.add(self.run(col, n_rounds))
        return report
