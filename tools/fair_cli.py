#!/usr/bin/env python3
"""
PLINKO FAIR: Command Line Tool

Usage:
    python -m tools.fair_cli new-round
    python -m tools.fair_cli commit <server_seed> <nonce>
    python -m tools.fair_cli combine <server_seed> <client_seed> <nonce>
    python -m tools.fair_cli outcome <combined_seed> --drop-column 6 --show-field
    python -m tools.fair_cli verify <server_seed> <client_seed> <nonce> --drop-column 6
    python -m tools.fair_cli verify ... --published round.json      # audit a record
    python -m tools.fair_cli simulate --sweep --rounds 5000
    python -m tools.fair_cli --json verify ...                       # machine output
"""

import argparse
import json
import logging
import secrets
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import BaseModel, Field, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import FairConfig, setup_logging
from sim_engine.plinko import (
    ROWS, Xorshift32, audit_round, build_peg_field, combine, commit,
    compute_outcome, payout_multiplier, verify,
)
from tools.fair_montecarlo import FairMonteCarlo

logger = logging.getLogger("plinkofair.cli")
console = Console()


# ═══════════════════════════════════════════════════════════════
# Request validation (the core itself does no clamping)
# ═══════════════════════════════════════════════════════════════

class OutcomeRequest(BaseModel):
    combined_seed: str = Field(min_length=1)
    drop_column: int = Field(ROWS // 2, ge=0, le=ROWS)


class RoundRequest(BaseModel):
    server_seed: str = Field(min_length=1)
    client_seed: str = Field(min_length=1)
    nonce: str = Field(min_length=1)
    drop_column: int = Field(ROWS // 2, ge=0, le=ROWS)


# ═══════════════════════════════════════════════════════════════
# Output helpers
# ═══════════════════════════════════════════════════════════════

def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _path_str(path) -> str:
    return "".join("R" if d.value == "Right" else "L" for d in path)


def _field_table(peg_field) -> Table:
    table = Table(title=f"Peg field ({peg_field.row_count} rows)", show_header=True)
    table.add_column("Row", justify="right")
    table.add_column("Left biases")
    for r, row in enumerate(peg_field.rows):
        table.add_row(str(r), "  ".join(f"{p.left_bias:.6f}" for p in row))
    return table


# ═══════════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════════

def cmd_new_round(args) -> int:
    server_seed = secrets.token_hex(32)
    nonce = secrets.token_hex(8)
    commit_hex = commit(server_seed, nonce)
    if args.json:
        _print_json({"serverSeed": server_seed, "nonce": nonce, "commitHex": commit_hex})
        return 0
    console.print(Panel(
        f"Commit:      [bold]{commit_hex}[/bold]\n"
        f"Nonce:       {nonce}\n"
        f"Server seed: [dim]{server_seed}[/dim]\n\n"
        "[yellow]Publish the commit and nonce only; keep the server seed until reveal.[/yellow]",
        title="New round", border_style="cyan",
    ))
    return 0


def cmd_commit(args) -> int:
    commit_hex = commit(args.server_seed, args.nonce)
    if args.json:
        _print_json({"commitHex": commit_hex})
    else:
        console.print(commit_hex)
    return 0


def cmd_combine(args) -> int:
    seed = combine(args.server_seed, args.client_seed, args.nonce)
    if args.json:
        _print_json({"combinedSeed": seed})
    else:
        console.print(seed)
    return 0


def cmd_outcome(args) -> int:
    req = OutcomeRequest(combined_seed=args.combined_seed, drop_column=args.drop_column)
    outcome = compute_outcome(req.combined_seed, req.drop_column)
    payout = payout_multiplier(outcome.bin_index)

    if args.json:
        data = outcome.to_wire()
        data["payoutMultiplier"] = payout
        if args.show_field:
            data["pegMap"] = build_peg_field(Xorshift32.from_combined_seed(req.combined_seed)).to_list()
        _print_json(data)
        return 0

    console.print(Panel(
        f"Drop column: {req.drop_column}\n"
        f"Path:        {_path_str(outcome.path)}\n"
        f"Bin:         [bold]{outcome.bin_index}[/bold]  (payout {payout}x)\n"
        f"Peg map:     {outcome.peg_map_hash}",
        title="Outcome", border_style="green",
    ))
    if args.show_field:
        console.print(_field_table(build_peg_field(Xorshift32.from_combined_seed(req.combined_seed))))
    return 0


def cmd_verify(args) -> int:
    req = RoundRequest(server_seed=args.server_seed, client_seed=args.client_seed,
                       nonce=args.nonce, drop_column=args.drop_column)
    report = verify(req.server_seed, req.client_seed, req.nonce, req.drop_column)

    mismatches = None
    if args.published:
        published = json.loads(Path(args.published).read_text(encoding="utf-8"))
        mismatches = audit_round(published, req.server_seed, req.client_seed,
                                 req.nonce, req.drop_column)

    if args.save:
        FairConfig.AUDIT_DIR.mkdir(parents=True, exist_ok=True)
        out = FairConfig.AUDIT_DIR / f"round_{report.commit_hex[:16]}.json"
        out.write_text(report.to_audit_json(), encoding="utf-8")
        logger.info(f"Audit written to {out}")

    if args.json:
        data = report.to_wire()
        if mismatches is not None:
            data["mismatches"] = mismatches
        _print_json(data)
    else:
        console.print(Panel(
            f"Commit:        {report.commit_hex}\n"
            f"Combined seed: {report.combined_seed}\n"
            f"Peg map:       {report.peg_map_hash}\n"
            f"Path:          {_path_str(report.path)}\n"
            f"Bin:           [bold]{report.bin_index}[/bold]",
            title="Recomputed round", border_style="cyan",
        ))
        if mismatches is not None:
            if mismatches:
                console.print(f"[red]❌ Published record differs on: {', '.join(mismatches)}[/red]")
            else:
                console.print("[green]✅ Published record matches the recomputation[/green]")

    return 1 if mismatches else 0


def cmd_simulate(args) -> int:
    mc = FairMonteCarlo(seed=args.seed)
    if args.sweep:
        report = mc.sweep(n_rounds=args.rounds)
        if args.json:
            print(report.to_json())
        else:
            console.print(report.summary())
        return 0

    result = mc.run(args.drop_column, n_rounds=args.rounds)
    if args.json:
        _print_json(result.to_dict())
    else:
        console.print(result.summary())
    return 0


# ═══════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plinko-fair",
                                     description="Provably fair Plinko outcomes")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of panels")
    parser.add_argument("--log-level", type=str, default=None,
                        help=f"Logging level (default: {FairConfig.LOG_LEVEL})")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new-round", help="Generate a server seed + nonce and its commitment")
    p.set_defaults(func=cmd_new_round)

    p = sub.add_parser("commit", help="SHA-256(serverSeed:nonce)")
    p.add_argument("server_seed")
    p.add_argument("nonce")
    p.set_defaults(func=cmd_commit)

    p = sub.add_parser("combine", help="SHA-256(serverSeed:clientSeed:nonce)")
    p.add_argument("server_seed")
    p.add_argument("client_seed")
    p.add_argument("nonce")
    p.set_defaults(func=cmd_combine)

    p = sub.add_parser("outcome", help="Compute a drop from a combined seed")
    p.add_argument("combined_seed")
    p.add_argument("--drop-column", type=int, default=ROWS // 2)
    p.add_argument("--show-field", action="store_true")
    p.set_defaults(func=cmd_outcome)

    p = sub.add_parser("verify", help="Recompute a round from revealed seeds")
    p.add_argument("server_seed")
    p.add_argument("client_seed")
    p.add_argument("nonce")
    p.add_argument("--drop-column", type=int, default=ROWS // 2)
    p.add_argument("--published", type=str, help="JSON record to audit against")
    p.add_argument("--save", action="store_true",
                   help=f"Write the audit JSON under {FairConfig.AUDIT_DIR}")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("simulate", help="Monte Carlo over the fair engine")
    p.add_argument("--drop-column", type=int, default=ROWS // 2)
    p.add_argument("--sweep", action="store_true", help="All drop columns")
    p.add_argument("--rounds", type=int, default=FairConfig.SIM_ROUNDS)
    p.add_argument("--seed", type=str, default=FairConfig.SIM_SEED)
    p.set_defaults(func=cmd_simulate)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.getLevelName(args.log_level.upper()) if args.log_level else None
    setup_logging(level=level if isinstance(level, int) else None)

    try:
        return args.func(args)
    except ValidationError as e:
        console.print(f"[red]Invalid request:[/red] {e.errors()[0]['loc'][0]}: {e.errors()[0]['msg']}")
        return 2
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
