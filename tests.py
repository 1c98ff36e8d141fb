#!/usr/bin/env python3
"""
PLINKO FAIR: Engine Test Suite

Run: python tests.py
     python tests.py -v               # verbose
     python tests.py TestPathSimulator

Test categories:
  TestHashUtilities   : SHA-256 helpers, commitment binding
  TestXorshift32      : Bit exactness, zero seed, seed fallback
  TestPegField        : Shape, bias range, rounding, canonical hash
  TestPathSimulator   : Peg selection, drop adjustment, clamping
  TestOutcomeVerifier : Published vector, determinism, audit comparison
  TestPaytable        : Alignment with bins, RTP
"""

import hashlib
import json
import sys
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from sim_engine.plinko import (
    PAYOUT_TABLE, ROWS, Direction, Outcome, Peg, PegField, SeedMaterial,
    Xorshift32, audit_round, build_peg_field, combine, commit, compute_outcome,
    digest_hex, drop_adjustment, payout_multiplier, round_bias,
    seed_from_combined, simulate_path, theoretical_rtp, verify, verify_material,
)
from sim_engine.plinko.paytable import bin_probabilities

# Reference round (commit, seeds, first draws, first three rows, bin)
VECTOR = {
    "server_seed": "b2a5f3f32a4d9c6ee7a8c1d33456677890abcdeffedcba0987654321ffeeddcc",
    "nonce": "42",
    "client_seed": "candidate-hello",
    "commit": "bb9acdc67f3f18f3345236a01f0e5072596657a9005c7d8a22cff061451a6b34",
    "combined": "e1dddf77de27d395ea2be2ed49aa2a59bd6bf12ee8d350c16c008abd406c07e0",
    "first5": [0.1106166649, 0.7625129214, 0.0439292176, 0.4578678815, 0.3438999297],
    "pegs": [[0.422123], [0.552503, 0.408786], [0.491574, 0.468780, 0.436540]],
    "drop_column": 6,
    "bin": 6,
}


class ScriptedRNG:
    """Stands in for Xorshift32 with a fixed list of draws."""

    def __init__(self, draws):
        self.draws = list(draws)
        self.used = 0

    def next_float(self) -> float:
        value = self.draws[self.used]
        self.used += 1
        return value


def uniform_field(bias: float, rows: int = ROWS) -> PegField:
    return PegField(rows=tuple(tuple(Peg(bias) for _ in range(r + 1)) for r in range(rows)))


# ============================================================
# Hash Utilities
# ============================================================

class TestHashUtilities(unittest.TestCase):

    def test_digest_hex_known_value(self):
        self.assertEqual(
            digest_hex("test"),
            "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
        )

    def test_commit_vector(self):
        self.assertEqual(commit(VECTOR["server_seed"], VECTOR["nonce"]), VECTOR["commit"])

    def test_combine_vector(self):
        seed = combine(VECTOR["server_seed"], VECTOR["client_seed"], VECTOR["nonce"])
        self.assertEqual(seed, VECTOR["combined"])

    def test_commit_is_colon_joined_sha256(self):
        expected = hashlib.sha256(b"server:7").hexdigest()
        self.assertEqual(commit("server", "7"), expected)

    def test_commit_changes_with_each_input(self):
        base = commit("server-seed", "1")
        self.assertNotEqual(base, commit("server-seed", "2"))
        self.assertNotEqual(base, commit("server-seeD", "1"))
        self.assertEqual(base, commit("server-seed", "1"))

    def test_commitments_unique_across_corpus(self):
        hashes = {commit(f"seed-{i}", str(j)) for i in range(50) for j in range(20)}
        self.assertEqual(len(hashes), 1000)

    def test_unicode_input(self):
        self.assertEqual(len(combine("sérvér", "クライアント", "0")), 64)


# ============================================================
# Bit-Stream Generator
# ============================================================

class TestXorshift32(unittest.TestCase):

    def test_seed_from_vector(self):
        self.assertEqual(seed_from_combined(VECTOR["combined"]), 0xE1DDDF77)

    def test_first_five_draws(self):
        rng = Xorshift32.from_combined_seed(VECTOR["combined"])
        for expected in VECTOR["first5"]:
            self.assertAlmostEqual(rng.next_float(), expected, places=9)

    def test_zero_seed_substituted(self):
        rng = Xorshift32(0)
        self.assertEqual(rng.state, 1)
        # 1 -> 0x2001 -> 0x2001 -> 0x42021
        self.assertEqual(rng.next_uint32(), 0x42021)

    def test_state_stays_32_bit(self):
        rng = Xorshift32(0xFFFFFFFF)
        for _ in range(1000):
            value = rng.next_uint32()
            self.assertTrue(0 < value <= 0xFFFFFFFF)

    def test_seed_masked_to_32_bits(self):
        self.assertEqual(Xorshift32(0x1_0000_0005).state, 5)

    def test_values_in_unit_interval(self):
        rng = Xorshift32(12345)
        for _ in range(1000):
            value = rng.next_float()
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_deterministic(self):
        a, b = Xorshift32(12345), Xorshift32(12345)
        self.assertEqual([a.next_float() for _ in range(100)],
                         [b.next_float() for _ in range(100)])

    def test_short_hex_rehashed(self):
        expected = int(hashlib.sha256(b"abcd").hexdigest()[:8], 16)
        self.assertEqual(seed_from_combined("abcd"), expected)

    def test_odd_length_rehashed(self):
        self.assertEqual(seed_from_combined("abc"), 0xBA7816BF)

    def test_non_hex_rehashed(self):
        expected = int(hashlib.sha256(b"test-seed-123").hexdigest()[:8], 16)
        self.assertEqual(seed_from_combined("test-seed-123"), expected)

    def test_empty_string_rehashed(self):
        expected = int(hashlib.sha256(b"").hexdigest()[:8], 16)
        self.assertEqual(seed_from_combined(""), expected)

    def test_exactly_four_bytes_used_directly(self):
        self.assertEqual(seed_from_combined("e1dddf77"), 0xE1DDDF77)
        self.assertEqual(seed_from_combined("E1DDDF77"), 0xE1DDDF77)


# ============================================================
# Peg Field Builder
# ============================================================

class TestPegField(unittest.TestCase):

    def setUp(self):
        self.field = build_peg_field(Xorshift32.from_combined_seed(VECTOR["combined"]))

    def test_vector_rows(self):
        for r, expected in enumerate(VECTOR["pegs"]):
            self.assertEqual([p.left_bias for p in self.field.rows[r]], expected)

    def test_triangular_shape(self):
        self.assertEqual(self.field.row_count, ROWS)
        for r, row in enumerate(self.field.rows):
            self.assertEqual(len(row), r + 1)

    def test_bias_range(self):
        for seed in ("a", "b", VECTOR["combined"], "00000000"):
            peg_field = build_peg_field(Xorshift32.from_combined_seed(seed))
            for row in peg_field.rows:
                for peg in row:
                    self.assertGreaterEqual(peg.left_bias, 0.4)
                    self.assertLessEqual(peg.left_bias, 0.6)

    def test_six_decimal_precision(self):
        for row in self.field.rows:
            for peg in row:
                self.assertEqual(round(peg.left_bias, 6), peg.left_bias)

    def test_round_bias(self):
        self.assertEqual(round_bias(0.42212301), 0.422123)
        self.assertEqual(round_bias(0.42212349), 0.422123)
        self.assertEqual(round_bias(0.4221236), 0.422124)
        self.assertEqual(round_bias(0.4000004999), 0.4)
        self.assertEqual(round_bias(0.4000005001), 0.400001)
        self.assertEqual(round_bias(0.5), 0.5)

    def test_canonical_json(self):
        text = self.field.canonical_json()
        self.assertTrue(text.startswith(
            '[[{"leftBias":0.422123}],[{"leftBias":0.552503},{"leftBias":0.408786}],'
            '[{"leftBias":0.491574},{"leftBias":0.46878},{"leftBias":0.43654}]'
        ))
        self.assertNotIn(" ", text)
        self.assertEqual(json.loads(text), self.field.to_list())

    def test_field_hash_is_sha256_of_canonical_json(self):
        self.assertEqual(self.field.field_hash, digest_hex(self.field.canonical_json()))

    def test_identical_fields_from_same_seed(self):
        again = build_peg_field(Xorshift32.from_combined_seed(VECTOR["combined"]))
        self.assertEqual(again, self.field)
        self.assertEqual(again.field_hash, self.field.field_hash)

    def test_consumes_one_draw_per_peg(self):
        rng = Xorshift32.from_combined_seed(VECTOR["combined"])
        build_peg_field(rng)
        reference = Xorshift32.from_combined_seed(VECTOR["combined"])
        for _ in range(ROWS * (ROWS + 1) // 2):
            reference.next_float()
        self.assertEqual(rng.state, reference.state)


# ============================================================
# Path Simulator
# ============================================================

class TestPathSimulator(unittest.TestCase):

    def test_all_right(self):
        result = simulate_path(uniform_field(0.5), ScriptedRNG([0.9] * ROWS), 6)
        self.assertEqual(result.bin_index, ROWS)
        self.assertTrue(all(d is Direction.RIGHT for d in result.path))

    def test_all_left(self):
        result = simulate_path(uniform_field(0.5), ScriptedRNG([0.1] * ROWS), 6)
        self.assertEqual(result.bin_index, 0)
        self.assertEqual(result.path_names, ["Left"] * ROWS)

    def test_draw_equal_to_bias_goes_right(self):
        result = simulate_path(uniform_field(0.5), ScriptedRNG([0.5] * ROWS), 6)
        self.assertEqual(result.bin_index, ROWS)

    def test_drop_adjustment(self):
        self.assertEqual(drop_adjustment(6, ROWS), 0.0)
        self.assertAlmostEqual(drop_adjustment(0, ROWS), -0.06)
        self.assertAlmostEqual(drop_adjustment(12, ROWS), 0.06)

    def test_edge_column_shifts_bias(self):
        # col 0: 0.5 - 0.06 = 0.44 -> draw 0.45 goes Right
        left_edge = simulate_path(uniform_field(0.5), ScriptedRNG([0.45] * ROWS), 0)
        self.assertEqual(left_edge.bin_index, ROWS)
        # col 12: 0.5 + 0.06 = 0.56 -> draw 0.55 goes Left
        right_edge = simulate_path(uniform_field(0.5), ScriptedRNG([0.55] * ROWS), 12)
        self.assertEqual(right_edge.bin_index, 0)

    def test_adjusted_bias_clamped(self):
        high = simulate_path(uniform_field(0.99), ScriptedRNG([0.999999] * ROWS), 12)
        self.assertEqual(high.bin_index, 0)
        low = simulate_path(uniform_field(0.01), ScriptedRNG([0.0] * ROWS), 0)
        self.assertEqual(low.bin_index, ROWS)

    def test_peg_index_follows_right_moves(self):
        rows = [[Peg(0.5) for _ in range(r + 1)] for r in range(ROWS)]
        rows[0][0] = Peg(0.0)      # forced Right
        rows[1][0] = Peg(0.0)      # would force Right
        rows[1][1] = Peg(1.0)      # forced Left
        peg_field = PegField(rows=tuple(tuple(r) for r in rows))
        result = simulate_path(peg_field, ScriptedRNG([0.5] * ROWS), 6)
        self.assertEqual(result.path[:2], (Direction.RIGHT, Direction.LEFT))

    def test_one_draw_per_row(self):
        rng = ScriptedRNG([0.3, 0.7] * ROWS)
        simulate_path(uniform_field(0.5), rng, 6)
        self.assertEqual(rng.used, ROWS)

    def test_drop_column_out_of_range(self):
        for bad in (-1, ROWS + 1, 100):
            with self.assertRaises(ValueError):
                simulate_path(uniform_field(0.5), ScriptedRNG([0.5] * ROWS), bad)

    def test_drop_column_must_be_integer(self):
        with self.assertRaises(TypeError):
            simulate_path(uniform_field(0.5), ScriptedRNG([0.5] * ROWS), 6.5)

    def test_move_count_monotonic(self):
        for i in range(40):
            outcome = compute_outcome(digest_hex(f"mono-{i}"), i % (ROWS + 1))
            count = 0
            for d in outcome.path:
                step = 1 if d is Direction.RIGHT else 0
                self.assertIn(step, (0, 1))
                count += step
            self.assertEqual(count, outcome.bin_index)


# ============================================================
# Outcome Verifier
# ============================================================

class TestOutcomeVerifier(unittest.TestCase):

    def test_vector_outcome(self):
        outcome = compute_outcome(VECTOR["combined"], VECTOR["drop_column"])
        self.assertEqual(outcome.bin_index, VECTOR["bin"])
        self.assertEqual(len(outcome.path), ROWS)

    def test_vector_verify(self):
        report = verify(VECTOR["server_seed"], VECTOR["client_seed"],
                        VECTOR["nonce"], VECTOR["drop_column"])
        self.assertEqual(report.commit_hex, VECTOR["commit"])
        self.assertEqual(report.combined_seed, VECTOR["combined"])
        self.assertEqual(report.bin_index, VECTOR["bin"])

    def test_verify_matches_issuer_computation(self):
        issued = compute_outcome(combine("s", "c", "n"), 3)
        report = verify("s", "c", "n", 3)
        self.assertEqual(report.peg_map_hash, issued.peg_map_hash)
        self.assertEqual(report.path, issued.path)
        self.assertEqual(report.bin_index, issued.bin_index)

    def test_verify_material(self):
        material = SeedMaterial(serverSeed=VECTOR["server_seed"],
                                clientSeed=VECTOR["client_seed"], nonce=VECTOR["nonce"])
        self.assertEqual(verify_material(material, 6).bin_index, VECTOR["bin"])

    def test_field_hash_independent_of_drop_column(self):
        hashes = {compute_outcome(VECTOR["combined"], c).peg_map_hash for c in range(ROWS + 1)}
        self.assertEqual(len(hashes), 1)

    def test_range_invariants(self):
        for i in range(30):
            seed = combine(f"server-{i}", "client", str(i))
            for col in range(ROWS + 1):
                outcome = compute_outcome(seed, col)
                self.assertTrue(0 <= outcome.bin_index <= ROWS)
                self.assertEqual(len(outcome.path), ROWS)
                self.assertEqual(outcome.right_moves, outcome.bin_index)

    def test_deterministic(self):
        for seed in (VECTOR["combined"], "test-seed-123", "ab"):
            self.assertEqual(compute_outcome(seed, 6), compute_outcome(seed, 6))

    def test_malformed_seed_deterministic(self):
        first = compute_outcome("not hex at all", 4)
        second = compute_outcome("not hex at all", 4)
        self.assertEqual(first.to_wire(), second.to_wire())

    def test_parallel_invocations_independent(self):
        seeds = [combine(f"srv-{i}", "cli", str(i)) for i in range(64)]
        sequential = [compute_outcome(s, 6) for s in seeds]
        with ThreadPoolExecutor(max_workers=8) as pool:
            parallel = list(pool.map(lambda s: compute_outcome(s, 6), seeds))
        self.assertEqual(parallel, sequential)

    def test_invalid_drop_column_raises(self):
        with self.assertRaises(ValueError):
            compute_outcome(VECTOR["combined"], ROWS + 1)
        with self.assertRaises(ValueError):
            verify("s", "c", "n", -1)

    def test_wire_format(self):
        wire = verify("s", "c", "n", 6).to_wire()
        self.assertEqual(set(wire), {"commitHex", "combinedSeed", "pegMapHash", "path", "binIndex"})
        self.assertTrue(all(d in ("Left", "Right") for d in wire["path"]))
        self.assertEqual(Outcome.model_validate(wire).bin_index, wire["binIndex"])

    def test_audit_json(self):
        data = json.loads(verify("s", "c", "n", 6).to_audit_json())
        self.assertIn("verification_steps", data)
        self.assertEqual(data["commitHex"], commit("s", "n"))

    def test_audit_round_consistent(self):
        published = verify("s", "c", "n", 6).to_wire()
        self.assertEqual(audit_round(published, "s", "c", "n", 6), [])

    def test_audit_round_detects_tampering(self):
        published = verify("s", "c", "n", 6).to_wire()
        published["binIndex"] = (published["binIndex"] + 1) % (ROWS + 1)
        published["pegMapHash"] = "0" * 64
        self.assertEqual(audit_round(published, "s", "c", "n", 6), ["pegMapHash", "binIndex"])

    def test_audit_round_wrong_seed(self):
        published = verify("s", "c", "n", 6).to_wire()
        mismatches = audit_round(published, "other", "c", "n", 6)
        self.assertIn("commitHex", mismatches)
        self.assertIn("combinedSeed", mismatches)

    def test_audit_round_accepts_snake_case_and_path_json(self):
        report = verify("s", "c", "n", 6)
        published = {
            "bin_index": report.bin_index,
            "path": json.dumps([d.value for d in report.path]),
        }
        self.assertEqual(audit_round(published, "s", "c", "n", 6), [])


# ============================================================
# Paytable
# ============================================================

class TestPaytable(unittest.TestCase):

    def test_one_multiplier_per_bin(self):
        self.assertEqual(len(PAYOUT_TABLE), ROWS + 1)

    def test_symmetric(self):
        self.assertEqual(list(PAYOUT_TABLE), list(reversed(PAYOUT_TABLE)))

    def test_lookup(self):
        self.assertEqual(payout_multiplier(0), 10)
        self.assertEqual(payout_multiplier(6), 0.2)
        self.assertEqual(payout_multiplier(ROWS), 10)

    def test_lookup_out_of_range(self):
        with self.assertRaises(IndexError):
            payout_multiplier(ROWS + 1)
        with self.assertRaises(IndexError):
            payout_multiplier(-1)

    def test_probabilities_sum_to_one(self):
        probs = bin_probabilities()
        self.assertEqual(len(probs), ROWS + 1)
        self.assertAlmostEqual(sum(probs), 1.0)

    def test_theoretical_rtp(self):
        self.assertAlmostEqual(theoretical_rtp(), 1840.6 / 4096, places=9)


if __name__ == "__main__":
    unittest.main()
