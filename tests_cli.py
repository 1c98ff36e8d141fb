#!/usr/bin/env python3
"""CLI tests: every sub-command through main(argv), JSON output parsed."""
import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).parent
sys.path.insert(0, str(ROOT))

from config.settings import FairConfig
from sim_engine.plinko import commit, verify
from tools import fair_cli

SERVER = "b2a5f3f32a4d9c6ee7a8c1d33456677890abcdeffedcba0987654321ffeeddcc"
CLIENT = "candidate-hello"
NONCE = "42"


def run_cli(*argv):
    """Run the CLI and return (exit_code, stdout)."""
    buf = io.StringIO()
    with redirect_stdout(buf):
        code = fair_cli.main(list(argv))
    return code, buf.getvalue()


class TestCommands(unittest.TestCase):

    def test_commit(self):
        code, out = run_cli("--json", "commit", SERVER, NONCE)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["commitHex"],
                         "bb9acdc67f3f18f3345236a01f0e5072596657a9005c7d8a22cff061451a6b34")

    def test_combine(self):
        code, out = run_cli("--json", "combine", SERVER, CLIENT, NONCE)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["combinedSeed"],
                         "e1dddf77de27d395ea2be2ed49aa2a59bd6bf12ee8d350c16c008abd406c07e0")

    def test_new_round_commitment_binds(self):
        code, out = run_cli("--json", "new-round")
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(len(data["serverSeed"]), 64)
        self.assertEqual(data["commitHex"], commit(data["serverSeed"], data["nonce"]))

    def test_outcome(self):
        code, out = run_cli("--json", "outcome",
                            "e1dddf77de27d395ea2be2ed49aa2a59bd6bf12ee8d350c16c008abd406c07e0",
                            "--drop-column", "6", "--show-field")
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["binIndex"], 6)
        self.assertEqual(data["payoutMultiplier"], 0.2)
        self.assertEqual(data["pegMap"][0], [{"leftBias": 0.422123}])

    def test_outcome_panel(self):
        code, out = run_cli("outcome", "some-seed", "--drop-column", "0", "--show-field")
        self.assertEqual(code, 0)
        self.assertIn("Outcome", out)

    def test_outcome_rejects_bad_column(self):
        code, out = run_cli("outcome", "some-seed", "--drop-column", "13")
        self.assertEqual(code, 2)
        self.assertIn("Invalid request", out)

    def test_verify(self):
        code, out = run_cli("--json", "verify", SERVER, CLIENT, NONCE, "--drop-column", "6")
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["binIndex"], 6)
        self.assertNotIn("mismatches", data)

    def test_verify_rejects_empty_seed(self):
        code, _ = run_cli("verify", "", CLIENT, NONCE)
        self.assertEqual(code, 2)


class TestAuditRecord(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, record) -> str:
        path = self.tmpdir / "round.json"
        path.write_text(json.dumps(record), encoding="utf-8")
        return str(path)

    def test_matching_record(self):
        record = verify(SERVER, CLIENT, NONCE, 6).to_wire()
        code, out = run_cli("--json", "verify", SERVER, CLIENT, NONCE,
                            "--drop-column", "6", "--published", self._write(record))
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["mismatches"], [])

    def test_tampered_record(self):
        record = verify(SERVER, CLIENT, NONCE, 6).to_wire()
        record["binIndex"] = 0
        code, out = run_cli("--json", "verify", SERVER, CLIENT, NONCE,
                            "--drop-column", "6", "--published", self._write(record))
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(out)["mismatches"], ["binIndex"])

    def test_tampered_record_panel(self):
        record = {"commitHex": "0" * 64}
        code, out = run_cli("verify", SERVER, CLIENT, NONCE,
                            "--published", self._write(record))
        self.assertEqual(code, 1)
        self.assertIn("commitHex", out)

    def test_save_audit(self):
        with patch.object(FairConfig, "AUDIT_DIR", self.tmpdir / "audits"):
            code, _ = run_cli("--json", "verify", SERVER, CLIENT, NONCE, "--save")
        self.assertEqual(code, 0)
        saved = list((self.tmpdir / "audits").glob("round_*.json"))
        self.assertEqual(len(saved), 1)
        data = json.loads(saved[0].read_text(encoding="utf-8"))
        self.assertIn("verification_steps", data)


class TestSimulateCommand(unittest.TestCase):

    def test_single_column(self):
        code, out = run_cli("--json", "simulate", "--rounds", "20", "--seed", "cli")
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["n_rounds"], 20)
        self.assertEqual(data["drop_column"], 6)

    def test_sweep(self):
        code, out = run_cli("--json", "simulate", "--sweep", "--rounds", "5")
        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(out)["columns"]), 13)

    def test_zero_rounds_rejected(self):
        code, _ = run_cli("simulate", "--rounds", "0")
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
