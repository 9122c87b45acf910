import io
import json
import unittest
import sys
import tempfile
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import bankroll_cli


class TestBankrollCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.state = str(Path(self.tmp.name) / "state.json")

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *args):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = bankroll_cli.main(["--state", self.state, *args])
        return code, out.getvalue(), err.getvalue()

    def test_requires_init(self):
        code, _, err = self.run_cli("status")
        self.assertEqual(code, 1)
        self.assertIn("Run init first", err)

    def test_init_plan_loss_status(self):
        code, out, _ = self.run_cli("init", "--bankroll", "1000", "--base-fraction", "0.07", "--odds", "1.9")
        self.assertEqual(code, 0)
        self.assertIn("Initialized bankroll 1000.00", out)

        code, out, _ = self.run_cli("plan", "--odds", "1.9")
        self.assertEqual(code, 0)
        self.assertIn("Stake: USD 35.00 (3.50%)", out)

        code, out, _ = self.run_cli("loss")
        self.assertEqual(code, 0)
        self.assertIn("Bankroll USD 965.00 | HWM 1000.00 | WR 0.00%", out)

        with open(self.state, encoding="utf-8") as f:
            document = json.load(f)
        self.assertEqual(document["bankroll"], 965.0)
        self.assertIsNone(document["pending_plan"])

    def test_fallback_warning(self):
        self.run_cli("init")
        code, out, _ = self.run_cli("win")
        self.assertEqual(code, 0)
        self.assertIn("fallback unit 0.10", out)

    def test_result_command_validates(self):
        self.run_cli("init")
        code, _, err = self.run_cli("result", "maybe")
        self.assertEqual(code, 2)
        self.assertIn('"W" or "L"', err)

    def test_odds_band_and_pause(self):
        self.run_cli("init")
        code, _, _ = self.run_cli("odds-band", "1.0", "2.0")
        self.assertEqual(code, 2)
        code, out, _ = self.run_cli("odds-band", "1.5", "3.0")
        self.assertEqual(code, 0)
        self.assertIn("1.5 - 3.0", out)

        self.run_cli("pause", "--reason", "weekend")
        code, out, _ = self.run_cli("plan")
        self.assertIn("weekend", out)
        code, out, _ = self.run_cli("resume")
        self.assertIn("resumed", out)

    def test_execute_and_report(self):
        self.run_cli("init", "--strategy", "kelly")
        code, _, err = self.run_cli("execute")
        self.assertEqual(code, 2)
        self.assertIn("Nothing planned", err)

        self.run_cli("plan", "--odds", "2.0")
        code, out, _ = self.run_cli("execute")
        self.assertEqual(code, 0)
        self.assertIn("Paper order paper-", out)

        self.run_cli("win")
        code, out, _ = self.run_cli("report")
        self.assertEqual(code, 0)
        self.assertIn("Bets 1 (1W/0L)", out)
        self.assertIn("PnL +10.00", out)


if __name__ == '__main__':
    unittest.main()
