import unittest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import mock

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from src.BankrollEngine import config, manager
from src.BankrollEngine.errors import InvalidOdds, InvalidRange, InvalidResult
from src.BankrollEngine.models import LedgerState, StakePlan, StakingConfig

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def ledger(bankroll=100.0, **staking):
    staking.setdefault("bankroll_seed", bankroll)
    return LedgerState.fresh(StakingConfig(**staking), now=NOW)


class TestApplyResult(unittest.TestCase):

    def test_win_updates_bankroll_and_peak(self):
        state = ledger()
        entry = manager.apply_result(state, "W", odds=2.5, stake=10.0, now=NOW)
        self.assertEqual(entry.pnl, 15.0)
        self.assertEqual(state.bankroll, 115.0)
        self.assertEqual(state.high_water_mark, 115.0)
        self.assertEqual(entry.bankroll_after, 115.0)
        self.assertEqual(entry.stake_source, "explicit")
        self.assertEqual(state.stats.wins, 1)

    def test_loss_keeps_peak(self):
        state = ledger()
        entry = manager.apply_result(state, "l", stake=4.0, now=NOW)
        self.assertEqual(entry.result, "L")
        self.assertEqual(entry.pnl, -4.0)
        self.assertEqual(state.bankroll, 96.0)
        self.assertEqual(state.high_water_mark, 100.0)
        self.assertEqual(state.stats.losses, 1)
        self.assertFalse(state.paused)

    def test_pending_plan_takes_precedence(self):
        state = ledger(bankroll=1000.0)
        state.pending_plan = StakePlan(stake=35.0, odds=1.9)
        entry = manager.apply_result(state, "W", stake=5.0, now=NOW)
        self.assertEqual(entry.stake, 35.0)
        self.assertEqual(entry.stake_source, "plan")
        self.assertEqual(entry.odds, 1.9)
        self.assertEqual(entry.pnl, 31.5)
        self.assertEqual(state.bankroll, 1031.5)
        self.assertEqual(state.exposure_today, 35.0)
        self.assertIsNone(state.pending_plan)

    def test_explicit_odds_override_plan_odds(self):
        state = ledger(bankroll=1000.0)
        state.pending_plan = StakePlan(stake=35.0, odds=1.9)
        entry = manager.apply_result(state, "W", odds=2.0, now=NOW)
        self.assertEqual(entry.odds, 2.0)
        self.assertEqual(entry.pnl, 35.0)

    def test_fallback_stake_is_recorded(self):
        state = ledger()
        with self.assertLogs("BankrollManager", level="WARNING"):
            entry = manager.apply_result(state, "W", now=NOW)
        self.assertEqual(entry.stake, 0.1)
        self.assertEqual(entry.stake_source, "fallback")
        self.assertEqual(entry.odds, 1.9)
        self.assertEqual(entry.pnl, 0.09)

    def test_zero_stake_falls_back(self):
        state = ledger()
        entry = manager.apply_result(state, "L", stake=0, now=NOW)
        self.assertEqual(entry.stake_source, "fallback")
        self.assertEqual(entry.pnl, -0.1)

    def test_invalid_result_no_mutation(self):
        state = ledger()
        before = state.to_document()
        for bad in ("X", "WIN", "", None):
            with self.assertRaises(InvalidResult):
                manager.apply_result(state, bad, stake=5.0, now=NOW)
        self.assertEqual(state.to_document(), before)

    def test_invalid_odds_no_mutation(self):
        state = ledger()
        before = state.to_document()
        with self.assertRaises(InvalidOdds):
            manager.apply_result(state, "W", odds=0.9, stake=5.0, now=NOW)
        self.assertEqual(state.to_document(), before)

    def test_odds_rounding_to_one_rejected(self):
        state = ledger()
        before = state.to_document()
        with self.assertRaises(InvalidOdds):
            manager.apply_result(state, "W", odds=1.0004, stake=5.0, now=NOW)
        self.assertEqual(state.to_document(), before)

        entry = manager.apply_result(state, "W", odds=1.0006, stake=100.0, now=NOW)
        self.assertEqual(entry.odds, 1.001)
        self.assertEqual(entry.pnl, 0.1)

    def test_bankroll_floor(self):
        state = ledger(bankroll=10.0)
        manager.apply_result(state, "L", stake=25.0, now=NOW)
        self.assertEqual(state.bankroll, 0.0)
        self.assertEqual(state.high_water_mark, 10.0)
        self.assertTrue(state.paused)
        self.assertEqual(state.pause_reason, "Drawdown 100%")

    def test_high_water_monotonic_over_sequence(self):
        state = ledger(drawdown_pause_threshold=0.9)
        sequence = [("W", 10), ("L", 30), ("W", 5), ("W", 40), ("L", 70), ("L", 200), ("W", 1)]
        previous_peak = state.high_water_mark
        for result, stake in sequence:
            manager.apply_result(state, result, odds=1.8, stake=stake, now=NOW)
            self.assertGreaterEqual(state.bankroll, 0.0)
            self.assertGreaterEqual(state.high_water_mark, state.bankroll)
            self.assertGreaterEqual(state.high_water_mark, previous_peak)
            previous_peak = state.high_water_mark

    def test_drawdown_auto_pause(self):
        state = ledger(drawdown_pause_threshold=0.15)
        for _ in range(3):
            manager.apply_result(state, "L", stake=4.0, now=NOW)
        self.assertEqual(state.bankroll, 88.0)
        self.assertFalse(state.paused)

        with self.assertLogs("BankrollManager", level="WARNING"):
            manager.apply_result(state, "L", stake=4.0, now=NOW)
        self.assertEqual(state.bankroll, 84.0)
        self.assertTrue(state.paused)
        self.assertIn("16%", state.pause_reason)

    def test_auto_pause_is_sticky(self):
        state = ledger()
        manager.apply_result(state, "L", stake=16.0, now=NOW)
        self.assertEqual(state.pause_reason, "Drawdown 16%")
        manager.apply_result(state, "W", odds=2.0, stake=20.0, now=NOW)
        self.assertEqual(state.bankroll, 104.0)
        self.assertTrue(state.paused)
        self.assertEqual(state.pause_reason, "Drawdown 16%")

    def test_drawdown_reason_replaces_user_reason(self):
        state = ledger()
        manager.pause(state, "weekend")
        manager.apply_result(state, "L", stake=16.0, now=NOW)
        self.assertTrue(state.paused)
        self.assertEqual(state.pause_reason, "Drawdown 16%")

    def test_drawdown_reason_tracks_deeper_drawdown(self):
        state = ledger()
        manager.apply_result(state, "L", stake=16.0, now=NOW)
        self.assertEqual(state.pause_reason, "Drawdown 16%")
        manager.apply_result(state, "L", stake=14.0, now=NOW)
        self.assertEqual(state.bankroll, 70.0)
        self.assertTrue(state.paused)
        self.assertEqual(state.pause_reason, "Drawdown 30%")

    def test_history_most_recent_first_and_bounded(self):
        state = ledger()
        with mock.patch.object(config, "RESULT_HISTORY_CAP", 3):
            for result in "WLWLL":
                manager.apply_result(state, result, stake=1.0, now=NOW)
        self.assertEqual(len(state.result_history), 3)
        self.assertEqual([e.result for e in state.result_history], ["L", "L", "W"])
        self.assertEqual(state.stats.wins + state.stats.losses, 5)

    def test_exposure_rolls_over_on_result(self):
        state = ledger()
        state.exposure_today = 19.0
        later = NOW + timedelta(days=1)
        manager.apply_result(state, "W", stake=2.0, now=later)
        self.assertEqual(state.exposure_today, 2.0)
        self.assertEqual(state.exposure_day_anchor, later.date())


class TestPolicyControls(unittest.TestCase):

    def test_pause_and_resume(self):
        state = ledger()
        manager.pause(state)
        manager.pause(state)
        self.assertTrue(state.paused)
        self.assertEqual(state.pause_reason, "Paused by user")

        manager.pause(state, "news blackout")
        self.assertEqual(state.pause_reason, "news blackout")

        state.exposure_today = 12.0
        manager.resume(state)
        manager.resume(state)
        self.assertFalse(state.paused)
        self.assertIsNone(state.pause_reason)
        self.assertEqual(state.exposure_today, 12.0)

    def test_odds_band_validation(self):
        state = ledger()
        with self.assertRaises(InvalidRange):
            manager.set_odds_band(state, 1.0, 2.0)
        with self.assertRaises(InvalidRange):
            manager.set_odds_band(state, 2.0, 1.5)
        with self.assertRaises(InvalidRange):
            manager.set_odds_band(state, 2.0, 2.0)
        with self.assertRaises(InvalidRange):
            manager.set_odds_band(state, float("nan"), 2.0)
        with self.assertRaises(InvalidRange):
            manager.set_odds_band(state, "low", 2.0)
        self.assertEqual((state.odds_band.min, state.odds_band.max), (1.8, 2.2))

        band = manager.set_odds_band(state, 1.5, 3.0)
        self.assertEqual((band.min, band.max), (1.5, 3.0))
        self.assertEqual(state.odds_band, band)
        self.assertEqual(band.midpoint, 2.25)

    def test_streak(self):
        self.assertEqual(manager.streak(["W", "W", "L"]).wins, 2)
        run = manager.streak(["L", "L", "W", "L"])
        self.assertEqual((run.wins, run.losses), (0, 2))
        self.assertEqual(manager.streak(["W", "X", "W"]).wins, 1)
        self.assertEqual(manager.streak([{"result": "L"}, {"result": None}]).losses, 1)
        empty = manager.streak([])
        self.assertEqual((empty.wins, empty.losses), (0, 0))

    def test_reset(self):
        state = ledger()
        manager.apply_result(state, "L", stake=50.0, now=NOW)
        fresh = manager.reset_state(StakingConfig(bankroll_seed=500.0))
        self.assertEqual(fresh.bankroll, 500.0)
        self.assertEqual(fresh.high_water_mark, 500.0)
        self.assertFalse(fresh.paused)
        self.assertEqual(fresh.result_history, [])


class TestProjections(unittest.TestCase):

    def test_status(self):
        state = ledger()
        for result in "WWWWWWWWLLWW":
            manager.apply_result(state, result, odds=2.0, stake=1.0, now=NOW)
        status = manager.build_status(state)
        self.assertEqual(len(status.recent_results), config.STATUS_RECENT_RESULTS)
        self.assertEqual(status.streak.wins, 2)
        self.assertEqual(status.streak.losses, 0)
        self.assertEqual(status.bankroll, state.bankroll)
        self.assertEqual(status.high_water, state.high_water_mark)
        self.assertIsNone(status.pause_reason)
        self.assertEqual(status.stats.wins, 10)

    def test_report(self):
        state = ledger()
        manager.apply_result(state, "W", odds=2.0, stake=10.0, now=NOW)
        manager.apply_result(state, "W", odds=1.5, stake=10.0, now=NOW)
        manager.apply_result(state, "L", stake=4.0, now=NOW)
        report = manager.build_report(state)
        self.assertEqual(report.total_bets, 3)
        self.assertEqual(report.wins, 2)
        self.assertEqual(report.losses, 1)
        self.assertEqual(report.winrate, 66.67)
        self.assertEqual(report.cumulative_pnl, 11.0)
        self.assertEqual(report.bankroll, 111.0)
        self.assertEqual(len(report.recent_results), 3)

    def test_report_empty(self):
        report = manager.build_report(ledger())
        self.assertEqual(report.total_bets, 0)
        self.assertEqual(report.winrate, 0.0)
        self.assertEqual(report.cumulative_pnl, 0.0)


if __name__ == '__main__':
    unittest.main()
