"""
Monte Carlo Stress Test Engine
==============================
Simulates many independent bet sequences through the real staking policy to
evaluate bankroll stability, drawdown pauses and daily-cap pressure.
Uses:
- Stake Engine (plan_stake with the configured strategy)
- Outcome application (apply_result, drawdown auto-pause)
- In-memory ledger (no persistence, for speed)
"""
import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pandas as pd
from tqdm import tqdm

# Project path
sys.path.append(str(Path(__file__).resolve().parents[2]))

from src.BankrollEngine.manager import apply_result, drawdown, resume
from src.BankrollEngine.models import LedgerState, StakingConfig
from src.StakeEngine.calculator import plan_stake

# Configuration
N_SIMULATIONS = 1000
BETS_PER_PATH = 500
BETS_PER_DAY = 10
WIN_PROBABILITY = 0.55
ODDS = 1.9
RUIN_FRACTION = 0.10  # Considered "broke" below 10% of the seed
START = datetime(2025, 1, 1, tzinfo=timezone.utc)


def run_single_path(seed: int, params: dict) -> dict:
    """
    Simulate one bet sequence.
    Returns: {final_bankroll, roi, max_drawdown, bets, paused, bankrupt, cap_refusals}
    """
    rng = np.random.default_rng(seed)
    staking = StakingConfig(**params.get("staking", {}))
    state = LedgerState.fresh(staking, now=START)

    n_bets = params.get("bets", BETS_PER_PATH)
    per_day = params.get("bets_per_day", BETS_PER_DAY)
    p_win = params.get("win_probability", WIN_PROBABILITY)
    odds = params.get("odds", ODDS)
    auto_resume = params.get("resume_after_pause", False)

    seed_bankroll = state.bankroll
    max_dd = 0.0
    bets = cap_refusals = 0
    day = 0
    paused = False

    for i in range(n_bets):
        now = START + timedelta(days=day, minutes=i)
        plan = plan_stake(state, odds, now=now)

        if plan.paused:
            if plan.daily_cap_hit:
                cap_refusals += 1
                day += 1
                continue
            paused = True
            if not auto_resume:
                break
            resume(state)
            continue
        if plan.stake <= 0:
            break

        state.pending_plan = plan
        outcome = "W" if rng.random() < p_win else "L"
        apply_result(state, outcome, now=now)
        bets += 1

        if state.bankroll < 0 or state.high_water_mark < state.bankroll:
            raise AssertionError(f"Ledger invariant broken at bet {i}: {state.bankroll} / {state.high_water_mark}")
        max_dd = max(max_dd, drawdown(state))

        if bets % per_day == 0:
            day += 1

    return {
        "final_bankroll": state.bankroll,
        "roi": (state.bankroll - seed_bankroll) / seed_bankroll if seed_bankroll else 0.0,
        "max_drawdown": max_dd,
        "bets": bets,
        "paused": paused,
        "bankrupt": state.bankroll < seed_bankroll * RUIN_FRACTION,
        "cap_refusals": cap_refusals,
    }


def run_simulation(n_paths: int = N_SIMULATIONS, params: dict = None, seed: int = 42, progress: bool = True) -> pd.DataFrame:
    params = params or {}
    seeds = np.random.SeedSequence(seed).generate_state(n_paths)
    rows = [
        run_single_path(int(s), params)
        for s in tqdm(seeds, desc="Simulating", disable=not progress)
    ]
    return pd.DataFrame(rows)


def summarize(df: pd.DataFrame) -> dict:
    if df.empty:
        return {"paths": 0}
    return {
        "paths": len(df),
        "median_final_bankroll": float(df["final_bankroll"].median()),
        "p5_final_bankroll": float(df["final_bankroll"].quantile(0.05)),
        "p95_final_bankroll": float(df["final_bankroll"].quantile(0.95)),
        "mean_roi": float(df["roi"].mean()),
        "mean_max_drawdown": float(df["max_drawdown"].mean()),
        "pause_rate": float(df["paused"].mean()),
        "ruin_rate": float(df["bankrupt"].mean()),
        "mean_bets": float(df["bets"].mean()),
    }


def main():
    parser = argparse.ArgumentParser(description="Monte Carlo stress test of the staking policy.")
    parser.add_argument("--paths", type=int, default=N_SIMULATIONS)
    parser.add_argument("--bets", type=int, default=BETS_PER_PATH)
    parser.add_argument("--win-probability", type=float, default=WIN_PROBABILITY)
    parser.add_argument("--odds", type=float, default=ODDS)
    parser.add_argument("--strategy", choices=["streak_table", "kelly"], default="streak_table")
    parser.add_argument("--resume-after-pause", action="store_true")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    params = {
        "bets": args.bets,
        "win_probability": args.win_probability,
        "odds": args.odds,
        "resume_after_pause": args.resume_after_pause,
        "staking": {"strategy": args.strategy},
    }
    print(f"Starting {args.paths} simulations ({args.strategy}, p={args.win_probability}, odds={args.odds})...")
    df = run_simulation(args.paths, params, seed=args.seed)
    for key, value in summarize(df).items():
        print(f"{key:>24}: {value:.4f}" if isinstance(value, float) else f"{key:>24}: {value}")


if __name__ == "__main__":
    main()
