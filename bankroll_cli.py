"""
Bankroll CLI
============
Command-line companion to the API, working on the same ledger file.

    python bankroll_cli.py init --bankroll 1000 --base-fraction 0.07 --odds 1.9
    python bankroll_cli.py plan --odds 1.95
    python bankroll_cli.py win
    python bankroll_cli.py status
"""
import argparse
import sys
from typing import Optional

from dotenv import load_dotenv

from src.BankrollEngine import config
from src.BankrollEngine.models import LedgerState, StakePlan, StakingConfig
from src.BankrollEngine.service import BankrollService
from src.BankrollEngine.store import JsonFileLedgerStore
from src.StakeEngine import config as stake_config

COMMANDS_NEEDING_STATE = {"plan", "execute", "win", "loss", "result", "status", "report", "pause", "resume", "odds-band"}


def print_plan(plan: StakePlan, currency: str):
    if plan.paused:
        print(f"⏸️  {plan.reason}")
        return
    capped = "  (capped)" if plan.was_capped else ""
    print(f"Stake: {currency} {plan.stake:.2f} ({plan.fraction * 100:.2f}%)  Odds {plan.odds}  x{plan.applied_multiplier:.2f}{capped}")
    for note in plan.notes:
        print(f"  · {note}")


def print_status(state: LedgerState):
    c = state.config
    total = state.stats.wins + state.stats.losses
    winrate = state.stats.wins / total if total else 0.0
    print(f"Bankroll {c.currency} {state.bankroll:.2f} | HWM {state.high_water_mark:.2f} | WR {winrate * 100:.2f}%")
    if state.paused:
        print(f"⏸️  {state.pause_reason}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Paper-trading bankroll manager.")
    parser.add_argument("--state", help="Ledger JSON path (default: LEDGER_PATH or Data/ledger-state.json)")
    sub = parser.add_subparsers(dest="command")

    for name in ("init", "reset"):
        p = sub.add_parser(name, help="Create a fresh ledger" if name == "init" else "Replace the ledger with defaults")
        p.add_argument("--bankroll", type=float, default=stake_config.BANKROLL_SEED)
        p.add_argument("--base-fraction", type=float, default=stake_config.BASE_FRACTION)
        p.add_argument("--odds", type=float, default=stake_config.DEFAULT_ODDS)
        p.add_argument(
            "--strategy",
            choices=[stake_config.STRATEGY_STREAK_TABLE, stake_config.STRATEGY_KELLY],
            default=config.staking_strategy() or stake_config.DEFAULT_STRATEGY,
        )

    p = sub.add_parser("plan", help="Size the next stake and keep it pending")
    p.add_argument("--odds", type=float)
    p.add_argument("--preview", action="store_true", help="Do not store the plan")

    sub.add_parser("execute", help="Paper-execute the pending plan")

    for name in ("win", "loss"):
        p = sub.add_parser(name, help=f"Record a {name}")
        p.add_argument("--odds", type=float)
        p.add_argument("--stake", type=float)

    p = sub.add_parser("result", help="Record a result (W or L)")
    p.add_argument("result")
    p.add_argument("--odds", type=float)
    p.add_argument("--stake", type=float)

    sub.add_parser("status", help="Show bankroll, high-water mark and win rate")
    sub.add_parser("report", help="Show totals and recent results")

    p = sub.add_parser("pause", help="Pause planning")
    p.add_argument("--reason")
    sub.add_parser("resume", help="Resume planning")

    p = sub.add_parser("odds-band", help="Set the advisory odds band")
    p.add_argument("min", type=float)
    p.add_argument("max", type=float)

    return parser


def main(argv: Optional[list] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    store = JsonFileLedgerStore(args.state) if args.state else JsonFileLedgerStore()
    if args.command in COMMANDS_NEEDING_STATE and not store.path.exists():
        print("No state. Run init first.", file=sys.stderr)
        return 1

    service = BankrollService(store=store)
    try:
        return run(service, args)
    except ValueError as e:
        # BankrollError and pydantic ValidationError
        print(f"❌ {e}", file=sys.stderr)
        return 2


def run(service: BankrollService, args) -> int:
    cmd = args.command

    if cmd in ("init", "reset"):
        staking = StakingConfig(
            bankroll_seed=args.bankroll,
            base_fraction=args.base_fraction,
            default_odds=args.odds,
            strategy=args.strategy,
        )
        state = service.reset(staking)
        print(f"✅ Initialized bankroll {state.bankroll:.2f}" if cmd == "init" else "🔄 reset")

    elif cmd == "plan":
        plan = service.plan(odds=args.odds, commit=not args.preview)
        print_plan(plan, service.get_state().config.currency)

    elif cmd == "execute":
        order = service.execute()
        if order.status == "REFUSED":
            print(f"⏸️  {order.reason}")
        else:
            print(f"📝 Paper order {order.id}: {order.stake:.2f} @ {order.odds}")

    elif cmd in ("win", "loss", "result"):
        result = {"win": "W", "loss": "L"}.get(cmd) or args.result
        entry, _ = service.record_result(result, odds=args.odds, stake=args.stake)
        if entry.stake_source == "fallback":
            print(f"⚠️  No plan or stake given, used fallback unit {entry.stake:.2f}")
        print_status(service.get_state())

    elif cmd == "status":
        print_status(service.get_state())

    elif cmd == "report":
        report = service.report()
        print(f"Bankroll {report.bankroll:.2f} | HWM {report.high_water:.2f} | Bets {report.total_bets} "
              f"({report.wins}W/{report.losses}L) | WR {report.winrate:.2f}% | PnL {report.cumulative_pnl:+.2f}")
        for entry in report.recent_results:
            print(f"  {entry.timestamp:%Y-%m-%d %H:%M} {entry.result} {entry.stake:.2f} @ {entry.odds} -> {entry.pnl:+.2f} ({entry.bankroll_after:.2f})")

    elif cmd == "pause":
        state = service.pause(args.reason)
        print(f"⏸️  {state.pause_reason}")

    elif cmd == "resume":
        service.resume()
        print("▶️ resumed")

    elif cmd == "odds-band":
        band = service.set_odds_band(args.min, args.max)
        print(f"Odds band {band.min} - {band.max}")

    if not service.last_persisted:
        print("⚠️  Ledger could not be saved", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
