import logging
import math
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from . import config
from .errors import InvalidOdds, InvalidRange, InvalidResult
from .models import (
    LedgerReport,
    LedgerState,
    LedgerStatus,
    OddsBand,
    ResultEntry,
    StakingConfig,
    StreakInfo,
    round_money,
    round_odds,
    today_utc,
    utc_now,
)

logger = logging.getLogger("BankrollManager")


def _result_of(item) -> Optional[str]:
    if isinstance(item, ResultEntry):
        return item.result
    if isinstance(item, dict):
        return item.get("result")
    return item


def streak(history: Iterable) -> StreakInfo:
    """
    Consecutive same-result run at the front of a most-recent-first history.

    Accepts ResultEntry objects, dicts with a "result" key or bare "W"/"L"
    strings. Anything else ends the run.
    """
    wins = losses = 0
    for item in history:
        value = _result_of(item)
        if value == "W":
            if losses:
                break
            wins += 1
        elif value == "L":
            if wins:
                break
            losses += 1
        else:
            break
    return StreakInfo(wins=wins, losses=losses)


def normalize_result(value) -> str:
    normalized = str(value or "").strip().upper()
    if normalized not in ("W", "L"):
        raise InvalidResult(value)
    return normalized


def is_valid_odds(odds) -> bool:
    try:
        odds = float(odds)
    except (TypeError, ValueError):
        return False
    # Judged after rounding to the stored precision
    return math.isfinite(odds) and round_odds(odds) > 1.0


def is_finite_positive(value) -> bool:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0


def _whole_percent(fraction: float) -> int:
    return int(Decimal(str(fraction * 100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def refresh_exposure(state: LedgerState, today: Optional[date] = None) -> bool:
    """Reset the daily exposure bucket when the calendar day has rolled over."""
    today = today or today_utc()
    if state.exposure_day_anchor == today:
        return False
    logger.info(f"Exposure rollover {state.exposure_day_anchor} -> {today} (was {state.exposure_today})")
    state.exposure_day_anchor = today
    state.exposure_today = 0.0
    return True


def drawdown(state: LedgerState) -> float:
    if state.high_water_mark <= 0:
        return 0.0
    return (state.high_water_mark - state.bankroll) / state.high_water_mark


def apply_result(
    state: LedgerState,
    result: str,
    odds: Optional[float] = None,
    stake: Optional[float] = None,
    now: Optional[datetime] = None,
) -> ResultEntry:
    """
    Apply a realized W/L result to the ledger.

    Odds resolve from the explicit argument, then the pending plan, then the
    configured default. Stake resolves from the pending plan, then the explicit
    argument, then the configured fallback unit (recorded on the entry).

    Raises:
        InvalidResult: result is not W/L.
        InvalidOdds: explicit odds are not a finite decimal above 1.0.
    """
    result = normalize_result(result)
    if odds is not None and not is_valid_odds(odds):
        raise InvalidOdds(odds)

    now = now or utc_now()
    c = state.config
    plan = state.pending_plan

    if odds is not None:
        odds = round_odds(float(odds))
    elif plan is not None:
        odds = plan.odds
    else:
        odds = c.default_odds

    if plan is not None and plan.stake > 0:
        stake_value, source = plan.stake, "plan"
    elif stake is not None and is_finite_positive(stake):
        stake_value, source = float(stake), "explicit"
    else:
        stake_value, source = c.fallback_stake, "fallback"
        logger.warning(f"No plan or stake supplied, using fallback unit {stake_value} {c.currency}")
    stake_value = round_money(stake_value)

    pnl = stake_value * (odds - 1) if result == "W" else -stake_value

    refresh_exposure(state, now.date())
    state.exposure_today = round_money(state.exposure_today + stake_value)
    state.bankroll = max(0.0, round_money(state.bankroll + pnl))
    state.high_water_mark = max(state.high_water_mark, state.bankroll)

    entry = ResultEntry(
        timestamp=now,
        result=result,
        stake=stake_value,
        odds=round_odds(odds),
        pnl=round_money(pnl),
        bankroll_after=state.bankroll,
        stake_source=source,
    )
    state.result_history.insert(0, entry)
    del state.result_history[config.RESULT_HISTORY_CAP:]

    if result == "W":
        state.stats.wins += 1
    else:
        state.stats.losses += 1
    state.pending_plan = None

    dd = drawdown(state)
    if dd >= c.drawdown_pause_threshold:
        # Reason tracks the latest drawdown; only resume() clears the pause
        state.pause_reason = f"Drawdown {_whole_percent(dd)}%"
        if not state.paused:
            state.paused = True
            logger.warning(f"State Transition: ACTIVE -> PAUSED ({state.pause_reason})")

    return entry


def pause(state: LedgerState, reason: Optional[str] = None) -> LedgerState:
    state.paused = True
    state.pause_reason = reason or config.DEFAULT_PAUSE_REASON
    return state


def resume(state: LedgerState) -> LedgerState:
    """Clear the pause flag. Exposure and streak state are left untouched."""
    state.paused = False
    state.pause_reason = None
    return state


def set_odds_band(state: LedgerState, min_odds, max_odds) -> OddsBand:
    try:
        low, high = float(min_odds), float(max_odds)
    except (TypeError, ValueError):
        raise InvalidRange(min_odds, max_odds)
    if not (math.isfinite(low) and math.isfinite(high)) or low < config.MIN_BAND_ODDS or high <= low:
        raise InvalidRange(min_odds, max_odds)
    state.odds_band = OddsBand(min=low, max=high)
    return state.odds_band


def reset_state(staking: Optional[StakingConfig] = None, now: Optional[datetime] = None) -> LedgerState:
    """Fresh default document. The only way high-water mark goes down."""
    return LedgerState.fresh(staking, now)


def build_status(state: LedgerState) -> LedgerStatus:
    return LedgerStatus(
        bankroll=state.bankroll,
        high_water=state.high_water_mark,
        paused=state.paused,
        pause_reason=state.pause_reason or None,
        odds_band=state.odds_band,
        pending_plan=state.pending_plan,
        recent_results=state.result_history[:config.STATUS_RECENT_RESULTS],
        stats=state.stats,
        streak=streak(state.result_history),
        currency=state.config.currency,
    )


def build_report(state: LedgerState) -> LedgerReport:
    wins, losses = state.stats.wins, state.stats.losses
    total = wins + losses
    winrate = wins / total if total else 0.0
    pnl = sum(entry.pnl for entry in state.result_history)
    return LedgerReport(
        bankroll=state.bankroll,
        high_water=state.high_water_mark,
        total_bets=total,
        wins=wins,
        losses=losses,
        winrate=round_money(winrate * 100),
        cumulative_pnl=round_money(pnl),
        recent_results=state.result_history[:config.REPORT_RECENT_RESULTS],
    )
