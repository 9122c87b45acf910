from datetime import date, datetime
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, Field

from src.BankrollEngine import config as ledger_config
from src.BankrollEngine.errors import InvalidOdds
from src.BankrollEngine.manager import is_valid_odds, refresh_exposure, streak
from src.BankrollEngine.models import (
    LedgerState,
    StakePlan,
    floor_money,
    round_money,
    round_odds,
    utc_now,
)

from . import config


class SizingDecision(BaseModel):
    """Fraction of bankroll a strategy wants to risk, before the daily cap."""
    fraction: float = Field(..., ge=0.0, description="Share of bankroll to stake")
    wins_in_window: int = 0
    pure_streak: bool = False
    multiplier: float = Field(default=1.0, description="Streak multiplier applied to the base fraction")
    notes: List[str] = Field(default_factory=list)


def count_front_wins(history, window: int) -> int:
    """Wins at the front of the history, scanning at most `window` entries."""
    return streak(history[:window]).wins


def calculate_kelly(probability: float, odds: float) -> float:
    """
    Calculate raw Kelly fraction.

    Formula: f* = (P * odds - 1) / (odds - 1), i.e. (b*p - q) / b with b = odds - 1

    This represents the optimal fraction of bankroll to wager.
    """
    if odds <= 1.0:
        return 0.0

    numerator = (probability * odds) - 1
    denominator = odds - 1

    kelly = numerator / denominator
    return kelly


def edge_probability(odds: float, edge: float) -> float:
    """Implied probability plus an assumed edge, kept away from 0 and 1."""
    p = 1 / odds + edge
    return min(config.MAX_PROBABILITY, max(config.MIN_PROBABILITY, p))


class SizingStrategy:
    """Pluggable sizing rule: compute_fraction(state, odds) -> SizingDecision."""
    name = ""

    def compute_fraction(self, state: LedgerState, odds: float) -> SizingDecision:
        raise NotImplementedError


class StreakTableStrategy(SizingStrategy):
    """Base fraction scaled by a wins-in-window aggression table and a pure-streak bonus."""
    name = config.STRATEGY_STREAK_TABLE

    def compute_fraction(self, state: LedgerState, odds: float) -> SizingDecision:
        c = state.config
        wins = count_front_wins(state.result_history, c.streak_window)
        multiplier = c.aggression_by_wins.get(min(wins, c.streak_window), 1.0)
        pure = wins == c.streak_window
        hot = c.hot_bonus_on_pure_streak if pure else 1.0

        fraction = c.base_fraction * multiplier * hot
        fraction = min(c.max_fraction, max(c.min_fraction, fraction))

        return SizingDecision(
            fraction=fraction,
            wins_in_window=wins,
            pure_streak=pure,
            multiplier=multiplier * hot,
        )


class FractionalKellyStrategy(SizingStrategy):
    """
    Fractional Kelly on an assumed edge over the market's implied probability,
    with hot/cold streak adjustments and a per-bet stake floor and cap.
    """
    name = config.STRATEGY_KELLY

    def compute_fraction(self, state: LedgerState, odds: float) -> SizingDecision:
        c = state.config
        bankroll = state.bankroll
        notes = []

        p = edge_probability(odds, c.default_edge)
        raw_kelly = max(0.0, calculate_kelly(p, odds))
        fraction = min(raw_kelly * c.kelly_multiplier, c.max_stake_pct)
        notes.append(f"kellyRaw={raw_kelly:.4f} f={fraction:.4f}")

        run = streak(state.result_history)
        multiplier = 1.0
        if run.wins >= c.hot_streak_wins:
            multiplier *= c.hot_streak_boost
            notes.append(f"hot x{c.hot_streak_boost}")
        if run.losses >= c.cold_streak_losses:
            multiplier *= c.cold_streak_cut
            notes.append(f"cold x{c.cold_streak_cut}")
        fraction *= multiplier

        if fraction > c.max_stake_pct:
            fraction = c.max_stake_pct
            notes.append(f"cap {c.max_stake_pct * 100:g}%")

        # Floor wins over the cap, as a minimum ticket size
        if bankroll > 0 and bankroll * fraction < c.min_stake:
            fraction = c.min_stake / bankroll
            notes.append(f"floor {c.min_stake}")

        wins = count_front_wins(state.result_history, c.streak_window)
        return SizingDecision(
            fraction=fraction,
            wins_in_window=wins,
            pure_streak=wins == c.streak_window,
            multiplier=multiplier,
            notes=notes,
        )


STRATEGIES: Dict[str, Type[SizingStrategy]] = {
    StreakTableStrategy.name: StreakTableStrategy,
    FractionalKellyStrategy.name: FractionalKellyStrategy,
}


def get_strategy(name: str) -> SizingStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown staking strategy: {name}. Choose from {sorted(STRATEGIES)}")


def exposure_baseline(state: LedgerState) -> float:
    """
    Reference bankroll for the daily exposure cap.

    The lower of the high-water mark and the bankroll level whose drawdown would
    hit the pause threshold, so the cap shrinks as the ledger nears auto-pause.
    """
    if state.high_water_mark <= 0:
        return state.bankroll
    threshold = state.config.drawdown_pause_threshold
    return min(state.high_water_mark, state.bankroll / (1 - threshold))


def plan_stake(
    state: LedgerState,
    odds: Optional[float] = None,
    strategy: Optional[SizingStrategy] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> StakePlan:
    """
    Plan the next stake for a ledger snapshot.

    Only the daily exposure bucket may be touched (lazy rollover); the caller
    decides whether to keep the plan as the ledger's pending plan.

    Args:
        state: Loaded ledger
        odds: Decimal odds; the configured default is used when omitted
        strategy: Sizing rule; defaults to the one named by state.config.strategy
        today: Calendar day for exposure rollover (UTC today by default)
        now: Timestamp recorded on the plan

    Raises:
        InvalidOdds: odds given but not a finite decimal above 1.0
    """
    if odds is not None and not is_valid_odds(odds):
        raise InvalidOdds(odds)

    c = state.config
    strategy = strategy or get_strategy(c.strategy)
    odds = round_odds(float(odds) if odds is not None else c.default_odds)
    now = now or utc_now()

    # Sticky pause: no computation, no mutation
    if state.paused:
        return StakePlan(
            paused=True,
            reason=state.pause_reason or "Paused",
            stake=0.0,
            fraction=0.0,
            applied_multiplier=0.0,
            odds=odds,
            strategy=strategy.name,
            planned_at=now,
        )

    refresh_exposure(state, today or now.date())
    decision = strategy.compute_fraction(state, odds)

    cap = exposure_baseline(state) * c.daily_exposure_cap
    remaining = max(0.0, cap - state.exposure_today)

    stake = state.bankroll * decision.fraction
    was_capped = stake > remaining
    if was_capped:
        # Less than a cent left counts as exhausted
        stake = floor_money(remaining)
        if stake <= 0:
            return StakePlan(
                paused=True,
                reason=ledger_config.DAILY_CAP_REASON,
                daily_cap_hit=True,
                wins_in_window=decision.wins_in_window,
                pure_streak=decision.pure_streak,
                applied_multiplier=decision.multiplier,
                odds=odds,
                strategy=strategy.name,
                notes=decision.notes,
                planned_at=now,
            )
    else:
        stake = round_money(stake)

    # Never stake more than the bankroll holds
    stake = max(0.0, min(stake, floor_money(state.bankroll)))

    return StakePlan(
        paused=False,
        stake=stake,
        fraction=stake / state.bankroll if state.bankroll > 0 else 0.0,
        wins_in_window=decision.wins_in_window,
        pure_streak=decision.pure_streak,
        applied_multiplier=decision.multiplier,
        odds=odds,
        strategy=strategy.name,
        was_capped=was_capped,
        notes=decision.notes,
        planned_at=now,
    )
