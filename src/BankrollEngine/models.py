from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from src.StakeEngine import config as stake_config
from . import config

MONEY = Decimal("0.01")
ODDS = Decimal("0.001")


def round_money(value: float) -> float:
    """Half-up rounding to currency minor units."""
    return float(Decimal(str(value)).quantize(MONEY, rounding=ROUND_HALF_UP))


def floor_money(value: float) -> float:
    """Round down to minor units so a capped amount never exceeds its cap."""
    return float(Decimal(str(value)).quantize(MONEY, rounding=ROUND_DOWN))


def round_odds(value: float) -> float:
    return float(Decimal(str(value)).quantize(ODDS, rounding=ROUND_HALF_UP))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today_utc() -> date:
    return utc_now().date()


class StakingConfig(BaseModel):
    """Operator-controlled sizing parameters. Replaced as a whole, never edited in place."""
    bankroll_seed: float = Field(default=stake_config.BANKROLL_SEED, ge=0.0)
    base_fraction: float = Field(default=stake_config.BASE_FRACTION, gt=0.0)
    default_odds: float = Field(default=stake_config.DEFAULT_ODDS, gt=1.0)
    streak_window: int = Field(default=stake_config.STREAK_WINDOW, ge=1)
    aggression_by_wins: Dict[int, float] = Field(
        default_factory=lambda: dict(stake_config.AGGRESSION_BY_WINS)
    )
    max_fraction: float = Field(default=stake_config.MAX_FRACTION, gt=0.0, le=1.0)
    min_fraction: float = Field(default=stake_config.MIN_FRACTION, ge=0.0)
    hot_bonus_on_pure_streak: float = Field(default=stake_config.HOT_BONUS_ON_PURE_STREAK, gt=0.0)
    drawdown_pause_threshold: float = Field(default=stake_config.DRAWDOWN_PAUSE_THRESHOLD, gt=0.0, lt=1.0)
    daily_exposure_cap: float = Field(default=stake_config.DAILY_EXPOSURE_CAP, gt=0.0, lt=1.0)
    currency: str = stake_config.CURRENCY

    strategy: Literal["streak_table", "kelly"] = stake_config.DEFAULT_STRATEGY
    fallback_stake: float = Field(default=stake_config.FALLBACK_STAKE, gt=0.0)

    # Fractional Kelly variant
    kelly_multiplier: float = Field(default=stake_config.KELLY_MULTIPLIER, gt=0.0)
    default_edge: float = stake_config.DEFAULT_EDGE
    min_stake: float = Field(default=stake_config.KELLY_MIN_STAKE, ge=0.0)
    max_stake_pct: float = Field(default=stake_config.KELLY_MAX_STAKE_PCT, gt=0.0, le=1.0)
    hot_streak_wins: int = Field(default=stake_config.HOT_STREAK_WINS, ge=1)
    hot_streak_boost: float = Field(default=stake_config.HOT_STREAK_BOOST, gt=0.0)
    cold_streak_losses: int = Field(default=stake_config.COLD_STREAK_LOSSES, ge=1)
    cold_streak_cut: float = Field(default=stake_config.COLD_STREAK_CUT, gt=0.0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_fraction > self.max_fraction:
            raise ValueError("min_fraction must not exceed max_fraction")
        return self


class OddsBand(BaseModel):
    min: float = Field(default=config.DEFAULT_ODDS_BAND[0], gt=1.0)
    max: float = Field(default=config.DEFAULT_ODDS_BAND[1], gt=1.0)

    @model_validator(mode="after")
    def _check_order(self):
        if self.max <= self.min:
            raise ValueError("odds band max must be greater than min")
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


class StakePlan(BaseModel):
    """Output of the Stake Engine. Stored as the ledger's pending plan when committed."""
    paused: bool = False
    stake: float = Field(default=0.0, ge=0.0)
    fraction: float = 0.0
    wins_in_window: int = 0
    pure_streak: bool = False
    applied_multiplier: float = 0.0
    odds: float
    reason: Optional[str] = None
    strategy: str = stake_config.DEFAULT_STRATEGY
    was_capped: bool = Field(default=False, description="True if stake was cut to the remaining daily allowance")
    daily_cap_hit: bool = Field(default=False, description="Ephemeral refusal, the ledger stays unpaused")
    notes: List[str] = Field(default_factory=list)
    planned_at: Optional[datetime] = None

    @field_serializer("stake")
    def _ser_stake(self, value: float) -> float:
        return round_money(value)

    @field_serializer("odds")
    def _ser_odds(self, value: float) -> float:
        return round_odds(value)


class ResultEntry(BaseModel):
    """Record of one realized bet."""
    timestamp: datetime
    result: Literal["W", "L"]
    stake: float
    odds: float
    pnl: float
    bankroll_after: float
    stake_source: Literal["plan", "explicit", "fallback"] = "plan"

    model_config = ConfigDict(frozen=True)

    @field_serializer("stake", "pnl", "bankroll_after")
    def _ser_money(self, value: float) -> float:
        return round_money(value)

    @field_serializer("odds")
    def _ser_odds(self, value: float) -> float:
        return round_odds(value)


class LedgerStats(BaseModel):
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)


class StreakInfo(BaseModel):
    wins: int = 0
    losses: int = 0


class LedgerState(BaseModel):
    """The single mutable bankroll document."""
    created_at: datetime = Field(default_factory=utc_now)
    config: StakingConfig = Field(default_factory=StakingConfig)
    bankroll: float = Field(default=stake_config.BANKROLL_SEED, ge=0.0)
    high_water_mark: float = Field(default=stake_config.BANKROLL_SEED, ge=0.0)
    paused: bool = False
    pause_reason: Optional[str] = None
    odds_band: OddsBand = Field(default_factory=OddsBand)
    exposure_today: float = Field(default=0.0, ge=0.0)
    exposure_day_anchor: date = Field(default_factory=today_utc)
    pending_plan: Optional[StakePlan] = None
    result_history: List[ResultEntry] = Field(default_factory=list)
    stats: LedgerStats = Field(default_factory=LedgerStats)

    @classmethod
    def fresh(cls, staking: Optional[StakingConfig] = None, now: Optional[datetime] = None) -> "LedgerState":
        staking = staking or StakingConfig()
        now = now or utc_now()
        return cls(
            created_at=now,
            config=staking,
            bankroll=staking.bankroll_seed,
            high_water_mark=staking.bankroll_seed,
            exposure_day_anchor=now.date(),
        )

    @field_serializer("bankroll", "high_water_mark", "exposure_today")
    def _ser_money(self, value: float) -> float:
        return round_money(value)

    def to_document(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: dict) -> "LedgerState":
        return cls.model_validate(document)


class LedgerStatus(BaseModel):
    bankroll: float
    high_water: float
    paused: bool
    pause_reason: Optional[str] = None
    odds_band: OddsBand
    pending_plan: Optional[StakePlan] = None
    recent_results: List[ResultEntry]
    stats: LedgerStats
    streak: StreakInfo
    currency: str = stake_config.CURRENCY


class LedgerReport(BaseModel):
    bankroll: float
    high_water: float
    total_bets: int
    wins: int
    losses: int
    winrate: float = Field(..., description="Win rate in percent, 2 decimals")
    cumulative_pnl: float
    recent_results: List[ResultEntry]
