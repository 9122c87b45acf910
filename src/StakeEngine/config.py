# Stake Engine Configuration
# Defaults for a freshly created ledger's StakingConfig

# Bankroll seed and base risk fraction (fraction of bankroll per bet)
BANKROLL_SEED = 1000.0
BASE_FRACTION = 0.07
DEFAULT_ODDS = 1.9
CURRENCY = "USD"

# Streak table: wins at the front of the history window -> multiplier
STREAK_WINDOW = 5
AGGRESSION_BY_WINS = {0: 0.5, 1: 0.5, 2: 0.5, 3: 1.0, 4: 1.25, 5: 1.5}
HOT_BONUS_ON_PURE_STREAK = 1.75  # Every result in the window is a win

# Hard bounds on fraction of bankroll staked
MAX_FRACTION = 0.13
MIN_FRACTION = 0.02

# Safety rails
DRAWDOWN_PAUSE_THRESHOLD = 0.15  # Auto-pause at 15% below high-water mark
DAILY_EXPOSURE_CAP = 0.20  # Max same-day stake as share of the reference baseline

# Unit stake when a result arrives with no plan and no explicit stake
FALLBACK_STAKE = 0.1

# Fractional Kelly variant
KELLY_MULTIPLIER = 0.25  # Use 1/4 Kelly
DEFAULT_EDGE = 0.02  # Assumed edge over implied probability without a model
KELLY_MIN_STAKE = 0.1
KELLY_MAX_STAKE_PCT = 0.02
HOT_STREAK_WINS = 3
HOT_STREAK_BOOST = 1.2
COLD_STREAK_LOSSES = 2
COLD_STREAK_CUT = 0.7

# Probability clamp for the Kelly edge model
MIN_PROBABILITY = 0.01
MAX_PROBABILITY = 0.99

STRATEGY_STREAK_TABLE = "streak_table"
STRATEGY_KELLY = "kelly"
DEFAULT_STRATEGY = STRATEGY_STREAK_TABLE
