# Bankroll Ledger Configuration
# Persistence and policy-control defaults

import logging
import os
from pathlib import Path

from src.StakeEngine import config as stake_config

logger = logging.getLogger("BankrollConfig")

# State document location (overridable with LEDGER_PATH)
DEFAULT_LEDGER_PATH = Path(__file__).resolve().parents[2] / "Data" / "ledger-state.json"

# Result history is most-recent-first and bounded
RESULT_HISTORY_CAP = 5000

# Projections
STATUS_RECENT_RESULTS = 10
REPORT_RECENT_RESULTS = 20

# Advisory odds band used by callers to filter opportunities
DEFAULT_ODDS_BAND = (1.8, 2.2)
MIN_BAND_ODDS = 1.01

STAKING_STRATEGIES = (stake_config.STRATEGY_STREAK_TABLE, stake_config.STRATEGY_KELLY)

DEFAULT_PAUSE_REASON = "Paused by user"
DAILY_CAP_REASON = "Daily exposure cap hit."

# Write retries for the JSON store
SAVE_ATTEMPTS = 3
SAVE_RETRY_MAX_WAIT = 2  # seconds


def ledger_path() -> Path:
    """Resolve the state file from the environment, falling back to Data/."""
    return Path(os.getenv("LEDGER_PATH", str(DEFAULT_LEDGER_PATH)))


def staking_strategy():
    """Optional sizing strategy override for freshly created ledgers."""
    name = os.getenv("STAKING_STRATEGY") or None
    if name is not None and name not in STAKING_STRATEGIES:
        logger.warning(f"Unknown STAKING_STRATEGY {name!r}, using {stake_config.DEFAULT_STRATEGY}")
        return stake_config.DEFAULT_STRATEGY
    return name
