import threading
from typing import List, Optional
import logging

from src.Services.paper_broker import PaperBroker, PaperOrder
from src.StakeEngine.calculator import SizingStrategy, plan_stake

from . import config
from . import manager
from .errors import NothingPlanned
from .models import LedgerReport, LedgerState, LedgerStatus, OddsBand, ResultEntry, StakePlan, StakingConfig
from .store import JsonFileLedgerStore, LedgerStore

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("BankrollService")


class BankrollService:
    """
    Load -> mutate -> save facade over the ledger for the HTTP API and CLI.

    Every operation is one read-modify-write cycle on the store, serialized by a
    lock so concurrent requests from the thread pool never interleave.
    After each call, `last_persisted` tells whether the save went through and
    `last_load_status` whether the document had to be recovered.
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        strategy: Optional[SizingStrategy] = None,
        broker: Optional[PaperBroker] = None,
    ):
        self.store = store or JsonFileLedgerStore()
        self.strategy = strategy
        self.broker = broker or PaperBroker()
        self._lock = threading.Lock()
        self.last_persisted = True
        self.last_load_status = "loaded"

    def _load(self) -> LedgerState:
        result = self.store.load()
        self.last_load_status = result.status
        if result.recovered:
            logger.warning(f"Ledger recovered with defaults: {result.detail}")
        return result.state

    def _save(self, state: LedgerState) -> bool:
        self.last_persisted = self.store.save(state)
        if not self.last_persisted:
            logger.warning("Ledger change kept in memory only; persistence failed")
        return self.last_persisted

    def get_state(self) -> LedgerState:
        with self._lock:
            return self._load()

    def status(self) -> LedgerStatus:
        with self._lock:
            return manager.build_status(self._load())

    def report(self) -> LedgerReport:
        with self._lock:
            return manager.build_report(self._load())

    def plan(self, odds: Optional[float] = None, commit: bool = True) -> StakePlan:
        """
        Plan a stake. With commit=True a sized plan becomes the pending plan;
        otherwise it is a preview and only the exposure rollover is saved.
        """
        with self._lock:
            state = self._load()
            day_before = state.exposure_day_anchor
            plan = plan_stake(state, odds, strategy=self.strategy)
            if commit and not plan.paused:
                state.pending_plan = plan
                self._save(state)
                logger.info(f"Planned {plan.stake} {state.config.currency} @ {plan.odds} (x{plan.applied_multiplier:.2f})")
            elif state.exposure_day_anchor != day_before:
                self._save(state)
            if plan.daily_cap_hit:
                logger.warning(f"Plan refused: {plan.reason}")
            return plan

    def execute(self) -> PaperOrder:
        """Place the pending plan with the paper broker. The plan stays pending until a result arrives."""
        with self._lock:
            state = self._load()
            if state.pending_plan is None:
                raise NothingPlanned()
            if state.paused:
                return self.broker.refuse(state.pause_reason or "Paused")
            return self.broker.place_bet(stake=state.pending_plan.stake, odds=state.pending_plan.odds)

    def orders(self) -> List[PaperOrder]:
        return self.broker.list()

    def record_result(self, result: str, odds: Optional[float] = None, stake: Optional[float] = None) -> tuple:
        """Apply a W/L result. Returns (entry, stats)."""
        with self._lock:
            state = self._load()
            entry = manager.apply_result(state, result, odds=odds, stake=stake)
            self._save(state)
            logger.info(
                f"Result {entry.result}: pnl {entry.pnl} -> bankroll {entry.bankroll_after} "
                f"({state.stats.wins}W/{state.stats.losses}L)"
            )
            return entry, state.stats

    def pause(self, reason: Optional[str] = None) -> LedgerState:
        with self._lock:
            state = manager.pause(self._load(), reason)
            self._save(state)
            logger.warning(f"Paused: {state.pause_reason}")
            return state

    def resume(self) -> LedgerState:
        with self._lock:
            state = manager.resume(self._load())
            self._save(state)
            logger.info("Resumed")
            return state

    def set_odds_band(self, min_odds, max_odds) -> OddsBand:
        with self._lock:
            state = self._load()
            band = manager.set_odds_band(state, min_odds, max_odds)
            self._save(state)
            return band

    def reset(self, staking: Optional[StakingConfig] = None) -> LedgerState:
        """Hard reset of the ledger."""
        with self._lock:
            state = manager.reset_state(staking)
            self._save(state)
            logger.info(f"[BANKROLL] Reset to {state.bankroll} {state.config.currency}")
            return state


_service = None
_service_lock = threading.Lock()


# Global Accessor
def get_bankroll_service() -> BankrollService:
    global _service
    with _service_lock:
        if _service is None:
            strategy = config.staking_strategy()
            factory = None
            if strategy:
                factory = lambda: LedgerState.fresh(StakingConfig(strategy=strategy))
            _service = BankrollService(store=JsonFileLedgerStore(default_factory=factory))
            logger.info(f"BankrollService initialized at {_service.store.path}")
        return _service
