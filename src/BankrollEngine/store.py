"""
Ledger Stores
=============
Persistence port for the bankroll document.

load() never fails the caller: a missing document is created from defaults and
a corrupt one is replaced by defaults, with LoadResult.status telling them apart.
save() is best effort: write failures are logged and reported as False.
"""
import json
import logging
import os
from pathlib import Path
from typing import Callable, Literal, Optional

from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from . import config
from .errors import LedgerStoreError
from .models import LedgerState

logger = logging.getLogger("LedgerStore")


class LoadResult(BaseModel):
    state: LedgerState
    status: Literal["loaded", "created", "recovered"] = "loaded"
    detail: Optional[str] = None

    @property
    def recovered(self) -> bool:
        return self.status == "recovered"


class LedgerStore:
    """Interface: load() -> LoadResult, save(state) -> bool."""

    def __init__(self, default_factory: Optional[Callable[[], LedgerState]] = None):
        self.default_factory = default_factory or LedgerState.fresh

    def load(self) -> LoadResult:
        raise NotImplementedError

    def save(self, state: LedgerState) -> bool:
        raise NotImplementedError


class MemoryLedgerStore(LedgerStore):
    """Keeps the serialized document in memory. Used by tests and simulations."""

    def __init__(self, document: Optional[dict] = None, default_factory=None):
        super().__init__(default_factory)
        self.document = document
        self.fail_writes = False
        self.saves = 0

    def load(self) -> LoadResult:
        if self.document is None:
            state = self.default_factory()
            self.save(state)
            return LoadResult(state=state, status="created")
        try:
            return LoadResult(state=LedgerState.from_document(self.document))
        except ValidationError as e:
            logger.warning(f"Corrupt in-memory ledger, substituting defaults: {e.error_count()} errors")
            return LoadResult(state=self.default_factory(), status="recovered", detail=str(e))

    def save(self, state: LedgerState) -> bool:
        if self.fail_writes:
            logger.error("saveState failed: writes disabled")
            return False
        self.document = state.to_document()
        self.saves += 1
        return True


class JsonFileLedgerStore(LedgerStore):
    """One JSON document on disk, replaced atomically on every save."""

    def __init__(self, path=None, default_factory=None):
        super().__init__(default_factory)
        self.path = Path(path) if path is not None else config.ledger_path()

    def load(self) -> LoadResult:
        if not self.path.exists():
            state = self.default_factory()
            self.save(state)
            logger.info(f"No ledger at {self.path}, created defaults")
            return LoadResult(state=state, status="created")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
            return LoadResult(state=LedgerState.from_document(document))
        except (OSError, ValueError) as e:
            # json.JSONDecodeError and pydantic ValidationError are both ValueErrors
            logger.warning(f"Ledger at {self.path} unreadable, substituting defaults: {e}")
            return LoadResult(state=self.default_factory(), status="recovered", detail=str(e))

    def save(self, state: LedgerState) -> bool:
        try:
            self._write(state.to_document())
            return True
        except LedgerStoreError as e:
            logger.error(f"saveState failed for {self.path}: {e}")
            return False

    @retry(
        retry=retry_if_exception_type(LedgerStoreError),
        stop=stop_after_attempt(config.SAVE_ATTEMPTS),
        wait=wait_exponential(multiplier=0.1, max=config.SAVE_RETRY_MAX_WAIT),
        reraise=True,
    )
    def _write(self, document: dict):
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise LedgerStoreError(str(e)) from e
