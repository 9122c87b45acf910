"""
Paper Broker
============
Simulated order book. Nothing leaves the process.
"""
import secrets
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from src.BankrollEngine.models import utc_now


class PaperOrder(BaseModel):
    id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    stake: float = 0.0
    odds: float = 0.0
    market: Optional[str] = None
    side: Optional[str] = None
    status: Literal["PLACED", "REFUSED"] = "PLACED"
    reason: Optional[str] = None


class PaperBroker:
    """In-memory paper order list, newest first on listing."""

    def __init__(self):
        self.orders: List[PaperOrder] = []

    def place_bet(self, stake: float, odds: float, market: Optional[str] = None, side: Optional[str] = None) -> PaperOrder:
        order = PaperOrder(
            id=f"paper-{secrets.token_hex(4)}",
            stake=stake,
            odds=odds,
            market=market,
            side=side,
        )
        self.orders.append(order)
        return order

    def refuse(self, reason: str) -> PaperOrder:
        return PaperOrder(status="REFUSED", reason=reason)

    def list(self) -> List[PaperOrder]:
        return list(reversed(self.orders))
