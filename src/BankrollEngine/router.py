from fastapi import APIRouter, HTTPException, Depends
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from .errors import BankrollError
from .models import LedgerReport, LedgerStatus, OddsBand, ResultEntry, StakePlan, StakingConfig
from .service import BankrollService, get_bankroll_service
from src.Services.paper_broker import PaperOrder

router = APIRouter(prefix="/bankroll", tags=["Bankroll"])


def get_service():
    return get_bankroll_service()


class PlanRequest(BaseModel):
    odds: Optional[float] = Field(default=None, description="Decimal odds; configured default when omitted")
    preview: bool = Field(default=False, description="Size without storing a pending plan")


class ResultRequest(BaseModel):
    result: str = Field(..., description="W or L (case-insensitive)")
    odds: Optional[float] = None
    stake: Optional[float] = None


class PauseRequest(BaseModel):
    reason: Optional[str] = None


class OddsBandRequest(BaseModel):
    min: float
    max: float


class ResetRequest(BaseModel):
    bankroll: Optional[float] = Field(default=None, ge=0.0)
    base_fraction: Optional[float] = Field(default=None, gt=0.0)
    odds: Optional[float] = Field(default=None, gt=1.0)
    strategy: Optional[Literal["streak_table", "kelly"]] = None


class PlanResponse(StakePlan):
    persisted: bool = True


class ResultResponse(ResultEntry):
    wins: int
    losses: int
    persisted: bool = True


class PauseResponse(BaseModel):
    paused: bool
    reason: Optional[str] = None
    persisted: bool = True


class OddsBandResponse(OddsBand):
    persisted: bool = True


@router.get("/status", response_model=LedgerStatus)
def get_status(service: BankrollService = Depends(get_service)):
    return service.status()


@router.get("/report", response_model=LedgerReport)
def get_report(service: BankrollService = Depends(get_service)):
    return service.report()


@router.post("/plan", response_model=PlanResponse)
def plan(body: Optional[PlanRequest] = None, service: BankrollService = Depends(get_service)):
    body = body or PlanRequest()
    try:
        stake_plan = service.plan(odds=body.odds, commit=not body.preview)
    except BankrollError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PlanResponse(**stake_plan.model_dump(), persisted=service.last_persisted)


@router.post("/execute", response_model=PaperOrder)
def execute(service: BankrollService = Depends(get_service)):
    """Paper execution of the pending plan."""
    try:
        return service.execute()
    except BankrollError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/orders", response_model=List[PaperOrder])
def list_orders(service: BankrollService = Depends(get_service)):
    return service.orders()


@router.post("/result", response_model=ResultResponse)
def record_result(body: ResultRequest, service: BankrollService = Depends(get_service)):
    try:
        entry, stats = service.record_result(body.result, odds=body.odds, stake=body.stake)
    except BankrollError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ResultResponse(**entry.model_dump(), wins=stats.wins, losses=stats.losses, persisted=service.last_persisted)


@router.post("/pause", response_model=PauseResponse)
def pause(body: Optional[PauseRequest] = None, service: BankrollService = Depends(get_service)):
    state = service.pause(body.reason if body else None)
    return PauseResponse(paused=True, reason=state.pause_reason, persisted=service.last_persisted)


@router.post("/resume", response_model=PauseResponse)
def resume(service: BankrollService = Depends(get_service)):
    service.resume()
    return PauseResponse(paused=False, persisted=service.last_persisted)


@router.post("/odds-band", response_model=OddsBandResponse)
def set_odds_band(body: OddsBandRequest, service: BankrollService = Depends(get_service)):
    try:
        band = service.set_odds_band(body.min, body.max)
    except BankrollError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OddsBandResponse(**band.model_dump(), persisted=service.last_persisted)


@router.post("/reset", response_model=LedgerStatus)
def reset(body: Optional[ResetRequest] = None, service: BankrollService = Depends(get_service)):
    """
    Replace the ledger with a fresh document.
    Admin only: wipes history and the high-water mark.
    """
    service.reset(staking_from(body))
    return service.status()


def staking_from(body: Optional[ResetRequest]) -> StakingConfig:
    overrides = {}
    if body is not None:
        if body.bankroll is not None:
            overrides["bankroll_seed"] = body.bankroll
        if body.base_fraction is not None:
            overrides["base_fraction"] = body.base_fraction
        if body.odds is not None:
            overrides["default_odds"] = body.odds
        if body.strategy is not None:
            overrides["strategy"] = body.strategy
    return StakingConfig(**overrides)
