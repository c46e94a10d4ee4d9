"""REST API routes (read-only view of the signal registry)."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from app.config import get_settings
from core.models import Signal
from core.signal_tracker import SignalTracker

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class SignalResponse(BaseModel):
    """Signal response model."""

    id: str
    symbol: str
    signal_type: str
    label: str
    created_at: datetime
    entry_price: float
    current_price: float
    tps: list[float]
    sl: float
    rsi: float
    change_24h: float
    ema20: float
    trend: str
    volume: float
    is_halal: bool
    compliance_note: str
    status: str
    hit_time: Optional[datetime] = None


class SystemStatus(BaseModel):
    """System status response."""

    status: str
    version: str
    interval: str
    universe_size: int
    tracked_signals: int
    active_signals: int


def get_tracker(request: Request) -> SignalTracker:
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Signal tracker not running")
    return tracker


def _to_response(signal: Signal) -> SignalResponse:
    return SignalResponse(
        id=signal.id,
        symbol=signal.symbol,
        signal_type=signal.signal_type.value,
        label=signal.signal_type.label,
        created_at=signal.created_at,
        entry_price=signal.entry_price,
        current_price=signal.current_price,
        tps=signal.tps,
        sl=signal.sl,
        rsi=signal.rsi,
        change_24h=signal.change_24h,
        ema20=signal.ema20,
        trend=signal.trend.value,
        volume=signal.volume,
        is_halal=signal.is_halal,
        compliance_note=signal.compliance_note,
        status=signal.status.value,
        hit_time=signal.hit_time,
    )


@router.get("/status", response_model=SystemStatus)
async def get_status(request: Request):
    """Get system status."""
    settings = get_settings()
    tracker = get_tracker(request)

    return SystemStatus(
        status="running",
        version="0.1.0",
        interval=settings.interval,
        universe_size=settings.universe_size,
        tracked_signals=len(tracker),
        active_signals=tracker.active_count,
    )


@router.get("/signals", response_model=list[SignalResponse])
async def get_signals(
    request: Request,
    symbol: Optional[str] = Query(None, description="Filter by symbol"),
    status: Optional[str] = Query(None, description="Filter by status (ACTIVE, TP1_HIT, ...)"),
):
    """Get currently tracked signals."""
    signals = get_tracker(request).get_signals(symbol=symbol)

    if status:
        signals = [s for s in signals if s.status.value == status.upper()]

    return [_to_response(s) for s in signals]


@router.get("/signals/{signal_id}", response_model=SignalResponse)
async def get_signal(request: Request, signal_id: str):
    """Get a specific tracked signal by ID."""
    for signal in get_tracker(request).get_signals():
        if signal.id == signal_id:
            return _to_response(signal)

    raise HTTPException(status_code=404, detail="Signal not found")
