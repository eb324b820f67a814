from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_rate_feed, require_admin
from app.core.purities import Purity
from app.core.serialization_helpers import serialize_decimal, serialize_datetime
from app.models.user import User
from app.services import rate_provider

router = APIRouter()
logger = logging.getLogger(__name__)


class ManualRateUpdate(BaseModel):
    metal_type: str  # purity key, e.g. "22K" or "Silver"
    rate_per_gram: float = Field(gt=0, allow_inf_nan=False)
    source: str = Field(min_length=1, max_length=80)


class RateUpdateResponse(BaseModel):
    source: str
    updated: List[str]
    observed_at: Optional[str] = None


@router.get("/current")
def get_current_rates(db: Session = Depends(get_db)):
    """Current per-gram rate for every purity"""
    return rate_provider.get_current_rates(db).as_response()


@router.get("/history")
def get_rate_history(
    days: int = Query(30, gt=0, le=3650),
    db: Session = Depends(get_db),
):
    """Daily rates, newest first"""
    return rate_provider.get_rate_history(db, days)


@router.get("/trend")
def get_rate_trend(
    purity: Purity = Query(Purity.k22),
    days: int = Query(7, gt=0, le=3650),
    db: Session = Depends(get_db),
):
    trend = rate_provider.get_rate_trend(db, purity, days)
    for key in ("previous_rate", "current_rate", "amount", "percentage"):
        trend[key] = serialize_decimal(trend[key])
    return trend


@router.post("/update", response_model=RateUpdateResponse)
def update_rates_from_feed(
    db: Session = Depends(get_db),
    feed=Depends(get_rate_feed),
    current_user: User = Depends(require_admin),
):
    """Pull fresh rates from the external feeds"""
    snapshots = rate_provider.refresh_rates(db, feed)
    logger.info("Rates refreshed by user %s", current_user.id)
    return RateUpdateResponse(
        source=snapshots[0].source,
        updated=[s.purity for s in snapshots],
        observed_at=serialize_datetime(rate_provider.as_utc(snapshots[0].observed_at)),
    )


@router.post("/manual-update", response_model=RateUpdateResponse)
def manual_rate_update(
    data: ManualRateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Set one rate by hand; recorded in history as 'Manual - <source>'"""
    source = f"Manual - {data.source}"
    snapshots = rate_provider.record_rates(db, {data.metal_type: data.rate_per_gram}, source)
    logger.info("Manual rate update: %s = %s from %s", data.metal_type, data.rate_per_gram, data.source)
    return RateUpdateResponse(
        source=source,
        updated=[s.purity for s in snapshots],
        observed_at=serialize_datetime(rate_provider.as_utc(snapshots[0].observed_at)),
    )
