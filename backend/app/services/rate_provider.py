"""
Current and historical metal rates.

The `metal_rates` table holds the current rate per purity; every recorded
rate is also appended to `metal_rate_history` as an immutable snapshot.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidInput, RateUnavailable, StaleRates
from app.core.pricing import to_decimal
from app.core.purities import ALL_PURITIES, parse_purity
from app.core.serialization_helpers import serialize_datetime, serialize_decimal
from app.models.metal_rate import MetalRate, MetalRateSnapshot

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CurrentRates:
    rates: Dict[str, Decimal]
    last_updated: datetime
    source: str
    stale: bool
    # staleness is judged on the least recently updated purity
    oldest_update: Optional[datetime] = None

    def as_response(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {purity: serialize_decimal(rate) for purity, rate in self.rates.items()}
        data["last_updated"] = serialize_datetime(self.last_updated)
        data["source"] = self.source
        data["stale"] = self.stale
        return data


def get_current_rates(db: Session, now: Optional[datetime] = None) -> CurrentRates:
    """Raises RateUnavailable unless every known purity has a rate."""
    rows = {row.purity: row for row in db.query(MetalRate).all()}
    missing = [purity for purity in ALL_PURITIES if purity not in rows]
    if missing:
        raise RateUnavailable(f"No current rate for {', '.join(missing)}", purity=missing[0])

    known = [rows[purity] for purity in ALL_PURITIES]
    newest = max(known, key=lambda row: as_utc(row.updated_at))
    oldest_update = min(as_utc(row.updated_at) for row in known)
    window = timedelta(minutes=settings.rate_stale_after_minutes)

    return CurrentRates(
        rates={row.purity: to_decimal(row.rate_per_gram) for row in known},
        last_updated=as_utc(newest.updated_at),
        source=newest.source,
        stale=(now or utcnow()) - oldest_update > window,
        oldest_update=oldest_update,
    )


def require_fresh(current: CurrentRates) -> CurrentRates:
    """Raise StaleRates when freshness is enforced and the rates are stale."""
    if settings.enforce_fresh_rates and current.stale:
        oldest = current.oldest_update or current.last_updated
        minutes = int((utcnow() - oldest).total_seconds() // 60)
        raise StaleRates(f"Rates are stale (oldest rate updated {minutes} minutes ago)")
    return current


def get_rates_or_none(db: Session) -> Optional[CurrentRates]:
    """Current rates, or None when they cannot be served (display fallback)."""
    try:
        return get_current_rates(db)
    except RateUnavailable as exc:
        logger.warning("Rates unavailable, using stored prices: %s", exc.message)
        return None


def record_rates(
    db: Session,
    rates: Mapping[str, Any],
    source: str,
    observed_at: Optional[datetime] = None,
) -> List[MetalRateSnapshot]:
    observed_at = as_utc(observed_at) or utcnow()
    cleaned: Dict[str, Decimal] = {}
    for key, value in rates.items():
        purity = parse_purity(key)
        rate = to_decimal(value)
        if not rate.is_finite() or rate <= 0:
            raise InvalidInput(f"Rate for {purity.value} must be greater than zero")
        cleaned[purity.value] = rate
    if not cleaned:
        raise InvalidInput("No rates to record")

    existing = {
        row.purity: row
        for row in db.query(MetalRate).filter(MetalRate.purity.in_(list(cleaned))).all()
    }
    snapshots = []
    for purity, rate in cleaned.items():
        row = existing.get(purity)
        if row is None:
            row = MetalRate(purity=purity)
            db.add(row)
        row.rate_per_gram = rate
        row.source = source
        row.updated_at = observed_at

        snapshot = MetalRateSnapshot(purity=purity, rate_per_gram=rate, source=source, observed_at=observed_at)
        db.add(snapshot)
        snapshots.append(snapshot)

    db.commit()
    logger.info("Recorded %d rates from %s", len(snapshots), source)
    return snapshots


def refresh_rates(db: Session, feed) -> List[MetalRateSnapshot]:
    """Pull rates from the external feed and record them."""
    rates, source = feed.fetch()
    return record_rates(db, rates, source)


def _window_start(days: int, now: datetime) -> datetime:
    first_day: date = now.date() - timedelta(days=days - 1)
    return datetime.combine(first_day, time.min, tzinfo=timezone.utc)


def get_rate_history(db: Session, days: int = 30, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    One entry per calendar day (UTC), newest first, at most `days` entries.
    Within a day the latest snapshot per purity wins.
    """
    if days is None or days <= 0:
        raise InvalidInput("days must be greater than zero")
    now = as_utc(now) or utcnow()

    snapshots = (
        db.query(MetalRateSnapshot)
        .filter(MetalRateSnapshot.observed_at >= _window_start(days, now))
        .order_by(MetalRateSnapshot.observed_at.asc(), MetalRateSnapshot.id.asc())
        .all()
    )

    by_day: Dict[date, Dict[str, MetalRateSnapshot]] = {}
    for snapshot in snapshots:
        observed = as_utc(snapshot.observed_at)
        by_day.setdefault(observed.date(), {})[snapshot.purity] = snapshot

    history = []
    for day in sorted(by_day, reverse=True)[:days]:
        latest = by_day[day]
        last = max(latest.values(), key=lambda s: (as_utc(s.observed_at), s.id))
        entry: Dict[str, Any] = {"date": day.isoformat()}
        for purity in ALL_PURITIES:
            if purity in latest:
                entry[purity] = serialize_decimal(latest[purity].rate_per_gram)
        entry["last_updated"] = serialize_datetime(as_utc(last.observed_at))
        entry["source"] = last.source
        history.append(entry)
    return history


def get_rate_trend(db: Session, purity, days: int = 7, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Change between the oldest and newest snapshot of a purity in the window."""
    purity = parse_purity(purity)
    if days is None or days <= 0:
        raise InvalidInput("days must be greater than zero")
    now = as_utc(now) or utcnow()

    snapshots = (
        db.query(MetalRateSnapshot)
        .filter(
            MetalRateSnapshot.purity == purity.value,
            MetalRateSnapshot.observed_at >= _window_start(days, now),
        )
        .order_by(MetalRateSnapshot.observed_at.asc(), MetalRateSnapshot.id.asc())
        .all()
    )
    if not snapshots:
        raise RateUnavailable(f"No rate history for {purity.value}", purity=purity.value)

    previous = to_decimal(snapshots[0].rate_per_gram)
    current = to_decimal(snapshots[-1].rate_per_gram)
    difference = current - previous
    percentage = difference / previous * 100 if previous > 0 else Decimal("0")
    if difference > 0:
        direction = "up"
    elif difference < 0:
        direction = "down"
    else:
        direction = "same"

    return {
        "purity": purity.value,
        "days": days,
        "previous_rate": previous,
        "current_rate": current,
        "amount": abs(difference),
        "percentage": abs(percentage),
        "direction": direction,
    }


def get_last_update_time(db: Session) -> Optional[datetime]:
    row = db.query(MetalRate).order_by(MetalRate.updated_at.desc()).first()
    return as_utc(row.updated_at) if row else None
