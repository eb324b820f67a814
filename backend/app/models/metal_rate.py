from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Numeric, DateTime, UniqueConstraint

from app.models.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class MetalRate(Base):
    """Current rate per purity. One row per purity, updated in place."""

    __tablename__ = "metal_rates"
    __table_args__ = (UniqueConstraint("purity", name="uq_metal_rates_purity"),)

    id = Column(Integer, primary_key=True, index=True)

    # Purity key: "22K", "18K", "14K", "Silver", "Platinum"
    purity = Column(String(20), nullable=False, index=True)

    # Rate per gram in INR
    rate_per_gram = Column(Numeric(12, 4), nullable=False)
    source = Column(String(100), nullable=False, default="manual")

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class MetalRateSnapshot(Base):
    """Immutable record of a rate observed at a point in time."""

    __tablename__ = "metal_rate_history"

    id = Column(Integer, primary_key=True, index=True)
    purity = Column(String(20), nullable=False, index=True)
    rate_per_gram = Column(Numeric(12, 4), nullable=False)
    source = Column(String(100), nullable=False)
    observed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
