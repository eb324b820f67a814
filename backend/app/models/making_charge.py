from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime

from app.models.base import Base


class MakingChargeConfig(Base):
    __tablename__ = "making_charge_configs"

    id = Column(Integer, primary_key=True, index=True)
    # NULL category/purity means the rule applies to any value
    category = Column(String(100), nullable=True, index=True)
    purity = Column(String(20), nullable=True, index=True)
    making_charge_pct = Column(Numeric(6, 2), nullable=False, default=0)
    wastage_pct = Column(Numeric(6, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
