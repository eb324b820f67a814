from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, UniqueConstraint
from datetime import datetime

from app.models.base import Base


class JewelryItem(Base):
    __tablename__ = "jewelry_items"
    __table_args__ = (
        UniqueConstraint("sku", name="uq_jewelry_items_sku"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(100), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True, index=True)  # ring, necklace, bangle...
    metal_type = Column(String(50), nullable=True)  # gold, silver, platinum
    purity = Column(String(20), nullable=False, index=True)
    weight = Column(Numeric(10, 3), nullable=False)  # grams
    making_charges = Column(Numeric(6, 2), nullable=False, default=0)  # percentage of gold value
    wastage_percentage = Column(Numeric(6, 2), nullable=False, default=0)
    base_price = Column(Numeric(12, 2), nullable=False, default=0)
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)  # stored price, fallback for display
    stock_quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=0)
    location = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
