from .base import Base
from .user import User
from .metal_rate import MetalRate, MetalRateSnapshot
from .making_charge import MakingChargeConfig
from .jewelry_item import JewelryItem

__all__ = ["Base", "User", "MetalRate", "MetalRateSnapshot", "MakingChargeConfig", "JewelryItem"]
