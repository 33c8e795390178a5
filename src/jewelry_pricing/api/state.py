"""Shared service instances for the API routers."""
from ..config.settings import get_settings
from ..engine import PricingEngine
from ..policy.freshness_gate import FreshnessGate
from ..services.broadcast import Broadcaster
from ..services.shop_store import ShopStore

settings = get_settings()

engine = PricingEngine()
store = ShopStore()
gate = FreshnessGate(settings.timezone, settings.rate_deadline_hour)
broadcaster = Broadcaster()
