"""Engine subpackage - price computation, rounding and rate tables."""
from .pricing_engine import PricingEngine, compute_new_jewelry_price, compute_old_jewelry_price
from .rate_table import RateTableEngine, compute_rate_table_cell, compute_rate_table_grid
from .models import Category, Rate, RateTableConfig, NewJewelryResult, OldJewelryResult

__all__ = [
    'PricingEngine', 'RateTableEngine',
    'compute_new_jewelry_price', 'compute_old_jewelry_price',
    'compute_rate_table_cell', 'compute_rate_table_grid',
    'Category', 'Rate', 'RateTableConfig', 'NewJewelryResult', 'OldJewelryResult',
]
