import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from jewelry_pricing.engine.models import (
    Category,
    Descriptions,
    JewelryType,
    Metal,
    Rate,
    ResaleCategory,
)


@pytest.fixture
def rate():
    """Gold 69,000/70,000 per 10 g, silver 80,000/82,000 per kg."""
    return Rate(gold_buy=69000, gold_sell=70000, silver_buy=80000, silver_sell=82000,
                updated_by="asha", updated_by_role="admin", shop_id="shop-1")


@pytest.fixture
def new_gold_chain():
    return Category(
        type=JewelryType.NEW,
        metal=Metal.GOLD,
        code="G22",
        shop_id="shop-1",
        id="cat-new-1",
        item_category="Chain",
        purity_percentage=91.6,
        buying_from_wholesaler_percentage=95,
        selling_percentage=105,
        wholesaler_labour_per_gram=0,
        descriptions=Descriptions(universal="22K hallmarked chain", client="Hallmarked chain"),
    )


@pytest.fixture
def old_gold():
    return Category(
        type=JewelryType.OLD,
        metal=Metal.GOLD,
        code="OG22",
        shop_id="shop-1",
        id="cat-old-1",
        true_purity_percentage=91.6,
        scrap_buy_own_percentage=90,
        scrap_buy_other_percentage=85,
        resale_enabled=True,
        resale_categories=[
            ResaleCategory(item_category="Chain", direct_resale_percentage=98,
                           buying_from_wholesaler_percentage=95),
        ],
        descriptions=Descriptions(universal="Old 22K gold"),
    )
