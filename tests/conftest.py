import sys
import os
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from contract_pricing.config.settings import Settings
from contract_pricing.engine import (
    CustomerContext,
    FixedPrice,
    PercentDiscount,
    PriceList,
    PriceListItem,
    PricingEngine,
    Product,
    UnitPrice,
    VolumeTier,
)

SAMPLE_DIR = Path(src_path) / 'contract_pricing' / 'data' / 'sample'
PRICE_DATE = date(2026, 6, 1)


@pytest.fixture
def settings():
    return Settings(data_dir=SAMPLE_DIR)


@pytest.fixture
def engine(settings):
    return PricingEngine(settings)


@pytest.fixture
def standard_tiers():
    """1-9 → $100, 10-49 → $90, 50+ → $80"""
    return (
        VolumeTier(min_quantity=1, max_quantity=9, pricing=UnitPrice(100)),
        VolumeTier(min_quantity=10, max_quantity=49, pricing=UnitPrice(90)),
        VolumeTier(min_quantity=50, max_quantity=None, pricing=UnitPrice(80)),
    )


@pytest.fixture
def gloves():
    return Product(id="prod-1", name="Exam Gloves", sku="GLV-1", base_price=Decimal("100.00"))


def make_list(list_id, priority, pricing, product_id="prod-1", name=None,
              minimum_margin_percent=None, **kwargs):
    """Price list with one item for the given product."""
    item = PriceListItem(
        product_id=product_id,
        pricing=pricing,
        minimum_margin_percent=minimum_margin_percent,
        id=f"{list_id}-item",
    )
    return PriceList(id=list_id, name=name or f"List {list_id}", priority=priority,
                     items=(item,), **kwargs)


@pytest.fixture
def contract_customer():
    """Two valid lists: priority 10 fixed $85, priority 20 10% off."""
    return CustomerContext(
        customer_id="cust-1",
        price_lists=(
            make_list("pl-20", 20, PercentDiscount(10), name="GPO Agreement"),
            make_list("pl-10", 10, FixedPrice(85), name="Hospital Contract"),
        ),
    )
