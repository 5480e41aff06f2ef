"""
Volume Tier Resolver - Quantity-based pricing.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from .models import PercentDiscount, UnitPrice, VolumeTier
from .money import HUNDRED, ZERO, percent_off, round_money

logger = logging.getLogger(__name__)


def resolve_tier(tiers: Iterable[VolumeTier], quantity: int) -> Optional[VolumeTier]:
    """
    Select the tier a quantity qualifies for.

    When ranges overlap the tier with the highest min_quantity wins; on a
    further tie the first tier in input order is kept.
    """
    best = None
    for tier in tiers:
        if not tier.matches(quantity):
            continue
        if best is None or tier.min_quantity > best.min_quantity:
            best = tier
    return best


def tier_price(tier: VolumeTier, current_price: Decimal) -> Optional[Decimal]:
    """Price at a tier; percent discounts apply to the incoming price."""
    pricing = tier.pricing

    if isinstance(pricing, UnitPrice):
        if not pricing.value.is_finite() or pricing.value < ZERO:
            logger.warning("Volume tier %s has invalid unit price %s; skipped",
                           tier.range_description(), pricing.value)
            return None
        return round_money(pricing.value)

    if isinstance(pricing, PercentDiscount):
        if not pricing.value.is_finite() or not ZERO <= pricing.value <= HUNDRED:
            logger.warning("Volume tier %s has percent discount %s outside 0-100; skipped",
                           tier.range_description(), pricing.value)
            return None
        return round_money(percent_off(current_price, pricing.value))

    logger.warning("Volume tier %s has no pricing method; skipped", tier.range_description())
    return None
