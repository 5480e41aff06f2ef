"""
Price List Resolver - Selects the contract price that applies to a product.

Candidates are the price lists already assigned to the customer. Lists
outside their validity window are ignored; among the rest the lowest
priority number wins, with list id as the tie-breaker.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .models import (
    ContractMatch,
    FixedDiscount,
    FixedPrice,
    PercentDiscount,
    PriceList,
    PriceListItem,
    Product,
)
from .money import HUNDRED, ZERO, percent_off, round_money

logger = logging.getLogger(__name__)


def item_price(item: PriceListItem, base_price: Decimal) -> Optional[Decimal]:
    """
    Apply an item's pricing method to the base price.

    Returns None when the item has no usable pricing method.
    """
    pricing = item.pricing

    if isinstance(pricing, FixedPrice):
        if not pricing.value.is_finite() or pricing.value < ZERO:
            logger.warning("Price list item %s has invalid fixed price %s; skipped",
                           item.id or item.product_id, pricing.value)
            return None
        return round_money(pricing.value)

    if isinstance(pricing, PercentDiscount):
        if not pricing.value.is_finite() or not ZERO <= pricing.value <= HUNDRED:
            logger.warning("Price list item %s has percent discount %s outside 0-100; skipped",
                           item.id or item.product_id, pricing.value)
            return None
        return round_money(percent_off(base_price, pricing.value))

    if isinstance(pricing, FixedDiscount):
        if not pricing.value.is_finite() or pricing.value < ZERO:
            logger.warning("Price list item %s has invalid fixed discount %s; skipped",
                           item.id or item.product_id, pricing.value)
            return None
        return round_money(max(ZERO, base_price - pricing.value))

    logger.warning("Price list item %s has no pricing method; skipped",
                   item.id or item.product_id)
    return None


def resolve_contract_price(
    product: Product,
    price_lists: Iterable[PriceList],
    price_date: Optional[date] = None,
) -> Optional[ContractMatch]:
    """
    Find the winning contract price for a product.

    Returns None when no valid list carries a usable item for the product.
    """
    valid = [pl for pl in price_lists if pl.is_currently_valid(price_date)]
    valid.sort(key=lambda pl: (pl.priority, str(pl.id)))

    for price_list in valid:
        item = price_list.item_for(product.id)
        if item is None:
            continue
        price = item_price(item, product.base_price)
        if price is None:
            # Misconfigured item: fall through to the next list
            continue
        return ContractMatch(price_list=price_list, item=item, price=price)

    return None
