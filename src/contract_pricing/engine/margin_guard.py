"""
Margin Guard - Raises a candidate price to a minimum-margin floor.

Margin is measured against the selling price:
    margin% = (price - cost) / price * 100
"""
import logging
from decimal import Decimal
from typing import Optional

from .models import MarginDecision
from .money import HUNDRED, ZERO, round_money, to_optional_decimal

logger = logging.getLogger(__name__)


def margin_percent(price: Decimal, cost_basis: Optional[Decimal]) -> Optional[Decimal]:
    """Unrounded margin percent, or None when it cannot be determined."""
    if cost_basis is None or price <= ZERO:
        return None
    return (price - cost_basis) / price * HUNDRED


def floor_price(cost_basis: Decimal, minimum_margin_percent: Decimal) -> Decimal:
    """Lowest price that still earns the minimum margin."""
    return cost_basis / (1 - minimum_margin_percent / HUNDRED)


def enforce_margin(
    candidate_price: Decimal,
    cost_basis: Optional[Decimal],
    minimum_margin_percent: Optional[Decimal],
) -> MarginDecision:
    """
    Protect the minimum margin on a candidate price.

    No-op when the cost basis or the minimum is unknown or not finite, or
    when the minimum is 100% or more (no finite floor exists).

    The floor is rounded half-up to cents, so a protected price can earn a
    few hundredths of a percent less than the minimum (cost 1.00 at 10%
    floors to 1.11, a 9.91% margin).
    """
    cost_basis = to_optional_decimal(cost_basis)
    minimum_margin_percent = to_optional_decimal(minimum_margin_percent)

    if cost_basis is None or minimum_margin_percent is None:
        return MarginDecision(price=candidate_price, protected=False)

    if not cost_basis.is_finite() or not minimum_margin_percent.is_finite():
        logger.warning("Cost basis %s or minimum margin %s%% is not a finite amount; protection skipped",
                       cost_basis, minimum_margin_percent)
        return MarginDecision(price=candidate_price, protected=False)

    if minimum_margin_percent >= HUNDRED:
        logger.warning("Minimum margin %s%% has no finite floor price; protection skipped",
                       minimum_margin_percent)
        return MarginDecision(price=candidate_price, protected=False)

    current = margin_percent(candidate_price, cost_basis)
    # A zero price earns no determinable margin and always falls below the floor
    if current is not None and current >= minimum_margin_percent:
        return MarginDecision(price=candidate_price, protected=False, margin_before=current)

    floor = round_money(floor_price(cost_basis, minimum_margin_percent))
    if floor <= candidate_price:
        # Rounding already puts the candidate at the floor
        return MarginDecision(price=candidate_price, protected=False, margin_before=current)

    return MarginDecision(price=floor, protected=True, margin_before=current)
