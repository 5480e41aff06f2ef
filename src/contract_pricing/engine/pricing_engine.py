"""
Pricing Engine - Runs the pricing waterfall with an explainable rule trail.

Resolution order:
1. Base price from the product
2. Contract price list assigned to the customer
3. Volume tier for the ordered quantity (stacks on the contract price)
4. Margin protection against the cost basis

Each stage either applies and appends one PricingRuleApplication or is
skipped. The trail is accumulated functionally, so the engine holds no
state between calls and is safe to share across threads.
"""
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from functools import reduce
from typing import Iterable, Optional, Union

from ..config.settings import Settings, get_settings
from .exceptions import PricingInputError
from .margin_guard import enforce_margin, margin_percent
from .models import (
    ContractMatch,
    CustomerContext,
    PricingLine,
    PricingResult,
    PricingRuleApplication,
    Product,
    RuleType,
)
from .money import ZERO, format_money, round_money, to_date, to_optional_decimal
from .price_lists import resolve_contract_price
from .volume_tiers import resolve_tier, tier_price

logger = logging.getLogger(__name__)

# Trail position of each stage
STAGE_ORDER = {
    RuleType.BASE_PRICE: 1,
    RuleType.CONTRACT_PRICE: 2,
    RuleType.VOLUME_TIER: 3,
    RuleType.MARGIN_PROTECTION: 4,
}


@dataclass(frozen=True)
class _Inputs:
    product: Product
    customer: Optional[CustomerContext]
    quantity: int
    price_date: date
    cost_basis: Optional[Decimal]
    default_minimum_margin: Optional[Decimal]


@dataclass(frozen=True)
class _Waterfall:
    price: Decimal
    rules: tuple[PricingRuleApplication, ...] = ()
    contract: Optional[ContractMatch] = None
    margin_protected: bool = False

    def apply(self, rule_type: RuleType, rule_name: str, new_price: Decimal,
              explanation: str, **changes) -> "_Waterfall":
        rule = PricingRuleApplication(
            order=STAGE_ORDER[rule_type],
            rule_type=rule_type,
            rule_name=rule_name,
            price_before=self.price,
            price_after=new_price,
            adjustment=new_price - self.price,
            explanation=explanation,
        )
        return replace(self, price=new_price, rules=self.rules + (rule,), **changes)


# ============================================================================
# STAGES
# ============================================================================

def _base_price_stage(state: _Waterfall, inputs: _Inputs) -> _Waterfall:
    base = round_money(inputs.product.base_price)
    return state.apply(
        RuleType.BASE_PRICE,
        "Product List Price",
        base,
        f"Base product price: {format_money(base)}",
    )


def _contract_price_stage(state: _Waterfall, inputs: _Inputs) -> _Waterfall:
    if inputs.customer is None or not inputs.customer.price_lists:
        return state

    match = resolve_contract_price(inputs.product, inputs.customer.price_lists, inputs.price_date)
    if match is None:
        return state
    # The item's margin override still applies even when the price is unchanged
    if match.price == state.price:
        return replace(state, contract=match)

    price_list = match.price_list
    return state.apply(
        RuleType.CONTRACT_PRICE,
        price_list.name,
        match.price,
        f"Contract price list '{price_list.name}' (priority {price_list.priority}): "
        f"{match.item.pricing_description()} -> {format_money(match.price)}",
        contract=match,
    )


def _volume_tier_stage(state: _Waterfall, inputs: _Inputs) -> _Waterfall:
    tier = resolve_tier(inputs.product.volume_tiers, inputs.quantity)
    if tier is None:
        return state

    new_price = tier_price(tier, state.price)
    if new_price is None or new_price == state.price:
        return state

    return state.apply(
        RuleType.VOLUME_TIER,
        tier.range_description(),
        new_price,
        f"Volume tier {tier.range_description()} for quantity {inputs.quantity}: "
        f"{format_money(state.price)} -> {format_money(new_price)}",
    )


def _minimum_margin(state: _Waterfall, inputs: _Inputs) -> Optional[Decimal]:
    if state.contract is not None and state.contract.item.minimum_margin_percent is not None:
        return state.contract.item.minimum_margin_percent
    if inputs.product.minimum_margin_percent is not None:
        return inputs.product.minimum_margin_percent
    return inputs.default_minimum_margin


def _margin_protection_stage(state: _Waterfall, inputs: _Inputs) -> _Waterfall:
    minimum = _minimum_margin(state, inputs)
    decision = enforce_margin(state.price, inputs.cost_basis, minimum)
    if not decision.protected:
        return state

    # Explanations reach customers, so the actual margin only goes to the log
    logger.debug("Margin protection on %s: margin %s below minimum %s",
                 inputs.product.id, decision.margin_before, minimum)
    return state.apply(
        RuleType.MARGIN_PROTECTION,
        f"Minimum Margin {minimum.normalize():f}%",
        decision.price,
        f"Raised from {format_money(state.price)} to {format_money(decision.price)} "
        f"to keep the {minimum.normalize():f}% minimum margin",
        margin_protected=True,
    )


STAGES = (
    _base_price_stage,
    _contract_price_stage,
    _volume_tier_stage,
    _margin_protection_stage,
)


# ============================================================================
# ENGINE
# ============================================================================

class PricingEngine:
    """
    Core pricing engine: base -> contract -> volume -> margin.

    The engine is a thin holder for settings; every calculation is a pure
    function of its arguments.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def calculate_price(
        self,
        product: Product,
        customer: Optional[CustomerContext] = None,
        quantity: int = 1,
        price_date: Optional[Union[date, datetime]] = None,
        cost_basis=None,
    ) -> PricingResult:
        """
        Price one product for one customer.

        Args:
            product: Product with base price and volume tiers
            customer: Customer and assigned price lists (None = no contract)
            quantity: Units ordered, used for volume tiers
            price_date: Date the price applies on (defaults to today)
            cost_basis: Unit cost; falls back to product.cost when omitted

        Raises:
            PricingInputError: for a missing product, a negative or non-finite
                base price, a negative or non-integer quantity, or a negative
                or non-finite cost basis.
        """
        inputs = self._validate(product, customer, quantity, price_date, cost_basis)

        state = reduce(
            lambda acc, stage: stage(acc, inputs),
            STAGES,
            _Waterfall(price=ZERO),
        )

        base_price = round_money(product.base_price)
        final_price = state.price
        margin = margin_percent(final_price, inputs.cost_basis)

        result = PricingResult(
            product_id=product.id,
            base_price=base_price,
            final_price=final_price,
            total_discount=base_price - final_price,
            effective_margin_percent=None if margin is None else round_money(margin),
            margin_protected=state.margin_protected,
            applied_rules=state.rules,
        )
        logger.debug(
            "Priced %s x%s: %s -> %s (%d rules, margin protected=%s)",
            product.id, quantity, base_price, final_price,
            len(state.rules), state.margin_protected,
        )
        return result

    def calculate_bulk(self, lines: Iterable[PricingLine]) -> list[PricingResult]:
        """Price several lines; results keep the input order."""
        return [
            self.calculate_price(
                line.product,
                line.customer,
                line.quantity,
                line.price_date,
                line.cost_basis,
            )
            for line in lines
        ]

    def _validate(self, product, customer, quantity, price_date, cost_basis) -> _Inputs:
        if product is None:
            raise PricingInputError("product is required")
        if not product.base_price.is_finite():
            raise PricingInputError(
                f"base price must be a finite amount (product {product.id}: {product.base_price})"
            )
        if product.base_price < ZERO:
            raise PricingInputError(
                f"base price must not be negative (product {product.id}: {product.base_price})"
            )
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise PricingInputError(f"quantity must be a whole number, got {quantity!r}")
        if quantity < 0:
            raise PricingInputError(f"quantity must not be negative, got {quantity}")

        cost = to_optional_decimal(cost_basis)
        if cost is None:
            cost = product.cost
        if cost is not None and not cost.is_finite():
            raise PricingInputError(
                f"cost basis must be a finite amount (product {product.id}: {cost})"
            )
        if cost is not None and cost < ZERO:
            raise PricingInputError(
                f"cost basis must not be negative (product {product.id}: {cost})"
            )

        return _Inputs(
            product=product,
            customer=customer,
            quantity=quantity,
            price_date=to_date(price_date) or date.today(),
            cost_basis=cost,
            default_minimum_margin=self.settings.default_minimum_margin_percent,
        )
