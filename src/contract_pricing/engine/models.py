"""
Data models for the pricing engine.

Every model is a frozen dataclass: the engine builds them fresh for each
request and never mutates them. Money and percentages are Decimals.
"""
import json
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from .money import (
    ZERO,
    format_money,
    to_date,
    to_decimal,
    to_optional_decimal,
)


# ============================================================================
# PRICING METHODS
# ============================================================================

@dataclass(frozen=True)
class FixedPrice:
    """Customer pays this exact price."""
    value: Decimal
    kind: str = field(default="fixed", init=False)

    def __post_init__(self):
        object.__setattr__(self, "value", to_decimal(self.value))


@dataclass(frozen=True)
class PercentDiscount:
    """Percent off the incoming price (0-100)."""
    value: Decimal
    kind: str = field(default="percent", init=False)

    def __post_init__(self):
        object.__setattr__(self, "value", to_decimal(self.value))


@dataclass(frozen=True)
class FixedDiscount:
    """Fixed amount off the incoming price."""
    value: Decimal
    kind: str = field(default="discount", init=False)

    def __post_init__(self):
        object.__setattr__(self, "value", to_decimal(self.value))


@dataclass(frozen=True)
class UnitPrice:
    """Fixed per-unit price at a volume tier."""
    value: Decimal
    kind: str = field(default="unit", init=False)

    def __post_init__(self):
        object.__setattr__(self, "value", to_decimal(self.value))


@dataclass(frozen=True)
class NoPricing:
    kind: str = field(default="none", init=False)


NO_PRICING = NoPricing()

ItemPricing = Union[FixedPrice, PercentDiscount, FixedDiscount, NoPricing]
TierPricing = Union[UnitPrice, PercentDiscount, NoPricing]


class RuleType(str, Enum):
    """Stages of the pricing waterfall, in application order."""
    BASE_PRICE = "BasePrice"
    CONTRACT_PRICE = "ContractPrice"
    VOLUME_TIER = "VolumeTier"
    MARGIN_PROTECTION = "MarginProtection"


# ============================================================================
# CATALOG INPUTS
# ============================================================================

@dataclass(frozen=True)
class PriceListItem:
    """A product's pricing within a price list."""
    product_id: str
    pricing: ItemPricing = NO_PRICING
    minimum_margin_percent: Optional[Decimal] = None
    id: str = ""
    product_name: str = ""
    product_sku: str = ""

    def __post_init__(self):
        object.__setattr__(
            self, "minimum_margin_percent", to_optional_decimal(self.minimum_margin_percent)
        )

    @classmethod
    def from_fields(
        cls,
        product_id: str,
        fixed_price=None,
        percent_discount=None,
        fixed_discount=None,
        minimum_margin_percent=None,
        **kwargs,
    ) -> "PriceListItem":
        """
        Build an item from the nullable-column representation.

        When more than one column is set the first of fixed price,
        percent discount, fixed discount wins.
        """
        if fixed_price is not None:
            pricing = FixedPrice(fixed_price)
        elif percent_discount is not None:
            pricing = PercentDiscount(percent_discount)
        elif fixed_discount is not None:
            pricing = FixedDiscount(fixed_discount)
        else:
            pricing = NO_PRICING
        return cls(
            product_id=product_id,
            pricing=pricing,
            minimum_margin_percent=minimum_margin_percent,
            **kwargs,
        )

    def pricing_description(self) -> str:
        """Human-readable description of the pricing method."""
        pricing = self.pricing
        if isinstance(pricing, FixedPrice):
            return f"Fixed: {format_money(pricing.value)}"
        if isinstance(pricing, PercentDiscount):
            return f"{pricing.value.normalize():f}% off"
        if isinstance(pricing, FixedDiscount):
            return f"{format_money(pricing.value)} off"
        return "No pricing"


@dataclass(frozen=True)
class PriceList:
    """
    A contract or promotional price list.

    Lower priority numbers win. Validity bounds are inclusive calendar
    dates; a missing bound is unbounded on that side.
    """
    id: str
    name: str
    priority: int = 100
    is_active: bool = True
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    description: Optional[str] = None
    items: tuple[PriceListItem, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "valid_from", to_date(self.valid_from))
        object.__setattr__(self, "valid_until", to_date(self.valid_until))
        object.__setattr__(self, "items", tuple(self.items))

    def is_currently_valid(self, price_date: Optional[Union[date, datetime]] = None) -> bool:
        """Check activity flag and validity window for the given date."""
        if not self.is_active:
            return False
        on = to_date(price_date) or date.today()
        if self.valid_from is not None and on < self.valid_from:
            return False
        if self.valid_until is not None and on > self.valid_until:
            return False
        return True

    def item_for(self, product_id: str) -> Optional[PriceListItem]:
        """Return this list's item for a product, if any."""
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None


@dataclass(frozen=True)
class VolumeTier:
    """Quantity-based pricing. max_quantity of None means no upper bound."""
    min_quantity: int
    max_quantity: Optional[int] = None
    pricing: TierPricing = NO_PRICING
    id: str = ""
    tier_description: Optional[str] = None

    @classmethod
    def from_fields(cls, min_quantity: int, max_quantity: Optional[int] = None,
                    unit_price=None, percent_discount=None, **kwargs) -> "VolumeTier":
        """Build a tier from nullable columns; unit price wins over percent."""
        if unit_price is not None:
            pricing = UnitPrice(unit_price)
        elif percent_discount is not None:
            pricing = PercentDiscount(percent_discount)
        else:
            pricing = NO_PRICING
        return cls(min_quantity=min_quantity, max_quantity=max_quantity, pricing=pricing, **kwargs)

    def matches(self, quantity: int) -> bool:
        if quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity <= self.max_quantity

    def range_description(self) -> str:
        """Tier range as text, e.g. '10-49 units'."""
        if self.tier_description:
            return self.tier_description
        if self.max_quantity is None:
            return f"{self.min_quantity}+ units"
        if self.min_quantity == self.max_quantity:
            return f"{self.min_quantity} unit"
        return f"{self.min_quantity}-{self.max_quantity} units"


@dataclass(frozen=True)
class Product:
    """Catalog view of a product as the engine needs it."""
    id: str
    base_price: Decimal
    name: str = ""
    sku: str = ""
    cost: Optional[Decimal] = None
    minimum_margin_percent: Optional[Decimal] = None
    volume_tiers: tuple[VolumeTier, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "base_price", to_decimal(self.base_price))
        object.__setattr__(self, "cost", to_optional_decimal(self.cost))
        object.__setattr__(
            self, "minimum_margin_percent", to_optional_decimal(self.minimum_margin_percent)
        )
        object.__setattr__(self, "volume_tiers", tuple(self.volume_tiers))


@dataclass(frozen=True)
class CustomerContext:
    """The requesting customer and the price lists already assigned to them."""
    customer_id: Optional[str] = None
    price_lists: tuple[PriceList, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "price_lists", tuple(self.price_lists))


@dataclass(frozen=True)
class PricingLine:
    """One product to price in a bulk calculation, with its inputs resolved."""
    product: Product
    customer: Optional[CustomerContext] = None
    quantity: int = 1
    price_date: Optional[date] = None
    cost_basis: Optional[Decimal] = None


@dataclass(frozen=True)
class PricingRequest:
    """A single line of a (bulk) pricing request."""
    product_id: str
    customer_id: Optional[str] = None
    quantity: int = 1
    price_date: Optional[date] = None
    include_breakdown: bool = False


# ============================================================================
# RESOLVER OUTPUTS
# ============================================================================

@dataclass(frozen=True)
class ContractMatch:
    """The winning price list item and the contract price it yields."""
    price_list: PriceList
    item: PriceListItem
    price: Decimal


@dataclass(frozen=True)
class MarginDecision:
    price: Decimal
    protected: bool
    margin_before: Optional[Decimal] = None


# ============================================================================
# PRICING RESULT
# ============================================================================

def _num(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class PricingRuleApplication:
    """A single step in the pricing waterfall."""
    order: int
    rule_type: RuleType
    rule_name: str
    price_before: Decimal
    price_after: Decimal
    adjustment: Decimal
    explanation: str

    def is_discount(self) -> bool:
        return self.adjustment < ZERO

    def to_dict(self) -> dict:
        return {
            "order": self.order,
            "ruleType": RuleType(self.rule_type).value,
            "ruleName": self.rule_name,
            "priceBefore": _num(self.price_before),
            "priceAfter": _num(self.price_after),
            "adjustment": _num(self.adjustment),
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PricingRuleApplication":
        return cls(
            order=int(data.get("order", 0)),
            rule_type=RuleType(data["ruleType"]),
            rule_name=data.get("ruleName", ""),
            price_before=to_decimal(data.get("priceBefore", 0)),
            price_after=to_decimal(data.get("priceAfter", 0)),
            adjustment=to_decimal(data.get("adjustment", 0)),
            explanation=data.get("explanation", ""),
        )

    @classmethod
    def list_from_json(cls, text: str) -> list["PricingRuleApplication"]:
        """Parse a stored rule trail. Malformed input yields an empty list."""
        try:
            parsed = json.loads(text)
            return [cls.from_dict(entry) for entry in parsed]
        except (TypeError, ValueError, KeyError):
            return []


class MarginStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PricingResult:
    """Complete result of a pricing calculation."""
    product_id: str
    base_price: Decimal
    final_price: Decimal
    total_discount: Decimal
    effective_margin_percent: Optional[Decimal]
    margin_protected: bool
    applied_rules: tuple[PricingRuleApplication, ...] = ()

    def discount_percent(self) -> Decimal:
        """Total discount as a percent of the base price."""
        if self.base_price == ZERO:
            return ZERO
        return self.total_discount / self.base_price * 100

    def is_margin_healthy(self, threshold=10) -> bool:
        # Unknown margin is treated as acceptable.
        if self.effective_margin_percent is None:
            return True
        return self.effective_margin_percent >= to_decimal(threshold)

    def margin_status(self, warning=10, healthy=20) -> MarginStatus:
        margin = self.effective_margin_percent
        if margin is None:
            return MarginStatus.UNKNOWN
        if margin >= to_decimal(healthy):
            return MarginStatus.HEALTHY
        if margin >= to_decimal(warning):
            return MarginStatus.WARNING
        return MarginStatus.CRITICAL

    def with_margin_hidden(self) -> "PricingResult":
        return replace(self, effective_margin_percent=None)

    def without_breakdown(self) -> "PricingResult":
        return replace(self, applied_rules=())

    def get_trace_text(self) -> str:
        """Get human-readable waterfall as formatted text."""
        return "\n".join(
            f"{rule.order}. {RuleType(rule.rule_type).value}: {rule.explanation}"
            for rule in self.applied_rules
        )

    def applied_rules_json(self) -> str:
        return json.dumps([rule.to_dict() for rule in self.applied_rules])

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "basePrice": _num(self.base_price),
            "finalPrice": _num(self.final_price),
            "totalDiscount": _num(self.total_discount),
            "effectiveMarginPercent": _num(self.effective_margin_percent),
            "marginProtected": self.margin_protected,
            "appliedRules": [rule.to_dict() for rule in self.applied_rules],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PricingResult":
        return cls(
            product_id=data["productId"],
            base_price=to_decimal(data["basePrice"]),
            final_price=to_decimal(data["finalPrice"]),
            total_discount=to_decimal(data["totalDiscount"]),
            effective_margin_percent=to_optional_decimal(data.get("effectiveMarginPercent")),
            margin_protected=bool(data.get("marginProtected", False)),
            applied_rules=tuple(
                PricingRuleApplication.from_dict(rule) for rule in data.get("appliedRules", [])
            ),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "PricingResult":
        return cls.from_dict(json.loads(text))
