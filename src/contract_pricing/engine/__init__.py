"""Engine subpackage - the pricing waterfall and its resolvers."""
from .pricing_engine import PricingEngine
from .exceptions import PricingInputError
from .models import (
    CustomerContext,
    FixedDiscount,
    FixedPrice,
    NO_PRICING,
    PercentDiscount,
    PriceList,
    PriceListItem,
    PricingLine,
    PricingRequest,
    PricingResult,
    PricingRuleApplication,
    Product,
    RuleType,
    UnitPrice,
    VolumeTier,
)

__all__ = [
    'PricingEngine', 'PricingInputError',
    'CustomerContext', 'PriceList', 'PriceListItem', 'Product', 'VolumeTier',
    'FixedPrice', 'PercentDiscount', 'FixedDiscount', 'UnitPrice', 'NO_PRICING',
    'PricingLine', 'PricingRequest', 'PricingResult', 'PricingRuleApplication', 'RuleType',
]
