"""
Model behaviour and JSON serialization of results.
"""
import json
from decimal import Decimal

from contract_pricing.engine import (
    FixedDiscount,
    FixedPrice,
    NO_PRICING,
    PercentDiscount,
    PriceListItem,
    PricingResult,
    PricingRuleApplication,
    Product,
    UnitPrice,
    VolumeTier,
)
from contract_pricing.engine.models import MarginStatus

from conftest import PRICE_DATE


def test_item_from_fields_prefers_fixed_price():
    item = PriceListItem.from_fields("p", fixed_price=85, percent_discount=10, fixed_discount=5)
    assert item.pricing == FixedPrice(85)

    item = PriceListItem.from_fields("p", percent_discount=10, fixed_discount=5)
    assert item.pricing == PercentDiscount(10)

    item = PriceListItem.from_fields("p", fixed_discount=5)
    assert item.pricing == FixedDiscount(5)

    assert PriceListItem.from_fields("p").pricing == NO_PRICING


def test_tier_from_fields_prefers_unit_price():
    tier = VolumeTier.from_fields(10, 49, unit_price=90, percent_discount=5)
    assert tier.pricing == UnitPrice(90)


def test_pricing_descriptions():
    assert PriceListItem("p", FixedPrice(85)).pricing_description() == "Fixed: $85.00"
    assert PriceListItem("p", PercentDiscount(10)).pricing_description() == "10% off"
    assert PriceListItem("p", PercentDiscount("12.50")).pricing_description() == "12.5% off"
    assert PriceListItem("p", FixedDiscount(5)).pricing_description() == "$5.00 off"
    assert PriceListItem("p").pricing_description() == "No pricing"


def test_range_descriptions():
    assert VolumeTier(50).range_description() == "50+ units"
    assert VolumeTier(1, 1).range_description() == "1 unit"
    assert VolumeTier(10, 49).range_description() == "10-49 units"
    assert VolumeTier(10, 49, tier_description="Case pack").range_description() == "Case pack"


def test_product_normalises_amounts():
    product = Product(id="p", base_price=19.99, cost="12.5")
    assert product.base_price == Decimal("19.99")
    assert product.cost == Decimal("12.5")


def _result(**overrides):
    values = dict(
        product_id="p",
        base_price=Decimal("100.00"),
        final_price=Decimal("85.00"),
        total_discount=Decimal("15.00"),
        effective_margin_percent=Decimal("25.50"),
        margin_protected=False,
    )
    values.update(overrides)
    return PricingResult(**values)


def test_discount_percent():
    assert _result().discount_percent() == Decimal("15")
    assert _result(base_price=Decimal("0"), total_discount=Decimal("0")).discount_percent() == 0


def test_margin_status():
    assert _result().margin_status() == MarginStatus.HEALTHY
    assert _result(effective_margin_percent=Decimal("12")).margin_status() == MarginStatus.WARNING
    assert _result(effective_margin_percent=Decimal("3")).margin_status() == MarginStatus.CRITICAL
    assert _result(effective_margin_percent=None).margin_status() == MarginStatus.UNKNOWN


def test_margin_health_treats_unknown_as_healthy():
    assert _result(effective_margin_percent=None).is_margin_healthy()
    assert not _result(effective_margin_percent=Decimal("9.99")).is_margin_healthy()
    assert _result(effective_margin_percent=Decimal("9.99")).is_margin_healthy(threshold=5)


def test_result_round_trips_through_json(engine):
    product = Product(
        id="prod-1", base_price=100, cost=90, minimum_margin_percent=20,
        volume_tiers=(VolumeTier(1, 9, UnitPrice("99.99")),),
    )
    result = engine.calculate_price(product, None, 2, PRICE_DATE)

    restored = PricingResult.from_json(result.to_json())

    assert restored == result
    assert json.loads(result.to_json())["appliedRules"][0]["ruleType"] == "BasePrice"


def test_applied_rules_json_round_trip(engine, gloves, contract_customer):
    result = engine.calculate_price(gloves, contract_customer, 1, PRICE_DATE)
    parsed = PricingRuleApplication.list_from_json(result.applied_rules_json())
    assert tuple(parsed) == result.applied_rules


def test_malformed_rule_json_yields_empty_list():
    assert PricingRuleApplication.list_from_json("not json") == []
    assert PricingRuleApplication.list_from_json('[{"order": 1}]') == []


def test_trace_text(engine, gloves, contract_customer):
    text = engine.calculate_price(gloves, contract_customer, 1, PRICE_DATE).get_trace_text()
    assert text.splitlines()[0] == "1. BasePrice: Base product price: $100.00"
    assert "Hospital Contract" in text
