"""
Waterfall tests: base -> contract -> volume -> margin.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from contract_pricing.config.settings import Settings
from contract_pricing.engine import (
    CustomerContext,
    FixedPrice,
    PercentDiscount,
    PricingEngine,
    PricingInputError,
    PricingLine,
    Product,
    RuleType,
    VolumeTier,
)

from conftest import PRICE_DATE, SAMPLE_DIR, make_list


def rule_types(result):
    return [RuleType(r.rule_type) for r in result.applied_rules]


def test_base_price_only(engine, gloves):
    result = engine.calculate_price(gloves, None, 1, PRICE_DATE)

    assert result.final_price == Decimal("100.00")
    assert result.total_discount == Decimal("0")
    assert result.effective_margin_percent is None
    assert result.margin_protected is False
    assert rule_types(result) == [RuleType.BASE_PRICE]

    base_rule = result.applied_rules[0]
    assert base_rule.order == 1
    assert base_rule.price_before == Decimal("0")
    assert base_rule.price_after == Decimal("100.00")
    assert base_rule.adjustment == Decimal("100.00")


def test_contract_priority_picks_fixed_85(engine, gloves, contract_customer):
    result = engine.calculate_price(gloves, contract_customer, 1, PRICE_DATE)

    assert result.final_price == Decimal("85.00")
    assert result.total_discount == Decimal("15.00")
    contract_rule = result.applied_rules[1]
    assert contract_rule.order == 2
    assert contract_rule.rule_type == RuleType.CONTRACT_PRICE
    assert contract_rule.rule_name == "Hospital Contract"
    assert contract_rule.adjustment == Decimal("-15.00")
    assert contract_rule.is_discount()


@pytest.mark.parametrize("quantity,expected,tier_applied", [
    (9, Decimal("100.00"), False),
    (10, Decimal("90.00"), True),
    (50, Decimal("80.00"), True),
    (0, Decimal("100.00"), False),
])
def test_volume_tiers(engine, standard_tiers, quantity, expected, tier_applied):
    product = Product(id="prod-1", base_price=100, volume_tiers=standard_tiers)
    result = engine.calculate_price(product, None, quantity, PRICE_DATE)

    assert result.final_price == expected
    assert (RuleType.VOLUME_TIER in rule_types(result)) is tier_applied


def test_volume_discount_stacks_on_contract_price(engine):
    product = Product(
        id="prod-1",
        base_price=100,
        volume_tiers=(VolumeTier(min_quantity=10, pricing=PercentDiscount(10)),),
    )
    customer = CustomerContext("cust-1", (make_list("gpo", 20, PercentDiscount(10)),))

    result = engine.calculate_price(product, customer, 10, PRICE_DATE)

    assert result.final_price == Decimal("81.00")
    tier_rule = result.applied_rules[2]
    assert tier_rule.order == 3
    assert tier_rule.price_before == Decimal("90.00")
    assert tier_rule.rule_name == "10+ units"


def test_margin_protection_raises_price(engine):
    product = Product(id="prod-1", base_price=100, cost=90, minimum_margin_percent=20)

    result = engine.calculate_price(product, None, 1, PRICE_DATE)

    assert result.margin_protected is True
    assert result.final_price == Decimal("112.50")
    assert result.total_discount == Decimal("-12.50")
    assert result.effective_margin_percent == Decimal("20.00")
    assert rule_types(result) == [RuleType.BASE_PRICE, RuleType.MARGIN_PROTECTION]
    margin_rule = result.applied_rules[-1]
    assert margin_rule.order == 4
    assert margin_rule.adjustment == Decimal("12.50")
    assert "20% minimum margin" in margin_rule.explanation


def test_explicit_cost_basis_overrides_product_cost(engine):
    product = Product(id="prod-1", base_price=100, cost=10, minimum_margin_percent=20)
    result = engine.calculate_price(product, None, 1, PRICE_DATE, cost_basis="90")
    assert result.final_price == Decimal("112.50")


def test_item_margin_override_beats_product_minimum(engine):
    product = Product(id="prod-1", base_price=100, cost=70, minimum_margin_percent=5)
    customer = CustomerContext(
        "cust-1", (make_list("hosp", 10, FixedPrice(85), minimum_margin_percent=30),)
    )

    result = engine.calculate_price(product, customer, 1, PRICE_DATE)

    # 85 earns 17.6%; a 30% floor over a $70 cost is $100
    assert result.final_price == Decimal("100.00")
    assert result.margin_protected is True
    assert result.total_discount == Decimal("0.00")
    assert rule_types(result) == [
        RuleType.BASE_PRICE, RuleType.CONTRACT_PRICE, RuleType.MARGIN_PROTECTION,
    ]


def test_unchanged_contract_price_still_carries_margin_override(engine):
    product = Product(id="prod-1", base_price=100, cost=90)
    customer = CustomerContext(
        "cust-1", (make_list("hosp", 10, FixedPrice(100), minimum_margin_percent=20),)
    )

    result = engine.calculate_price(product, customer, 1, PRICE_DATE)

    assert RuleType.CONTRACT_PRICE not in rule_types(result)
    assert result.margin_protected is True
    assert result.final_price == Decimal("112.50")


def test_settings_default_minimum_margin():
    engine = PricingEngine(Settings(data_dir=SAMPLE_DIR, default_minimum_margin_percent=Decimal("20")))
    product = Product(id="prod-1", base_price=100, cost=90)
    assert engine.calculate_price(product, None, 1, PRICE_DATE).final_price == Decimal("112.50")


def test_missing_cost_skips_margin_stage(engine):
    product = Product(id="prod-1", base_price=100, minimum_margin_percent=20)
    result = engine.calculate_price(product, None, 1, PRICE_DATE)
    assert result.margin_protected is False
    assert result.effective_margin_percent is None


def test_minimum_margin_of_100_is_ignored(engine):
    product = Product(id="prod-1", base_price=100, cost=90, minimum_margin_percent=100)
    result = engine.calculate_price(product, None, 1, PRICE_DATE)
    assert result.final_price == Decimal("100.00")
    assert result.margin_protected is False


def test_non_finite_tier_leaves_price_unchanged(engine):
    product = Product(id="prod-1", base_price=100,
                      volume_tiers=(VolumeTier(min_quantity=1, pricing=PercentDiscount(float("nan"))),))
    result = engine.calculate_price(product, None, 5, PRICE_DATE)
    assert result.final_price == Decimal("100.00")
    assert rule_types(result) == [RuleType.BASE_PRICE]


def test_non_finite_contract_item_falls_through(engine, gloves):
    customer = CustomerContext("cust-1", (
        make_list("pl-1", 1, FixedPrice("NaN")),
        make_list("pl-2", 2, PercentDiscount(10)),
    ))
    result = engine.calculate_price(gloves, customer, 1, PRICE_DATE)
    assert result.final_price == Decimal("90.00")
    assert result.applied_rules[-1].rule_name == "List pl-2"


def test_non_finite_item_minimum_margin_skips_protection(engine):
    product = Product(id="prod-1", base_price=100, cost=90)
    customer = CustomerContext("cust-1", (
        make_list("pl-1", 1, FixedPrice(95), minimum_margin_percent="NaN"),
    ))
    result = engine.calculate_price(product, customer, 1, PRICE_DATE)
    assert result.final_price == Decimal("95.00")
    assert result.margin_protected is False


def test_effective_margin_reported_without_protection(engine):
    product = Product(id="prod-1", base_price=100, cost=60)
    result = engine.calculate_price(product, None, 1, PRICE_DATE)
    assert result.effective_margin_percent == Decimal("40.00")


def test_expired_only_list_falls_back_to_base(engine, gloves):
    today = date(2026, 10, 18)
    customer = CustomerContext(
        "cust-1", (make_list("old", 1, FixedPrice(50), valid_until=today - timedelta(days=1)),)
    )
    result = engine.calculate_price(gloves, customer, 1, today)
    assert result.final_price == Decimal("100.00")
    assert rule_types(result) == [RuleType.BASE_PRICE]


def test_adjustments_sum_to_total_change(engine):
    product = Product(
        id="prod-1",
        base_price="123.45",
        cost="100",
        minimum_margin_percent="15",
        volume_tiers=(VolumeTier(min_quantity=5, pricing=PercentDiscount("7.5")),),
    )
    customer = CustomerContext("cust-1", (make_list("gpo", 1, PercentDiscount("12.5")),))

    result = engine.calculate_price(product, customer, 5, PRICE_DATE)

    changes = sum(r.adjustment for r in result.applied_rules[1:])
    assert abs(changes - (result.final_price - result.base_price)) <= Decimal("0.01")
    assert result.applied_rules[-1].price_after == result.final_price


def test_rule_trail_is_chained(engine, gloves, contract_customer):
    result = engine.calculate_price(gloves, contract_customer, 1, PRICE_DATE)
    for prev, rule in zip(result.applied_rules, result.applied_rules[1:]):
        assert rule.price_before == prev.price_after
        assert rule.order > prev.order


def test_calculation_is_idempotent(engine, gloves, contract_customer):
    first = engine.calculate_price(gloves, contract_customer, 3, PRICE_DATE)
    second = engine.calculate_price(gloves, contract_customer, 3, PRICE_DATE)
    assert first == second


def test_bulk_results_follow_input_order(engine, contract_customer):
    products = [Product(id=f"prod-{i}", base_price=10 * i) for i in range(1, 6)]
    lines = [PricingLine(product=p, customer=contract_customer, price_date=PRICE_DATE)
             for p in reversed(products)]

    results = engine.calculate_bulk(lines)

    assert [r.product_id for r in results] == [p.id for p in reversed(products)]


@pytest.mark.parametrize("kwargs,message", [
    ({"product": None}, "product is required"),
    ({"product": Product(id="p", base_price=-1)}, "base price must not be negative"),
    ({"product": Product(id="p", base_price=float("inf"))}, "base price must be a finite amount"),
    ({"quantity": -1}, "quantity must not be negative"),
    ({"quantity": 1.5}, "whole number"),
    ({"cost_basis": -3}, "cost basis must not be negative"),
    ({"cost_basis": float("nan")}, "cost basis must be a finite amount"),
    ({"product": Product(id="p", base_price=10, cost="NaN")}, "cost basis must be a finite amount"),
])
def test_input_contract_violations(engine, gloves, kwargs, message):
    args = {"product": gloves, "customer": None, "quantity": 1, "price_date": PRICE_DATE}
    args.update(kwargs)
    with pytest.raises(PricingInputError, match=message):
        engine.calculate_price(**args)


def test_price_date_defaults_to_today(engine, gloves):
    customer = CustomerContext("cust-1", (make_list("always", 1, FixedPrice(70)),))
    assert engine.calculate_price(gloves, customer).final_price == Decimal("70.00")
