"""
요금 계산기 테스트
"""

from decimal import Decimal

from app.schemas.bookings import PricingOut
from app.services.pricing import (
    CourierRateCard, PriceBreakdown, price_flat_rate, price_for_route, round_money,
)
from tests.factories import make_item, make_route

RATE_CARD = CourierRateCard(
    flat_fee=Decimal("15"),
    free_weight_kg=Decimal("5"),
    overage_per_kg=Decimal("2"),
    insurance_threshold=Decimal("500"),
    insurance_rate=Decimal("0.01"),
    expedited_slot="Same Day",
    expedited_premium=Decimal("10"),
)


def _charges(breakdown):
    return {c.description: c.amount for c in breakdown.additional_charges}


def test_route_price_adds_weight_and_volume_charges(db):
    route = make_route(db, base_rate=2500, per_kg_rate=50, per_cubic_meter_rate=300)
    # 10kg, 100×50×40cm × 2 = 0.4 m³
    breakdown = price_for_route(route, [make_item()])

    charges = _charges(breakdown)
    assert breakdown.base_amount == Decimal("2500")
    assert charges["Weight charge"] == Decimal("500")
    assert charges["Volume charge"] == Decimal("120")
    assert breakdown.total_amount == Decimal("3120")


def test_route_price_without_dimensions_has_zero_volume_charge(db):
    route = make_route(db)
    breakdown = price_for_route(route, [make_item(dimensions=None, weight=4)])
    assert _charges(breakdown)["Volume charge"] == 0
    assert breakdown.total_amount == Decimal("2700")


def test_flat_rate_light_cheap_parcel_is_flat_fee_only():
    breakdown = price_flat_rate(RATE_CARD, [make_item(weight=3, value=100)], "Morning")
    assert breakdown.additional_charges == []
    assert breakdown.total_amount == Decimal("15")


def test_flat_rate_each_condition_adds_its_own_charge():
    items = [make_item(weight=8, value=400), make_item(weight=4, value=350)]
    breakdown = price_flat_rate(RATE_CARD, items, "Same Day")

    charges = _charges(breakdown)
    assert charges["Extra weight charge"] == Decimal("14")  # (12 - 5) × 2
    assert charges["Insurance charge"] == Decimal("7.5")    # 750 × 1%
    assert charges["Same day delivery"] == Decimal("10")
    assert breakdown.total_amount == Decimal("46.5")


def test_flat_rate_insurance_only_above_threshold():
    at_threshold = price_flat_rate(RATE_CARD, [make_item(weight=1, value=500)])
    assert "Insurance charge" not in _charges(at_threshold)


def test_storage_round_trip_keeps_precision():
    breakdown = price_flat_rate(RATE_CARD, [make_item(weight=5.333, value=0)])
    restored = PriceBreakdown.from_storage(breakdown.to_storage())
    assert restored.total_amount == breakdown.total_amount


def test_amounts_rounded_half_up_for_display():
    assert round_money(Decimal("10.005")) == 10.01
    out = PricingOut.from_breakdown(PriceBreakdown(base_amount=Decimal("1.234"), currency="ZAR"))
    assert out.total_amount == 1.23
    assert out.currency == "ZAR"
