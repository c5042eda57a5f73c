"""
적재량 집계 / 적재 한도 검사 테스트
"""

from decimal import Decimal

import pytest

from app.models import Booking, BookingItem
from app.models.booking import BookingStatus, ServiceType
from app.services.capacity import (
    CapacityUsage, capacity_snapshot, check_capacity, compute_usage, item_measure, sum_items,
)
from tests.factories import DEPARTURE_DAY, make_item, make_route


def _add_booking(db, route, status=BookingStatus.CONFIRMED, pickup_date=DEPARTURE_DAY,
                 items=None, is_active=True, reference="S000001AAA"):
    booking = Booking(
        booking_reference=reference,
        service_type=ServiceType.SCHEDULED_ROUTE,
        status=status,
        customer_name="Test",
        customer_email="t@example.com",
        customer_phone="000",
        pickup_address="a",
        pickup_city="Johannesburg",
        pickup_date=pickup_date,
        delivery_address="b",
        delivery_city="Cape Town",
        route_id=route.id,
        pricing={},
        is_active=is_active,
    )
    for item in items or [BookingItem(description="box", quantity=1, weight=100,
                                      length=100, width=100, height=100)]:
        booking.items.append(item)
    db.add(booking)
    db.commit()
    return booking


class TestItemMeasure:
    def test_weight_is_not_multiplied_by_quantity(self):
        usage = item_measure(make_item(quantity=3, weight=12))
        assert usage.weight == Decimal("12")
        assert usage.parcels == 3

    def test_volume_uses_all_three_dimensions_times_quantity(self):
        usage = item_measure(make_item(quantity=2, dimensions={"length": 100, "width": 50, "height": 40}))
        # 100×50×40 cm = 0.2 m³, × 2
        assert usage.volume == Decimal("0.4")

    def test_missing_dimension_contributes_no_volume(self):
        usage = item_measure(make_item(dimensions={"length": 100, "width": 50}))
        assert usage.volume == 0

    def test_malformed_fields_count_as_zero(self):
        usage = item_measure({"quantity": "many", "weight": "heavy",
                              "dimensions": {"length": "x", "width": 10, "height": 10}})
        assert usage == CapacityUsage()

    def test_negative_values_count_as_zero(self):
        usage = item_measure({"quantity": 1, "weight": -5})
        assert usage.weight == 0
        assert usage.parcels == 1

    def test_flat_orm_dimensions(self):
        item = BookingItem(description="x", quantity=1, weight=2, length=10, width=10, height=10)
        assert item_measure(item).volume == Decimal("0.001")

    def test_sum_items_handles_empty(self):
        assert sum_items(None) == CapacityUsage()
        assert sum_items([]) == CapacityUsage()


class TestComputeUsage:
    def test_counts_only_holding_statuses(self, db):
        route = make_route(db)
        held = [BookingStatus.CONFIRMED, BookingStatus.PICKED, BookingStatus.IN_TRANSIT]
        released = [BookingStatus.PENDING, BookingStatus.CANCELLED, BookingStatus.DELIVERED]
        for n, status in enumerate(held + released):
            _add_booking(db, route, status=status, reference=f"S00000{n}ABC")

        usage = compute_usage(db, route.id, DEPARTURE_DAY)
        assert usage.parcels == len(held)
        assert usage.weight == Decimal("300")
        assert usage.volume == Decimal("3")

    def test_ignores_other_dates_routes_and_inactive(self, db):
        route = make_route(db)
        other = make_route(db, route_code="JNB-DUR-01", destination_city="Durban")
        _add_booking(db, route, reference="S000001AAA")
        _add_booking(db, route, pickup_date=DEPARTURE_DAY.replace(day=11), reference="S000002AAA")
        _add_booking(db, other, reference="S000003AAA")
        _add_booking(db, route, is_active=False, reference="S000004AAA")

        assert compute_usage(db, route.id, DEPARTURE_DAY).parcels == 1

    def test_empty_departure_is_zero(self, db):
        route = make_route(db)
        assert compute_usage(db, route.id, DEPARTURE_DAY) == CapacityUsage()


class TestCheckCapacity:
    @pytest.fixture
    def route(self, db):
        return make_route(db, max_weight_kg=100, max_volume_m3=1, max_parcels=10)

    def test_accepts_exactly_at_limit(self, route):
        usage = CapacityUsage(weight=Decimal("90"), volume=Decimal("0.5"), parcels=8)
        decision = check_capacity(route, usage, [make_item(quantity=2, weight=10,
                                                           dimensions={"length": 50, "width": 50, "height": 100})])
        assert decision.accepted
        assert decision.prospective.parcels == 10
        assert decision.breaches == []

    def test_rejects_when_any_dimension_exceeds(self, route):
        usage = CapacityUsage(weight=Decimal("95"), volume=Decimal("0"), parcels=0)
        decision = check_capacity(route, usage, [make_item(quantity=1, weight=10, dimensions=None)])
        assert not decision.accepted
        assert [b.dimension for b in decision.breaches] == ["weight"]
        assert decision.breaches[0].requested == Decimal("105")
        assert "weight" in decision.reason

    def test_reports_every_breached_dimension(self, route):
        items = [make_item(quantity=11, weight=200, dimensions={"length": 100, "width": 100, "height": 100})]
        decision = check_capacity(route, CapacityUsage(), items)
        assert [b.dimension for b in decision.breaches] == ["weight", "volume", "parcels"]

    def test_is_deterministic(self, route):
        usage = CapacityUsage(weight=Decimal("50"), volume=Decimal("0.2"), parcels=3)
        items = [make_item()]
        assert check_capacity(route, usage, items) == check_capacity(route, usage, items)


def test_capacity_snapshot_floors_available_at_zero(db):
    route = make_route(db, max_weight_kg=100, max_volume_m3=2, max_parcels=4)
    usage = CapacityUsage(weight=Decimal("150"), volume=Decimal("0.5"), parcels=1)
    snapshot = capacity_snapshot(route, usage)

    assert snapshot["available"]["weight"] == 0
    assert snapshot["available"]["volume"] == 1.5
    assert snapshot["utilization_percentage"]["weight"] == 150.0
    assert snapshot["utilization_percentage"]["parcels"] == 25.0
