"""
노선 적재량 집계 및 적재 한도 검사

- compute_usage(): (노선, 출발일)의 확정 예약 품목을 합산해 현재 사용량을 계산한다.
  사용량은 저장하지 않고 매번 예약에서 다시 계산한다.
- check_capacity(): 기존 사용량 + 신규 품목이 노선 최대치(중량/부피/개수)를 넘는지 판정한다.
- capacity_snapshot(): 조회 API용 최대치/사용량/잔여량/사용률.

품목 계산 규칙:
  weight  += item.weight                     (품목 전체 중량, quantity 곱하지 않음)
  volume  += L×W×H / 1,000,000 × quantity    (cm → m³, 세 치수가 모두 있을 때만)
  parcels += quantity
누락되었거나 잘못된 값은 0으로 취급한다.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from app.models import Booking
from app.models.booking import BookingStatus
from app.models.route import Route

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CM3_PER_M3 = Decimal("1000000")

# 출발편 적재 공간을 점유하는 상태
CAPACITY_HOLDING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.PICKED,
    BookingStatus.IN_TRANSIT,
)

DIMENSIONS = ("weight", "volume", "parcels")


@dataclass(frozen=True)
class CapacityUsage:
    """중량(kg) / 부피(m³) / 개수 합계"""
    weight: Decimal = ZERO
    volume: Decimal = ZERO
    parcels: int = 0

    def __add__(self, other: "CapacityUsage") -> "CapacityUsage":
        return CapacityUsage(
            weight=self.weight + other.weight,
            volume=self.volume + other.volume,
            parcels=self.parcels + other.parcels,
        )


@dataclass(frozen=True)
class CapacityBreach:
    dimension: str
    limit: Decimal
    requested: Decimal


@dataclass(frozen=True)
class CapacityDecision:
    """적재 한도 검사 결과"""
    accepted: bool
    prospective: CapacityUsage
    breaches: list[CapacityBreach] = field(default_factory=list)
    reason: str | None = None


def to_decimal(value) -> Decimal:
    """숫자로 해석 가능한 0 이상의 값만 Decimal로, 나머지는 0"""
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not number.is_finite() or number < 0:
        return ZERO
    return number


def _to_quantity(value) -> int:
    return int(to_decimal(value))


def item_field(item, name: str, default=None):
    """ORM 행 / pydantic 모델 / dict 어느 쪽이든 필드 조회"""
    if item is None:
        return default
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def _item_dimensions(item) -> tuple:
    nested = item_field(item, "dimensions")
    source = nested if nested is not None else item
    return (
        item_field(source, "length"),
        item_field(source, "width"),
        item_field(source, "height"),
    )


def item_measure(item) -> CapacityUsage:
    """품목 1건의 중량/부피/개수"""
    quantity = _to_quantity(item_field(item, "quantity"))
    weight = to_decimal(item_field(item, "weight"))

    length, width, height = (to_decimal(v) for v in _item_dimensions(item))
    if length > 0 and width > 0 and height > 0:
        volume = (length * width * height) / CM3_PER_M3 * quantity
    else:
        volume = ZERO

    return CapacityUsage(weight=weight, volume=volume, parcels=quantity)


def sum_items(items: Iterable | None) -> CapacityUsage:
    total = CapacityUsage()
    for item in items or []:
        total = total + item_measure(item)
    return total


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def compute_usage(db: Session, route_id: int, on_date: date | datetime) -> CapacityUsage:
    """
    (노선, 출발일)의 현재 사용량.
    confirmed/picked/in_transit 상태의 활성 예약만 합산한다.
    """
    day = _as_date(on_date)
    bookings = (
        db.query(Booking)
        .filter(
            Booking.route_id == route_id,
            Booking.pickup_date == day,
            Booking.status.in_(CAPACITY_HOLDING_STATUSES),
            Booking.is_active.is_(True),
        )
        .all()
    )

    usage = CapacityUsage()
    for booking in bookings:
        usage = usage + sum_items(booking.items)

    logger.debug(
        f"적재량 집계: route={route_id} date={day} bookings={len(bookings)} "
        f"| {usage.weight}kg {usage.volume}m³ {usage.parcels}개"
    )
    return usage


def route_limits(route: Route) -> CapacityUsage:
    return CapacityUsage(
        weight=to_decimal(route.max_weight_kg),
        volume=to_decimal(route.max_volume_m3),
        parcels=_to_quantity(route.max_parcels),
    )


def check_capacity(route: Route, usage: CapacityUsage, prospective_items) -> CapacityDecision:
    """
    기존 사용량 + 신규 품목이 세 가지 최대치를 모두 만족하면 수락.
    한 항목이라도 초과하면 예약 전체를 거절한다 (부분 수락 없음).
    """
    prospective = usage + sum_items(prospective_items)
    limits = route_limits(route)

    breaches = [
        CapacityBreach(
            dimension=dim,
            limit=Decimal(getattr(limits, dim)),
            requested=Decimal(getattr(prospective, dim)),
        )
        for dim in DIMENSIONS
        if getattr(prospective, dim) > getattr(limits, dim)
    ]

    if not breaches:
        return CapacityDecision(accepted=True, prospective=prospective)

    summary = ", ".join(f"{b.dimension} {b.requested}/{b.limit}" for b in breaches)
    return CapacityDecision(
        accepted=False,
        prospective=prospective,
        breaches=breaches,
        reason=f"Route capacity exceeded ({summary})",
    )


def _utilization(used: Decimal, limit: Decimal) -> float:
    if limit <= 0:
        return 0.0
    return float(used / limit * 100)


def capacity_snapshot(route: Route, usage: CapacityUsage) -> dict:
    """조회용 — 최대치, 사용량, 잔여량(0 하한), 항목별 사용률(%)"""
    limits = route_limits(route)
    snapshot = {"capacity": {}, "used": {}, "available": {}, "utilization_percentage": {}}
    for dim in DIMENSIONS:
        limit = Decimal(getattr(limits, dim))
        used = Decimal(getattr(usage, dim))
        snapshot["capacity"][dim] = float(limit)
        snapshot["used"][dim] = float(used)
        snapshot["available"][dim] = float(max(ZERO, limit - used))
        snapshot["utilization_percentage"][dim] = _utilization(used, limit)
    return snapshot
