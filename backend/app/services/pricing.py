"""
요금 계산기 — 입력만으로 결정되는 순수 함수.

정기 노선:
  base = route.base_rate
  Weight charge = 총중량 × per_kg_rate
  Volume charge = 총부피 × per_cubic_meter_rate
택배(워크인) 고정 요금:
  base = 고정 요금
  Extra weight charge  — 무료 중량 초과분 × kg당 요금
  Insurance charge     — 신고가액 합계가 기준 초과 시 합계 × 요율
  Same day delivery    — 배송 시간대가 당일 옵션이면 고정 할증
내부 계산은 Decimal, 소수 둘째 자리 반올림은 응답 변환 시에만.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from app.config import settings
from app.models.route import Route
from app.services.capacity import ZERO, sum_items, to_decimal, item_field

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Charge:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    base_amount: Decimal
    additional_charges: list[Charge] = field(default_factory=list)
    currency: str = "USD"

    @property
    def total_amount(self) -> Decimal:
        return self.base_amount + sum((c.amount for c in self.additional_charges), ZERO)

    def to_storage(self) -> dict:
        """DB JSON 저장용 — 정밀도 유지를 위해 문자열"""
        return {
            "base_amount": str(self.base_amount),
            "additional_charges": [
                {"description": c.description, "amount": str(c.amount)}
                for c in self.additional_charges
            ],
            "total_amount": str(self.total_amount),
            "currency": self.currency,
        }

    @classmethod
    def from_storage(cls, data: dict | None) -> "PriceBreakdown":
        data = data or {}
        return cls(
            base_amount=to_decimal(data.get("base_amount")),
            additional_charges=[
                Charge(description=c.get("description", ""), amount=to_decimal(c.get("amount")))
                for c in data.get("additional_charges") or []
            ],
            currency=data.get("currency") or settings.CURRENCY,
        )


def round_money(amount: Decimal) -> float:
    """표시용 반올림 (소수 둘째 자리)"""
    return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CourierRateCard:
    flat_fee: Decimal
    free_weight_kg: Decimal
    overage_per_kg: Decimal
    insurance_threshold: Decimal
    insurance_rate: Decimal
    expedited_slot: str
    expedited_premium: Decimal

    @classmethod
    def from_settings(cls) -> "CourierRateCard":
        return cls(
            flat_fee=Decimal(settings.COURIER_FLAT_FEE),
            free_weight_kg=Decimal(settings.COURIER_FREE_WEIGHT_KG),
            overage_per_kg=Decimal(settings.COURIER_OVERAGE_PER_KG),
            insurance_threshold=Decimal(settings.COURIER_INSURANCE_THRESHOLD),
            insurance_rate=Decimal(settings.COURIER_INSURANCE_RATE),
            expedited_slot=settings.COURIER_EXPEDITED_SLOT,
            expedited_premium=Decimal(settings.COURIER_EXPEDITED_PREMIUM),
        )


def price_for_route(route: Route, items, currency: str | None = None) -> PriceBreakdown:
    totals = sum_items(items)
    weight_charge = totals.weight * to_decimal(route.per_kg_rate)
    volume_charge = totals.volume * to_decimal(route.per_cubic_meter_rate)
    return PriceBreakdown(
        base_amount=to_decimal(route.base_rate),
        additional_charges=[
            Charge("Weight charge", weight_charge),
            Charge("Volume charge", volume_charge),
        ],
        currency=currency or settings.CURRENCY,
    )


def total_declared_value(items) -> Decimal:
    return sum((to_decimal(item_field(i, "value")) for i in items or []), ZERO)


def price_flat_rate(rate_card: CourierRateCard, items, delivery_time_slot: str | None = None,
                    currency: str | None = None) -> PriceBreakdown:
    """각 조건은 독립적으로 적용되며 조건마다 항목 하나를 추가한다."""
    charges = []

    total_weight = sum_items(items).weight
    if total_weight > rate_card.free_weight_kg:
        overage = (total_weight - rate_card.free_weight_kg) * rate_card.overage_per_kg
        charges.append(Charge("Extra weight charge", overage))

    declared = total_declared_value(items)
    if declared > rate_card.insurance_threshold:
        charges.append(Charge("Insurance charge", declared * rate_card.insurance_rate))

    if delivery_time_slot and delivery_time_slot == rate_card.expedited_slot:
        charges.append(Charge("Same day delivery", rate_card.expedited_premium))

    return PriceBreakdown(
        base_amount=rate_card.flat_fee,
        additional_charges=charges,
        currency=currency or settings.CURRENCY,
    )
