"""
예약 관련 Pydantic 스키마
"""

import datetime as dt

from pydantic import BaseModel, Field

from app.models.booking import BookingStatus, PaymentStatus, ServiceType
from app.services.pricing import PriceBreakdown, round_money


# ── 요청 ──

class DimensionsIn(BaseModel):
    length: float | None = Field(None, ge=0, description="cm")
    width: float | None = Field(None, ge=0, description="cm")
    height: float | None = Field(None, ge=0, description="cm")


class BookingItemIn(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    weight: float | None = Field(None, ge=0, description="품목 전체 중량 (kg)")
    dimensions: DimensionsIn | None = None
    value: float | None = Field(None, ge=0, description="신고가액")
    fragile: bool = False


class CustomerIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=3)
    company: str | None = None


class PickupIn(BaseModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    date: dt.date
    time_slot: str | None = None
    contact_person: str | None = None
    contact_phone: str | None = None
    instructions: str | None = None


class DeliveryIn(BaseModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    date: dt.date | None = None
    time_slot: str | None = None
    contact_person: str | None = None
    contact_phone: str | None = None
    instructions: str | None = None


class AssignedVehicleIn(BaseModel):
    plate_number: str | None = None
    driver_name: str | None = None
    driver_phone: str | None = None


class ChargeIn(BaseModel):
    description: str
    amount: float = Field(..., ge=0)


class PricingIn(BaseModel):
    """이사/화물 협의 금액"""
    base_amount: float = Field(0, ge=0)
    additional_charges: list[ChargeIn] = []


class BookingCreate(BaseModel):
    service_type: ServiceType
    customer: CustomerIn
    pickup: PickupIn
    delivery: DeliveryIn
    items: list[BookingItemIn] = Field(..., min_length=1)
    route_id: int | None = None
    pricing: PricingIn | None = None
    assigned_vehicle: AssignedVehicleIn | None = None
    special_instructions: str | None = None


class CourierShipmentCreate(BaseModel):
    """운영 콘솔 워크인 택배 접수 — 서비스 유형은 courier 고정"""
    customer: CustomerIn
    pickup: PickupIn
    delivery: DeliveryIn
    items: list[BookingItemIn] = Field(..., min_length=1)
    assigned_vehicle: AssignedVehicleIn | None = None
    special_instructions: str | None = None

    def to_booking(self) -> BookingCreate:
        return BookingCreate(service_type=ServiceType.COURIER, **self.model_dump())


class StatusUpdateRequest(BaseModel):
    status: BookingStatus
    location: str | None = None
    notes: str | None = None


# ── 응답 ──

class ChargeOut(BaseModel):
    description: str
    amount: float


class PricingOut(BaseModel):
    base_amount: float
    additional_charges: list[ChargeOut] = []
    total_amount: float
    currency: str

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown) -> "PricingOut":
        return cls(
            base_amount=round_money(breakdown.base_amount),
            additional_charges=[
                ChargeOut(description=c.description, amount=round_money(c.amount))
                for c in breakdown.additional_charges
            ],
            total_amount=round_money(breakdown.total_amount),
            currency=breakdown.currency,
        )


class BookingCreatedResponse(BaseModel):
    message: str
    booking_reference: str
    status: BookingStatus
    pricing: PricingOut


class BookingItemOut(BaseModel):
    id: int
    description: str
    quantity: int
    weight: float | None = None
    length: float | None = None
    width: float | None = None
    height: float | None = None
    value: float | None = None
    fragile: bool

    model_config = {"from_attributes": True}


class TrackingEntryOut(BaseModel):
    status: str
    location: str | None = None
    notes: str | None = None
    timestamp: dt.datetime


class AdminTrackingEntryOut(TrackingEntryOut):
    id: int
    actor_id: str | None = None
    actor_role: str | None = None


class BookingOut(BaseModel):
    id: int
    booking_reference: str
    service_type: ServiceType
    status: BookingStatus
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_company: str | None = None
    pickup_address: str
    pickup_city: str
    pickup_date: dt.date
    pickup_time_slot: str | None = None
    delivery_address: str
    delivery_city: str
    delivery_date: dt.date | None = None
    delivery_time_slot: str | None = None
    route_id: int | None = None
    route_code: str | None = None
    items: list[BookingItemOut] = []
    pricing: PricingOut
    assigned_vehicle_plate: str | None = None
    assigned_driver_name: str | None = None
    assigned_driver_phone: str | None = None
    payment_status: PaymentStatus
    special_instructions: str | None = None
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class BookingListResponse(BaseModel):
    total: int
    total_pages: int
    current_page: int
    bookings: list[BookingOut]


class TrackingLocation(BaseModel):
    city: str
    date: dt.date | None = None


class TrackingResponse(BaseModel):
    """공개 배송 조회 — 작업자 정보는 노출하지 않는다."""
    reference: str
    service_type: ServiceType
    status: BookingStatus
    pickup: TrackingLocation
    delivery: TrackingLocation
    timeline: list[TrackingEntryOut]
