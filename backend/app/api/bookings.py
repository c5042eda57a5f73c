"""
예약 API — 예약 생성, 예약 번호로 조회
"""

from fastapi import APIRouter, Depends

from app.models import Booking
from app.schemas.bookings import (
    BookingCreate, BookingCreatedResponse, BookingItemOut, BookingOut, PricingOut,
)
from app.services.booking_service import BookingService
from app.services.pricing import PriceBreakdown
from app.api.dependencies import get_booking_service

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def build_booking_response(booking: Booking) -> BookingOut:
    """Booking ORM → BookingOut 변환 헬퍼"""
    return BookingOut(
        id=booking.id,
        booking_reference=booking.booking_reference,
        service_type=booking.service_type,
        status=booking.status,
        customer_name=booking.customer_name,
        customer_email=booking.customer_email,
        customer_phone=booking.customer_phone,
        customer_company=booking.customer_company,
        pickup_address=booking.pickup_address,
        pickup_city=booking.pickup_city,
        pickup_date=booking.pickup_date,
        pickup_time_slot=booking.pickup_time_slot,
        delivery_address=booking.delivery_address,
        delivery_city=booking.delivery_city,
        delivery_date=booking.delivery_date,
        delivery_time_slot=booking.delivery_time_slot,
        route_id=booking.route_id,
        route_code=booking.route.route_code if booking.route else None,
        items=[BookingItemOut.model_validate(i) for i in booking.items],
        pricing=PricingOut.from_breakdown(PriceBreakdown.from_storage(booking.pricing)),
        assigned_vehicle_plate=booking.assigned_vehicle_plate,
        assigned_driver_name=booking.assigned_driver_name,
        assigned_driver_phone=booking.assigned_driver_phone,
        payment_status=booking.payment_status,
        special_instructions=booking.special_instructions,
        is_active=booking.is_active,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


@router.post("", response_model=BookingCreatedResponse, status_code=201)
def create_booking(req: BookingCreate, service: BookingService = Depends(get_booking_service)):
    """예약 생성 — 정기 노선은 적재 한도 검사 후 저장"""
    booking = service.create_booking(req)
    return BookingCreatedResponse(
        message="Booking created successfully",
        booking_reference=booking.booking_reference,
        status=booking.status,
        pricing=PricingOut.from_breakdown(PriceBreakdown.from_storage(booking.pricing)),
    )


@router.get("/{reference}", response_model=BookingOut)
def get_booking(reference: str, service: BookingService = Depends(get_booking_service)):
    """예약 번호로 상세 조회"""
    return build_booking_response(service.get_booking(reference))
