"""
배송 조회 API — 고객용 공개 타임라인
"""

from fastapi import APIRouter, Depends

from app.schemas.bookings import TrackingEntryOut, TrackingLocation, TrackingResponse
from app.services.booking_service import BookingService
from app.api.dependencies import get_booking_service

router = APIRouter(prefix="/api/tracking", tags=["tracking"])


@router.get("/{reference}", response_model=TrackingResponse)
def track_shipment(reference: str, service: BookingService = Depends(get_booking_service)):
    """예약 번호로 상태와 이력(시각 오름차순) 조회"""
    booking = service.get_booking(reference)
    history = service.tracking_history(booking)

    return TrackingResponse(
        reference=booking.booking_reference,
        service_type=booking.service_type,
        status=booking.status,
        pickup=TrackingLocation(city=booking.pickup_city, date=booking.pickup_date),
        delivery=TrackingLocation(city=booking.delivery_city, date=booking.delivery_date),
        timeline=[
            TrackingEntryOut(
                status=e.status,
                location=e.location,
                notes=e.notes,
                timestamp=e.created_at,
            )
            for e in history
        ],
    )
