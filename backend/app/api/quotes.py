"""
견적 API — 비구속 요금 추정 (저장하지 않음)
"""

from fastapi import APIRouter, Depends

from app.models.booking import ServiceType
from app.schemas.bookings import PricingOut
from app.schemas.quotes import QuoteEstimateRequest, QuoteEstimateResponse
from app.services.booking_service import BookingService
from app.api.dependencies import get_booking_service

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


@router.post("/estimate", response_model=QuoteEstimateResponse)
def estimate_quote(req: QuoteEstimateRequest, service: BookingService = Depends(get_booking_service)):
    """정기 노선/택배 요금 추정 — 이사/화물은 담당자 확인 필요"""
    breakdown, route = service.estimate_quote(req)

    if breakdown is None:
        if req.service_type == ServiceType.SCHEDULED_ROUTE:
            message = "No active route serves this origin and destination"
        else:
            message = "This service is priced on request; an operator will follow up"
        return QuoteEstimateResponse(service_type=req.service_type, message=message)

    return QuoteEstimateResponse(
        service_type=req.service_type,
        route_id=route.id if route else None,
        route_code=route.route_code if route else None,
        estimated_price=PricingOut.from_breakdown(breakdown),
        message="Estimated price",
    )
