"""
견적 추정 Pydantic 스키마
"""

from pydantic import BaseModel, Field

from app.models.booking import ServiceType
from app.schemas.bookings import BookingItemIn, PricingOut


class QuoteEstimateRequest(BaseModel):
    service_type: ServiceType
    origin_city: str = Field(..., min_length=1)
    destination_city: str = Field(..., min_length=1)
    items: list[BookingItemIn] = Field(..., min_length=1)
    delivery_time_slot: str | None = None


class QuoteEstimateResponse(BaseModel):
    service_type: ServiceType
    route_id: int | None = None
    route_code: str | None = None
    estimated_price: PricingOut | None = None
    message: str
