"""
노선 API — 공개 노선 목록(다음 출발편 포함), 출발일별 적재량 조회
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends

from app.schemas.routes import (
    CapacityResponse, DimensionValues, Place, RouteOut, RoutePricingOut, ScheduleOut,
)
from app.services.booking_service import BookingService
from app.config import settings
from app.api.dependencies import get_booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/routes", tags=["routes"])


@router.get("", response_model=list[RouteOut])
def list_routes(service: BookingService = Depends(get_booking_service)):
    """운행 중인 노선 목록"""
    result = []
    for route, departure in service.list_routes(active_only=True):
        result.append(RouteOut(
            id=route.id,
            route_code=route.route_code,
            name=route.name,
            origin=Place(city=route.origin_city, address=route.origin_address),
            destination=Place(city=route.destination_city, address=route.destination_address),
            schedule=ScheduleOut(
                frequency=route.frequency.value if hasattr(route.frequency, "value") else str(route.frequency),
                departure_time=route.departure_time,
                estimated_duration_hours=route.estimated_duration_hours,
            ),
            pricing=RoutePricingOut(
                base_rate=route.base_rate,
                per_kg_rate=route.per_kg_rate,
                per_cubic_meter_rate=route.per_cubic_meter_rate,
            ),
            cutoff_hours=route.cutoff_hours if route.cutoff_hours is not None else settings.DEFAULT_CUTOFF_HOURS,
            next_departure_at=departure.departure_at if departure else None,
            booking_cutoff_at=departure.cutoff_at if departure else None,
        ))
    return result


@router.get("/{route_id}/capacity/{on_date}", response_model=CapacityResponse)
def get_route_capacity(route_id: int, on_date: date,
                       service: BookingService = Depends(get_booking_service)):
    """출발일 적재량 — 참고용이며 적재 공간을 예약하지 않는다."""
    route, snapshot = service.route_capacity(route_id, on_date)
    logger.info(
        f"적재량 조회: {route.route_code} {on_date} "
        f"| 중량 {snapshot['utilization_percentage']['weight']:.1f}%"
    )
    return CapacityResponse(
        route_id=route.id,
        route_code=route.route_code,
        date=on_date,
        capacity=DimensionValues(**snapshot["capacity"]),
        used=DimensionValues(**snapshot["used"]),
        available=DimensionValues(**snapshot["available"]),
        utilization_percentage=DimensionValues(**snapshot["utilization_percentage"]),
    )
