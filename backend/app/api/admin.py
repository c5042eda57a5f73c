"""
운영 콘솔 API — 작업자 헤더(X-Actor-Id / X-Actor-Role) 필요
- GET  /api/admin/bookings: 예약 목록 (상태/서비스 유형 필터, 페이지네이션)
- PUT  /api/admin/bookings/{booking_id}/status: 상태 변경
- GET  /api/admin/bookings/{booking_id}/tracking: 작업자 정보 포함 추적 이력
- POST /api/admin/courier-shipments: 워크인 택배 접수 (고정 요금)
- GET  /api/admin/events: 최근 예약 이벤트
"""

import logging

from fastapi import APIRouter, Depends, Query

from app.events.event_bus import TOPICS, EventBus, get_event_bus
from app.models.booking import BookingStatus, ServiceType
from app.schemas.bookings import (
    AdminTrackingEntryOut, BookingCreatedResponse, BookingListResponse, BookingOut,
    CourierShipmentCreate, PricingOut, StatusUpdateRequest,
)
from app.services.booking_service import BookingService
from app.services.pricing import PriceBreakdown
from app.services.status_machine import Actor
from app.api.bookings import build_booking_response
from app.api.dependencies import get_actor, get_booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    status: BookingStatus | None = Query(None, description="예약 상태 필터"),
    service_type: ServiceType | None = Query(None, description="서비스 유형 필터"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
):
    """예약 목록 조회 (최신순)"""
    total, total_pages, bookings = service.list_bookings(status, service_type, page, limit)
    return BookingListResponse(
        total=total,
        total_pages=total_pages,
        current_page=page,
        bookings=[build_booking_response(b) for b in bookings],
    )


@router.put("/bookings/{booking_id}/status", response_model=BookingOut)
def update_booking_status(
    booking_id: int,
    req: StatusUpdateRequest,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
):
    """상태 변경 — 거절 시 409 + code/message"""
    booking = service.update_status(
        booking_id, req.status, actor, location=req.location, notes=req.notes,
    )
    return build_booking_response(booking)


@router.get("/bookings/{booking_id}/tracking", response_model=list[AdminTrackingEntryOut])
def get_booking_tracking(
    booking_id: int,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
):
    """추적 이력 (시각 오름차순, 작업자 포함)"""
    booking = service.get_booking_by_id(booking_id)
    return [
        AdminTrackingEntryOut(
            id=e.id,
            status=e.status,
            location=e.location,
            notes=e.notes,
            actor_id=e.actor_id,
            actor_role=e.actor_role,
            timestamp=e.created_at,
        )
        for e in service.tracking_history(booking)
    ]


@router.post("/courier-shipments", response_model=BookingCreatedResponse, status_code=201)
def create_courier_shipment(
    req: CourierShipmentCreate,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
):
    """워크인 택배 접수 — 고정 요금표로 계산"""
    booking = service.create_booking(req.to_booking(), created_by=actor)
    return BookingCreatedResponse(
        message="Courier shipment created successfully",
        booking_reference=booking.booking_reference,
        status=booking.status,
        pricing=PricingOut.from_breakdown(PriceBreakdown.from_storage(booking.pricing)),
    )


@router.get("/events")
def list_recent_events(
    topic: str | None = Query(None, description="토픽 필터"),
    count: int = Query(20, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    event_bus: EventBus = Depends(get_event_bus),
):
    """최근 예약 이벤트 (토픽별 최신순)"""
    topics = [topic] if topic else TOPICS
    return {
        "redis": event_bus.is_redis,
        "events": {t: event_bus.get_recent(t, count) for t in topics},
    }
