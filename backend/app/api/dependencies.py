"""
공통 FastAPI 의존성 — 예약 서비스, 시계, 작업자 식별
"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import UnauthenticatedError
from app.events.event_bus import EventBus, get_event_bus
from app.services.booking_service import BookingService
from app.services.schedule import now_local
from app.services.status_machine import Actor, ActorRole


def get_clock() -> Callable[[], datetime]:
    return now_local


def get_booking_service(
    db: Session = Depends(get_db),
    event_bus: EventBus = Depends(get_event_bus),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingService:
    return BookingService(db, event_bus, clock=clock)


def get_actor(
    x_actor_id: str | None = Header(None),
    x_actor_role: str | None = Header(None),
) -> Actor:
    """
    인증 미들웨어가 채워주는 작업자 헤더.
    헤더가 없거나 알 수 없는 역할이면 401.
    """
    if not x_actor_id or not x_actor_role:
        raise UnauthenticatedError("Operator identity headers are required")
    try:
        role = ActorRole(x_actor_role.strip().lower())
    except ValueError:
        raise UnauthenticatedError(
            f"Unknown operator role: {x_actor_role}",
            detail={"allowed_roles": [r.value for r in ActorRole]},
        )
    return Actor(actor_id=x_actor_id.strip(), role=role)
