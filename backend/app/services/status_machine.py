"""
예약 상태 머신

pending → confirmed → picked → in_transit → delivered
delivered / cancelled는 종료 상태.

검사 순서 (validate_transition):
  1. 알 수 없는 상태/역할 → 거절
  2. 현재 상태가 종료 상태 → 거절
  3. cancelled는 종료 상태가 아니면 어디서든 허용
  4. 진입 권한 (picked는 상위 운영 역할만)
  5. 역방향 이동 또는 전이표에 없는 이동 → 거절
허용된 전이는 추적 이력 1건을 반드시 추가한다.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from app.config import settings
from app.errors import InvalidTransitionError
from app.models import Booking, TrackingEntry
from app.models.booking import BookingStatus

logger = logging.getLogger(__name__)


class ActorRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    OPERATIONS_MANAGER = "operations_manager"
    DISPATCHER = "dispatcher"


@dataclass(frozen=True)
class Actor:
    actor_id: str
    role: ActorRole


TERMINAL_STATES = frozenset({BookingStatus.DELIVERED, BookingStatus.CANCELLED})

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.PICKED, BookingStatus.IN_TRANSIT, BookingStatus.CANCELLED,
    }),
    BookingStatus.PICKED: frozenset({BookingStatus.IN_TRANSIT, BookingStatus.CANCELLED}),
    BookingStatus.IN_TRANSIT: frozenset({BookingStatus.DELIVERED, BookingStatus.CANCELLED}),
    BookingStatus.DELIVERED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# 상태 진입에 필요한 역할 (목록에 없는 상태는 모든 운영 역할 허용)
ENTRY_PRIVILEGES: dict[BookingStatus, frozenset[str]] = {
    BookingStatus.PICKED: frozenset(settings.PRIVILEGED_ROLES),
}

# 진행 순서 (cancelled는 순서 밖)
STATUS_ORDER = {
    BookingStatus.PENDING: 0,
    BookingStatus.CONFIRMED: 1,
    BookingStatus.PICKED: 2,
    BookingStatus.IN_TRANSIT: 3,
    BookingStatus.DELIVERED: 4,
}


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    code: str | None = None
    message: str | None = None
    required_roles: tuple[str, ...] = ()


def _label(status: BookingStatus) -> str:
    return status.value.replace("_", " ")


def _coerce_status(value) -> BookingStatus | None:
    try:
        return BookingStatus(value)
    except ValueError:
        return None


def _coerce_role(value) -> ActorRole | None:
    try:
        return ActorRole(value)
    except ValueError:
        return None


def validate_transition(current, requested, role) -> TransitionDecision:
    """상태 변경 가능 여부 판정 (부수효과 없음)"""
    current_status = _coerce_status(current)
    target = _coerce_status(requested)
    actor_role = _coerce_role(role)

    if current_status is None:
        return TransitionDecision(False, "UNKNOWN_STATUS", f"Unknown current status: {current!r}")
    if target is None:
        return TransitionDecision(False, "UNKNOWN_STATUS", f"Unknown status: {requested!r}")
    if actor_role is None:
        return TransitionDecision(False, "UNKNOWN_ROLE", f"Unknown actor role: {role!r}")

    if current_status in TERMINAL_STATES:
        return TransitionDecision(
            False, "TERMINAL_STATE",
            f"Booking is already {_label(current_status)}; no further status changes are allowed",
        )

    if target == BookingStatus.CANCELLED:
        return TransitionDecision(True)

    required = ENTRY_PRIVILEGES.get(target)
    if required and actor_role.value not in required:
        return TransitionDecision(
            False, "INSUFFICIENT_ROLE",
            f"Only {', '.join(sorted(required))} can set a booking to {_label(target)}",
            required_roles=tuple(sorted(required)),
        )

    if STATUS_ORDER[target] < STATUS_ORDER[current_status]:
        return TransitionDecision(
            False, "BACKWARD_TRANSITION",
            f"Cannot change status backward from {_label(current_status)} to {_label(target)}",
        )

    if target not in TRANSITIONS[current_status]:
        return TransitionDecision(
            False, "INVALID_TRANSITION",
            f"Invalid status transition from {_label(current_status)} to {_label(target)}",
        )

    return TransitionDecision(True)


def apply_transition(
    booking: Booking,
    requested,
    actor: Actor,
    location: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> TrackingEntry:
    """
    검증 후 상태를 변경하고 추적 이력 1건을 추가한다.
    거절 시 InvalidTransitionError — booking은 변경되지 않는다.
    커밋은 호출자 책임.
    """
    current = booking.status
    decision = validate_transition(current, requested, actor.role)
    if not decision.allowed:
        logger.warning(
            f"상태 변경 거절: {booking.booking_reference} {current} → {requested} "
            f"(role={actor.role}) | {decision.code}"
        )
        raise InvalidTransitionError(
            decision.message,
            code=decision.code,
            detail={
                "from": current.value if hasattr(current, "value") else str(current),
                "to": str(requested.value if hasattr(requested, "value") else requested),
                "required_roles": list(decision.required_roles),
            },
        )

    target = BookingStatus(requested)
    entry = TrackingEntry(
        status=target.value,
        location=location,
        notes=notes,
        actor_id=actor.actor_id,
        actor_role=actor.role.value,
        created_at=now or datetime.now(timezone.utc),
    )
    booking.status = target
    booking.tracking.append(entry)

    logger.info(
        f"상태 변경: {booking.booking_reference} {_label(current)} → {_label(target)} "
        f"| by {actor.actor_id} ({actor.role.value})"
    )
    return entry
