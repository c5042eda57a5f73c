"""
예약 서비스 — 예약 생성, 상태 변경, 조회를 조율한다.

정기 노선 예약 생성 흐름 (노선+출발일 단위 직렬화):
  1. 프로세스 내: (route_id, pickup_date) 키별 threading.Lock
  2. 프로세스 간: route_departures.version CAS
       version 조회 → 사용량 집계 → 한도 검사
       → UPDATE ... SET version = v+1 WHERE version = v  (0행이면 경쟁 패배 → 재시도)
       → 예약 INSERT → 같은 트랜잭션으로 커밋
  한도 초과 시 롤백 후 CapacityExceededError — 아무것도 저장하지 않는다.

상태 변경:
  bookings.version (SQLAlchemy version_id_col) 낙관적 잠금.
  StaleDataError 발생 시 다시 읽어 재검증 후 재시도한다.
"""

import logging
import math
import random
import string
import threading
import time
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Callable

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.errors import (
    CapacityExceededError, ConcurrencyConflictError, CutoffPassedError,
    InvalidTransitionError, NotFoundError, ValidationError,
)
from app.events.event_bus import EventBus
from app.models import Booking, BookingItem, Route, RouteDeparture, TrackingEntry
from app.models.booking import BookingStatus, ServiceType
from app.services.capacity import ZERO, capacity_snapshot, check_capacity, compute_usage
from app.services.pricing import (
    CourierRateCard, PriceBreakdown, price_flat_rate, price_for_route,
)
from app.services.schedule import Departure, departure_on, next_departure, now_local
from app.services.status_machine import Actor, apply_transition

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


class KeyedLocks:
    """
    키별 threading.Lock 레지스트리.
    대기/보유 중인 요청 수를 세어 마지막 요청이 놓으면 항목을 지운다.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict = {}  # key → [lock, holders]

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._entries[key] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


departure_locks = KeyedLocks()
booking_locks = KeyedLocks()


class DepartureContention(Exception):
    """다른 요청이 같은 출발편을 먼저 갱신함 (CAS 실패)"""


def generate_reference(service_type, now_ms: int | None = None, rng=random) -> str:
    """서비스 유형 첫 글자 + 타임스탬프 6자리 + 영숫자 3자리 (예: S482913K7Q)"""
    prefix = ServiceType(service_type).value[0].upper()
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stamp = str(now_ms)[-6:].zfill(6)
    suffix = "".join(rng.choice(REFERENCE_ALPHABET) for _ in range(3))
    return f"{prefix}{stamp}{suffix}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(entry: TrackingEntry):
    ts = entry.created_at
    if ts is not None and ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return (ts or datetime.min, entry.id or 0)


class BookingService:
    """예약 생성/상태 변경/조회"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        clock: Callable[[], datetime] = now_local,
        rate_card: CourierRateCard | None = None,
    ):
        self.db = db
        self.event_bus = event_bus
        self.clock = clock
        self.rate_card = rate_card or CourierRateCard.from_settings()

    # ── 예약 생성 ──

    def create_booking(self, data, created_by: Actor | None = None) -> Booking:
        """
        예약 생성. data는 schemas.bookings.BookingCreate.
        정기 노선은 적재 한도 검사를 통과해야 저장된다.
        """
        if data.service_type == ServiceType.SCHEDULED_ROUTE:
            if data.route_id is None:
                raise ValidationError(
                    "route_id is required for scheduled_route bookings",
                    code="ROUTE_REQUIRED",
                )
            route = self.get_route(data.route_id)
            if not route.is_active:
                raise ValidationError(
                    f"Route {route.route_code} is not accepting bookings",
                    code="ROUTE_INACTIVE",
                    detail={"route_id": route.id},
                )
            self._check_cutoff(route, data.pickup.date)
            return self._create_on_route(data, route, created_by)

        pricing = self._price_off_route(data)
        booking = self._insert_booking(data, None, pricing, created_by)
        self.db.commit()
        self._announce_created(booking)
        return booking

    def _check_cutoff(self, route: Route, day: date):
        if not settings.ENFORCE_BOOKING_CUTOFF:
            return
        now = self.clock()
        departure = departure_on(route, day, tzinfo=now.tzinfo)
        if now > departure.cutoff_at:
            logger.warning(f"예약 마감 경과: {route.route_code} {day} (마감 {departure.cutoff_at})")
            raise CutoffPassedError(
                f"Booking cutoff for {route.route_code} on {day.isoformat()} has passed",
                detail={
                    "route_id": route.id,
                    "departure_at": departure.departure_at.isoformat(),
                    "cutoff_at": departure.cutoff_at.isoformat(),
                },
            )

    def _create_on_route(self, data, route: Route, created_by: Actor | None) -> Booking:
        day = data.pickup.date
        attempts = max(1, settings.CAPACITY_RETRY_ATTEMPTS)

        with departure_locks.hold((route.id, day)):
            for attempt in range(1, attempts + 1):
                try:
                    booking = self._admit_on_route(data, route, day, created_by)
                except DepartureContention:
                    self.db.rollback()
                    logger.warning(
                        f"출발편 경쟁 감지: {route.route_code} {day} "
                        f"(시도 {attempt}/{attempts})"
                    )
                    time.sleep(settings.RETRY_BACKOFF_SECONDS * attempt)
                    continue
                self._announce_created(booking)
                return booking

        raise ConcurrencyConflictError(
            f"Could not reserve capacity on {route.route_code} for {day.isoformat()}; please retry",
            detail={"route_id": route.id, "date": day.isoformat(), "attempts": attempts},
        )

    def _admit_on_route(self, data, route: Route, day: date, created_by: Actor | None) -> Booking:
        seen_version = self._departure_version(route.id, day)

        usage = compute_usage(self.db, route.id, day)
        decision = check_capacity(route, usage, data.items)
        if not decision.accepted:
            self.db.rollback()
            breaches = [
                {"dimension": b.dimension, "limit": float(b.limit), "requested": float(b.requested)}
                for b in decision.breaches
            ]
            logger.warning(f"적재 한도 초과로 예약 거절: {route.route_code} {day} | {decision.reason}")
            self.event_bus.publish("bookings.capacity_rejected", {
                "route_id": route.id,
                "route_code": route.route_code,
                "date": day.isoformat(),
                "breaches": breaches,
            })
            raise CapacityExceededError(
                decision.reason,
                detail={"route_id": route.id, "date": day.isoformat(), "breaches": breaches},
            )

        self._claim_departure(route.id, day, seen_version)

        pricing = price_for_route(route, data.items)
        booking = self._insert_booking(data, route, pricing, created_by)
        self.db.commit()
        return booking

    def _departure_version(self, route_id: int, day: date) -> int:
        """출발편 잠금 행의 현재 version (없으면 생성)"""
        stmt = select(RouteDeparture.version).where(
            RouteDeparture.route_id == route_id,
            RouteDeparture.departure_date == day,
        )
        version = self.db.execute(stmt).scalar_one_or_none()
        if version is not None:
            return version

        try:
            self.db.add(RouteDeparture(route_id=route_id, departure_date=day, version=0))
            self.db.commit()
        except IntegrityError:
            # 다른 프로세스가 먼저 생성
            self.db.rollback()
        return self.db.execute(stmt).scalar_one()

    def _claim_departure(self, route_id: int, day: date, seen_version: int):
        """version CAS — 읽은 이후 다른 예약이 확정되었으면 DepartureContention"""
        result = self.db.execute(
            update(RouteDeparture)
            .where(
                RouteDeparture.route_id == route_id,
                RouteDeparture.departure_date == day,
                RouteDeparture.version == seen_version,
            )
            .values(version=seen_version + 1, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise DepartureContention()

    def _price_off_route(self, data) -> PriceBreakdown:
        if data.service_type == ServiceType.COURIER:
            return price_flat_rate(self.rate_card, data.items, data.delivery.time_slot)

        # 이사/화물은 오프라인 협의 금액 사용
        supplied = data.pricing
        if supplied is None:
            return PriceBreakdown(base_amount=ZERO, currency=settings.CURRENCY)
        return PriceBreakdown.from_storage({
            "base_amount": supplied.base_amount,
            "additional_charges": [
                {"description": c.description, "amount": c.amount}
                for c in supplied.additional_charges
            ],
            "currency": settings.CURRENCY,
        })

    def _unique_reference(self, service_type) -> str:
        for _ in range(max(1, settings.REFERENCE_MAX_ATTEMPTS)):
            reference = generate_reference(service_type)
            exists = self.db.execute(
                select(Booking.id).where(Booking.booking_reference == reference)
            ).first()
            if exists is None:
                return reference
            logger.warning(f"예약 번호 충돌, 재생성: {reference}")
        raise ConcurrencyConflictError("Could not allocate a unique booking reference; please retry")

    def _insert_booking(self, data, route: Route | None, pricing: PriceBreakdown,
                        created_by: Actor | None) -> Booking:
        vehicle = data.assigned_vehicle
        booking = Booking(
            booking_reference=self._unique_reference(data.service_type),
            service_type=data.service_type,
            status=BookingStatus.CONFIRMED,
            customer_name=data.customer.name,
            customer_email=data.customer.email,
            customer_phone=data.customer.phone,
            customer_company=data.customer.company,
            pickup_address=data.pickup.address,
            pickup_city=data.pickup.city,
            pickup_date=data.pickup.date,
            pickup_time_slot=data.pickup.time_slot,
            pickup_contact_person=data.pickup.contact_person,
            pickup_contact_phone=data.pickup.contact_phone,
            pickup_instructions=data.pickup.instructions,
            delivery_address=data.delivery.address,
            delivery_city=data.delivery.city,
            delivery_date=data.delivery.date,
            delivery_time_slot=data.delivery.time_slot,
            delivery_contact_person=data.delivery.contact_person,
            delivery_contact_phone=data.delivery.contact_phone,
            delivery_instructions=data.delivery.instructions,
            route_id=route.id if route else None,
            pricing=pricing.to_storage(),
            assigned_vehicle_plate=vehicle.plate_number if vehicle else None,
            assigned_driver_name=vehicle.driver_name if vehicle else None,
            assigned_driver_phone=vehicle.driver_phone if vehicle else None,
            special_instructions=data.special_instructions,
        )
        for item in data.items:
            dims = item.dimensions
            booking.items.append(BookingItem(
                description=item.description,
                quantity=item.quantity,
                weight=item.weight,
                length=dims.length if dims else None,
                width=dims.width if dims else None,
                height=dims.height if dims else None,
                value=item.value,
                fragile=item.fragile,
            ))
        booking.tracking.append(TrackingEntry(
            status=BookingStatus.CONFIRMED.value,
            location=data.pickup.city,
            notes="Booking created and confirmed",
            actor_id=created_by.actor_id if created_by else None,
            actor_role=created_by.role.value if created_by else None,
            created_at=_utcnow(),
        ))
        self.db.add(booking)
        self.db.flush()
        return booking

    def _announce_created(self, booking: Booking):
        pricing = PriceBreakdown.from_storage(booking.pricing)
        logger.info(
            f"예약 확정: {booking.booking_reference} | {booking.service_type.value} "
            f"| route={booking.route_id} | 픽업 {booking.pickup_date} "
            f"| 품목 {len(booking.items)}개 | {pricing.total_amount} {pricing.currency}"
        )
        self.event_bus.publish("bookings.created", {
            "booking_reference": booking.booking_reference,
            "service_type": booking.service_type.value,
            "route_id": booking.route_id,
            "pickup_date": booking.pickup_date.isoformat(),
            "total_amount": str(pricing.total_amount),
        })

    # ── 상태 변경 ──

    def update_status(self, booking_id: int, requested, actor: Actor,
                      location: str | None = None, notes: str | None = None) -> Booking:
        """상태 변경 + 추적 이력 추가. 거절 시 InvalidTransitionError."""
        attempts = max(1, settings.STATUS_RETRY_ATTEMPTS)

        with booking_locks.hold(booking_id):
            for attempt in range(1, attempts + 1):
                booking = self.get_booking_by_id(booking_id)
                previous = booking.status
                try:
                    apply_transition(booking, requested, actor, location, notes, now=_utcnow())
                except InvalidTransitionError:
                    self.db.rollback()
                    raise

                try:
                    self.db.commit()
                except StaleDataError:
                    self.db.rollback()
                    logger.warning(
                        f"상태 변경 경쟁 감지: booking={booking_id} (시도 {attempt}/{attempts})"
                    )
                    time.sleep(settings.RETRY_BACKOFF_SECONDS * attempt)
                    continue

                self.event_bus.publish("bookings.status_changed", {
                    "booking_reference": booking.booking_reference,
                    "from": previous.value,
                    "to": booking.status.value,
                    "actor_id": actor.actor_id,
                    "actor_role": actor.role.value,
                    "location": location or "",
                })
                return booking

        raise ConcurrencyConflictError(
            "Booking was modified concurrently; please retry",
            detail={"booking_id": booking_id, "attempts": attempts},
        )

    # ── 조회 ──

    def get_route(self, route_id: int) -> Route:
        route = self.db.get(Route, route_id)
        if route is None:
            raise NotFoundError("Route not found", code="ROUTE_NOT_FOUND", detail={"route_id": route_id})
        return route

    def get_booking_by_id(self, booking_id: int) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(
                "Booking not found", code="BOOKING_NOT_FOUND", detail={"booking_id": booking_id},
            )
        return booking

    def get_booking(self, reference: str) -> Booking:
        booking = (
            self.db.query(Booking)
            .filter(Booking.booking_reference == reference.strip().upper())
            .first()
        )
        if booking is None:
            raise NotFoundError(
                "Booking not found", code="BOOKING_NOT_FOUND", detail={"reference": reference},
            )
        return booking

    def list_bookings(self, status: BookingStatus | None = None,
                      service_type: ServiceType | None = None,
                      page: int = 1, limit: int = 20) -> tuple[int, int, list[Booking]]:
        """운영 콘솔 목록 — 최신순, (total, total_pages, bookings)"""
        query = self.db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        if service_type:
            query = query.filter(Booking.service_type == service_type)

        total = query.count()
        bookings = (
            query.order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return total, math.ceil(total / limit) if limit else 0, bookings

    @staticmethod
    def tracking_history(booking: Booking) -> list[TrackingEntry]:
        """추적 이력 — 삽입 순서와 무관하게 시각 오름차순"""
        return sorted(booking.tracking, key=_sort_key)

    def route_capacity(self, route_id: int, day: date) -> tuple[Route, dict]:
        route = self.get_route(route_id)
        usage = compute_usage(self.db, route.id, day)
        return route, capacity_snapshot(route, usage)

    def list_routes(self, active_only: bool = True) -> list[tuple[Route, Departure | None]]:
        query = self.db.query(Route)
        if active_only:
            query = query.filter(Route.is_active.is_(True))
        routes = query.order_by(Route.route_code).all()

        now = self.clock()
        result = []
        for route in routes:
            try:
                departure = next_departure(route, now)
            except ValueError as e:
                logger.warning(f"노선 출발 시각 해석 실패: {route.route_code} ({e})")
                departure = None
            result.append((route, departure))
        return result

    def find_route(self, origin_city: str, destination_city: str) -> Route | None:
        return (
            self.db.query(Route)
            .filter(
                func.lower(Route.origin_city) == origin_city.strip().lower(),
                func.lower(Route.destination_city) == destination_city.strip().lower(),
                Route.is_active.is_(True),
            )
            .order_by(Route.id)
            .first()
        )

    def estimate_quote(self, data) -> tuple[PriceBreakdown | None, Route | None]:
        """비구속 견적 — 저장하지 않는다."""
        if data.service_type == ServiceType.SCHEDULED_ROUTE:
            route = self.find_route(data.origin_city, data.destination_city)
            if route is None:
                return None, None
            return price_for_route(route, data.items), route
        if data.service_type == ServiceType.COURIER:
            return price_flat_rate(self.rate_card, data.items, data.delivery_time_slot), None
        return None, None
