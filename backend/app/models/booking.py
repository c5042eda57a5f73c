"""
bookings / booking_items 테이블 — 배송 예약 및 품목
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, Enum, DateTime, ForeignKey,
    Text, JSON,
)
from sqlalchemy.orm import relationship

from app.database import Base


class ServiceType(str, enum.Enum):
    MOVERS = "movers"
    FREIGHT = "freight"
    SCHEDULED_ROUTE = "scheduled_route"
    COURIER = "courier"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PICKED = "picked"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_reference = Column(String(12), unique=True, nullable=False)  # "S123456AB7"
    service_type = Column(Enum(ServiceType), nullable=False)
    status = Column(Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)

    customer_name = Column(String(120), nullable=False)
    customer_email = Column(String(120), nullable=False)
    customer_phone = Column(String(40), nullable=False)
    customer_company = Column(String(120), nullable=True)

    pickup_address = Column(String(200), nullable=False)
    pickup_city = Column(String(80), nullable=False)
    pickup_date = Column(Date, nullable=False)
    pickup_time_slot = Column(String(40), nullable=True)
    pickup_contact_person = Column(String(120), nullable=True)
    pickup_contact_phone = Column(String(40), nullable=True)
    pickup_instructions = Column(Text, nullable=True)

    # 정기 노선은 도착 일정이 노선에 의해 정해지므로 날짜/시간대 선택 사항
    delivery_address = Column(String(200), nullable=False)
    delivery_city = Column(String(80), nullable=False)
    delivery_date = Column(Date, nullable=True)
    delivery_time_slot = Column(String(40), nullable=True)
    delivery_contact_person = Column(String(120), nullable=True)
    delivery_contact_phone = Column(String(40), nullable=True)
    delivery_instructions = Column(Text, nullable=True)

    route_id = Column(Integer, ForeignKey("routes.id"), nullable=True)

    # {"base_amount": "2500", "additional_charges": [...], "total_amount": "3120", "currency": "USD"}
    pricing = Column(JSON, nullable=False)

    assigned_vehicle_plate = Column(String(20), nullable=True)
    assigned_driver_name = Column(String(120), nullable=True)
    assigned_driver_phone = Column(String(40), nullable=True)

    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    special_instructions = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # 낙관적 잠금: 동시 상태 변경 감지용
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "BookingItem", back_populates="booking", lazy="selectin",
        order_by="BookingItem.id",
    )
    tracking = relationship(
        "TrackingEntry", back_populates="booking", lazy="selectin",
        order_by="[TrackingEntry.created_at, TrackingEntry.id]",
    )
    route = relationship("Route", lazy="joined")

    __mapper_args__ = {"version_id_col": version}


class BookingItem(Base):
    __tablename__ = "booking_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    description = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    weight = Column(Float, nullable=True)  # 품목 전체 중량 (kg), quantity 곱하지 않음
    length = Column(Float, nullable=True)  # cm
    width = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    value = Column(Float, nullable=True)  # 신고가액
    fragile = Column(Boolean, nullable=False, default=False)

    booking = relationship("Booking", back_populates="items")
