"""
routes / route_departures 테이블 — 정기 노선 및 출발편 잠금 행
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, Enum, DateTime, ForeignKey,
    UniqueConstraint,
)

from app.database import Base


class RouteFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"


class Route(Base):
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_code = Column(String(20), unique=True, nullable=False)  # "JNB-CPT-01"
    name = Column(String(120), nullable=False)

    origin_city = Column(String(80), nullable=False)
    origin_address = Column(String(200), nullable=False)
    origin_lat = Column(Float, nullable=True)
    origin_lng = Column(Float, nullable=True)
    destination_city = Column(String(80), nullable=False)
    destination_address = Column(String(200), nullable=False)
    destination_lat = Column(Float, nullable=True)
    destination_lng = Column(Float, nullable=True)

    frequency = Column(Enum(RouteFrequency), nullable=False)
    departure_time = Column(String(10), nullable=False)  # "08:00 AM"
    estimated_duration_hours = Column(Float, nullable=False)

    # 출발편당 최대 적재량. 사용량은 항상 예약 합산으로 계산한다
    max_weight_kg = Column(Float, nullable=False)
    max_volume_m3 = Column(Float, nullable=False)
    max_parcels = Column(Integer, nullable=False)

    base_rate = Column(Float, nullable=False, default=0.0)
    per_kg_rate = Column(Float, nullable=False, default=0.0)
    per_cubic_meter_rate = Column(Float, nullable=False, default=0.0)

    is_active = Column(Boolean, nullable=False, default=True)
    cutoff_hours = Column(Integer, nullable=True, default=24)  # 출발 N시간 전 마감

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class RouteDeparture(Base):
    """
    (노선, 출발일) 단위 직렬화용 행.
    적재량은 저장하지 않고 version만 CAS로 증가시켜
    같은 출발편에 대한 동시 예약 확정을 한 건씩만 통과시킨다.
    """
    __tablename__ = "route_departures"
    __table_args__ = (UniqueConstraint("route_id", "departure_date", name="uq_route_departure"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False)
    departure_date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
