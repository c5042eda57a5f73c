"""
tracking_entries 테이블 — 예약 상태 변경 이력 (추가 전용)
- 수정/삭제 경로 없음. 조회 시 created_at 오름차순.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class TrackingEntry(Base):
    __tablename__ = "tracking_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    status = Column(String(20), nullable=False)
    location = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    actor_id = Column(String(64), nullable=True)  # 시스템 생성 시 None
    actor_role = Column(String(40), nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    booking = relationship("Booking", back_populates="tracking")
