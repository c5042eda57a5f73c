"""
SQLAlchemy ORM 모델 패키지
- 모든 모델을 여기서 import하여 Base.metadata에 등록한다.
"""

from app.models.route import Route, RouteDeparture
from app.models.booking import Booking, BookingItem
from app.models.tracking import TrackingEntry

__all__ = [
    "Route",
    "RouteDeparture",
    "Booking",
    "BookingItem",
    "TrackingEntry",
]
