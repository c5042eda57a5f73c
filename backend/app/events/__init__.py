"""
이벤트 시스템 패키지
- 예약 이벤트 pub/sub
- Redis Streams 기반, 인메모리 fallback
"""

from app.events.event_bus import EventBus, TOPICS, get_event_bus, set_event_bus

__all__ = ["EventBus", "TOPICS", "get_event_bus", "set_event_bus"]
