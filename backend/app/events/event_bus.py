"""
예약 이벤트 버스 — Redis Stream 기반, Redis 없으면 인메모리 스트림으로 fallback
- 예약 생성, 상태 변경, 적재 한도 거절을 토픽별로 발행한다.
- 운영 콘솔 활동 피드는 get_recent()로 조회한다.
"""

import json
import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone

import redis

logger = logging.getLogger(__name__)

# 지원하는 토픽 목록
TOPICS = [
    "bookings.created",             # 새 예약 확정
    "bookings.status_changed",      # 예약 상태 변경
    "bookings.capacity_rejected",   # 적재 한도 초과로 거절
]


class InMemoryEventBus:
    """Redis 없을 때 사용하는 인메모리 이벤트 버스 (요청 스레드 간 공유)"""

    def __init__(self, max_size: int = 1000):
        self._streams: dict[str, list[dict]] = defaultdict(list)
        self._max_size = max_size  # 스트림당 최대 이벤트 수
        self._sequence: dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def publish(self, stream: str, data: dict):
        with self._lock:
            events = self._streams[stream]
            self._sequence[stream] += 1
            events.append({
                "id": str(self._sequence[stream]),
                "data": data,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            })
            # 최대 크기 초과 시 오래된 이벤트 제거
            if len(events) > self._max_size:
                del events[:-self._max_size]

    def get_recent(self, stream: str, count: int = 10) -> list[dict]:
        """최근 이벤트 (최신순)"""
        with self._lock:
            return list(reversed(self._streams[stream][-count:]))


class EventBus:
    """
    Redis Stream 래퍼 — REDIS_URL이 비어 있거나 연결 실패 시 InMemoryEventBus로 fallback

    사용법:
        bus = EventBus("redis://localhost:6379")
        bus.publish("bookings.created", {"booking_reference": "S123456ABC"})
        bus.get_recent("bookings.created", 20)
    """

    def __init__(self, redis_url: str | None = "redis://localhost:6379"):
        self._redis = None
        self._in_memory = InMemoryEventBus()
        self._use_redis = False

        if not redis_url:
            logger.info("REDIS_URL 미설정 — 인메모리 이벤트 버스 사용")
            return

        try:
            client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=1)
            client.ping()
            self._redis = client
            self._use_redis = True
            logger.info("Redis 연결 성공 — Redis Stream 사용")
        except redis.RedisError as e:
            logger.warning(f"Redis 연결 실패 ({e}) — 인메모리 이벤트 버스로 fallback")

    @property
    def is_redis(self) -> bool:
        return self._use_redis

    def publish(self, stream: str, data: dict):
        """이벤트 발행"""
        if self._use_redis:
            try:
                serialized = {k: json.dumps(v) if isinstance(v, (dict, list)) else str(v)
                              for k, v in data.items()}
                serialized["_timestamp"] = datetime.now(timezone.utc).isoformat()
                self._redis.xadd(stream, serialized, maxlen=1000)
                return
            except redis.RedisError as e:
                logger.error(f"Redis publish 실패 ({stream}): {e}, 인메모리로 fallback")
        self._in_memory.publish(stream, data)

    def get_recent(self, stream: str, count: int = 10) -> list[dict]:
        """최근 이벤트 조회 (최신순)"""
        if self._use_redis:
            try:
                entries = self._redis.xrevrange(stream, count=count)
                return [self._decode_entry(eid, edata) for eid, edata in entries]
            except redis.RedisError as e:
                logger.error(f"Redis 조회 실패 ({stream}): {e}, 인메모리로 fallback")
        return self._in_memory.get_recent(stream, count)

    @staticmethod
    def _decode_entry(entry_id: str, fields: dict) -> dict:
        data = {k: v for k, v in fields.items() if k != "_timestamp"}
        # JSON 문자열 복원 시도
        for k, v in data.items():
            try:
                data[k] = json.loads(v)
            except (json.JSONDecodeError, TypeError):
                pass
        return {"id": entry_id, "data": data, "timestamp": fields.get("_timestamp")}


# main.py lifespan에서 생성하여 설정
_event_bus: EventBus | None = None


def set_event_bus(bus: EventBus | None):
    global _event_bus
    _event_bus = bus


def get_event_bus() -> EventBus:
    """FastAPI Depends용 — lifespan 이전 호출이면 인메모리 버스를 만든다."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus(None)
    return _event_bus
