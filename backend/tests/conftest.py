"""
공통 테스트 픽스처
- 테스트마다 임시 파일 SQLite DB (스레드 동시성 테스트를 위해 파일 기반)
- 인메모리 이벤트 버스, 고정 시계
"""

import os

# app import 전에 설정: Redis 연결 없음, 전역 엔진은 메모리 DB
os.environ["REDIS_URL"] = ""
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api.dependencies import get_clock
from app.database import Base, build_engine, get_db
from app.events.event_bus import EventBus, get_event_bus
from app.main import app
from app.services.booking_service import BookingService
from app.services.status_machine import Actor, ActorRole

FROZEN_NOW = datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def event_bus():
    return EventBus(None)


@pytest.fixture
def clock():
    return lambda: FROZEN_NOW


@pytest.fixture
def service(db, event_bus, clock):
    return BookingService(db, event_bus, clock=clock)


@pytest.fixture
def manager():
    return Actor(actor_id="ops-1", role=ActorRole.OPERATIONS_MANAGER)


@pytest.fixture
def dispatcher():
    return Actor(actor_id="disp-7", role=ActorRole.DISPATCHER)


@pytest.fixture
def client(session_factory, event_bus, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()
