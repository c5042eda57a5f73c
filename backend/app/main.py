"""
FastAPI 앱 엔트리포인트
- CORS 설정
- 라우터 등록 (노선, 예약, 배송 조회, 견적, 운영 콘솔)
- 예약 도메인 오류 → JSON 응답 변환
- 이벤트 버스 생성 / 헬스체크 엔드포인트
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import engine, Base, SessionLocal
from app.api import admin, bookings, quotes, routes, tracking
from app.errors import BookingError
from app.events.event_bus import EventBus, get_event_bus, set_event_bus
from app.models import Route
from app.schemas.common import ErrorResponse, HealthResponse

# 로깅 설정
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작/종료 시 DB 테이블과 이벤트 버스 관리"""
    # ── 1. DB 테이블 확인 ──
    Base.metadata.create_all(bind=engine)
    logger.info("데이터베이스 테이블 확인 완료")

    db = SessionLocal()
    try:
        route_count = db.query(Route).count()
        if route_count == 0:
            logger.warning("노선 데이터가 없습니다. 먼저 python seed_data.py를 실행하세요.")
        else:
            logger.info(f"노선 데이터 확인: Routes {route_count}개")
    finally:
        db.close()

    # ── 2. 이벤트 버스 생성 ──
    set_event_bus(EventBus(settings.REDIS_URL))

    yield

    set_event_bus(None)
    logger.info("예약 서비스 종료")


app = FastAPI(
    title="정기 노선 예약 시스템",
    description="노선 적재량 할당 및 예약 상태 관리 API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """비즈니스 규칙 거절 → code/message/detail"""
    logger.warning(f"{request.method} {request.url.path} 거절: {exc.code} | {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(**exc.to_dict()).model_dump())


# 라우터 등록
app.include_router(routes.router)
app.include_router(bookings.router)
app.include_router(tracking.router)
app.include_router(quotes.router)
app.include_router(admin.router)


@app.get("/api/health", response_model=HealthResponse)
def health_check():
    """시스템 상태 확인"""
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error(f"헬스체크 DB 연결 실패: {e}")
    finally:
        db.close()

    return HealthResponse(
        status="ok" if db_ok else "degraded",
        db_connected=db_ok,
        redis_connected=get_event_bus().is_redis,
        timestamp=datetime.now(timezone.utc),
    )
