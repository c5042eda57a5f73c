"""
애플리케이션 설정
- DB, Redis, 예약 정책(컷오프/재시도), 택배 요금표를 관리한다.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 데이터베이스
    DATABASE_URL: str = "sqlite:///bookings.db"

    # Redis (비워두면 인메모리 이벤트 스트림 사용)
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    # "현재 시각" 계산 기준 타임존 (IANA 이름)
    TIMEZONE: str = "UTC"

    CURRENCY: str = "USD"

    # 노선 예약 정책
    DEFAULT_CUTOFF_HOURS: int = 24
    ENFORCE_BOOKING_CUTOFF: bool = True

    # 동시성 충돌 시 재시도
    CAPACITY_RETRY_ATTEMPTS: int = 5
    STATUS_RETRY_ATTEMPTS: int = 3
    RETRY_BACKOFF_SECONDS: float = 0.02
    REFERENCE_MAX_ATTEMPTS: int = 5

    # 택배(워크인) 고정 요금표
    COURIER_FLAT_FEE: str = "15"
    COURIER_FREE_WEIGHT_KG: str = "5"
    COURIER_OVERAGE_PER_KG: str = "2"
    COURIER_INSURANCE_THRESHOLD: str = "500"
    COURIER_INSURANCE_RATE: str = "0.01"
    COURIER_EXPEDITED_SLOT: str = "Same Day"
    COURIER_EXPEDITED_PREMIUM: str = "10"

    # picked 상태로 변경 가능한 상위 운영 역할
    PRIVILEGED_ROLES: list[str] = ["super_admin", "operations_manager"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
