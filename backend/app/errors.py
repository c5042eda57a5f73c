"""
예약 도메인 오류
- 비즈니스 규칙 거절은 code/message/detail을 가진 BookingError 계열로 표현한다.
- main.py의 예외 핸들러가 HTTP 응답으로 변환한다.
- DB/Redis 장애 같은 인프라 예외는 여기서 감싸지 않는다.
"""


class BookingError(Exception):
    """예약 도메인 오류의 기본 클래스"""

    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str, *, code: str | None = None, detail: dict | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.detail = detail or {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "detail": self.detail}


class ValidationError(BookingError):
    code = "VALIDATION_ERROR"
    status_code = 422


class CutoffPassedError(ValidationError):
    code = "BOOKING_CUTOFF_PASSED"


class NotFoundError(BookingError):
    code = "NOT_FOUND"
    status_code = 404


class CapacityExceededError(BookingError):
    code = "CAPACITY_EXCEEDED"
    status_code = 409


class InvalidTransitionError(BookingError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409


class ConcurrencyConflictError(BookingError):
    """직렬화 경쟁에서 재시도 한도를 넘긴 경우 — 호출자가 다시 시도해야 한다."""
    code = "CONCURRENCY_CONFLICT"
    status_code = 409


class UnauthenticatedError(BookingError):
    code = "UNAUTHENTICATED"
    status_code = 401
