"""
다음 출발편 계산기 — 노선 운행 주기와 출발 시각으로 다음 출발/예약 마감 시각을 구한다.
상태 없음, DB 접근 없음.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from app.config import settings
from app.models.route import Route, RouteFrequency

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")

FREQUENCY_STEP = {
    RouteFrequency.DAILY: relativedelta(days=1),
    RouteFrequency.WEEKLY: relativedelta(weeks=1),
    RouteFrequency.BI_WEEKLY: relativedelta(weeks=2),
    RouteFrequency.MONTHLY: relativedelta(months=1),
}


@dataclass(frozen=True)
class Departure:
    departure_at: datetime
    cutoff_at: datetime


def now_local() -> datetime:
    """설정된 타임존 기준 현재 시각"""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def parse_departure_time(value: str) -> tuple[int, int]:
    """
    "08:00 AM" → (8, 0), "12:30 AM" → (0, 30), "12:15 PM" → (12, 15).
    AM/PM 표기가 없으면 24시간제로 해석한다.
    """
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"잘못된 출발 시각 형식: {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    period = (match.group(3) or "").upper()

    if minute > 59:
        raise ValueError(f"잘못된 출발 시각 형식: {value!r}")

    if period:
        if not 1 <= hour <= 12:
            raise ValueError(f"잘못된 출발 시각 형식: {value!r}")
        if period == "PM" and hour != 12:
            hour += 12
        elif period == "AM" and hour == 12:
            hour = 0
    elif hour > 23:
        raise ValueError(f"잘못된 출발 시각 형식: {value!r}")

    return hour, minute


def _cutoff_hours(route: Route) -> int:
    hours = route.cutoff_hours
    return settings.DEFAULT_CUTOFF_HOURS if hours is None else hours


def _frequency_step(route: Route) -> relativedelta:
    try:
        return FREQUENCY_STEP[RouteFrequency(route.frequency)]
    except ValueError:
        return FREQUENCY_STEP[RouteFrequency.DAILY]


def departure_on(route: Route, day: date, tzinfo=None) -> Departure:
    """주어진 날짜의 출발 시각과 예약 마감 시각"""
    hour, minute = parse_departure_time(route.departure_time)
    departure_at = datetime.combine(day, time(hour, minute), tzinfo=tzinfo)
    return Departure(
        departure_at=departure_at,
        cutoff_at=departure_at - timedelta(hours=_cutoff_hours(route)),
    )


def next_departure(route: Route, now: datetime) -> Departure:
    """
    오늘 출발 시각이 이미 지났으면 운행 주기만큼 반복해서 민다.
    월 단위는 relativedelta로 말일 보정 (1/31 → 2/28).
    """
    hour, minute = parse_departure_time(route.departure_time)
    base = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    step = _frequency_step(route)

    candidate = base
    periods = 0
    while candidate < now:
        periods += 1
        # 기준일에서 n주기를 더해 월말 보정이 누적되지 않도록 한다
        candidate = base + step * periods

    return Departure(
        departure_at=candidate,
        cutoff_at=candidate - timedelta(hours=_cutoff_hours(route)),
    )
