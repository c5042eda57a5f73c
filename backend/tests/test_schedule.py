"""
다음 출발편 계산기 테스트
"""

from datetime import date, datetime, timezone

import pytest

from app.models import Route
from app.models.route import RouteFrequency
from app.services.schedule import departure_on, next_departure, parse_departure_time

UTC = timezone.utc


def _route(frequency=RouteFrequency.DAILY, departure_time="08:00 AM", cutoff_hours=24):
    return Route(route_code="T-1", frequency=frequency, departure_time=departure_time,
                 cutoff_hours=cutoff_hours)


@pytest.mark.parametrize("raw, expected", [
    ("08:00 AM", (8, 0)),
    ("8:05 pm", (20, 5)),
    ("12:30 AM", (0, 30)),
    ("12:15 PM", (12, 15)),
    ("18:45", (18, 45)),
    (" 06:30 PM ", (18, 30)),
])
def test_parse_departure_time(raw, expected):
    assert parse_departure_time(raw) == expected


@pytest.mark.parametrize("raw", ["", "noon", "25:00", "13:00 PM", "08:75", None])
def test_parse_departure_time_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_departure_time(raw)


def test_daily_departure_already_passed_moves_to_tomorrow():
    now = datetime(2026, 3, 2, 14, 0, tzinfo=UTC)
    departure = next_departure(_route(), now)
    assert departure.departure_at == datetime(2026, 3, 3, 8, 0, tzinfo=UTC)
    assert departure.cutoff_at == datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


def test_departure_later_today_stays_today():
    now = datetime(2026, 3, 2, 6, 0, tzinfo=UTC)
    assert next_departure(_route(), now).departure_at == datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


@pytest.mark.parametrize("frequency, expected_day", [
    (RouteFrequency.WEEKLY, 9),
    (RouteFrequency.BI_WEEKLY, 16),
])
def test_weekly_frequencies(frequency, expected_day):
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    departure = next_departure(_route(frequency=frequency), now)
    assert departure.departure_at == datetime(2026, 3, expected_day, 8, 0, tzinfo=UTC)


def test_monthly_clamps_to_end_of_month():
    now = datetime(2026, 1, 31, 9, 0, tzinfo=UTC)
    departure = next_departure(_route(frequency=RouteFrequency.MONTHLY), now)
    assert departure.departure_at == datetime(2026, 2, 28, 8, 0, tzinfo=UTC)


def test_custom_and_default_cutoff_hours():
    day = date(2026, 3, 10)
    custom = departure_on(_route(cutoff_hours=6), day, tzinfo=UTC)
    assert custom.cutoff_at == datetime(2026, 3, 10, 2, 0, tzinfo=UTC)

    default = departure_on(_route(cutoff_hours=None), day, tzinfo=UTC)
    assert default.cutoff_at == datetime(2026, 3, 9, 8, 0, tzinfo=UTC)
