from datetime import date, time, timedelta

import pytest

from agenda.config import RECURRENCE_HORIZON_DAYS
from agenda.domain.contracts.recurrence import expand
from agenda.exceptions import ValidationError

MONDAY = date(2030, 1, 7)
NINE = time(9, 0)


def test_mon_wed_with_count():
    result = expand([(0, NINE), (2, NINE)], MONDAY, count=3)
    assert result == [
        (MONDAY, NINE),
        (date(2030, 1, 9), NINE),
        (date(2030, 1, 14), NINE),
    ]


def test_end_date_is_exclusive():
    result = expand([(0, NINE)], MONDAY, end_date=date(2030, 1, 21))
    assert [d for d, _ in result] == [MONDAY, date(2030, 1, 14)]


def test_same_day_rules_sorted_by_time():
    result = expand([(0, time(15, 0)), (0, NINE)], MONDAY, count=2)
    assert result == [(MONDAY, NINE), (MONDAY, time(15, 0))]


def test_start_date_mid_week_skips_earlier_weekdays():
    result = expand([(0, NINE), (4, NINE)], date(2030, 1, 9), count=2)
    assert [d for d, _ in result] == [date(2030, 1, 11), date(2030, 1, 14)]


def test_unbounded_expansion_stops_at_horizon():
    result = expand([(0, NINE)], MONDAY)
    assert result[-1][0] < MONDAY + timedelta(days=RECURRENCE_HORIZON_DAYS)
    assert len(result) == (RECURRENCE_HORIZON_DAYS + 6) // 7


def test_duplicate_rules_collapse():
    assert expand([(0, NINE), (0, NINE)], MONDAY, count=2) == [
        (MONDAY, NINE),
        (date(2030, 1, 14), NINE),
    ]


def test_empty_rules_or_zero_count():
    assert expand([], MONDAY, count=5) == []
    assert expand([(0, NINE)], MONDAY, count=0) == []


def test_invalid_weekday_rejected():
    with pytest.raises(ValidationError):
        expand([(7, NINE)], MONDAY, count=1)
