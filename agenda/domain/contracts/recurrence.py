"""
Contract recurrence expansion.

Turns a contract's (weekday, time of day) rules into concrete booking
requests. No availability or overlap checks happen here; the booking ledger
decides which requests actually land.
"""

from datetime import date, time, timedelta
from typing import Iterable, Optional

from ...config import RECURRENCE_HORIZON_DAYS
from ...exceptions import ValidationError


def _normalize(rules: Iterable) -> list[tuple[int, time]]:
    normalized = set()
    for rule in rules:
        if isinstance(rule, tuple):
            day_of_week, slot_time = rule
        else:
            day_of_week, slot_time = rule.day_of_week, rule.slot_time
        if not 0 <= day_of_week <= 6:
            raise ValidationError(f"Invalid weekday {day_of_week} in schedule rule")
        normalized.add((day_of_week, slot_time))
    return sorted(normalized, key=lambda r: r[1])


def expand(
    rules: Iterable,
    start_date: date,
    end_date: Optional[date] = None,
    count: Optional[int] = None,
) -> list[tuple[date, time]]:
    """
    Expand weekly rules into (date, start) pairs.

    Dates run from ``start_date`` (inclusive) to ``end_date`` (exclusive),
    ascending by date and then by time. ``count`` caps the total across all
    rules. With neither bound the expansion stops after
    RECURRENCE_HORIZON_DAYS.

    Example: rules Mon/Wed 09:00 from a Monday with count=3 gives
    Monday, Wednesday and the following Monday at 09:00.
    """
    if count is not None and count < 0:
        raise ValidationError("count cannot be negative")

    rules = _normalize(rules)
    if not rules or count == 0:
        return []

    if end_date is None:
        end_date = start_date + timedelta(days=RECURRENCE_HORIZON_DAYS)

    by_weekday: dict[int, list[time]] = {}
    for day_of_week, slot_time in rules:
        by_weekday.setdefault(day_of_week, []).append(slot_time)

    requests = []
    current = start_date
    while current < end_date:
        for slot_time in by_weekday.get(current.weekday(), []):
            requests.append((current, slot_time))
            if count is not None and len(requests) >= count:
                return requests
        current += timedelta(days=1)

    return requests
