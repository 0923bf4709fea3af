"""
History filters over saved food records.

Time-frame ranges, text search, grouping by day and calorie totals.
"""

from __future__ import annotations

import calendar
import unicodedata
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from calai.domain.records.models import FoodRecord
from calai.domain.records.store import RecordPredicate


class TimeFrame(str, Enum):
    """History window relative to a reference date."""

    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    ALL = "All"


def date_range(
    time_frame: TimeFrame,
    reference: datetime,
    first_weekday: int = calendar.SUNDAY,
) -> Tuple[datetime, datetime]:
    """
    Half-open ``[start, end)`` range for a time frame.

    Bounds keep the timezone of ``reference``.

    Args:
        time_frame: Window to compute
        reference: Any moment inside the window
        first_weekday: Week start, ``calendar.MONDAY`` .. ``calendar.SUNDAY``

    Example:
        >>> start, end = date_range(TimeFrame.DAY, datetime(2025, 6, 8, 13, 30))
        >>> start, end
        (datetime.datetime(2025, 6, 8, 0, 0), datetime.datetime(2025, 6, 9, 0, 0))
    """
    start_of_day = reference.replace(hour=0, minute=0, second=0, microsecond=0)

    if time_frame is TimeFrame.DAY:
        return start_of_day, start_of_day + timedelta(days=1)

    if time_frame is TimeFrame.WEEK:
        days_back = (start_of_day.weekday() - first_weekday) % 7
        start_of_week = start_of_day - timedelta(days=days_back)
        return start_of_week, start_of_week + timedelta(days=7)

    if time_frame is TimeFrame.MONTH:
        start_of_month = start_of_day.replace(day=1)
        if start_of_month.month == 12:
            next_month = start_of_month.replace(year=start_of_month.year + 1, month=1)
        else:
            next_month = start_of_month.replace(month=start_of_month.month + 1)
        return start_of_month, next_month

    return (
        datetime.min.replace(tzinfo=reference.tzinfo),
        datetime.max.replace(tzinfo=reference.tzinfo),
    )


def _fold(text: str) -> str:
    """Case- and accent-insensitive form for search."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def matches_search(record: FoodRecord, search_text: str) -> bool:
    """True if the food name or notes contain ``search_text``."""
    needle = _fold(search_text.strip())
    if not needle:
        return True
    if needle in _fold(record.food_name):
        return True
    return record.notes is not None and needle in _fold(record.notes)


def build_predicate(
    time_frame: TimeFrame,
    reference: datetime,
    search_text: str = "",
    first_weekday: int = calendar.SUNDAY,
) -> Optional[RecordPredicate]:
    """
    Predicate combining the time frame and the search text.

    Returns None when nothing needs filtering (ALL with empty search).
    Records without a timestamp never match a bounded time frame. A naive
    reference is taken as UTC, like stored timestamps.
    """
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)

    has_search = bool(search_text.strip())
    if time_frame is TimeFrame.ALL and not has_search:
        return None

    if time_frame is TimeFrame.ALL:
        return lambda record: matches_search(record, search_text)

    start, end = date_range(time_frame, reference, first_weekday)

    def predicate(record: FoodRecord) -> bool:
        if record.timestamp is None or not start <= record.timestamp < end:
            return False
        return matches_search(record, search_text)

    return predicate


def group_by_day(records: Iterable[FoodRecord]) -> Dict[date, List[FoodRecord]]:
    """
    Group records by calendar day of their timestamp.

    Days are ordered newest first; records keep their input order.
    Records without a timestamp are skipped.
    """
    groups: Dict[date, List[FoodRecord]] = defaultdict(list)
    for record in records:
        if record.timestamp is not None:
            groups[record.timestamp.date()].append(record)
    return {day: groups[day] for day in sorted(groups, reverse=True)}


def total_calories(records: Iterable[FoodRecord]) -> float:
    """Sum of each record's total (ingredient sum or manual figure)."""
    return sum(record.total_calories for record in records)
