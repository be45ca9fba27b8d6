"""Period resolution: named period tokens to concrete windows, and previous-window derivation."""

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

from sales_kpi.errors import InvalidWindowError, UnknownPeriodError

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

# Python weekday numbering (Monday=0). Sunday matches the pt-BR locale of the source system.
DEFAULT_WEEK_START = 6


class PeriodToken(str, Enum):
    """Named periods accepted by resolve_period."""

    TODAY = "today"
    WEEK = "week"
    BIWEEKLY = "biweekly"
    MONTH = "month"
    QUARTER = "quarter"
    SEMESTER = "semester"
    YEAR = "year"
    CUSTOM = "custom"


def _align(value: datetime, other: datetime) -> datetime:
    """Attach other's tzinfo to value when value is naive and other is aware."""
    if value.tzinfo is None and other.tzinfo is not None:
        return value.replace(tzinfo=other.tzinfo)
    return value


@dataclass(frozen=True)
class Window:
    """Time range inclusive on both ends."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = _align(self.start, self.end)
        end = _align(self.end, self.start)
        if end < start:
            raise InvalidWindowError(f"Window end {self.end} is before start {self.start}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def localize(self, instant: datetime) -> datetime:
        """
        Express instant in the window's frame: naive instants take the window's
        tzinfo, aware ones are converted to it (or read by wall clock when the
        window is naive).
        """
        if self.start.tzinfo is None:
            return instant.replace(tzinfo=None)
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.start.tzinfo)
        return instant.astimezone(self.start.tzinfo)

    def contains(self, instant: datetime) -> bool:
        """True if start <= instant <= end."""
        return self.start <= self.localize(instant) <= self.end


def start_of_day(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)
    return datetime.combine(value, time.min)


def end_of_day(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return datetime.combine(value.date(), time.max, tzinfo=value.tzinfo)
    return datetime.combine(value, time.max)


def _add_months(day: date, months: int) -> date:
    """Shift a first-of-month date by whole months."""
    index = day.year * 12 + (day.month - 1) + months
    return day.replace(year=index // 12, month=index % 12 + 1)


def _month_window(reference: datetime, first_month: int, month_count: int) -> Window:
    first = reference.date().replace(month=first_month, day=1)
    last_month = _add_months(first, month_count - 1)
    last_day = calendar.monthrange(last_month.year, last_month.month)[1]
    start = datetime.combine(first, time.min, tzinfo=reference.tzinfo)
    end = datetime.combine(last_month.replace(day=last_day), time.max, tzinfo=reference.tzinfo)
    return Window(start, end)


def custom_window(
    start: Optional[Union[date, datetime]],
    end: Optional[Union[date, datetime]],
) -> Window:
    """Explicit bounds normalized to whole days (start of first day, end of last day)."""
    if start is None or end is None:
        raise InvalidWindowError("Custom period requires both start and end")
    return Window(start_of_day(start), end_of_day(end))


def resolve_period(
    token: Union[str, PeriodToken],
    reference: datetime,
    *,
    custom_start: Optional[Union[date, datetime]] = None,
    custom_end: Optional[Union[date, datetime]] = None,
    week_starts_on: int = DEFAULT_WEEK_START,
) -> Window:
    """
    Resolve a named period containing reference into a concrete Window.
    Raises UnknownPeriodError for unsupported tokens; there is no default period.
    """
    raw = token.value if isinstance(token, PeriodToken) else str(token)
    try:
        period = PeriodToken(raw.strip().lower())
    except ValueError:
        raise UnknownPeriodError(raw, [p.value for p in PeriodToken]) from None

    if period == PeriodToken.TODAY:
        window = Window(start_of_day(reference), end_of_day(reference))
    elif period == PeriodToken.WEEK:
        if not 0 <= week_starts_on <= 6:
            raise ValueError(f"week_starts_on must be 0-6, got {week_starts_on}")
        offset = (reference.weekday() - week_starts_on) % 7
        first = start_of_day(reference) - timedelta(days=offset)
        window = Window(first, end_of_day(first + timedelta(days=6)))
    elif period == PeriodToken.BIWEEKLY:
        window = Window(reference - timedelta(days=14), reference)
    elif period == PeriodToken.MONTH:
        window = _month_window(reference, reference.month, 1)
    elif period == PeriodToken.QUARTER:
        window = _month_window(reference, 3 * ((reference.month - 1) // 3) + 1, 3)
    elif period == PeriodToken.SEMESTER:
        first = _add_months(reference.date().replace(day=1), -6)
        window = Window(datetime.combine(first, time.min, tzinfo=reference.tzinfo), reference)
    elif period == PeriodToken.YEAR:
        window = _month_window(reference, 1, 12)
    else:
        window = custom_window(custom_start, custom_end)

    logger.debug("Resolved period %s at %s to %s - %s", period.value, reference, window.start, window.end)
    return window


def duration_days(window: Window) -> int:
    """Window length in days, rounded up."""
    return math.ceil((window.end - window.start) / ONE_DAY)


def previous_window(window: Window) -> Window:
    """
    The window immediately preceding window with the same duration_days.
    Depends only on the window's length, never on the token that produced it.
    """
    days = duration_days(window)
    previous_end = window.start - ONE_DAY
    previous_start = previous_end - timedelta(days=days)
    return Window(previous_start, previous_end)


def window_days(window: Window) -> list[date]:
    """Every calendar day touched by the window, in order."""
    first = window.start.date()
    count = (window.end.date() - first).days
    return [first + timedelta(days=i) for i in range(count + 1)]
