import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union

from models import Granularity

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class Period:
    granularity: Granularity
    start: int
    end: int
    label: str
    first_day: date
    last_day: date

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp <= self.end


def to_local(timestamp: int, tz: Optional[tzinfo] = None) -> datetime:
    """Naive local datetime for a millisecond timestamp.

    ``tz=None`` uses the system clock's local calendar.
    """
    seconds, millis = divmod(timestamp, 1000)
    moment = datetime.fromtimestamp(seconds, tz)
    if tz is not None:
        moment = moment.replace(tzinfo=None)
    return moment.replace(microsecond=millis * 1000)


def to_timestamp(moment: datetime, tz: Optional[tzinfo] = None) -> int:
    if moment.tzinfo is None and tz is not None:
        moment = moment.replace(tzinfo=tz)
    seconds = int(moment.replace(microsecond=0).timestamp())
    return seconds * 1000 + moment.microsecond // 1000


def _as_day(anchor: Union[date, datetime]) -> date:
    if isinstance(anchor, datetime):
        return anchor.date()
    return anchor


def _month_end(day: date) -> date:
    first = day.replace(day=1)
    if first.month == 12:
        next_month = first.replace(year=first.year + 1, month=1)
    else:
        next_month = first.replace(month=first.month + 1)
    return next_month - date.resolution


def resolve_period(
    anchor: Union[date, datetime],
    granularity: Granularity,
    *,
    tz: Optional[tzinfo] = None,
) -> Period:
    """Calendar-aligned period containing ``anchor``.

    Boundaries are inclusive: ``start`` is midnight of the first day and
    ``end`` is 23:59:59.999 of the last day. Weeks start on Monday.
    """
    day = _as_day(anchor)
    granularity = Granularity(granularity)

    if granularity == Granularity.day:
        first, last = day, day
        label = f"{day.year}年{day.month}月{day.day}日"
    elif granularity == Granularity.week:
        first = day - timedelta(days=day.isoweekday() - 1)
        last = first + timedelta(days=6)
        label = f"{first.month}月{first.day}日 - {last.month}月{last.day}日"
    elif granularity == Granularity.month:
        first = day.replace(day=1)
        last = _month_end(day)
        label = f"{day.year}年{day.month}月"
    else:
        first = date(day.year, 1, 1)
        last = date(day.year, 12, 31)
        label = f"{day.year}年"

    return Period(
        granularity=granularity,
        start=to_timestamp(datetime.combine(first, time.min), tz),
        end=to_timestamp(datetime.combine(last, END_OF_DAY), tz),
        label=label,
        first_day=first,
        last_day=last,
    )


def _add_months(day: date, count: int) -> date:
    month_index = (day.year * 12) + (day.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def shift_anchor(
    anchor: Union[date, datetime], granularity: Granularity, direction: int
) -> date:
    """Move the anchor one period backwards (-1) or forwards (+1)."""
    day = _as_day(anchor)
    granularity = Granularity(granularity)
    if granularity == Granularity.day:
        return day + timedelta(days=direction)
    if granularity == Granularity.week:
        return day + timedelta(days=7 * direction)
    if granularity == Granularity.month:
        return _add_months(day, direction)
    return _add_months(day, 12 * direction)
