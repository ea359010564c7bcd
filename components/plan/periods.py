"""Period boundary rules for plans.

Every instant handled here is a timezone-aware UTC ``datetime``. Boundaries are
computed on the local calendar of the user's time zone and always land on local
midnight, so a weekly period keeps starting at 00:00 on the same weekday across
daylight-saving changes.

Anchors fix the phase of a period type:

- WEEKLY / BIWEEKLY: periods are 7 / 14 local days long, counted from the
  anchor's local date (``DEFAULT_PERIOD_ANCHOR_DATE`` when there is none).
- MONTHLY: periods start on the anchor's local day of month, clamped to the
  last day of shorter months (day 1 when there is no anchor).

None of these functions read the clock; ``now`` is always passed in.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from components.core.config import get_settings
from components.plan.enums import PeriodType
from components.plan.exceptions import PlanValidationError

PERIOD_DAYS = {
    PeriodType.WEEKLY: 7,
    PeriodType.BIWEEKLY: 14,
}
MAX_HISTORY_PERIODS = 52


@dataclass(frozen=True)
class PeriodWindow:
    """Half-open ``[period_start, period_end)`` window of one plan."""
    period_type: PeriodType
    period_start: datetime
    period_end: datetime
    period_anchor: Optional[datetime]


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_time_zone(name: Optional[str], default: Optional[str] = None) -> ZoneInfo:
    """
    Resolve an IANA zone name, falling back to ``default`` and then to the
    configured ``DEFAULT_TIME_ZONE`` when the name is blank.

    Raises:
        PlanValidationError: the chosen name is not a known zone.
    """
    candidate = str(name or "").strip() or str(default or "").strip()
    if not candidate:
        candidate = get_settings().DEFAULT_TIME_ZONE
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise PlanValidationError(f"Unknown time zone: {candidate}") from exc


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    return as_utc(instant).astimezone(tz).date()


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    """UTC instant of 00:00 on ``day`` in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def _clamped_date(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _shift_months(day: date, months: int, day_of_month: int) -> date:
    year, month_index = divmod(day.year * 12 + day.month - 1 + months, 12)
    return _clamped_date(year, month_index + 1, day_of_month)


def _anchor_date(anchor: Optional[datetime], tz: ZoneInfo) -> date:
    if anchor is None:
        return get_settings().DEFAULT_PERIOD_ANCHOR_DATE
    return local_date(anchor, tz)


def period_start_of(
    instant: datetime,
    period_type: PeriodType,
    tz: ZoneInfo,
    anchor: Optional[datetime] = None,
) -> datetime:
    """Start of the period of ``period_type`` that contains ``instant``."""
    period_type = PeriodType(period_type)
    today = local_date(instant, tz)

    if period_type == PeriodType.MONTHLY:
        day_of_month = local_date(anchor, tz).day if anchor is not None else 1
        start = _clamped_date(today.year, today.month, day_of_month)
        if start > today:
            start = _shift_months(today, -1, day_of_month)
        return local_midnight(start, tz)

    length = PERIOD_DAYS[period_type]
    anchor_day = _anchor_date(anchor, tz)
    offset = (today - anchor_day).days // length * length
    return local_midnight(anchor_day + timedelta(days=offset), tz)


def next_period_start(
    period_start: datetime,
    period_type: PeriodType,
    tz: ZoneInfo,
    anchor: Optional[datetime] = None,
) -> datetime:
    """
    Start of the period following the one starting at ``period_start``.

    MONTHLY re-clamps from the anchor's day of month (or the start's own day
    when there is no anchor), so a day-31 anchor goes Jan 31, Feb 28, Mar 31.
    """
    period_type = PeriodType(period_type)
    start = local_date(period_start, tz)

    if period_type == PeriodType.MONTHLY:
        day_of_month = local_date(anchor, tz).day if anchor is not None else start.day
        return local_midnight(_shift_months(start, 1, day_of_month), tz)

    return local_midnight(start + timedelta(days=PERIOD_DAYS[period_type]), tz)


def ensure_period_end(
    period_start: datetime,
    period_end: Optional[datetime],
    period_type: PeriodType,
    tz: ZoneInfo,
    anchor: Optional[datetime] = None,
) -> datetime:
    """Stored end when present, otherwise the end derived from the start (legacy rows)."""
    if period_end is not None:
        return as_utc(period_end)
    return next_period_start(period_start, period_type, tz, anchor)


def previous_period_starts(
    period_start: datetime,
    period_type: PeriodType,
    tz: ZoneInfo,
    count: int,
    anchor: Optional[datetime] = None,
) -> List[datetime]:
    """``period_start`` followed by earlier period starts, newest first."""
    period_type = PeriodType(period_type)
    count = min(MAX_HISTORY_PERIODS, max(1, int(count)))
    start = local_date(period_start, tz)

    if period_type == PeriodType.MONTHLY:
        day_of_month = local_date(anchor, tz).day if anchor is not None else start.day
        days = [start] + [_shift_months(start, -i, day_of_month) for i in range(1, count)]
    else:
        length = PERIOD_DAYS[period_type]
        days = [start - timedelta(days=length * i) for i in range(count)]

    return [local_midnight(day, tz) for day in days]


def compute_period_window(
    period_type: PeriodType,
    tz: ZoneInfo,
    now: datetime,
    anchor: Optional[datetime] = None,
) -> PeriodWindow:
    """
    Window of ``period_type`` containing ``now``.

    BIWEEKLY windows always carry an anchor: when none is given, the local
    midnight of the default anchor date is used and returned.
    """
    period_type = PeriodType(period_type)
    if anchor is not None:
        anchor = as_utc(anchor)
    elif period_type == PeriodType.BIWEEKLY:
        anchor = local_midnight(get_settings().DEFAULT_PERIOD_ANCHOR_DATE, tz)

    start = period_start_of(now, period_type, tz, anchor)
    end = next_period_start(start, period_type, tz, anchor)
    if end <= start:
        raise PlanValidationError(
            f"Invalid {period_type.value} window in {tz.key}: start={start.isoformat()} end={end.isoformat()}"
        )
    return PeriodWindow(
        period_type=period_type,
        period_start=start,
        period_end=end,
        period_anchor=anchor,
    )
