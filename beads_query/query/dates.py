"""Date helpers: ISO literal parsing and relative date resolution.

All periods are half-open instant ranges ``[start, end)`` computed in the
evaluator's time zone:
    - day: [day 00:00, next day 00:00)
    - week: [Monday 00:00, next Monday 00:00)
    - month: [1st 00:00, 1st of next month 00:00)
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from beads_query.query.values import RelativeDateSpec, TimestampValue

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_timestamp_literal(text: str) -> TimestampValue | None:
    """Parse ``2024-01-31`` or an ISO 8601 datetime into a TimestampValue.

    Date-only literals are midnight UTC with ``date_only=True``. Returns
    None when ``text`` is not a date.
    """
    text = text.strip()
    if _DATE_RE.match(text):
        try:
            day = date.fromisoformat(text)
        except ValueError:
            return None
        return TimestampValue(datetime.combine(day, time(0, 0), tzinfo=UTC), date_only=True)
    if "T" not in text and " " not in text:
        return None
    try:
        return TimestampValue(ensure_aware(datetime.fromisoformat(text)))
    except ValueError:
        return None


def _start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=tz)


def _add_months(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def day_range(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Instant range covering calendar ``day`` in ``tz``."""
    return _start_of_day(day, tz), _start_of_day(day + timedelta(days=1), tz)


def resolve_relative_date(
    spec: RelativeDateSpec, now: datetime, tz: tzinfo | None = None
) -> tuple[datetime, datetime]:
    """Resolve ``spec`` to an instant range relative to ``now``.

    Args:
        spec: The relative date to resolve.
        now: Current instant, as read from the evaluator's clock.
        tz: Time zone for calendar math. Defaults to ``now``'s tzinfo.

    Returns:
        Half-open ``(start, end)`` range of aware datetimes.
    """
    now = ensure_aware(now)
    if tz is None:
        tz = now.tzinfo or UTC
    today = now.astimezone(tz).date()

    if spec is RelativeDateSpec.TODAY:
        return day_range(today, tz)
    if spec is RelativeDateSpec.YESTERDAY:
        return day_range(today - timedelta(days=1), tz)
    if spec is RelativeDateSpec.TOMORROW:
        return day_range(today + timedelta(days=1), tz)

    if spec in (RelativeDateSpec.THIS_WEEK, RelativeDateSpec.LAST_WEEK, RelativeDateSpec.NEXT_WEEK):
        monday = today - timedelta(days=today.weekday())
        offset = {
            RelativeDateSpec.THIS_WEEK: 0,
            RelativeDateSpec.LAST_WEEK: -7,
            RelativeDateSpec.NEXT_WEEK: 7,
        }[spec]
        start = monday + timedelta(days=offset)
        return _start_of_day(start, tz), _start_of_day(start + timedelta(days=7), tz)

    offset = {
        RelativeDateSpec.THIS_MONTH: 0,
        RelativeDateSpec.LAST_MONTH: -1,
        RelativeDateSpec.NEXT_MONTH: 1,
    }[spec]
    first = _add_months(today.replace(day=1), offset)
    return _start_of_day(first, tz), _start_of_day(_add_months(first, 1), tz)
