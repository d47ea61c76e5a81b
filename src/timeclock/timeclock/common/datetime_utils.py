"""Timezone-aware calendar helpers.

Every boundary decision (day bucketing, weekend, lateness) converts the stored UTC
instant into the organization's zone here, at the point of decision.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Iterator, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import MalformedInput

DayLike = Union[date, datetime]


@lru_cache
def get_zone(name: str) -> ZoneInfo:
    raw = (name or "").strip()
    if not raw:
        raise MalformedInput("Timezone name is empty")
    try:
        return ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise MalformedInput(f"Unknown timezone: {raw!r}") from exc


def _zone(tz: Union[str, ZoneInfo]) -> ZoneInfo:
    return tz if isinstance(tz, ZoneInfo) else get_zone(tz)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    if not isinstance(value, str):
        raise MalformedInput(f"Invalid date (YYYY-MM-DD): {value!r}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise MalformedInput(f"Invalid date (YYYY-MM-DD): {value!r}") from exc


def to_instant(value: Union[datetime, str]) -> datetime:
    """Normalize a stored timestamp into an aware UTC datetime.

    Naive datetimes are taken as UTC, which is how punch timestamps are stored.
    """

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise MalformedInput(f"Invalid timestamp: {value!r}") from exc

    if not isinstance(value, datetime):
        raise MalformedInput(f"Invalid timestamp: {value!r}")

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def now_utc() -> datetime:
    """Current instant.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)


def local_date(instant: Union[datetime, str], tz: Union[str, ZoneInfo]) -> date:
    return to_instant(instant).astimezone(_zone(tz)).date()


def day_bounds(day: DayLike, tz: Union[str, ZoneInfo]) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of the calendar day in ``tz`` as UTC instants."""

    zone = _zone(tz)
    if isinstance(day, datetime):
        day = local_date(day, zone)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def is_weekend(day: DayLike, tz: Union[str, ZoneInfo]) -> bool:
    if isinstance(day, datetime):
        day = local_date(day, tz)
    return day.weekday() >= 5


def nominal_start(instant: datetime, tz: Union[str, ZoneInfo], hour: int, minute: int) -> datetime:
    zone = _zone(tz)
    local = to_instant(instant).astimezone(zone)
    return datetime.combine(local.date(), time(hour, minute), tzinfo=zone)


def within_grace(
    instant: Union[datetime, str],
    tz: Union[str, ZoneInfo],
    nominal_start_hour: int,
    nominal_start_minute: int,
    grace_minutes: int,
) -> bool:
    """True if the punch is at or before nominal start + grace (local day of the punch)."""

    ts = to_instant(instant)
    limit = nominal_start(ts, tz, nominal_start_hour, nominal_start_minute) + timedelta(minutes=int(grace_minutes))
    return ts <= limit


def minutes_after_grace(
    instant: Union[datetime, str],
    tz: Union[str, ZoneInfo],
    nominal_start_hour: int,
    nominal_start_minute: int,
    grace_minutes: int,
) -> int:
    ts = to_instant(instant)
    limit = nominal_start(ts, tz, nominal_start_hour, nominal_start_minute) + timedelta(minutes=int(grace_minutes))
    return max(whole_minutes(limit, ts), 0)


def whole_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def iso_week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def iso_week_key(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def parse_iso_week_key(value: str) -> date:
    """Parse ``YYYY-Www`` into the Monday of that week."""
    try:
        return datetime.strptime(f"{(value or '').strip()}-1", "%G-W%V-%u").date()
    except ValueError as exc:
        raise MalformedInput(f"Invalid ISO week (YYYY-Www): {value!r}") from exc


def week_days(week_start: date) -> list[date]:
    return [week_start + timedelta(days=i) for i in range(7)]


def date_range(start: date, end: date) -> Iterator[date]:
    """Inclusive range of calendar dates."""
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)
