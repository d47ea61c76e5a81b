from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_text, require_minutes
from ..core.constants import MAX_CELL_MINUTES
from ..core.enums import TimesheetStatus, WorkMode
from ..core.exceptions import MalformedInput

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# activity code -> local date -> cell
WeekEntries = Mapping[str, Mapping[date, "CellEntry"]]


@dataclass(frozen=True)
class LocationInfo:
    mode: WorkMode = WorkMode.OFFICE
    country: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "country": self.country}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LocationInfo":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise MalformedInput("location must be an object with mode and country")
        try:
            mode = WorkMode(data.get("mode") or WorkMode.OFFICE.value)
        except ValueError as exc:
            raise MalformedInput(f"Unknown work mode: {data.get('mode')!r}") from exc
        return cls(mode=mode, country=str(data.get("country") or "").strip())


@dataclass(frozen=True)
class TimeInterval:
    """Wall-clock interval (``HH:MM``) a cell's minutes were spent in."""

    start: str
    end: str

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimeInterval":
        if not isinstance(data, Mapping):
            raise MalformedInput("Each interval must be an object with start and end")
        start = str(data.get("start") or "").strip()
        end = str(data.get("end") or "").strip()
        if not _CLOCK_RE.match(start) or not _CLOCK_RE.match(end):
            raise MalformedInput(f"Invalid interval (HH:MM): {start!r}-{end!r}")
        if end <= start:
            raise MalformedInput(f"Interval end must be after start: {start}-{end}")
        return cls(start=start, end=end)


@dataclass(frozen=True)
class CellEntry:
    """Minutes booked on one activity code for one date."""

    minutes: int
    location: LocationInfo = field(default_factory=LocationInfo)
    intervals: tuple[TimeInterval, ...] = ()
    note: Optional[str] = None
    sent: bool = False
    deficit_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "minutes": self.minutes,
            "location": self.location.to_dict(),
            "intervals": [i.to_dict() for i in self.intervals],
            "note": self.note,
            "sent": self.sent,
            "deficit_reason": self.deficit_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CellEntry":
        return cls(
            minutes=require_minutes(data.get("minutes"), "minutes", maximum=MAX_CELL_MINUTES),
            location=LocationInfo.from_dict(data.get("location")),
            intervals=_intervals_from(data.get("intervals")),
            note=optional_text(data.get("note"), "note"),
            sent=bool(data.get("sent", False)),
            deficit_reason=optional_text(data.get("deficit_reason"), "deficit_reason"),
        )


def _intervals_from(raw: Any) -> tuple[TimeInterval, ...]:
    if not raw:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise MalformedInput("intervals must be a list")
    return tuple(TimeInterval.from_dict(item) for item in raw)


def entries_to_dict(entries: WeekEntries) -> dict[str, dict[str, Any]]:
    return {
        code: {day.isoformat(): cell.to_dict() for day, cell in sorted(days.items())}
        for code, days in sorted(entries.items())
    }


def entries_from_dict(data: Optional[Mapping[str, Any]]) -> dict[str, dict[date, CellEntry]]:
    out: dict[str, dict[date, CellEntry]] = {}
    for code, days in (data or {}).items():
        out[str(code)] = {parse_iso_date(iso): CellEntry.from_dict(cell) for iso, cell in (days or {}).items()}
    return out


@dataclass(frozen=True)
class Timesheet:
    """One user's weekly activity-code grid.

    ``week_total_minutes`` is always the sum of ``entries``; only the ledger builds
    new versions of a timesheet.
    """

    id: str
    user_id: str
    week_start: date
    status: TimesheetStatus
    entries: WeekEntries
    week_total_minutes: int
    timezone: str
    weekly_min_minutes: int
    daily_min_minutes: int
    submitted_at: Optional[datetime] = None
    missing_reasons: tuple[date, ...] = ()
    weekend_overrides: frozenset[date] = field(default_factory=frozenset)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "week_start": self.week_start.isoformat(),
            "status": self.status.value,
            "entries": entries_to_dict(self.entries),
            "week_total_minutes": self.week_total_minutes,
            "timezone": self.timezone,
            "weekly_min_minutes": self.weekly_min_minutes,
            "daily_min_minutes": self.daily_min_minutes,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "missing_reasons": [d.isoformat() for d in self.missing_reasons],
            "weekend_overrides": sorted(d.isoformat() for d in self.weekend_overrides),
        }
