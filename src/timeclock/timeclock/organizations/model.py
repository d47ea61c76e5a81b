from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from ..core.constants import (
    DEFAULT_DAY_START,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_TIMEZONE,
    DEFAULT_WORKDAY_HOURS,
)


@dataclass(frozen=True)
class OrgSettings:
    """Attendance rules of one organization.

    ``day_start`` is the nominal start used for lateness; ``holidays`` are local
    calendar dates with no expected work.
    """

    workday_hours: float = DEFAULT_WORKDAY_HOURS
    lateness_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    timezone: str = DEFAULT_TIMEZONE
    holidays: frozenset[date] = field(default_factory=frozenset)
    day_start: time = DEFAULT_DAY_START

    @property
    def expected_minutes_per_day(self) -> int:
        return int(round(float(self.workday_hours) * 60))

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays


@dataclass(frozen=True)
class Organization:
    org_id: str
    name: str
    settings: OrgSettings


@dataclass(frozen=True)
class Team:
    team_id: str
    org_id: str
    name: str


@dataclass(frozen=True)
class Member:
    """A person who punches. Directory data only, no credentials."""

    user_id: str
    org_id: str
    full_name: str
    team_id: Optional[str] = None
    is_active: bool = True
