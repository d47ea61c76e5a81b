from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional


def _rate(part: int, whole: int) -> float:
    return 0.0 if whole <= 0 else part / whole * 100


def _hours(minutes: int) -> float:
    return minutes / 60


@dataclass(frozen=True)
class DailyAccumulator:
    """Folded result of one user's day (calendar date in org timezone)."""

    user_id: str
    day: date
    worked_minutes: int
    expected_minutes: int
    is_on_time: bool = True
    late_minutes: int = 0
    has_events: bool = False
    sessions: int = 0

    @property
    def is_counted(self) -> bool:
        return self.worked_minutes > 0

    @property
    def is_absent(self) -> bool:
        return self.worked_minutes == 0 and self.expected_minutes > 0

    @property
    def is_late(self) -> bool:
        return self.is_counted and not self.is_on_time

    @property
    def overtime_minutes(self) -> int:
        if not self.is_counted:
            return 0
        return max(self.worked_minutes - self.expected_minutes, 0)


@dataclass
class KpiTally:
    """Running fold over daily accumulators. Integer minutes only."""

    counted_days: int = 0
    on_time_days: int = 0
    late_count: int = 0
    absences: int = 0
    expected_days: int = 0
    badge_days: int = 0
    total_worked_minutes: int = 0
    total_expected_minutes: int = 0
    overtime_minutes: int = 0
    late_minutes: int = 0

    def add(self, acc: DailyAccumulator) -> None:
        self.total_expected_minutes += acc.expected_minutes
        if acc.expected_minutes > 0:
            self.expected_days += 1
            if acc.is_counted:
                self.badge_days += 1
        if acc.is_absent:
            self.absences += 1
        if not acc.is_counted:
            return
        self.counted_days += 1
        self.total_worked_minutes += acc.worked_minutes
        self.overtime_minutes += acc.overtime_minutes
        if acc.is_on_time:
            self.on_time_days += 1
        else:
            self.late_count += 1
            self.late_minutes += acc.late_minutes


@dataclass(frozen=True)
class OrgKpiSnapshot:
    counted_days: int = 0
    on_time_days: int = 0
    late_count: int = 0
    absences: int = 0
    total_worked_minutes: int = 0
    overtime_minutes: int = 0

    @classmethod
    def from_tally(cls, tally: KpiTally) -> "OrgKpiSnapshot":
        return cls(
            counted_days=tally.counted_days,
            on_time_days=tally.on_time_days,
            late_count=tally.late_count,
            absences=tally.absences,
            total_worked_minutes=tally.total_worked_minutes,
            overtime_minutes=tally.overtime_minutes,
        )

    @property
    def on_time_rate(self) -> float:
        return _rate(self.on_time_days, self.counted_days)

    @property
    def avg_hours_per_day(self) -> float:
        if self.counted_days <= 0:
            return 0.0
        return self.total_worked_minutes / self.counted_days / 60

    @property
    def overtime_hours(self) -> float:
        return _hours(self.overtime_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "on_time_rate": round(self.on_time_rate, 1),
            "avg_hours_per_day": round(self.avg_hours_per_day, 2),
            "late_count": self.late_count,
            "absences": self.absences,
            "overtime_hours": round(self.overtime_hours, 1),
        }


@dataclass(frozen=True)
class ReportKpis:
    snapshot: OrgKpiSnapshot
    lateness_rate: float
    absenteeism_rate: float
    badge_compliance: float
    avg_weekly_hours: float
    on_time_arrivals: int

    @classmethod
    def from_tally(cls, tally: KpiTally, *, days_in_range: int) -> "ReportKpis":
        weeks = max(1.0, days_in_range / 7)
        return cls(
            snapshot=OrgKpiSnapshot.from_tally(tally),
            lateness_rate=_rate(tally.late_count, tally.counted_days),
            absenteeism_rate=_rate(tally.absences, tally.expected_days),
            badge_compliance=_rate(tally.badge_days, tally.expected_days),
            avg_weekly_hours=_hours(tally.total_worked_minutes) / weeks,
            on_time_arrivals=tally.on_time_days,
        )

    def to_dict(self) -> dict[str, Any]:
        payload = self.snapshot.to_dict()
        payload.update(
            {
                "lateness_rate": round(self.lateness_rate, 1),
                "absenteeism_rate": round(self.absenteeism_rate, 1),
                "badge_compliance": round(self.badge_compliance, 1),
                "avg_weekly_hours": round(self.avg_weekly_hours, 1),
                "on_time_arrivals": self.on_time_arrivals,
            }
        )
        return payload


@dataclass(frozen=True)
class TeamBreakdown:
    team_id: str
    team_name: str
    worked_minutes: int
    expected_minutes: int
    overtime_minutes: int
    late_count: int
    absences: int
    badge_days: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "worked_hours": round(_hours(self.worked_minutes), 2),
            "expected_hours": round(_hours(self.expected_minutes), 2),
            "overtime_hours": round(_hours(self.overtime_minutes), 1),
            "late_count": self.late_count,
            "absences": self.absences,
        }


@dataclass(frozen=True)
class DateBreakdown:
    day: date
    worked_minutes: int
    expected_minutes: int
    late_count: int
    badge_days: int
    absences: int

    @property
    def late_rate(self) -> float:
        return _rate(self.late_count, self.badge_days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "late_rate": round(self.late_rate, 1),
            "worked_hours": round(_hours(self.worked_minutes), 2),
            "expected_hours": round(_hours(self.expected_minutes), 2),
            "late_count": self.late_count,
            "absences": self.absences,
        }


@dataclass(frozen=True)
class KpiReport:
    start: date
    end: date
    kpis: ReportKpis
    by_team: tuple[TeamBreakdown, ...] = ()
    by_date: tuple[DateBreakdown, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "kpis": self.kpis.to_dict(),
            "hours_by_team": [t.to_dict() for t in self.by_team],
            "lateness_trend": [d.to_dict() for d in self.by_date],
        }


@dataclass(frozen=True)
class WeekApproval:
    """Minimal approved/pending flag of a user's week."""

    user_id: str
    week_key: str
    approved: bool = False
    approver_id: Optional[str] = None
    approver_note: Optional[str] = None
    decided_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "week_of": self.week_key,
            "approved": self.approved,
            "approver_id": self.approver_id,
            "approver_note": self.approver_note,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }


@dataclass(frozen=True)
class TimesheetDayRow:
    day: date
    planned_minutes: int
    worked_minutes: int = 0
    late: bool = False
    absent: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "planned_hours": round(_hours(self.planned_minutes), 2),
            "worked_hours": round(_hours(self.worked_minutes), 2),
            "late": self.late,
            "absent": self.absent,
        }


@dataclass(frozen=True)
class WeekSummary:
    user_id: str
    week_key: str
    week_start: date
    days: tuple[TimesheetDayRow, ...] = field(default_factory=tuple)
    approval: Optional[WeekApproval] = None

    @property
    def total_worked_minutes(self) -> int:
        return sum(d.worked_minutes for d in self.days)

    @property
    def total_planned_minutes(self) -> int:
        return sum(d.planned_minutes for d in self.days)

    @property
    def approved(self) -> bool:
        return bool(self.approval and self.approval.approved)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "week_of": self.week_key,
            "days": [d.to_dict() for d in self.days],
            "approved": self.approved,
            "approver_id": self.approval.approver_id if self.approval else None,
            "approver_note": self.approval.approver_note if self.approval else None,
            "total_worked_hours": round(_hours(self.total_worked_minutes), 2),
            "total_planned_hours": round(_hours(self.total_planned_minutes), 2),
        }
