from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..common.datetime_utils import iso_week_key, iso_week_start, week_days
from ..organizations.model import OrgSettings
from ..punches.model import PunchEvent
from .aggregator import build_daily_accumulators
from .model import TimesheetDayRow, WeekApproval, WeekSummary


def summarize_week(
    user_id: str,
    events: Iterable[PunchEvent],
    settings: OrgSettings,
    *,
    anchor: date,
    approval: Optional[WeekApproval] = None,
) -> WeekSummary:
    """Seven timesheet rows (Monday first) for the ISO week containing ``anchor``."""

    week_start = iso_week_start(anchor)
    days = week_days(week_start)
    accumulators = build_daily_accumulators(
        [e for e in events if e.user_id == user_id],
        settings,
        user_ids=[user_id],
        days=days,
    )

    rows = tuple(
        TimesheetDayRow(
            day=acc.day,
            planned_minutes=acc.expected_minutes,
            worked_minutes=acc.worked_minutes,
            late=acc.has_events and not acc.is_on_time,
            absent=acc.is_absent,
        )
        for acc in accumulators
    )
    return WeekSummary(
        user_id=user_id,
        week_key=iso_week_key(week_start),
        week_start=week_start,
        days=rows,
        approval=approval,
    )
