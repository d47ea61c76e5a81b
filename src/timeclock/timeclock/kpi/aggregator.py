"""Fold reconstructed user-days into attendance KPIs.

Pure functions over already-fetched events. Each ``(user, local date)`` partition
is independent, so partitions can be mapped on an executor and folded afterwards.
"""

from __future__ import annotations

from collections import defaultdict
from concurrent.futures import Executor
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import is_weekend, local_date, to_instant
from ..core.constants import UNASSIGNED_TEAM_ID, UNASSIGNED_TEAM_NAME
from ..organizations.model import OrgSettings
from ..punches.model import PunchEvent
from ..sessions.reconstructor import reconstruct
from .model import DailyAccumulator, DateBreakdown, KpiTally, OrgKpiSnapshot, ReportKpis, TeamBreakdown

PartitionKey = tuple[str, date]


def expected_minutes_for(day: date, settings: OrgSettings) -> int:
    if is_weekend(day, settings.timezone) or settings.is_holiday(day):
        return 0
    return settings.expected_minutes_per_day


def partition_events(events: Iterable[PunchEvent], settings: OrgSettings) -> dict[PartitionKey, list[PunchEvent]]:
    """Group events by user and calendar day in the org timezone (arrival order kept)."""

    partitions: dict[PartitionKey, list[PunchEvent]] = defaultdict(list)
    for event in events:
        key = (event.user_id, local_date(to_instant(event.timestamp), settings.timezone))
        partitions[key].append(event)
    return dict(partitions)


def daily_accumulator(user_id: str, day: date, events: Sequence[PunchEvent], settings: OrgSettings) -> DailyAccumulator:
    expected = expected_minutes_for(day, settings)
    if not events:
        return DailyAccumulator(user_id=user_id, day=day, worked_minutes=0, expected_minutes=expected)

    result = reconstruct(events, settings, day=day)
    return DailyAccumulator(
        user_id=user_id,
        day=day,
        worked_minutes=result.worked_minutes,
        expected_minutes=expected,
        is_on_time=not result.is_late,
        late_minutes=result.late_minutes,
        has_events=result.has_events,
        sessions=len(result.sessions),
    )


def build_daily_accumulators(
    events: Iterable[PunchEvent],
    settings: OrgSettings,
    *,
    user_ids: Optional[Sequence[str]] = None,
    days: Optional[Sequence[date]] = None,
    executor: Optional[Executor] = None,
) -> list[DailyAccumulator]:
    """One accumulator per user-day.

    With both ``user_ids`` and ``days`` the full calendar grid is produced, so a
    day without any punch still shows up (as an absence when work was expected).
    Otherwise only user-days that have events are returned.
    """

    partitions = partition_events(events, settings)
    if user_ids is not None:
        allowed_users = set(user_ids)
        partitions = {k: v for k, v in partitions.items() if k[0] in allowed_users}
    if days is not None:
        allowed_days = set(days)
        partitions = {k: v for k, v in partitions.items() if k[1] in allowed_days}

    keys: list[PartitionKey]
    if user_ids is not None and days is not None:
        keys = [(u, d) for u in user_ids for d in days]
    else:
        keys = sorted(partitions)

    def run(key: PartitionKey) -> DailyAccumulator:
        return daily_accumulator(key[0], key[1], partitions.get(key, []), settings)

    mapper = executor.map if executor is not None else map
    return list(mapper(run, keys))


def tally(accumulators: Iterable[DailyAccumulator]) -> KpiTally:
    result = KpiTally()
    for acc in accumulators:
        result.add(acc)
    return result


def fold_snapshot(accumulators: Iterable[DailyAccumulator]) -> OrgKpiSnapshot:
    return OrgKpiSnapshot.from_tally(tally(accumulators))


def compute_kpis(events: Iterable[PunchEvent], settings: OrgSettings) -> OrgKpiSnapshot:
    """Snapshot over the user-days present in ``events``."""
    return fold_snapshot(build_daily_accumulators(events, settings))


def report_kpis(accumulators: Sequence[DailyAccumulator], *, days_in_range: int) -> ReportKpis:
    return ReportKpis.from_tally(tally(accumulators), days_in_range=days_in_range)


def breakdown_by_team(
    accumulators: Iterable[DailyAccumulator],
    team_of: Mapping[str, Optional[str]],
    team_names: Optional[Mapping[str, str]] = None,
) -> list[TeamBreakdown]:
    """Fold per team; users without a team land under the ``unassigned`` key."""

    team_names = team_names or {}
    tallies: dict[str, KpiTally] = defaultdict(KpiTally)
    for acc in accumulators:
        team_id = team_of.get(acc.user_id) or UNASSIGNED_TEAM_ID
        tallies[team_id].add(acc)

    out: list[TeamBreakdown] = []
    for team_id, t in tallies.items():
        if team_id == UNASSIGNED_TEAM_ID:
            name = UNASSIGNED_TEAM_NAME
        else:
            name = team_names.get(team_id, team_id)
        out.append(
            TeamBreakdown(
                team_id=team_id,
                team_name=name,
                worked_minutes=t.total_worked_minutes,
                expected_minutes=t.total_expected_minutes,
                overtime_minutes=t.overtime_minutes,
                late_count=t.late_count,
                absences=t.absences,
                badge_days=t.counted_days,
            )
        )
    out.sort(key=lambda b: (b.team_id == UNASSIGNED_TEAM_ID, b.team_name))
    return out


def breakdown_by_date(accumulators: Iterable[DailyAccumulator]) -> list[DateBreakdown]:
    tallies: dict[date, KpiTally] = defaultdict(KpiTally)
    for acc in accumulators:
        tallies[acc.day].add(acc)

    return [
        DateBreakdown(
            day=day,
            worked_minutes=t.total_worked_minutes,
            expected_minutes=t.total_expected_minutes,
            late_count=t.late_count,
            badge_days=t.counted_days,
            absences=t.absences,
        )
        for day, t in sorted(tallies.items())
    ]
