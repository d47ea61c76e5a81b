from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import date_range, day_bounds, iso_week_key, iso_week_start, now_utc, parse_iso_week_key, week_days
from ..common.validators import optional_text
from ..core.constants import MAX_REPORT_DAYS
from ..core.exceptions import ValidationError
from ..organizations.service import DirectoryService
from ..punches.repository import PunchEventRepository
from .aggregator import breakdown_by_date, breakdown_by_team, build_daily_accumulators, report_kpis
from .model import KpiReport, OrgKpiSnapshot, WeekApproval, WeekSummary
from .repository import WeekApprovalRepository
from .weekly import summarize_week

logger = logging.getLogger(__name__)


class KpiService:
    """Attendance rollups for dashboards, reports and weekly timesheet rows.

    Fetches events through the repositories, then delegates every computation to
    the pure aggregator.
    """

    def __init__(
        self,
        punches: PunchEventRepository,
        directory: DirectoryService,
        approvals: WeekApprovalRepository,
        *,
        workers: int = 1,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._punches = punches
        self._directory = directory
        self._approvals = approvals
        self._workers = max(1, int(workers))
        self._clock = clock

    @staticmethod
    def _validate_range(start: date, end: date) -> list[date]:
        if end < start:
            raise ValidationError("End date must be on or after start date", code="INVALID_RANGE")
        days = list(date_range(start, end))
        if len(days) > MAX_REPORT_DAYS:
            raise ValidationError(f"Range must not exceed {MAX_REPORT_DAYS} days", code="RANGE_TOO_LARGE")
        return days

    def build_report(
        self,
        *,
        org_id: str,
        start: date,
        end: date,
        team_ids: Optional[Sequence[str]] = None,
    ) -> KpiReport:
        days = self._validate_range(start, end)
        org = self._directory.require_organization(org_id)
        settings = org.settings
        members = self._directory.active_members(org.org_id, team_ids=team_ids)
        user_ids = [m.user_id for m in members]

        window_start, _ = day_bounds(start, settings.timezone)
        _, window_end = day_bounds(end, settings.timezone)
        events = (
            self._punches.list_for_org(org.org_id, start=window_start, end=window_end, user_ids=user_ids)
            if user_ids
            else []
        )

        if self._workers > 1 and len(user_ids) * len(days) > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                accumulators = build_daily_accumulators(events, settings, user_ids=user_ids, days=days, executor=pool)
        else:
            accumulators = build_daily_accumulators(events, settings, user_ids=user_ids, days=days)

        team_names = {t.team_id: t.name for t in self._directory.teams(org.org_id)}
        report = KpiReport(
            start=start,
            end=end,
            kpis=report_kpis(accumulators, days_in_range=len(days)),
            by_team=tuple(breakdown_by_team(accumulators, {m.user_id: m.team_id for m in members}, team_names)),
            by_date=tuple(breakdown_by_date(accumulators)),
        )
        logger.info(
            "KPI report built",
            extra={"org_id": org.org_id, "members": len(user_ids), "days": len(days), "events": len(events)},
        )
        return report

    def org_snapshot(self, *, org_id: str, start: date, end: date, team_ids: Optional[Sequence[str]] = None) -> OrgKpiSnapshot:
        return self.build_report(org_id=org_id, start=start, end=end, team_ids=team_ids).kpis.snapshot

    def week_summary(self, *, user_id: str, anchor: date) -> WeekSummary:
        member = self._directory.require_member(user_id)
        settings = self._directory.organization_for(member).settings

        days = week_days(iso_week_start(anchor))
        window_start, _ = day_bounds(days[0], settings.timezone)
        _, window_end = day_bounds(days[-1], settings.timezone)
        events = self._punches.list_for_user(member.user_id, start=window_start, end=window_end)

        approval = self._approvals.get(user_id=member.user_id, week_key=iso_week_key(days[0]))
        return summarize_week(member.user_id, events, settings, anchor=anchor, approval=approval)

    def approve_week(
        self,
        *,
        user_id: str,
        week_key: str,
        approve: bool,
        approver_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> WeekApproval:
        parse_iso_week_key(week_key)
        member = self._directory.require_member(user_id)
        approval = WeekApproval(
            user_id=member.user_id,
            week_key=week_key.strip(),
            approved=bool(approve),
            approver_id=approver_id,
            approver_note=optional_text(note, "note"),
            decided_at=self._clock(),
        )
        self._approvals.upsert(approval)
        logger.info(
            "Timesheet week decided",
            extra={"user_id": member.user_id, "week_key": approval.week_key, "approved": approval.approved},
        )
        return approval
