from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.timeclock.timeclock.core.enums import PunchType
from src.timeclock.timeclock.core.exceptions import MalformedInput, NotFound, ValidationError
from src.timeclock.timeclock.kpi.service import KpiService
from src.timeclock.timeclock.organizations.model import Member, Organization, OrgSettings, Team
from src.timeclock.timeclock.organizations.service import DirectoryService
from src.timeclock.timeclock.punches.model import PunchEvent

FIXED_NOW = datetime(2024, 3, 11, 12, 0, tzinfo=timezone.utc)


class FakeDirectoryRepo:
    def __init__(self):
        self.orgs = {"acme": Organization(org_id="acme", name="Acme", settings=OrgSettings())}
        self.members = {
            "u1": Member(user_id="u1", org_id="acme", full_name="Ada", team_id="t1"),
            "u2": Member(user_id="u2", org_id="acme", full_name="Bo"),
            "u3": Member(user_id="u3", org_id="acme", full_name="Cy", team_id="t1", is_active=False),
        }
        self.teams = [Team(team_id="t1", org_id="acme", name="Platform")]

    def get_organization(self, org_id):
        return self.orgs.get(org_id)

    def get_member(self, user_id):
        return self.members.get(user_id)

    def list_members(self, org_id, *, team_ids=None):
        return [
            m
            for m in self.members.values()
            if m.org_id == org_id and (not team_ids or m.team_id in team_ids)
        ]

    def list_teams(self, org_id):
        return [t for t in self.teams if t.org_id == org_id]


class FakePunchRepo:
    def __init__(self, events=None):
        self.events: list[PunchEvent] = list(events or [])

    def list_for_user(self, user_id, *, start, end):
        return [e for e in self.events if e.user_id == user_id and start <= e.timestamp < end]

    def list_for_org(self, org_id, *, start, end, user_ids=None):
        return [
            e
            for e in self.events
            if e.org_id == org_id and start <= e.timestamp < end and (user_ids is None or e.user_id in user_ids)
        ]

    def latest_for_user(self, user_id):
        mine = [e for e in self.events if e.user_id == user_id]
        return max(mine, key=lambda e: e.timestamp) if mine else None

    def append(self, event):
        self.events.append(event)


class FakeApprovalRepo:
    def __init__(self):
        self.items = {}

    def get(self, *, user_id, week_key):
        return self.items.get((user_id, week_key))

    def upsert(self, approval):
        self.items[(approval.user_id, approval.week_key)] = approval


def _ev(event_id, user_id, punch_type, day, hour, minute=0):
    return PunchEvent(
        id=event_id,
        user_id=user_id,
        org_id="acme",
        type=punch_type,
        timestamp=datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc),
    )


EVENTS = [
    _ev("1", "u1", PunchType.IN, 4, 8),
    _ev("2", "u1", PunchType.OUT, 4, 16),
    _ev("3", "u1", PunchType.IN, 5, 9, 7),
    _ev("4", "u1", PunchType.OUT, 5, 17, 7),
    _ev("5", "u2", PunchType.IN, 4, 8),
    _ev("6", "u2", PunchType.OUT, 4, 18),
    _ev("7", "u3", PunchType.IN, 4, 8),
    _ev("8", "u3", PunchType.OUT, 4, 16),
]


def _service(*, workers=1, approvals=None):
    return KpiService(
        FakePunchRepo(EVENTS),
        DirectoryService(FakeDirectoryRepo()),
        approvals or FakeApprovalRepo(),
        workers=workers,
        clock=lambda: FIXED_NOW,
    )


def test_report_evaluates_every_active_member_every_day():
    report = _service().build_report(org_id="acme", start=date(2024, 3, 4), end=date(2024, 3, 10))
    kpis = report.kpis.to_dict()

    assert kpis["on_time_rate"] == 66.7
    assert kpis["avg_hours_per_day"] == 8.67
    assert kpis["late_count"] == 1
    assert kpis["absences"] == 7
    assert kpis["overtime_hours"] == 2.0
    assert kpis["lateness_rate"] == 33.3
    assert kpis["absenteeism_rate"] == 70.0
    assert kpis["badge_compliance"] == 30.0
    assert kpis["avg_weekly_hours"] == 26.0
    assert kpis["on_time_arrivals"] == 2


def test_report_breakdowns_by_team_and_date():
    payload = _service().build_report(org_id="acme", start=date(2024, 3, 4), end=date(2024, 3, 10)).to_dict()

    assert payload["from"] == "2024-03-04"
    assert [t["team_name"] for t in payload["hours_by_team"]] == ["Platform", "Unassigned"]
    assert payload["hours_by_team"][0]["worked_hours"] == 16.0
    assert payload["hours_by_team"][1]["worked_hours"] == 10.0
    assert len(payload["lateness_trend"]) == 7
    assert payload["lateness_trend"][1]["late_rate"] == 100.0


def test_team_filter_limits_members():
    snapshot = _service().org_snapshot(org_id="acme", start=date(2024, 3, 4), end=date(2024, 3, 4), team_ids=["t1"])
    assert snapshot.counted_days == 1
    assert snapshot.total_worked_minutes == 480


def test_worker_pool_gives_same_report():
    args = {"org_id": "acme", "start": date(2024, 3, 4), "end": date(2024, 3, 10)}
    assert _service(workers=3).build_report(**args) == _service().build_report(**args)


def test_invalid_range_and_unknown_org():
    service = _service()
    with pytest.raises(ValidationError):
        service.build_report(org_id="acme", start=date(2024, 3, 10), end=date(2024, 3, 4))
    with pytest.raises(NotFound):
        service.build_report(org_id="nope", start=date(2024, 3, 4), end=date(2024, 3, 4))


def test_approve_week_shows_up_in_week_summary():
    approvals = FakeApprovalRepo()
    service = _service(approvals=approvals)

    approval = service.approve_week(user_id="u1", week_key="2024-W10", approve=True, approver_id="m1", note=" fine ")
    summary = service.week_summary(user_id="u1", anchor=date(2024, 3, 6))

    assert approval.decided_at == FIXED_NOW
    assert approval.approver_note == "fine"
    assert summary.approved
    assert summary.approval.approver_id == "m1"
    assert summary.days[1].late


def test_approve_week_validates_key_and_member():
    service = _service()
    with pytest.raises(MalformedInput):
        service.approve_week(user_id="u1", week_key="week ten", approve=True)
    with pytest.raises(NotFound):
        service.approve_week(user_id="ghost", week_key="2024-W10", approve=True)
