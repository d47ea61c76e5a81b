from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.timeclock.timeclock.container import ServiceOptions, assemble
from src.timeclock.timeclock.core.enums import PunchType
from src.timeclock.timeclock.main import create_app
from src.timeclock.timeclock.organizations.model import Member, Organization, OrgSettings, Team
from src.timeclock.timeclock.punches.model import PunchEvent


class FakeDirectoryRepo:
    def __init__(self):
        self.org = Organization(org_id="acme", name="Acme", settings=OrgSettings())
        self.members = {
            "u1": Member(user_id="u1", org_id="acme", full_name="Ada", team_id="t1"),
            "m1": Member(user_id="m1", org_id="acme", full_name="Mo", team_id="t1"),
        }

    def get_organization(self, org_id):
        return self.org if org_id == "acme" else None

    def get_member(self, user_id):
        return self.members.get(user_id)

    def list_members(self, org_id, *, team_ids=None):
        return [m for m in self.members.values() if not team_ids or m.team_id in team_ids]

    def list_teams(self, org_id):
        return [Team(team_id="t1", org_id="acme", name="Platform")]


class FakePunchRepo:
    def __init__(self, events=None):
        self.events = list(events or [])

    def list_for_user(self, user_id, *, start, end):
        return [e for e in self.events if e.user_id == user_id and start <= e.timestamp < end]

    def list_for_org(self, org_id, *, start, end, user_ids=None):
        return [e for e in self.events if start <= e.timestamp < end and (user_ids is None or e.user_id in user_ids)]

    def latest_for_user(self, user_id):
        mine = [e for e in self.events if e.user_id == user_id]
        return mine[-1] if mine else None

    def append(self, event):
        self.events.append(event)


class FakeApprovalRepo:
    def __init__(self):
        self.items = {}

    def get(self, *, user_id, week_key):
        return self.items.get((user_id, week_key))

    def upsert(self, approval):
        self.items[(approval.user_id, approval.week_key)] = approval


class FakeTimesheetRepo:
    def __init__(self):
        self.items = {}

    def get(self, timesheet_id):
        return self.items.get(timesheet_id)

    def find_for_user_week(self, *, user_id, week_start):
        return next((t for t in self.items.values() if t.user_id == user_id and t.week_start == week_start), None)

    def list_for_user(self, user_id, *, limit=12):
        return [t for t in self.items.values() if t.user_id == user_id][:limit]

    def save(self, timesheet):
        self.items[timesheet.id] = timesheet


HISTORY = [
    PunchEvent(id="h1", user_id="u1", org_id="acme", type=PunchType.IN, timestamp=datetime(2024, 3, 4, 8, tzinfo=timezone.utc)),
    PunchEvent(id="h2", user_id="u1", org_id="acme", type=PunchType.OUT, timestamp=datetime(2024, 3, 4, 16, tzinfo=timezone.utc)),
]


def _make_client(monkeypatch, directory=None):
    monkeypatch.setenv("APP_ENV", "testing")
    container = assemble(
        punches_repo=FakePunchRepo(HISTORY),
        directory_repo=directory or FakeDirectoryRepo(),
        approvals_repo=FakeApprovalRepo(),
        timesheets_repo=FakeTimesheetRepo(),
        options=ServiceOptions(),
    )
    app = create_app(container)
    return app.test_client()


@pytest.fixture
def client(monkeypatch):
    return _make_client(monkeypatch)


@pytest.fixture
def tokyo_client(monkeypatch):
    directory = FakeDirectoryRepo()
    directory.org = Organization(org_id="acme", name="Acme", settings=OrgSettings(timezone="Asia/Tokyo"))
    return _make_client(monkeypatch, directory)


def _as(user_id):
    return {"X-User-Id": user_id}


def test_missing_user_header_is_bad_request(client):
    resp = client.post("/api/punches", json={"type": "IN"})
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "MISSING_USER"


def test_punch_flow_maps_domain_errors_to_status_codes(client):
    resp = client.post("/api/punches", json={"type": "IN"}, headers=_as("u1"))
    assert resp.status_code == 201
    assert resp.get_json()["geo"]["radius_m"] == 150

    resp = client.post("/api/punches", json={"type": "IN"}, headers=_as("u1"))
    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "ALREADY_CLOCKED_IN"
    assert resp.get_json()["error"]["current_state"] == "WORKING"

    resp = client.post("/api/punches", json={"type": "BREAK_START"}, headers=_as("u1"))
    assert resp.status_code == 428
    assert resp.get_json()["error"]["last_event_type"] == "IN"

    resp = client.post("/api/punches", json={"type": "BREAK_START", "force": True}, headers=_as("u1"))
    assert resp.status_code == 201

    status = client.get("/api/punches/status", headers=_as("u1")).get_json()
    assert status["state"] == "ON_BREAK"


def test_unknown_member_is_not_found(client):
    resp = client.post("/api/punches", json={"type": "IN"}, headers=_as("ghost"))
    assert resp.status_code == 404


def test_kpis_and_report(client):
    snapshot = client.get("/api/kpis?org_id=acme&start=2024-03-04&end=2024-03-04", headers=_as("m1")).get_json()
    assert snapshot == {
        "on_time_rate": 100.0,
        "avg_hours_per_day": 8.0,
        "late_count": 0,
        "absences": 1,
        "overtime_hours": 0.0,
    }

    report = client.get("/api/reports?start=2024-03-04&end=2024-03-10", headers=_as("m1")).get_json()
    assert report["hours_by_team"][0]["team_name"] == "Platform"
    assert len(report["lateness_trend"]) == 7

    resp = client.get("/api/reports?start=2024-03-10&end=2024-03-04", headers=_as("m1"))
    assert resp.status_code == 422


def test_week_rows_and_approval(client):
    week = client.get("/api/timesheets/week?date=2024-03-06", headers=_as("u1")).get_json()
    assert week["week_of"] == "2024-W10"
    assert week["days"][0]["worked_hours"] == 8.0
    assert week["approved"] is False

    resp = client.post(
        "/api/timesheets/week/approval",
        json={"user_id": "u1", "week_of": "2024-W10", "approve": True, "note": "ok"},
        headers=_as("m1"),
    )
    assert resp.status_code == 200
    assert resp.get_json()["approver_id"] == "m1"

    week = client.get("/api/timesheets/week?user_id=u1&date=2024-03-06", headers=_as("m1")).get_json()
    assert week["approved"] is True


def test_timesheet_ledger_routes(client):
    resp = client.post("/api/timesheets", json={"date": "2024-03-06"}, headers=_as("u1"))
    assert resp.status_code == 201
    ts_id = resp.get_json()["id"]

    resp = client.put(f"/api/timesheets/{ts_id}/cells/DEV/2024-03-09", json={"minutes": 60}, headers=_as("u1"))
    assert resp.status_code == 422
    assert resp.get_json()["error"]["code"] == "WEEKEND_NOT_ALLOWED"

    resp = client.post(f"/api/timesheets/{ts_id}/weekend-overrides/2024-03-09", headers=_as("u1"))
    assert resp.get_json()["weekend_overrides"] == ["2024-03-09"]

    resp = client.put(f"/api/timesheets/{ts_id}/cells/DEV/2024-03-04", json={"minutes": 240}, headers=_as("u1"))
    assert resp.get_json()["week_total_minutes"] == 240

    resp = client.post(f"/api/timesheets/{ts_id}/days/2024-03-04/send", json={}, headers=_as("u1"))
    assert resp.status_code == 422
    assert resp.get_json()["error"]["code"] == "DEFICIT_REASON_REQUIRED"

    resp = client.post(
        f"/api/timesheets/{ts_id}/days/2024-03-04/send", json={"deficit_reason": "dentist"}, headers=_as("u1")
    )
    assert resp.get_json()["entries"]["DEV"]["2024-03-04"]["sent"] is True

    resp = client.post(f"/api/timesheets/{ts_id}/auto-send", headers=_as("u1"))
    assert resp.get_json()["status"] == "attention-required"

    resp = client.delete(f"/api/timesheets/{ts_id}/codes/DEV", headers=_as("u1"))
    assert resp.get_json()["week_total_minutes"] == 0

    assert client.get("/api/timesheets/nope", headers=_as("u1")).status_code == 404
    assert len(client.get("/api/timesheets", headers=_as("u1")).get_json()) == 1


def test_non_string_note_is_rejected_before_recording(client):
    resp = client.post("/api/punches", json={"type": "IN", "note": 123}, headers=_as("u1"))
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "MALFORMED_INPUT"

    resp = client.post("/api/punches", json={"type": "IN", "geo": "office"}, headers=_as("u1"))
    assert resp.status_code == 400

    # nothing was stored, so no confirmation is asked for
    resp = client.post("/api/punches", json={"type": "IN", "note": " early "}, headers=_as("u1"))
    assert resp.status_code == 201
    assert resp.get_json()["note"] == "early"


def test_malformed_cell_payloads_are_bad_requests(client):
    ts_id = client.post("/api/timesheets", json={"date": "2024-03-06"}, headers=_as("u1")).get_json()["id"]
    url = f"/api/timesheets/{ts_id}/cells/DEV/2024-03-04"

    for body in (
        {"minutes": 60, "location": "Office"},
        {"minutes": 60, "intervals": ["09:00-10:00"]},
        {"minutes": 60, "intervals": "09:00-10:00"},
        {"minutes": 60, "note": 5},
    ):
        resp = client.put(url, json=body, headers=_as("u1"))
        assert resp.status_code == 400, body
        assert resp.get_json()["error"]["code"] == "MALFORMED_INPUT"

    resp = client.put(
        url,
        json={"minutes": 60, "location": {"mode": "Homeworking", "country": "NO"}, "intervals": [{"start": "09:00", "end": "10:00"}]},
        headers=_as("u1"),
    )
    assert resp.status_code == 200
    assert resp.get_json()["week_total_minutes"] == 60

    resp = client.post(f"/api/timesheets/{ts_id}/days/2024-03-04/send", json={"deficit_reason": 123}, headers=_as("u1"))
    assert resp.status_code == 400

    resp = client.post("/api/timesheets", json={"date": 20240306}, headers=_as("u1"))
    assert resp.status_code == 400


def test_punch_response_carries_org_local_time(tokyo_client):
    resp = tokyo_client.post("/api/punches", json={"type": "IN"}, headers=_as("u1"))

    body = resp.get_json()
    assert resp.status_code == 201
    assert body["timestamp"].endswith("+00:00")
    assert body["local_timestamp"].endswith("+09:00")


def test_default_day_follows_org_timezone(tokyo_client, monkeypatch):
    # Sunday evening in UTC is already Monday morning in Tokyo.
    monkeypatch.setattr(
        "src.timeclock.timeclock.organizations.service.now_utc",
        lambda: datetime(2024, 3, 10, 20, 0, tzinfo=timezone.utc),
    )

    opened = tokyo_client.post("/api/timesheets", json={}, headers=_as("u1")).get_json()
    assert opened["week_start"] == "2024-03-11"

    week = tokyo_client.get("/api/timesheets/week", headers=_as("u1")).get_json()
    assert week["week_of"] == "2024-W11"
