from datetime import date, datetime, timezone

from src.timeclock.timeclock.core.enums import AnomalyKind, PunchType, SessionState
from src.timeclock.timeclock.organizations.model import OrgSettings
from src.timeclock.timeclock.punches.model import PunchEvent
from src.timeclock.timeclock.sessions.reconstructor import derive_state, live_snapshot, reconstruct

MONDAY = date(2024, 3, 4)


def _at(hhmm: str, day: date = MONDAY) -> datetime:
    hour, minute = (int(p) for p in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def _ev(event_id: str, punch_type: PunchType, hhmm: str, day: date = MONDAY) -> PunchEvent:
    return PunchEvent(id=event_id, user_id="u1", org_id="acme", type=punch_type, timestamp=_at(hhmm, day))


def _kinds(result):
    return [a.kind for a in result.anomalies]


def test_break_is_subtracted_from_worked_minutes():
    events = [
        _ev("1", PunchType.IN, "08:00"),
        _ev("2", PunchType.BREAK_START, "12:00"),
        _ev("3", PunchType.BREAK_END, "12:30"),
        _ev("4", PunchType.OUT, "16:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert result.worked_minutes == 450
    assert result.break_minutes == 30
    assert not result.is_late
    assert result.state == SessionState.IDLE
    assert result.anomalies == ()


def test_late_arrival_after_grace():
    events = [_ev("1", PunchType.IN, "09:07"), _ev("2", PunchType.OUT, "17:00")]

    result = reconstruct(events, OrgSettings(lateness_grace_minutes=5))

    assert result.is_late
    assert result.late_minutes == 2
    assert result.sessions[0].is_late
    assert result.worked_minutes == 473


def test_arrival_exactly_at_grace_limit_is_on_time():
    events = [_ev("1", PunchType.IN, "09:05"), _ev("2", PunchType.OUT, "17:00")]
    assert not reconstruct(events, OrgSettings()).is_late


def test_dangling_in_contributes_nothing_but_stays_open():
    result = reconstruct([_ev("1", PunchType.IN, "08:00")], OrgSettings())

    assert result.worked_minutes == 0
    assert result.sessions == ()
    assert result.open_session is not None
    assert result.state == SessionState.WORKING
    assert AnomalyKind.OPEN_SESSION in _kinds(result)


def test_replay_is_order_independent_and_idempotent():
    events = [
        _ev("4", PunchType.OUT, "16:00"),
        _ev("1", PunchType.IN, "08:00"),
        _ev("3", PunchType.BREAK_END, "12:30"),
        _ev("2", PunchType.BREAK_START, "12:00"),
    ]
    settings = OrgSettings()

    first = reconstruct(events, settings)
    second = reconstruct(list(reversed(events)), settings)

    assert first == second
    assert first.worked_minutes == 450


def test_invalid_transitions_are_noted_not_fatal():
    events = [
        _ev("0", PunchType.OUT, "07:00"),
        _ev("1", PunchType.IN, "08:00"),
        _ev("2", PunchType.IN, "08:30"),
        _ev("3", PunchType.BREAK_END, "10:00"),
        _ev("4", PunchType.OUT, "16:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert result.worked_minutes == 480
    assert _kinds(result) == [AnomalyKind.ORPHAN_OUT, AnomalyKind.DUPLICATE_IN, AnomalyKind.ORPHAN_BREAK_END]


def test_out_during_open_break_drops_the_break():
    events = [
        _ev("1", PunchType.IN, "08:00"),
        _ev("2", PunchType.BREAK_START, "12:00"),
        _ev("3", PunchType.OUT, "16:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert result.worked_minutes == 480
    assert result.break_minutes == 0
    assert AnomalyKind.UNCLOSED_BREAK in _kinds(result)


def test_worked_minutes_never_exceed_first_in_to_last_out_span():
    events = [
        _ev("1", PunchType.IN, "08:00"),
        _ev("2", PunchType.OUT, "10:00"),
        _ev("3", PunchType.IN, "11:00"),
        _ev("4", PunchType.BREAK_START, "11:10"),
        _ev("5", PunchType.BREAK_END, "11:20"),
        _ev("6", PunchType.OUT, "13:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert result.worked_minutes == 120 + 110
    assert 0 <= result.worked_minutes <= 300
    assert len(result.sessions) == 2


def test_lateness_is_judged_in_org_timezone():
    oslo = OrgSettings(timezone="Europe/Oslo")
    # 07:50 UTC is 08:50 in Oslo (CET in March before DST).
    on_time = reconstruct([_ev("1", PunchType.IN, "07:50"), _ev("2", PunchType.OUT, "15:50")], oslo)
    late = reconstruct([_ev("1", PunchType.IN, "08:10"), _ev("2", PunchType.OUT, "16:10")], oslo)

    assert not on_time.is_late
    assert late.is_late
    assert late.late_minutes == 5


def test_day_filter_ignores_other_days():
    tuesday = date(2024, 3, 5)
    events = [
        _ev("1", PunchType.IN, "08:00"),
        _ev("2", PunchType.OUT, "12:00"),
        _ev("3", PunchType.IN, "08:00", tuesday),
        _ev("4", PunchType.OUT, "09:00", tuesday),
    ]

    assert reconstruct(events, OrgSettings(), day=MONDAY).worked_minutes == 240
    assert reconstruct(events, OrgSettings(), day=tuesday).worked_minutes == 60


def test_derive_state_on_break():
    events = [_ev("1", PunchType.IN, "08:00"), _ev("2", PunchType.BREAK_START, "10:00")]
    assert derive_state(events, OrgSettings()) == SessionState.ON_BREAK
    assert derive_state([], OrgSettings()) == SessionState.IDLE


def test_live_snapshot_counts_running_session():
    events = [
        _ev("1", PunchType.IN, "07:00"),
        _ev("2", PunchType.OUT, "08:00"),
        _ev("3", PunchType.IN, "09:00"),
    ]

    snapshot = live_snapshot(events, OrgSettings(), now=_at("10:30"))

    assert snapshot.state == SessionState.WORKING
    assert snapshot.worked_minutes == 60
    assert snapshot.elapsed_minutes == 60 + 90
    assert snapshot.break_elapsed_minutes == 0
    assert snapshot.last_event.id == "3"


def test_live_snapshot_freezes_elapsed_while_on_break():
    events = [_ev("1", PunchType.IN, "08:00"), _ev("2", PunchType.BREAK_START, "10:00")]

    snapshot = live_snapshot(events, OrgSettings(), now=_at("10:20"))

    assert snapshot.state == SessionState.ON_BREAK
    assert snapshot.elapsed_minutes == 120
    assert snapshot.break_elapsed_minutes == 20


def test_break_day_starting_exactly_at_nominal_start():
    events = [
        _ev("1", PunchType.IN, "09:00"),
        _ev("2", PunchType.BREAK_START, "12:00"),
        _ev("3", PunchType.BREAK_END, "12:30"),
        _ev("4", PunchType.OUT, "17:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert result.worked_minutes == 450
    assert result.break_minutes == 30
    assert not result.is_late
    assert result.late_minutes == 0
    assert not result.sessions[0].is_late


def test_same_instant_events_keep_arrival_order():
    events = [
        _ev("1", PunchType.IN, "09:00"),
        _ev("2", PunchType.OUT, "09:00"),
        _ev("3", PunchType.IN, "10:00"),
        _ev("4", PunchType.OUT, "12:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert [s.worked_minutes for s in result.sessions] == [0, 120]
    assert result.worked_minutes == 120
    assert result.anomalies == ()


def test_same_instant_events_arriving_out_first():
    events = [
        _ev("2", PunchType.OUT, "09:00"),
        _ev("1", PunchType.IN, "09:00"),
        _ev("3", PunchType.IN, "10:00"),
        _ev("4", PunchType.OUT, "12:00"),
    ]

    result = reconstruct(events, OrgSettings())

    assert len(result.sessions) == 1
    assert result.worked_minutes == 180
    assert _kinds(result) == [AnomalyKind.ORPHAN_OUT, AnomalyKind.DUPLICATE_IN]
