"""Rebuild work sessions from a raw punch stream.

This is the only place punches are replayed: KPI rollups, report generation, the
weekly timesheet rows and the live punch clock all call into it.

Replay is permissive. A transition whose precondition does not hold (second IN,
OUT without IN, ...) is a no-op and is recorded as an ``Anomaly``; historical
aggregation never fails on dirty data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import local_date, minutes_after_grace, to_instant, whole_minutes, within_grace
from ..core.enums import AnomalyKind, PunchType, SessionState
from ..organizations.model import OrgSettings
from ..punches.model import PunchEvent
from .model import Anomaly, LiveSnapshot, OpenSession, Reconstruction, WorkSession

logger = logging.getLogger(__name__)


def chronological(events: Iterable[PunchEvent]) -> list[tuple[datetime, PunchEvent]]:
    """Pair events with their UTC instant, sorted ascending; ties keep arrival order."""
    stamped = [(to_instant(e.timestamp), e) for e in events]
    stamped.sort(key=lambda pair: pair[0])
    return stamped


def reconstruct(
    events: Sequence[PunchEvent],
    settings: OrgSettings,
    *,
    day: Optional[date] = None,
) -> Reconstruction:
    """Replay one user's events and return closed sessions, lateness and any open session.

    ``day`` restricts the replay to events whose local date (org timezone) matches,
    for callers passing a wider window.
    """

    stamped = chronological(events)
    if day is not None:
        stamped = [(ts, e) for ts, e in stamped if local_date(ts, settings.timezone) == day]

    sessions: list[WorkSession] = []
    anomalies: list[Anomaly] = []
    session_start: Optional[datetime] = None
    break_start: Optional[datetime] = None
    accumulated_break = 0
    total_break = 0
    first_in: Optional[datetime] = None
    is_late = False
    late_minutes = 0
    last_event: Optional[PunchEvent] = None

    def note(kind: AnomalyKind, event: Optional[PunchEvent], ts: Optional[datetime]) -> None:
        anomalies.append(Anomaly(kind=kind, event_id=event.id if event else None, timestamp=ts))
        logger.debug("Punch replay anomaly", extra={"kind": kind.value, "event_id": event.id if event else None})

    for ts, event in stamped:
        last_event = event

        if event.type == PunchType.IN:
            if session_start is not None:
                note(AnomalyKind.DUPLICATE_IN, event, ts)
                continue
            session_start = ts
            break_start = None
            accumulated_break = 0
            if first_in is None:
                # Lateness is decided once, at the first IN of the window.
                first_in = ts
                hour, minute = settings.day_start.hour, settings.day_start.minute
                grace = settings.lateness_grace_minutes
                if not within_grace(ts, settings.timezone, hour, minute, grace):
                    is_late = True
                    late_minutes = minutes_after_grace(ts, settings.timezone, hour, minute, grace)

        elif event.type == PunchType.BREAK_START:
            if session_start is None:
                note(AnomalyKind.ORPHAN_BREAK_START, event, ts)
            elif break_start is not None:
                note(AnomalyKind.DUPLICATE_BREAK_START, event, ts)
            else:
                break_start = ts

        elif event.type == PunchType.BREAK_END:
            if break_start is None:
                note(AnomalyKind.ORPHAN_BREAK_END, event, ts)
                continue
            accumulated_break += max(whole_minutes(break_start, ts), 0)
            break_start = None

        elif event.type == PunchType.OUT:
            if session_start is None:
                note(AnomalyKind.ORPHAN_OUT, event, ts)
                continue
            if break_start is not None:
                note(AnomalyKind.UNCLOSED_BREAK, event, ts)
            sessions.append(
                WorkSession(
                    start=session_start,
                    end=ts,
                    break_minutes=accumulated_break,
                    is_late=is_late and session_start == first_in,
                )
            )
            total_break += accumulated_break
            session_start = None
            break_start = None
            accumulated_break = 0

    open_session = None
    if session_start is not None:
        open_session = OpenSession(start=session_start, break_start=break_start, break_minutes=accumulated_break)
        note(AnomalyKind.OPEN_SESSION, None, session_start)

    return Reconstruction(
        sessions=tuple(sessions),
        worked_minutes=sum(s.worked_minutes for s in sessions),
        break_minutes=total_break,
        is_late=is_late,
        late_minutes=late_minutes,
        open_session=open_session,
        first_in=first_in,
        last_event=last_event,
        anomalies=tuple(anomalies),
    )


def derive_state(events: Sequence[PunchEvent], settings: OrgSettings, *, day: Optional[date] = None) -> SessionState:
    return reconstruct(events, settings, day=day).state


def live_snapshot(
    events: Sequence[PunchEvent],
    settings: OrgSettings,
    *,
    now: datetime,
    day: Optional[date] = None,
) -> LiveSnapshot:
    """Live elapsed view: closed worked minutes plus the running session at ``now``."""

    now = to_instant(now)
    result = reconstruct(events, settings, day=day)
    open_session = result.open_session
    elapsed = open_session.elapsed_minutes(now) if open_session else 0
    on_break = open_session.break_elapsed_minutes(now) if open_session else 0
    return LiveSnapshot(
        state=result.state,
        worked_minutes=result.worked_minutes,
        elapsed_minutes=result.worked_minutes + elapsed,
        break_elapsed_minutes=on_break,
        open_session=open_session,
        last_event=result.last_event,
    )
