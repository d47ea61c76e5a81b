from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import whole_minutes
from ..core.enums import AnomalyKind, SessionState
from ..punches.model import PunchEvent


@dataclass(frozen=True)
class WorkSession:
    """One closed IN..OUT interval, net of breaks."""

    start: datetime
    end: datetime
    break_minutes: int
    is_late: bool = False

    @property
    def worked_minutes(self) -> int:
        return max(whole_minutes(self.start, self.end) - self.break_minutes, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "break_minutes": self.break_minutes,
            "worked_minutes": self.worked_minutes,
            "is_late": self.is_late,
        }


@dataclass(frozen=True)
class OpenSession:
    """A session with no matching OUT yet; only used for live elapsed displays."""

    start: datetime
    break_start: Optional[datetime] = None
    break_minutes: int = 0

    @property
    def on_break(self) -> bool:
        return self.break_start is not None

    def elapsed_minutes(self, now: datetime) -> int:
        until = self.break_start if self.break_start is not None else now
        return max(whole_minutes(self.start, until) - self.break_minutes, 0)

    def break_elapsed_minutes(self, now: datetime) -> int:
        if self.break_start is None:
            return 0
        return max(whole_minutes(self.break_start, now), 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "break_start": self.break_start.isoformat() if self.break_start else None,
            "break_minutes": self.break_minutes,
        }


@dataclass(frozen=True)
class Anomaly:
    kind: AnomalyKind
    event_id: Optional[str]
    timestamp: Optional[datetime]


@dataclass(frozen=True)
class Reconstruction:
    """Result of replaying one user's punches over a window."""

    sessions: tuple[WorkSession, ...]
    worked_minutes: int
    break_minutes: int
    is_late: bool
    late_minutes: int
    open_session: Optional[OpenSession]
    first_in: Optional[datetime]
    last_event: Optional[PunchEvent]
    anomalies: tuple[Anomaly, ...] = ()

    @property
    def has_events(self) -> bool:
        return self.last_event is not None

    @property
    def state(self) -> SessionState:
        if self.open_session is None:
            return SessionState.IDLE
        if self.open_session.on_break:
            return SessionState.ON_BREAK
        return SessionState.WORKING

    def to_dict(self) -> dict[str, Any]:
        return {
            "worked_minutes": self.worked_minutes,
            "break_minutes": self.break_minutes,
            "is_late": self.is_late,
            "late_minutes": self.late_minutes,
            "sessions": [s.to_dict() for s in self.sessions],
            "open_session": self.open_session.to_dict() if self.open_session else None,
            "anomalies": [a.kind.value for a in self.anomalies],
        }


@dataclass(frozen=True)
class LiveSnapshot:
    """Badge panel view of a user's day at ``now``."""

    state: SessionState
    worked_minutes: int
    elapsed_minutes: int
    break_elapsed_minutes: int
    open_session: Optional[OpenSession]
    last_event: Optional[PunchEvent]

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "worked_minutes": self.worked_minutes,
            "elapsed_minutes": self.elapsed_minutes,
            "break_elapsed_minutes": self.break_elapsed_minutes,
            "open_session": self.open_session.to_dict() if self.open_session else None,
            "last_event": self.last_event.to_dict() if self.last_event else None,
        }
