from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    """Clock action recorded by the punch clock."""

    IN = "IN"
    OUT = "OUT"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"


class SessionState(str, Enum):
    """Live state of a user, derived by replaying the day's punches."""

    IDLE = "IDLE"
    WORKING = "WORKING"
    ON_BREAK = "ON_BREAK"


class TimesheetStatus(str, Enum):
    """Lifecycle of a weekly timesheet."""

    DRAFT = "draft"
    SENT = "sent"
    ATTENTION_REQUIRED = "attention-required"
    APPROVED = "approved"
    REJECTED = "rejected"


class WorkMode(str, Enum):
    OFFICE = "Office"
    HOMEWORKING = "Homeworking"


class AnomalyKind(str, Enum):
    """Data-quality notes collected while replaying punches (never fatal)."""

    DUPLICATE_IN = "duplicate_in"
    ORPHAN_OUT = "orphan_out"
    ORPHAN_BREAK_START = "orphan_break_start"
    DUPLICATE_BREAK_START = "duplicate_break_start"
    ORPHAN_BREAK_END = "orphan_break_end"
    UNCLOSED_BREAK = "unclosed_break"
    OPEN_SESSION = "open_session"
