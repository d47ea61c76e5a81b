from __future__ import annotations

from typing import Optional

from ...core.enums import PunchType, SessionState
from .base import RuleViolation, TransitionRule


class ClockOutRule(TransitionRule):
    """OUT closes a WORKING session; an open break must be ended first."""

    punch_type = PunchType.OUT

    def check(self, state: SessionState) -> Optional[RuleViolation]:
        if state == SessionState.ON_BREAK:
            return RuleViolation(code="END_BREAK_FIRST", message="End break before clocking out")
        if state != SessionState.WORKING:
            return RuleViolation(code="NO_ACTIVE_SESSION", message="No active session")
        return None
