from __future__ import annotations

from typing import Optional

from ...core.enums import PunchType, SessionState
from .base import RuleViolation, TransitionRule


class BreakStartRule(TransitionRule):
    punch_type = PunchType.BREAK_START

    def check(self, state: SessionState) -> Optional[RuleViolation]:
        if state != SessionState.WORKING:
            return RuleViolation(code="NOT_WORKING", message="Cannot start break while not working")
        return None


class BreakEndRule(TransitionRule):
    punch_type = PunchType.BREAK_END

    def check(self, state: SessionState) -> Optional[RuleViolation]:
        if state != SessionState.ON_BREAK:
            return RuleViolation(code="NO_ACTIVE_BREAK", message="No active break to end")
        return None
