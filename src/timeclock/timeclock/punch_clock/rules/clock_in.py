from __future__ import annotations

from typing import Optional

from ...core.enums import PunchType, SessionState
from .base import RuleViolation, TransitionRule


class ClockInRule(TransitionRule):
    """IN is only accepted from IDLE."""

    punch_type = PunchType.IN

    def check(self, state: SessionState) -> Optional[RuleViolation]:
        if state != SessionState.IDLE:
            return RuleViolation(code="ALREADY_CLOCKED_IN", message="Already clocked in")
        return None
