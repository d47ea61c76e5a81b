from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import PunchType, SessionState


@dataclass(frozen=True)
class RuleViolation:
    code: str
    message: str


class TransitionRule(ABC):
    """Strategy Pattern: precondition one punch type places on the current session state."""

    punch_type: PunchType

    @abstractmethod
    def check(self, state: SessionState) -> Optional[RuleViolation]:
        raise NotImplementedError
