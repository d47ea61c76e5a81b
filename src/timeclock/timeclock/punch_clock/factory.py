from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import PunchType
from .rules.base import TransitionRule
from .rules.breaks import BreakEndRule, BreakStartRule
from .rules.clock_in import ClockInRule
from .rules.clock_out import ClockOutRule


def _default_rules() -> dict[PunchType, TransitionRule]:
    rules: list[TransitionRule] = [ClockInRule(), ClockOutRule(), BreakStartRule(), BreakEndRule()]
    return {rule.punch_type: rule for rule in rules}


@dataclass
class TransitionRuleFactory:
    """Factory Pattern: pick the transition rule for a punch type."""

    rules: dict[PunchType, TransitionRule] = field(default_factory=_default_rules)

    def for_punch(self, punch_type: PunchType) -> TransitionRule:
        return self.rules[punch_type]
