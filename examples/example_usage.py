"""Example: fold a handful of punches into KPIs without a database or Flask.

The reconstruction and aggregation layer is pure, so it can be fed any list of
events (exports, fixtures, another store).
"""

from datetime import date, datetime, timezone

from src.timeclock.timeclock.core.enums import PunchType
from src.timeclock.timeclock.kpi.aggregator import build_daily_accumulators, fold_snapshot
from src.timeclock.timeclock.kpi.weekly import summarize_week
from src.timeclock.timeclock.organizations.model import OrgSettings
from src.timeclock.timeclock.punches.model import PunchEvent


def _punch(event_id: str, user_id: str, punch_type: PunchType, hour: int, minute: int, day: int = 5) -> PunchEvent:
    return PunchEvent(
        id=event_id,
        user_id=user_id,
        org_id="acme",
        type=punch_type,
        timestamp=datetime(2024, 2, day, hour, minute, tzinfo=timezone.utc),
    )


def main():
    settings = OrgSettings(timezone="Europe/Oslo")
    events = [
        _punch("e1", "u1", PunchType.IN, 7, 55),
        _punch("e2", "u1", PunchType.BREAK_START, 11, 0),
        _punch("e3", "u1", PunchType.BREAK_END, 11, 30),
        _punch("e4", "u1", PunchType.OUT, 16, 0),
        _punch("e5", "u2", PunchType.IN, 8, 20),
        _punch("e6", "u2", PunchType.OUT, 16, 20),
    ]

    days = [date(2024, 2, 5), date(2024, 2, 6)]
    accumulators = build_daily_accumulators(events, settings, user_ids=["u1", "u2"], days=days)
    print(fold_snapshot(accumulators).to_dict())
    print(summarize_week("u1", events, settings, anchor=date(2024, 2, 7)).to_dict())


if __name__ == "__main__":
    main()
