from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Timesheet


class TimesheetRepository(Protocol):
    def get(self, timesheet_id: str) -> Optional[Timesheet]:
        raise NotImplementedError

    def find_for_user_week(self, *, user_id: str, week_start: date) -> Optional[Timesheet]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, limit: int = 12) -> Sequence[Timesheet]:
        raise NotImplementedError

    def save(self, timesheet: Timesheet) -> None:
        raise NotImplementedError
