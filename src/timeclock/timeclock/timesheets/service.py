from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Union
from uuid import uuid4

from ..common.datetime_utils import iso_week_start, now_utc
from ..core.constants import DEFAULT_DAILY_MIN_MINUTES, DEFAULT_WEEKLY_MIN_MINUTES
from ..core.enums import TimesheetStatus
from ..core.exceptions import NotFound
from ..organizations.service import DirectoryService
from .ledger import WeeklyTimesheetLedger
from .model import CellEntry, Timesheet
from .repository import TimesheetRepository

logger = logging.getLogger(__name__)


class TimesheetService:
    """Loads a ledger, applies one operation, saves the result."""

    def __init__(
        self,
        timesheets: TimesheetRepository,
        directory: DirectoryService,
        *,
        weekly_min_minutes: int = DEFAULT_WEEKLY_MIN_MINUTES,
        daily_min_minutes: int = DEFAULT_DAILY_MIN_MINUTES,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ):
        self._timesheets = timesheets
        self._directory = directory
        self._weekly_min = int(weekly_min_minutes)
        self._daily_min = int(daily_min_minutes)
        self._clock = clock
        self._id_factory = id_factory

    def open_week(self, *, user_id: str, anchor: date) -> Timesheet:
        """Return the user's timesheet for the ISO week of ``anchor``, creating a draft if needed."""

        member = self._directory.require_active_member(user_id)
        week_start = iso_week_start(anchor)
        existing = self._timesheets.find_for_user_week(user_id=member.user_id, week_start=week_start)
        if existing:
            return existing

        org = self._directory.organization_for(member)
        timesheet = Timesheet(
            id=self._id_factory(),
            user_id=member.user_id,
            week_start=week_start,
            status=TimesheetStatus.DRAFT,
            entries={},
            week_total_minutes=0,
            timezone=org.settings.timezone,
            weekly_min_minutes=self._weekly_min,
            daily_min_minutes=self._daily_min,
        )
        self._timesheets.save(timesheet)
        logger.info("Timesheet created", extra={"timesheet_id": timesheet.id, "user_id": member.user_id})
        return timesheet

    def get(self, timesheet_id: str) -> Timesheet:
        timesheet = self._timesheets.get(str(timesheet_id))
        if not timesheet:
            raise NotFound(f"Timesheet {timesheet_id} does not exist", code="TIMESHEET_NOT_FOUND")
        return timesheet

    def list_for_user(self, user_id: str, *, limit: int = 12) -> Sequence[Timesheet]:
        member = self._directory.require_member(user_id)
        return self._timesheets.list_for_user(member.user_id, limit=limit)

    def _apply(self, timesheet_id: str, operation: Callable[[WeeklyTimesheetLedger], Timesheet]) -> Timesheet:
        ledger = WeeklyTimesheetLedger(self.get(timesheet_id))
        before = ledger.timesheet.status
        result = operation(ledger)
        self._timesheets.save(result)
        if result.status != before:
            logger.info(
                "Timesheet status changed",
                extra={"timesheet_id": result.id, "from_status": before.value, "to_status": result.status.value},
            )
        return result

    def upsert_cell(
        self,
        timesheet_id: str,
        *,
        code: str,
        day: date,
        entry: Union[CellEntry, Mapping[str, Any]],
    ) -> Timesheet:
        cell = entry if isinstance(entry, CellEntry) else CellEntry.from_dict(entry)
        return self._apply(timesheet_id, lambda ledger: ledger.upsert_cell(code, day, cell))

    def remove_cell(self, timesheet_id: str, *, code: str, day: date) -> Timesheet:
        return self._apply(timesheet_id, lambda ledger: ledger.remove_cell(code, day))

    def remove_activity_code(self, timesheet_id: str, *, code: str) -> Timesheet:
        return self._apply(timesheet_id, lambda ledger: ledger.remove_activity_code(code))

    def allow_weekend(self, timesheet_id: str, *, day: date) -> Timesheet:
        return self._apply(timesheet_id, lambda ledger: ledger.allow_weekend(day))

    def send_day(self, timesheet_id: str, *, day: date, deficit_reason: Optional[str] = None) -> Timesheet:
        now = self._clock()
        return self._apply(timesheet_id, lambda ledger: ledger.send_day(day, now=now, deficit_reason=deficit_reason))

    def auto_send_week(self, timesheet_id: str) -> Timesheet:
        now = self._clock()
        return self._apply(timesheet_id, lambda ledger: ledger.auto_send_week(now=now))

    def review(self, timesheet_id: str, *, approve: bool) -> Timesheet:
        return self._apply(timesheet_id, lambda ledger: ledger.review(approve=approve))
