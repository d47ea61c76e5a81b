"""Weekly timesheet cell ledger.

Every operation builds a new ``Timesheet`` and recomputes the week total from the
cells it holds, so the total can never drift from the grid.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional

from ..common.datetime_utils import is_weekend, week_days
from ..common.validators import optional_text, require_non_empty
from ..core.enums import TimesheetStatus
from ..core.exceptions import NotFound, ValidationError, WeekendNotAllowed
from .model import CellEntry, Timesheet, WeekEntries

logger = logging.getLogger(__name__)


def total_minutes(entries: WeekEntries) -> int:
    return sum(cell.minutes for days in entries.values() for cell in days.values())


def _copy(entries: WeekEntries) -> dict[str, dict[date, CellEntry]]:
    return {code: dict(days) for code, days in entries.items()}


class WeeklyTimesheetLedger:
    def __init__(self, timesheet: Timesheet):
        self._timesheet = self._with_entries(timesheet, timesheet.entries)

    @property
    def timesheet(self) -> Timesheet:
        return self._timesheet

    @staticmethod
    def _with_entries(timesheet: Timesheet, entries: WeekEntries, **changes) -> Timesheet:
        return replace(timesheet, entries=entries, week_total_minutes=total_minutes(entries), **changes)

    # ---- guards -------------------------------------------------------

    def _ensure_editable(self) -> None:
        if self._timesheet.status == TimesheetStatus.APPROVED:
            raise ValidationError("Approved timesheets cannot be changed", code="TIMESHEET_LOCKED")

    def _ensure_in_week(self, day: date) -> None:
        if day not in week_days(self._timesheet.week_start):
            raise ValidationError(
                f"{day.isoformat()} is outside the week starting {self._timesheet.week_start.isoformat()}",
                code="DATE_OUTSIDE_WEEK",
            )

    def _ensure_workable(self, day: date) -> None:
        if is_weekend(day, self._timesheet.timezone) and day not in self._timesheet.weekend_overrides:
            raise WeekendNotAllowed(f"{day.isoformat()} is a weekend day without an override")

    def _edited(self, entries: WeekEntries) -> None:
        # Any edit on a submitted or rejected week sends it back to draft.
        status = self._timesheet.status
        changes = {}
        if status != TimesheetStatus.DRAFT:
            changes = {"status": TimesheetStatus.DRAFT, "submitted_at": None}
            logger.info(
                "Timesheet reopened by edit",
                extra={"timesheet_id": self._timesheet.id, "from_status": status.value},
            )
        self._timesheet = self._with_entries(self._timesheet, entries, **changes)

    # ---- reads --------------------------------------------------------

    def cells_on(self, day: date) -> dict[str, CellEntry]:
        return {code: days[day] for code, days in self._timesheet.entries.items() if day in days}

    def day_total(self, day: date) -> int:
        return sum(cell.minutes for cell in self.cells_on(day).values())

    def _booked_cells(self) -> Iterable[CellEntry]:
        return (cell for days in self._timesheet.entries.values() for cell in days.values() if cell.minutes > 0)

    def all_sent(self) -> bool:
        return all(cell.sent for cell in self._booked_cells())

    def is_deficit(self, day: date) -> bool:
        total = self.day_total(day)
        return 0 < total < self._timesheet.daily_min_minutes

    # ---- writes -------------------------------------------------------

    def upsert_cell(self, code: str, day: date, entry: CellEntry) -> Timesheet:
        code = require_non_empty(code, "activity code")
        self._ensure_editable()
        self._ensure_in_week(day)
        self._ensure_workable(day)

        entries = _copy(self._timesheet.entries)
        previous = entries.get(code, {}).get(day)
        # Changed content has to be sent again; a recorded reason survives the edit.
        reason = entry.deficit_reason or (previous.deficit_reason if previous else None)
        entries.setdefault(code, {})[day] = replace(entry, sent=False, deficit_reason=reason)
        self._edited(entries)
        return self._timesheet

    def remove_cell(self, code: str, day: date) -> Timesheet:
        self._ensure_editable()
        entries = _copy(self._timesheet.entries)
        if day not in entries.get(code, {}):
            raise NotFound(f"No cell for {code} on {day.isoformat()}", code="CELL_NOT_FOUND")
        del entries[code][day]
        if not entries[code]:
            del entries[code]
        self._edited(entries)
        return self._timesheet

    def remove_activity_code(self, code: str) -> Timesheet:
        self._ensure_editable()
        entries = _copy(self._timesheet.entries)
        if code not in entries:
            raise NotFound(f"Activity code {code} is not on this timesheet", code="ACTIVITY_CODE_NOT_FOUND")
        del entries[code]
        self._edited(entries)
        return self._timesheet

    def allow_weekend(self, day: date) -> Timesheet:
        self._ensure_editable()
        self._ensure_in_week(day)
        if not is_weekend(day, self._timesheet.timezone):
            raise ValidationError(f"{day.isoformat()} is not a weekend day", code="NOT_A_WEEKEND")
        self._timesheet = replace(self._timesheet, weekend_overrides=self._timesheet.weekend_overrides | {day})
        return self._timesheet

    def _mark_sent(self, entries: dict[str, dict[date, CellEntry]], day: date, reason: Optional[str]) -> None:
        for days in entries.values():
            cell = days.get(day)
            if cell is None:
                continue
            days[day] = replace(cell, sent=True, deficit_reason=reason or cell.deficit_reason)

    def _submit_if_complete(self, now: datetime) -> bool:
        ts = self._timesheet
        if ts.week_total_minutes >= ts.weekly_min_minutes and self.all_sent():
            self._timesheet = replace(ts, status=TimesheetStatus.SENT, submitted_at=now, missing_reasons=())
            logger.info("Timesheet submitted", extra={"timesheet_id": ts.id, "week_total": ts.week_total_minutes})
            return True
        return False

    def send_day(self, day: date, *, now: datetime, deficit_reason: Optional[str] = None) -> Timesheet:
        """Mark every cell of ``day`` sent; a deficit day needs a reason."""

        reason = optional_text(deficit_reason, "deficit_reason")
        self._ensure_editable()
        self._ensure_in_week(day)
        cells = self.cells_on(day)
        if not cells:
            raise NotFound(f"No cells on {day.isoformat()}", code="DAY_NOT_FOUND")

        if self.is_deficit(day) and not reason and not all(c.deficit_reason for c in cells.values()):
            raise ValidationError(
                f"{day.isoformat()} is below the daily minimum; a deficit reason is required",
                code="DEFICIT_REASON_REQUIRED",
            )
        if not self.is_deficit(day):
            reason = None

        entries = _copy(self._timesheet.entries)
        self._mark_sent(entries, day, reason)
        missing = tuple(d for d in self._timesheet.missing_reasons if d != day)
        self._timesheet = self._with_entries(self._timesheet, entries, missing_reasons=missing)
        self._submit_if_complete(now)
        return self._timesheet

    def auto_send_week(self, *, now: datetime) -> Timesheet:
        """Send every complete day; days short of the minimum without reasons are listed as missing."""

        self._ensure_editable()
        entries = _copy(self._timesheet.entries)
        missing: list[date] = []
        for day in week_days(self._timesheet.week_start):
            cells = self.cells_on(day)
            if self.day_total(day) <= 0 or all(c.sent for c in cells.values()):
                continue
            if not self.is_deficit(day) or all(c.deficit_reason for c in cells.values()):
                self._mark_sent(entries, day, None)
            else:
                missing.append(day)

        self._timesheet = self._with_entries(self._timesheet, entries, missing_reasons=tuple(missing))
        if not missing and self._submit_if_complete(now):
            return self._timesheet

        self._timesheet = replace(self._timesheet, status=TimesheetStatus.ATTENTION_REQUIRED)
        logger.info(
            "Timesheet needs attention",
            extra={
                "timesheet_id": self._timesheet.id,
                "missing_reasons": [d.isoformat() for d in missing],
                "week_total": self._timesheet.week_total_minutes,
            },
        )
        return self._timesheet

    def review(self, *, approve: bool) -> Timesheet:
        if self._timesheet.status != TimesheetStatus.SENT:
            raise ValidationError("Only submitted timesheets can be reviewed", code="NOT_SUBMITTED")
        status = TimesheetStatus.APPROVED if approve else TimesheetStatus.REJECTED
        self._timesheet = replace(self._timesheet, status=status)
        logger.info("Timesheet reviewed", extra={"timesheet_id": self._timesheet.id, "status": status.value})
        return self._timesheet
