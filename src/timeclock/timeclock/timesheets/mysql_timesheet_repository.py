from __future__ import annotations

import json
from datetime import timezone
from typing import Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..core.enums import TimesheetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import Timesheet, entries_from_dict, entries_to_dict
from .repository import TimesheetRepository

_COLUMNS = (
    "timesheet_id, user_id, week_start, status, entries_json, week_total_minutes, timezone, "
    "weekly_min_minutes, daily_min_minutes, submitted_at, missing_reasons_json, weekend_overrides_json"
)


def _from_row(r: dict) -> Timesheet:
    submitted_at = r.get("submitted_at")
    return Timesheet(
        id=str(r["timesheet_id"]),
        user_id=str(r["user_id"]),
        week_start=r["week_start"],
        status=TimesheetStatus(r["status"]),
        entries=entries_from_dict(load_json(r.get("entries_json"), {})),
        week_total_minutes=int(r.get("week_total_minutes") or 0),
        timezone=r["timezone"],
        weekly_min_minutes=int(r["weekly_min_minutes"]),
        daily_min_minutes=int(r["daily_min_minutes"]),
        submitted_at=submitted_at.replace(tzinfo=timezone.utc) if submitted_at else None,
        missing_reasons=tuple(parse_iso_date(d) for d in load_json(r.get("missing_reasons_json"), [])),
        weekend_overrides=frozenset(parse_iso_date(d) for d in load_json(r.get("weekend_overrides_json"), [])),
    )


class MySQLTimesheetRepository(TimesheetRepository):
    """Stores the cell grid as one JSON document per user-week."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, timesheet_id: str) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM timesheets WHERE timesheet_id=%s", (timesheet_id,))
            r = fetchone(cur)
            return _from_row(r) if r else None

    def find_for_user_week(self, *, user_id, week_start) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timesheets WHERE user_id=%s AND week_start=%s",
                (user_id, week_start),
            )
            r = fetchone(cur)
            return _from_row(r) if r else None

    def list_for_user(self, user_id: str, *, limit: int = 12) -> Sequence[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timesheets WHERE user_id=%s ORDER BY week_start DESC LIMIT %s",
                (user_id, int(limit)),
            )
            return [_from_row(r) for r in fetchall(cur)]

    def save(self, timesheet: Timesheet) -> None:
        payload = timesheet.to_dict()
        submitted_at = (
            timesheet.submitted_at.astimezone(timezone.utc).replace(tzinfo=None) if timesheet.submitted_at else None
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO timesheets({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    entries_json=VALUES(entries_json),
                    week_total_minutes=VALUES(week_total_minutes),
                    submitted_at=VALUES(submitted_at),
                    missing_reasons_json=VALUES(missing_reasons_json),
                    weekend_overrides_json=VALUES(weekend_overrides_json)
                """,
                (
                    timesheet.id,
                    timesheet.user_id,
                    timesheet.week_start,
                    timesheet.status.value,
                    json.dumps(entries_to_dict(timesheet.entries)),
                    timesheet.week_total_minutes,
                    timesheet.timezone,
                    timesheet.weekly_min_minutes,
                    timesheet.daily_min_minutes,
                    submitted_at,
                    json.dumps(payload["missing_reasons"]),
                    json.dumps(payload["weekend_overrides"]),
                ),
            )
