from __future__ import annotations

from datetime import timezone
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import WeekApproval
from .repository import WeekApprovalRepository


class MySQLWeekApprovalRepository(WeekApprovalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, user_id: str, week_key: str) -> Optional[WeekApproval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, week_key, approved, approver_id, approver_note, decided_at
                FROM timesheet_weeks
                WHERE user_id=%s AND week_key=%s
                """,
                (user_id, week_key),
            )
            r = fetchone(cur)
            if not r:
                return None
            decided_at = r.get("decided_at")
            return WeekApproval(
                user_id=str(r["user_id"]),
                week_key=r["week_key"],
                approved=bool(r["approved"]),
                approver_id=str(r["approver_id"]) if r.get("approver_id") else None,
                approver_note=r.get("approver_note"),
                decided_at=decided_at.replace(tzinfo=timezone.utc) if decided_at else None,
            )

    def upsert(self, approval: WeekApproval) -> None:
        decided_at = approval.decided_at.astimezone(timezone.utc).replace(tzinfo=None) if approval.decided_at else None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timesheet_weeks(user_id, week_key, approved, approver_id, approver_note, decided_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    approved=VALUES(approved),
                    approver_id=VALUES(approver_id),
                    approver_note=VALUES(approver_note),
                    decided_at=VALUES(decided_at)
                """,
                (
                    approval.user_id,
                    approval.week_key,
                    1 if approval.approved else 0,
                    approval.approver_id,
                    approval.approver_note,
                    decided_at,
                ),
            )
