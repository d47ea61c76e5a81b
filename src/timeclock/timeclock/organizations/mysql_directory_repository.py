from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_DAY_START, DEFAULT_TIMEZONE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json, normalize_mysql_time, placeholders
from .model import Member, Organization, OrgSettings, Team
from .repository import DirectoryRepository


def _parse_holidays(raw: Any) -> frozenset[date]:
    values = load_json(raw, default=[]) or []
    return frozenset(parse_iso_date(str(v)) for v in values)


def _member(r: dict) -> Member:
    return Member(
        user_id=str(r["user_id"]),
        org_id=str(r["org_id"]),
        full_name=r["full_name"],
        team_id=str(r["team_id"]) if r.get("team_id") else None,
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLDirectoryRepository(DirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, default_timezone: str = DEFAULT_TIMEZONE):
        self._conn_factory = conn_factory
        self._default_timezone = default_timezone

    def get_organization(self, org_id: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT org_id, name, workday_hours, lateness_grace_minutes, timezone, holidays, day_start
                FROM organizations
                WHERE org_id=%s
                """,
                (org_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Organization(
                org_id=str(r["org_id"]),
                name=r["name"],
                settings=OrgSettings(
                    workday_hours=float(r["workday_hours"]),
                    lateness_grace_minutes=int(r["lateness_grace_minutes"]),
                    timezone=r.get("timezone") or self._default_timezone,
                    holidays=_parse_holidays(r.get("holidays")),
                    day_start=normalize_mysql_time(r.get("day_start")) or DEFAULT_DAY_START,
                ),
            )

    def get_member(self, user_id: str) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, org_id, full_name, team_id, is_active FROM members WHERE user_id=%s",
                (user_id,),
            )
            r = fetchone(cur)
            return _member(r) if r else None

    def list_members(self, org_id: str, *, team_ids: Optional[Sequence[str]] = None) -> Sequence[Member]:
        sql = "SELECT user_id, org_id, full_name, team_id, is_active FROM members WHERE org_id=%s"
        params: list = [org_id]
        if team_ids:
            sql += f" AND team_id IN ({placeholders(len(team_ids))})"
            params.extend(team_ids)
        sql += " ORDER BY full_name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_member(r) for r in fetchall(cur)]

    def list_teams(self, org_id: str) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT team_id, org_id, name FROM teams WHERE org_id=%s ORDER BY name", (org_id,))
            return [Team(team_id=str(r["team_id"]), org_id=str(r["org_id"]), name=r["name"]) for r in fetchall(cur)]
