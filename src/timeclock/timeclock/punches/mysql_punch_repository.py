from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from ..common.datetime_utils import to_instant
from ..core.enums import PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import GeoStamp, PunchEvent
from .repository import PunchEventRepository

_COLUMNS = "event_id, user_id, org_id, punch_type, ts_utc, note, geo_lat, geo_lng, geo_radius_m"


def _to_db(ts: datetime) -> datetime:
    # DATETIME(3) columns hold naive UTC.
    return to_instant(ts).replace(tzinfo=None)


def _from_row(r: dict) -> PunchEvent:
    geo = None
    if r.get("geo_lat") is not None and r.get("geo_lng") is not None:
        geo = GeoStamp(
            lat=float(r["geo_lat"]),
            lng=float(r["geo_lng"]),
            radius_m=float(r["geo_radius_m"]) if r.get("geo_radius_m") is not None else None,
        )
    return PunchEvent(
        id=str(r["event_id"]),
        user_id=str(r["user_id"]),
        org_id=str(r["org_id"]),
        type=PunchType(r["punch_type"]),
        timestamp=r["ts_utc"].replace(tzinfo=timezone.utc),
        note=r.get("note"),
        geo=geo,
    )


class MySQLPunchEventRepository(PunchEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user(self, user_id: str, *, start: datetime, end: datetime) -> Sequence[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_events
                WHERE user_id=%s AND ts_utc >= %s AND ts_utc < %s
                ORDER BY ts_utc ASC, seq ASC
                """,
                (user_id, _to_db(start), _to_db(end)),
            )
            return [_from_row(r) for r in fetchall(cur)]

    def list_for_org(
        self,
        org_id: str,
        *,
        start: datetime,
        end: datetime,
        user_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[PunchEvent]:
        sql = f"SELECT {_COLUMNS} FROM punch_events WHERE org_id=%s AND ts_utc >= %s AND ts_utc < %s"
        params: list = [org_id, _to_db(start), _to_db(end)]
        if user_ids:
            sql += f" AND user_id IN ({placeholders(len(user_ids))})"
            params.extend(user_ids)
        sql += " ORDER BY ts_utc ASC, seq ASC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_from_row(r) for r in fetchall(cur)]

    def latest_for_user(self, user_id: str) -> Optional[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_events
                WHERE user_id=%s
                ORDER BY ts_utc DESC, seq DESC
                LIMIT 1
                """,
                (user_id,),
            )
            r = fetchone(cur)
            return _from_row(r) if r else None

    def append(self, event: PunchEvent) -> None:
        geo = event.geo
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO punch_events({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.id,
                    event.user_id,
                    event.org_id,
                    event.type.value,
                    _to_db(event.timestamp),
                    event.note,
                    geo.lat if geo else None,
                    geo.lng if geo else None,
                    geo.radius_m if geo else None,
                ),
            )
