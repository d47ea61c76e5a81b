from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import get_zone
from ..core.enums import PunchType


@dataclass(frozen=True)
class GeoStamp:
    """Location stamp carried through untouched."""

    lat: float
    lng: float
    radius_m: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {"lat": self.lat, "lng": self.lng, "radius_m": self.radius_m}


@dataclass(frozen=True)
class PunchEvent:
    """Domain entity: one recorded clock action (immutable once created).

    ``timestamp`` is an aware UTC instant.
    """

    id: str
    user_id: str
    org_id: str
    type: PunchType
    timestamp: datetime
    note: Optional[str] = None
    geo: Optional[GeoStamp] = None

    def to_dict(self, tz: Optional[str] = None) -> dict[str, Any]:
        """Serialize; with ``tz`` the instant is also rendered on that zone's wall clock."""
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "org_id": self.org_id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
            "geo": self.geo.to_dict() if self.geo else None,
        }
        if tz:
            data["local_timestamp"] = self.timestamp.astimezone(get_zone(tz)).isoformat()
        return data
