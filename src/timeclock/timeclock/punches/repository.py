from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import PunchEvent


class PunchEventRepository(Protocol):
    """Append-only punch event store.

    Windows are half-open ``[start, end)`` over aware instants. Writes for one user
    are expected to be serialized by the store.
    """

    def list_for_user(self, user_id: str, *, start: datetime, end: datetime) -> Sequence[PunchEvent]:
        raise NotImplementedError

    def list_for_org(
        self,
        org_id: str,
        *,
        start: datetime,
        end: datetime,
        user_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[PunchEvent]:
        raise NotImplementedError

    def latest_for_user(self, user_id: str) -> Optional[PunchEvent]:
        raise NotImplementedError

    def append(self, event: PunchEvent) -> None:
        raise NotImplementedError
