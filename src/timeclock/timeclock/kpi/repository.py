from __future__ import annotations

from typing import Optional, Protocol

from .model import WeekApproval


class WeekApprovalRepository(Protocol):
    def get(self, *, user_id: str, week_key: str) -> Optional[WeekApproval]:
        raise NotImplementedError

    def upsert(self, approval: WeekApproval) -> None:
        raise NotImplementedError
