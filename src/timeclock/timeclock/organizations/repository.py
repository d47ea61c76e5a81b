from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Member, Organization, Team


class DirectoryRepository(Protocol):
    """Read access to organizations, teams and members.

    Note: services depend on this interface, never on a concrete database.
    """

    def get_organization(self, org_id: str) -> Optional[Organization]:
        raise NotImplementedError

    def get_member(self, user_id: str) -> Optional[Member]:
        raise NotImplementedError

    def list_members(self, org_id: str, *, team_ids: Optional[Sequence[str]] = None) -> Sequence[Member]:
        raise NotImplementedError

    def list_teams(self, org_id: str) -> Sequence[Team]:
        raise NotImplementedError
