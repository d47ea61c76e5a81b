from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import local_date, now_utc
from ..core.exceptions import NotFound, ValidationError
from .model import Member, Organization, Team
from .repository import DirectoryRepository


class DirectoryService:
    """Lookups shared by every service that needs a member's organization rules."""

    def __init__(self, directory: DirectoryRepository):
        self._directory = directory

    def require_organization(self, org_id: str) -> Organization:
        org = self._directory.get_organization(str(org_id))
        if not org:
            raise NotFound(f"Organization {org_id} does not exist", code="ORGANIZATION_NOT_FOUND")
        return org

    def require_member(self, user_id: str) -> Member:
        member = self._directory.get_member(str(user_id))
        if not member:
            raise NotFound(f"Member {user_id} does not exist", code="MEMBER_NOT_FOUND")
        return member

    def require_active_member(self, user_id: str) -> Member:
        member = self.require_member(user_id)
        if not member.is_active:
            raise ValidationError("Inactive members cannot perform attendance actions", code="MEMBER_INACTIVE")
        return member

    def organization_for(self, member: Member) -> Organization:
        return self.require_organization(member.org_id)

    def active_members(self, org_id: str, *, team_ids: Optional[Sequence[str]] = None) -> list[Member]:
        return [m for m in self._directory.list_members(str(org_id), team_ids=team_ids) if m.is_active]

    def teams(self, org_id: str) -> Sequence[Team]:
        return self._directory.list_teams(str(org_id))

    def local_today(self, org: Organization, *, now: Optional[datetime] = None) -> date:
        """Calendar date in the organization's timezone."""
        return local_date(now or now_utc(), org.settings.timezone)

    def today_for(self, user_id: str) -> date:
        return self.local_today(self.organization_for(self.require_member(user_id)))
