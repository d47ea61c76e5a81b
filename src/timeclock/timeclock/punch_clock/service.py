from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import uuid4

from ..common.datetime_utils import day_bounds, now_utc, to_instant
from ..common.validators import optional_text
from ..core.constants import DUPLICATE_PUNCH_WINDOW_SECONDS
from ..core.enums import PunchType
from ..core.exceptions import ConfirmationRequired, InvalidTransition, MalformedInput
from ..organizations.model import Member, Organization
from ..organizations.service import DirectoryService
from ..punches.model import GeoStamp, PunchEvent
from ..punches.repository import PunchEventRepository
from ..sessions.model import LiveSnapshot
from ..sessions.reconstructor import derive_state, live_snapshot
from .factory import TransitionRuleFactory

logger = logging.getLogger(__name__)


def _new_event_id() -> str:
    return uuid4().hex


def parse_punch_type(value: Union[PunchType, str]) -> PunchType:
    if isinstance(value, PunchType):
        return value
    try:
        return PunchType(str(value or "").strip().upper())
    except ValueError as exc:
        raise MalformedInput(f"Unknown punch type: {value!r}") from exc


class PunchClockService:
    """Strict counterpart of the replay: validates a punch against today's state, then appends it."""

    def __init__(
        self,
        punches: PunchEventRepository,
        directory: DirectoryService,
        *,
        rule_factory: Optional[TransitionRuleFactory] = None,
        confirm_window_seconds: int = DUPLICATE_PUNCH_WINDOW_SECONDS,
        default_geo: Optional[GeoStamp] = None,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = _new_event_id,
    ):
        self._punches = punches
        self._directory = directory
        self._rules = rule_factory or TransitionRuleFactory()
        self._confirm_window_seconds = int(confirm_window_seconds)
        self._default_geo = default_geo
        self._clock = clock
        self._id_factory = id_factory

    def _todays_events(self, member: Member, org: Organization, now: datetime) -> list[PunchEvent]:
        start, end = day_bounds(now, org.settings.timezone)
        return list(self._punches.list_for_user(member.user_id, start=start, end=end))

    def submit_punch(
        self,
        user_id: str,
        punch_type: Union[PunchType, str],
        *,
        note: Optional[str] = None,
        force: bool = False,
        geo: Optional[GeoStamp] = None,
        now: Optional[datetime] = None,
    ) -> PunchEvent:
        """Validate and record one punch.

        Raises ``InvalidTransition`` when the punch does not fit today's state and
        ``ConfirmationRequired`` when the previous punch is too recent and ``force``
        is not set. Nothing is written in either case.
        """

        punch_type = parse_punch_type(punch_type)
        note = optional_text(note, "note")
        now = to_instant(now) if now is not None else self._clock()

        member = self._directory.require_active_member(user_id)
        org = self._directory.organization_for(member)

        state = derive_state(self._todays_events(member, org, now), org.settings)
        violation = self._rules.for_punch(punch_type).check(state)
        if violation:
            logger.info(
                "Punch rejected",
                extra={"user_id": member.user_id, "punch_type": punch_type.value, "state": state.value, "code": violation.code},
            )
            raise InvalidTransition(violation.message, code=violation.code, current_state=state, punch_type=punch_type)

        if not force:
            last = self._punches.latest_for_user(member.user_id)
            if last is not None:
                seconds = int((now - to_instant(last.timestamp)).total_seconds())
                if seconds < self._confirm_window_seconds:
                    logger.info(
                        "Punch needs confirmation",
                        extra={"user_id": member.user_id, "punch_type": punch_type.value, "seconds_since_last": seconds},
                    )
                    raise ConfirmationRequired(
                        f"Last punch was {max(seconds, 0)} seconds ago; confirm to record another",
                        seconds_since_last=seconds,
                        last_event=last,
                    )

        if geo is None and punch_type == PunchType.IN:
            geo = self._default_geo

        event = PunchEvent(
            id=self._id_factory(),
            user_id=member.user_id,
            org_id=member.org_id,
            type=punch_type,
            timestamp=now,
            note=note,
            geo=geo,
        )
        self._punches.append(event)
        logger.info(
            "Punch recorded",
            extra={"user_id": member.user_id, "punch_type": punch_type.value, "event_id": event.id, "forced": bool(force)},
        )
        return event

    def status(self, user_id: str, *, now: Optional[datetime] = None) -> LiveSnapshot:
        now = to_instant(now) if now is not None else self._clock()
        member = self._directory.require_member(user_id)
        org = self._directory.organization_for(member)
        return live_snapshot(self._todays_events(member, org, now), org.settings, now=now)
