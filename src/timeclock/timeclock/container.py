from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .core.constants import (
    DEFAULT_DAILY_MIN_MINUTES,
    DEFAULT_GEOFENCE,
    DEFAULT_TIMEZONE,
    DEFAULT_WEEKLY_MIN_MINUTES,
    DUPLICATE_PUNCH_WINDOW_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .kpi.mysql_approval_repository import MySQLWeekApprovalRepository
from .kpi.repository import WeekApprovalRepository
from .kpi.service import KpiService
from .organizations.mysql_directory_repository import MySQLDirectoryRepository
from .organizations.repository import DirectoryRepository
from .organizations.service import DirectoryService
from .punch_clock.factory import TransitionRuleFactory
from .punch_clock.service import PunchClockService
from .punches.model import GeoStamp
from .punches.mysql_punch_repository import MySQLPunchEventRepository
from .punches.repository import PunchEventRepository
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.repository import TimesheetRepository
from .timesheets.service import TimesheetService


def _default_geo() -> Optional[GeoStamp]:
    return GeoStamp(**DEFAULT_GEOFENCE)


@dataclass(frozen=True)
class ServiceOptions:
    kpi_workers: int = 1
    confirm_window_seconds: int = DUPLICATE_PUNCH_WINDOW_SECONDS
    default_geo: Optional[GeoStamp] = field(default_factory=_default_geo)
    weekly_min_minutes: int = DEFAULT_WEEKLY_MIN_MINUTES
    daily_min_minutes: int = DEFAULT_DAILY_MIN_MINUTES
    default_timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def from_settings(cls, settings: Any) -> "ServiceOptions":
        geo: Optional[Mapping[str, Any]] = getattr(settings, "DEFAULT_GEOFENCE", DEFAULT_GEOFENCE)
        return cls(
            kpi_workers=int(getattr(settings, "KPI_WORKERS", 1)),
            confirm_window_seconds=int(getattr(settings, "DUPLICATE_PUNCH_WINDOW_SECONDS", DUPLICATE_PUNCH_WINDOW_SECONDS)),
            default_geo=GeoStamp(**geo) if geo else None,
            weekly_min_minutes=int(getattr(settings, "WEEKLY_MIN_MINUTES", DEFAULT_WEEKLY_MIN_MINUTES)),
            daily_min_minutes=int(getattr(settings, "DAILY_MIN_MINUTES", DEFAULT_DAILY_MIN_MINUTES)),
            default_timezone=str(getattr(settings, "ORG_TIMEZONE", DEFAULT_TIMEZONE)),
        )


@dataclass(frozen=True)
class Container:
    punches_repo: PunchEventRepository
    directory_repo: DirectoryRepository
    approvals_repo: WeekApprovalRepository
    timesheets_repo: TimesheetRepository

    directory_service: DirectoryService
    punch_clock_service: PunchClockService
    kpi_service: KpiService
    timesheet_service: TimesheetService


def assemble(
    *,
    punches_repo: PunchEventRepository,
    directory_repo: DirectoryRepository,
    approvals_repo: WeekApprovalRepository,
    timesheets_repo: TimesheetRepository,
    options: Optional[ServiceOptions] = None,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""

    options = options or ServiceOptions()
    directory_service = DirectoryService(directory_repo)
    punch_clock_service = PunchClockService(
        punches_repo,
        directory_service,
        rule_factory=TransitionRuleFactory(),
        confirm_window_seconds=options.confirm_window_seconds,
        default_geo=options.default_geo,
    )
    kpi_service = KpiService(punches_repo, directory_service, approvals_repo, workers=options.kpi_workers)
    timesheet_service = TimesheetService(
        timesheets_repo,
        directory_service,
        weekly_min_minutes=options.weekly_min_minutes,
        daily_min_minutes=options.daily_min_minutes,
    )

    return Container(
        punches_repo=punches_repo,
        directory_repo=directory_repo,
        approvals_repo=approvals_repo,
        timesheets_repo=timesheets_repo,
        directory_service=directory_service,
        punch_clock_service=punch_clock_service,
        kpi_service=kpi_service,
        timesheet_service=timesheet_service,
    )


def build_container(*, db_config: Mapping[str, Any], options: Optional[ServiceOptions] = None) -> Container:
    options = options or ServiceOptions()
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return assemble(
        punches_repo=MySQLPunchEventRepository(conn),
        directory_repo=MySQLDirectoryRepository(conn, default_timezone=options.default_timezone),
        approvals_repo=MySQLWeekApprovalRepository(conn),
        timesheets_repo=MySQLTimesheetRepository(conn),
        options=options,
    )
