"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_WORKDAY_HOURS = 8
DEFAULT_LATE_GRACE_MINUTES = 5
DEFAULT_DAY_START = time(9, 0)
DEFAULT_TIMEZONE = "UTC"

DUPLICATE_PUNCH_WINDOW_SECONDS = 60

UNASSIGNED_TEAM_ID = "unassigned"
UNASSIGNED_TEAM_NAME = "Unassigned"

DEFAULT_GEOFENCE = {"lat": 59.9139, "lng": 10.7522, "radius_m": 150}

DEFAULT_WEEKLY_MIN_MINUTES = 40 * 60
DEFAULT_DAILY_MIN_MINUTES = 8 * 60
MAX_CELL_MINUTES = 24 * 60

DEFAULT_REPORT_DAYS = 7
MAX_REPORT_DAYS = 366
