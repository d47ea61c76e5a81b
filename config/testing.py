import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

ORG_TIMEZONE = "UTC"

DUPLICATE_PUNCH_WINDOW_SECONDS = 60
KPI_WORKERS = 1
DEFAULT_GEOFENCE = {"lat": 59.9139, "lng": 10.7522, "radius_m": 150}

WEEKLY_MIN_MINUTES = 2400
DAILY_MIN_MINUTES = 480

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
