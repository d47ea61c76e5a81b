import json
import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "timeclock"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ORG_TIMEZONE = os.getenv("ORG_TIMEZONE", "UTC")

DUPLICATE_PUNCH_WINDOW_SECONDS = int(os.getenv("DUPLICATE_PUNCH_WINDOW_SECONDS", "60"))
KPI_WORKERS = int(os.getenv("KPI_WORKERS", "4"))
DEFAULT_GEOFENCE = json.loads(os.getenv("DEFAULT_GEOFENCE", "null"))

WEEKLY_MIN_MINUTES = int(os.getenv("WEEKLY_MIN_MINUTES", "2400"))
DAILY_MIN_MINUTES = int(os.getenv("DAILY_MIN_MINUTES", "480"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
