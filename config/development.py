import json
import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Fallback zone for organizations created without one.
ORG_TIMEZONE = os.getenv("ORG_TIMEZONE", "UTC")

DUPLICATE_PUNCH_WINDOW_SECONDS = int(os.getenv("DUPLICATE_PUNCH_WINDOW_SECONDS", "60"))
KPI_WORKERS = int(os.getenv("KPI_WORKERS", "1"))
DEFAULT_GEOFENCE = json.loads(os.getenv("DEFAULT_GEOFENCE", '{"lat": 59.9139, "lng": 10.7522, "radius_m": 150}'))

WEEKLY_MIN_MINUTES = int(os.getenv("WEEKLY_MIN_MINUTES", "2400"))
DAILY_MIN_MINUTES = int(os.getenv("DAILY_MIN_MINUTES", "480"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
