"""Settings shared by every environment; each env module overrides what differs."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "time_tracker"),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Outbound reporting; left empty, the app runs with a no-op notifier.
REPORTING_BASE_URL = os.getenv("REPORTING_BASE_URL", "")
REPORTING_API_TOKEN = os.getenv("REPORTING_API_TOKEN", "")
REPORTING_LIST_ID = os.getenv("REPORTING_LIST_ID") or None
REPORTING_TIMEOUT_SECONDS = float(os.getenv("REPORTING_TIMEOUT_SECONDS", "3"))
REPORTING_WORKERS = int(os.getenv("REPORTING_WORKERS", "2"))
REPORTING_CUSTOM_FIELDS = {
    "task_id": os.getenv("REPORTING_CF_TASK_ID", ""),
    "user": os.getenv("REPORTING_CF_USER", ""),
    "time_in": os.getenv("REPORTING_CF_TIME_IN", ""),
    "time_out": os.getenv("REPORTING_CF_TIME_OUT", ""),
    "total_mins": os.getenv("REPORTING_CF_TOTAL_MINS", ""),
    "notes": os.getenv("REPORTING_CF_NOTES", ""),
    "total_hours": os.getenv("REPORTING_CF_TOTAL_HOURS", ""),
    "today_hours": os.getenv("REPORTING_CF_TODAY_HOURS", ""),
    "week_hours": os.getenv("REPORTING_CF_WEEK_HOURS", ""),
}

TASK_REQUIRES_CLOCK_IN = env_flag("TASK_REQUIRES_CLOCK_IN")
TRANSACTION_RETRIES = int(os.getenv("TRANSACTION_RETRIES", "1"))
