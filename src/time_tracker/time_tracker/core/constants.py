"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30
MAX_HISTORY_LIMIT = 200

HOURS_PRECISION = 2
REPORT_MINUTES_PRECISION = 3

DEFAULT_REPORTING_TIMEOUT_SECONDS = 3.0
DEFAULT_REPORTING_WORKERS = 2
DEFAULT_TRANSACTION_RETRIES = 1

EXTERNAL_TASK_URL = "https://app.clickup.com/t/{task_id}"
