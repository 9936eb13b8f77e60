from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

# Tests never reach a real reporting endpoint.
REPORTING_BASE_URL = ""
REPORTING_API_TOKEN = ""
TASK_REQUIRES_CLOCK_IN = False
