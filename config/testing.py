import os

SECRET_KEY = "test-secret"

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

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DEFAULT_TIMEZONE = "UTC"

# Cheap hashes keep the PIN tests fast.
PIN_HASH_METHOD = "pbkdf2:sha256:1000"
PIN_FULL_SCAN = False

DEVICE_MAX_ATTEMPTS = 5
DEVICE_LOCK_SECONDS = 120
DEVICE_STATE_TTL_SECONDS = 900
