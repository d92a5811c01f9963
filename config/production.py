import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "")

PIN_HASH_METHOD = os.getenv("PIN_HASH_METHOD", "pbkdf2:sha256")
PIN_FULL_SCAN = bool(int(os.getenv("PIN_FULL_SCAN", "1")))

DEVICE_MAX_ATTEMPTS = int(os.getenv("DEVICE_MAX_ATTEMPTS", "5"))
DEVICE_LOCK_SECONDS = int(os.getenv("DEVICE_LOCK_SECONDS", "120"))
DEVICE_STATE_TTL_SECONDS = int(os.getenv("DEVICE_STATE_TTL_SECONDS", "900"))
