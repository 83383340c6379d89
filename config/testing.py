import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_reconciler_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOCAL_TIMEZONE = "Asia/Karachi"
RECONCILE_WORKERS = 1
BACKLOG_BATCH_SIZE = 50
EMPLOYEE_LOOKUP_RETRY_HOURS = 48
BACKLOG_RETRY_MINUTES = 30
OVERNIGHT_CHECKOUT_HOURS = 4
