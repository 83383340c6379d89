import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_reconciler"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOCAL_TIMEZONE = os.getenv("LOCAL_TIMEZONE", "Asia/Karachi")

RECONCILE_WORKERS = int(os.getenv("RECONCILE_WORKERS", "4"))
BACKLOG_BATCH_SIZE = int(os.getenv("BACKLOG_BATCH_SIZE", "500"))
EMPLOYEE_LOOKUP_RETRY_HOURS = int(os.getenv("EMPLOYEE_LOOKUP_RETRY_HOURS", "48"))
BACKLOG_RETRY_MINUTES = int(os.getenv("BACKLOG_RETRY_MINUTES", "30"))
OVERNIGHT_CHECKOUT_HOURS = int(os.getenv("OVERNIGHT_CHECKOUT_HOURS", "4"))
