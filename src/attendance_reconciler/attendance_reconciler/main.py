from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.web import fail
from .container import build_container_from_settings
from .core.constants import DEFAULT_BACKLOG_BATCH_SIZE
from .database.bootstrap import apply_schema, list_tables
from .penalties.controller import register as register_penalties
from .policy.controller import register as register_policy
from .reporting.controller import register as register_reporting
from .runs.controller import register as register_runs

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )


def load_settings():
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def create_app() -> Flask:
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["BACKLOG_BATCH_SIZE"] = int(getattr(settings, "BACKLOG_BATCH_SIZE", DEFAULT_BACKLOG_BATCH_SIZE))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        get_settings_module(),
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container_from_settings(settings)
    atexit.register(container.dispatcher.shutdown)

    register_attendance(app, container)
    register_penalties(app, container)
    register_policy(app, container)
    register_reporting(app, container)
    register_runs(app, container)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    return app
