from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# Quoted literals are matched whole so a ';' inside seed data never ends a statement.
_TOKEN = re.compile(r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|--[^\n]*|;|[^'\";-]+|-", re.S)
_DATABASE_PREAMBLE = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;")


def db_config_from_settings(db_config: dict) -> DBConfig:
    return DBConfig(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "attendance_reconciler")),
    )


def split_statements(sql: str) -> Iterator[str]:
    """Yield the statements of a schema file, dropping `--` comments."""

    buf: list[str] = []
    for token in _TOKEN.findall(sql):
        if token.startswith("--"):
            continue
        if token != ";":
            buf.append(token)
            continue
        statement = "".join(buf).strip()
        buf.clear()
        if statement:
            yield statement

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(config: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Create the configured database if needed and run every statement of the schema file.

    `CREATE DATABASE` / `USE` lines in the file are ignored so the settings
    decide which database is initialised. Returns the number of statements run.
    """

    config = db_config_from_settings(db_config)
    server = _connect(config, with_database=False)
    try:
        server.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        server.commit()
    finally:
        server.close()

    sql = _DATABASE_PREAMBLE.sub("", Path(schema_path).read_text(encoding="utf-8"))
    conn = _connect(config)
    executed = 0
    try:
        cur = conn.cursor()
        for statement in split_statements(sql):
            cur.execute(statement)
            executed += 1
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %d schema statements to %s", executed, config.database)
    return executed


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config_from_settings(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()
