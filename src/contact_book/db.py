"""db.py — SQLite connection manager and schema.

Two tables, one relationship:

    contact(id, name, age)
    phone(id, contact_id -> contact.id ON DELETE CASCADE, number)

SQLite ships with foreign keys disabled, so every connection opened here
switches them on; without that the cascade silently does nothing.
"""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from .errors import StorageError
from .phones import normalize_number

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS contact (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(100) NOT NULL,
    age INTEGER
);

CREATE TABLE IF NOT EXISTS phone (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    contact_id INTEGER NOT NULL,
    number VARCHAR(16) NOT NULL,
    FOREIGN KEY (contact_id) REFERENCES contact(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_phone_contact ON phone(contact_id);
"""


def icontains(haystack: object, needle: object) -> int:
    """Case-insensitive substring test for SQL; SQLite LIKE only folds ASCII."""
    if not isinstance(haystack, str) or not isinstance(needle, str):
        return 0
    return int(needle.casefold() in haystack.casefold())


def connect(path: Path | str) -> sqlite3.Connection:
    """Open *path*, creating it if needed, with foreign keys enforced.

    Also registers ``normalize_number(text)`` and ``icontains(text, text)`` so
    queries compare phone numbers and names exactly as Python does.
    """
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(str(path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.create_function("normalize_number", 1, normalize_number, deterministic=True)
        conn.create_function("icontains", 2, icontains, deterministic=True)
    except sqlite3.Error as exc:
        raise StorageError(f"Cannot open database {path}: {exc}") from exc
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    except sqlite3.Error as exc:
        raise StorageError(f"Cannot create schema: {exc}") from exc
    logger.debug("Schema verified")


def ensure_database(path: Path | str) -> None:
    conn = connect(path)
    try:
        init_db(conn)
    finally:
        conn.close()
    logger.info("Database ready at %s", path)


def foreign_keys_enabled(conn: sqlite3.Connection) -> bool:
    return bool(conn.execute("PRAGMA foreign_keys").fetchone()[0])
