"""
Database connection utilities for Tidelog.
Supports both SQLite (local dev, tests) and PostgreSQL (production).

When DATABASE_URL is set, uses PostgreSQL with connection pooling.
Otherwise, falls back to SQLite with WAL mode under DATA_DIR.
"""

import os
import re
import sqlite3
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DATA_DIR = os.environ.get('DATA_DIR', 'data')
TIDELOG_DB = os.path.join(DATA_DIR, 'tidelog.db')

_DATABASE_URL = os.environ.get('DATABASE_URL')
_pg_pool = None


def _get_pg_pool():
    """Lazily initialize the PostgreSQL connection pool."""
    global _pg_pool
    if _pg_pool is None and _DATABASE_URL:
        from psycopg2 import pool
        _pg_pool = pool.ThreadedConnectionPool(minconn=1, maxconn=10, dsn=_DATABASE_URL)
        logger.info("PostgreSQL connection pool initialized (1-10 connections)")
    return _pg_pool


def is_postgres():
    """Check if we're using PostgreSQL."""
    return bool(_DATABASE_URL)


def _convert_sqlite_to_pg(sql):
    """Convert the SQLite dialect used by the store modules to PostgreSQL.

    Handles:
    - ? → %s parameter placeholders
    - INTEGER PRIMARY KEY AUTOINCREMENT → SERIAL PRIMARY KEY
    - datetime('now') defaults → CURRENT_TIMESTAMP
    - INSERT ... RETURNING id (for lastrowid support) on tables with serial ids
    """
    sql = sql.replace('?', '%s')
    sql = sql.replace('INTEGER PRIMARY KEY AUTOINCREMENT', 'SERIAL PRIMARY KEY')
    sql = re.sub(r"\(?datetime\('now'\)\)?", 'CURRENT_TIMESTAMP', sql, flags=re.IGNORECASE)

    stripped = sql.strip()
    upper = stripped.upper()
    if (upper.startswith('INSERT INTO FISHING_LOGS') and 'RETURNING' not in upper):
        sql = stripped.rstrip(';') + ' RETURNING id'
    return sql


class _PgCursorWrapper:
    """Wrap a psycopg2 cursor so rows come back dict-like, as sqlite3.Row does."""

    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, sql, params=None):
        self._cursor.execute(_convert_sqlite_to_pg(sql), params)
        return self

    def _as_dict(self, row):
        return {col.name: row[i] for i, col in enumerate(self._cursor.description)}

    def fetchone(self):
        row = self._cursor.fetchone()
        return None if row is None else self._as_dict(row)

    def fetchall(self):
        return [self._as_dict(r) for r in self._cursor.fetchall()]

    @property
    def lastrowid(self):
        return self._cursor.fetchone()[0] if self._cursor.description else None

    @property
    def rowcount(self):
        return self._cursor.rowcount


class _PgConnWrapper:
    """Wrap a psycopg2 connection to provide the sqlite3 connection interface."""

    def __init__(self, conn):
        self._conn = conn

    def execute(self, sql, params=None):
        cursor = _PgCursorWrapper(self._conn.cursor())
        if sql.strip().upper().startswith('PRAGMA'):
            return cursor
        return cursor.execute(sql, params)

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        # Return connection to pool instead of closing
        _get_pg_pool().putconn(self._conn)


def _connect_sqlite(db_path):
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute('PRAGMA journal_mode=WAL')
    conn.execute('PRAGMA foreign_keys=ON')
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path=None):
    """
    Context manager for database connections.
    Commits on success, rolls back and re-raises on error.

    Usage:
        with get_db() as conn:
            conn.execute('SELECT ...')

    Args:
        db_path: Path to SQLite database. Ignored when using PostgreSQL.
                 Defaults to TIDELOG_DB.
    """
    if is_postgres():
        conn = _PgConnWrapper(_get_pg_pool().getconn())
    else:
        conn = _connect_sqlite(db_path or TIDELOG_DB)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
