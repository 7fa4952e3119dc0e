"""DuckDB setup and transaction helpers for applications and notes."""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import duckdb

from applytrack.config import settings
from applytrack.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

_con: duckdb.DuckDBPyConnection | None = None

_write_locks: dict[int, threading.RLock] = {}
_write_locks_guard = threading.Lock()


def connect(db_path: str) -> duckdb.DuckDBPyConnection:
    """Open a connection and make sure the schema exists."""
    try:
        con = duckdb.connect(db_path)
        initialize_tables(con)
    except duckdb.Error as e:
        logger.error("Could not open DuckDB at %s: %s", db_path, e)
        raise StorageUnavailableError() from e
    return con


def get_connection() -> duckdb.DuckDBPyConnection:
    global _con
    if _con is None:
        if settings.db_path != ":memory:":
            settings.data_dir.mkdir(parents=True, exist_ok=True)
        _con = connect(settings.db_path)
        logger.info("DuckDB connected at %s", settings.db_path)
    return _con


def initialize_tables(con: duckdb.DuckDBPyConnection) -> None:
    con.execute("CREATE SEQUENCE IF NOT EXISTS applications_seq")
    con.execute("CREATE SEQUENCE IF NOT EXISTS application_notes_seq")
    con.execute("""
        CREATE TABLE IF NOT EXISTS applications (
            id VARCHAR PRIMARY KEY,
            seq BIGINT DEFAULT nextval('applications_seq'),
            user_id VARCHAR NOT NULL,
            job_id VARCHAR NOT NULL,
            status VARCHAR NOT NULL DEFAULT 'Applied',
            applied_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL,
            interview_at TIMESTAMP,
            follow_up_at TIMESTAMP,
            contact_person VARCHAR,
            contact_email VARCHAR,
            notes_summary VARCHAR,
            UNIQUE (user_id, job_id)
        )
    """)
    # Ownership of notes is checked against applications on every access;
    # no FOREIGN KEY so that parent rows stay updatable inside a transaction.
    con.execute("""
        CREATE TABLE IF NOT EXISTS application_notes (
            id VARCHAR PRIMARY KEY,
            seq BIGINT DEFAULT nextval('application_notes_seq'),
            application_id VARCHAR NOT NULL,
            note_type VARCHAR NOT NULL DEFAULT 'general',
            content VARCHAR NOT NULL,
            created_at TIMESTAMP NOT NULL
        )
    """)


def write_lock(con: duckdb.DuckDBPyConnection) -> threading.RLock:
    """Writers on one connection run one at a time.

    DuckDB aborts the second of two overlapping writes to the same row; with
    writers queued behind this lock concurrent transitions are last-write-wins.
    """
    with _write_locks_guard:
        return _write_locks.setdefault(id(con), threading.RLock())


@contextmanager
def transaction(con: duckdb.DuckDBPyConnection) -> Iterator[duckdb.DuckDBPyConnection]:
    """Yield a fresh cursor inside BEGIN/COMMIT; roll back on any exception."""
    with write_lock(con):
        cur = con.cursor()
        try:
            cur.execute("BEGIN TRANSACTION")
            try:
                yield cur
            except BaseException:
                cur.execute("ROLLBACK")
                raise
            cur.execute("COMMIT")
        except duckdb.Error as e:
            logger.error("Transaction failed: %s", e)
            raise StorageUnavailableError() from e
        finally:
            cur.close()


def is_unique_violation(error: duckdb.Error) -> bool:
    """True for a UNIQUE/PRIMARY KEY clash, whether raised at insert or at commit."""
    if isinstance(error, duckdb.ConstraintException):
        return True
    return isinstance(error, duckdb.TransactionException) and (
        "constraint violation" in str(error).lower()
    )


def ping() -> bool:
    if _con is None:
        return False
    try:
        with _con.cursor() as cur:
            cur.execute("SELECT 1").fetchall()
    except duckdb.Error as e:
        logger.warning("DuckDB ping failed: %s", e)
        return False
    return True


def close() -> None:
    global _con
    if _con:
        _write_locks.pop(id(_con), None)
        _con.close()
        _con = None
