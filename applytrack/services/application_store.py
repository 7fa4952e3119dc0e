"""DuckDB-backed storage for application records."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

import duckdb

from applytrack.db import get_connection, is_unique_violation, write_lock
from applytrack.errors import DuplicateError, NotFoundError, StorageUnavailableError
from applytrack.models.application import Application, ApplicationStatus, ApplicationUpdate
from applytrack.services.scheduling import from_storage, to_storage, utcnow

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "user_id",
    "job_id",
    "status",
    "applied_at",
    "updated_at",
    "interview_at",
    "follow_up_at",
    "contact_person",
    "contact_email",
    "notes_summary",
)
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM applications"
_TIMESTAMPS = {"applied_at", "updated_at", "interview_at", "follow_up_at"}


def _row_to_application(row: tuple) -> Application:
    data = dict(zip(_COLUMNS, row))
    for name in _TIMESTAMPS:
        data[name] = from_storage(data[name])
    return Application.model_validate(data)


class ApplicationStore:
    """Applications keyed by id, at most one per (user_id, job_id).

    Every method takes an optional ``cur`` so several calls can share the
    caller's transaction; without it a private cursor is used.
    """

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._con = con
        self._clock = clock

    @property
    def con(self) -> duckdb.DuckDBPyConnection:
        return self._con if self._con is not None else get_connection()

    def _run(
        self,
        cur: duckdb.DuckDBPyConnection | None,
        sql: str,
        params: list,
        write: bool = False,
    ) -> list[tuple]:
        try:
            if cur is not None:
                return cur.execute(sql, params).fetchall()
            if write:
                with write_lock(self.con), self.con.cursor() as own:
                    return own.execute(sql, params).fetchall()
            with self.con.cursor() as own:
                return own.execute(sql, params).fetchall()
        except duckdb.Error as e:
            # Uniqueness clashes may surface at commit as a TransactionException
            if is_unique_violation(e):
                raise
            logger.error("Application query failed: %s", e)
            raise StorageUnavailableError() from e

    def create(
        self, user_id: str, job_id: str, cur: duckdb.DuckDBPyConnection | None = None
    ) -> Application:
        now = self._clock()
        application = Application(
            id=uuid.uuid4().hex,
            user_id=user_id,
            job_id=job_id,
            status=ApplicationStatus.APPLIED,
            applied_at=now,
            updated_at=now,
        )
        # Single INSERT: the UNIQUE (user_id, job_id) constraint is the guard
        try:
            self._run(
                cur,
                "INSERT INTO applications (id, user_id, job_id, status, applied_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    application.id,
                    user_id,
                    job_id,
                    application.status.value,
                    to_storage(now),
                    to_storage(now),
                ],
                write=True,
            )
        except duckdb.Error as e:
            logger.info("Duplicate application for user %s job %s", user_id, job_id)
            raise DuplicateError() from e

        logger.info("Created application %s (user %s, job %s)", application.id, user_id, job_id)
        return application

    def get(
        self, application_id: str, user_id: str, cur: duckdb.DuckDBPyConnection | None = None
    ) -> Application:
        rows = self._run(
            cur, f"{_SELECT} WHERE id = ? AND user_id = ?", [application_id, user_id]
        )
        if not rows:
            logger.debug("Application %s not visible to user %s", application_id, user_id)
            raise NotFoundError()
        return _row_to_application(rows[0])

    def list_by_user(
        self,
        user_id: str,
        status: ApplicationStatus | None = None,
        cur: duckdb.DuckDBPyConnection | None = None,
    ) -> list[Application]:
        sql = f"{_SELECT} WHERE user_id = ?"
        params: list = [user_id]
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        sql += " ORDER BY applied_at DESC, seq DESC"
        return [_row_to_application(row) for row in self._run(cur, sql, params)]

    def update(
        self,
        application_id: str,
        user_id: str,
        patch: ApplicationUpdate,
        cur: duckdb.DuckDBPyConnection | None = None,
    ) -> Application:
        """Write the fields set on ``patch``; status rules are not checked here."""
        changes = patch.changes()
        changes["updated_at"] = self._clock()

        assignments = []
        params: list = []
        for name, value in changes.items():
            if name in _TIMESTAMPS:
                value = to_storage(value)
            elif isinstance(value, ApplicationStatus):
                value = value.value
            assignments.append(f"{name} = ?")
            params.append(value)

        rows = self._run(
            cur,
            f"UPDATE applications SET {', '.join(assignments)} "
            f"WHERE id = ? AND user_id = ? RETURNING {', '.join(_COLUMNS)}",
            params + [application_id, user_id],
            write=True,
        )
        if not rows:
            raise NotFoundError()
        logger.info("Updated application %s: %s", application_id, ", ".join(sorted(changes)))
        return _row_to_application(rows[0])
