"""Append-only notes attached to an application."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

import duckdb

from applytrack.db import get_connection, write_lock
from applytrack.errors import NotFoundError, StorageUnavailableError, ValidationError
from applytrack.models.note import ApplicationNote, NoteType
from applytrack.services.scheduling import from_storage, to_storage, utcnow
from applytrack.services.status_machine import parse_note_type

logger = logging.getLogger(__name__)

_NOTE_COLUMNS = "id, application_id, note_type, content, created_at"


class NoteLedger:
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
            logger.error("Note query failed: %s", e)
            raise StorageUnavailableError() from e

    def _check_owner(
        self, cur: duckdb.DuckDBPyConnection | None, application_id: str, user_id: str
    ) -> None:
        rows = self._run(
            cur,
            "SELECT 1 FROM applications WHERE id = ? AND user_id = ?",
            [application_id, user_id],
        )
        if not rows:
            logger.debug("Application %s not visible to user %s", application_id, user_id)
            raise NotFoundError()

    def add(
        self,
        application_id: str,
        user_id: str,
        note_type: NoteType | str,
        content: str,
        cur: duckdb.DuckDBPyConnection | None = None,
    ) -> ApplicationNote:
        """Append a note; content is stored trimmed and must not be blank."""
        note_type = parse_note_type(note_type)
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            raise ValidationError("Note content must not be empty")

        # Applications are never deleted, so owner check then insert is safe
        self._check_owner(cur, application_id, user_id)
        note = ApplicationNote(
            id=uuid.uuid4().hex,
            application_id=application_id,
            note_type=note_type,
            content=text,
            created_at=self._clock(),
        )
        self._run(
            cur,
            f"INSERT INTO application_notes ({_NOTE_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
            [note.id, application_id, note_type.value, text, to_storage(note.created_at)],
            write=True,
        )
        logger.info("Added %s note %s to application %s", note_type.value, note.id, application_id)
        return note

    def list_by_application(
        self,
        application_id: str,
        user_id: str,
        cur: duckdb.DuckDBPyConnection | None = None,
    ) -> list[ApplicationNote]:
        """Newest first; an application without notes yields an empty list."""
        self._check_owner(cur, application_id, user_id)
        rows = self._run(
            cur,
            f"SELECT {_NOTE_COLUMNS} FROM application_notes WHERE application_id = ? "
            "ORDER BY created_at DESC, seq DESC",
            [application_id],
        )
        return [
            ApplicationNote(
                id=row[0],
                application_id=row[1],
                note_type=NoteType(row[2]),
                content=row[3],
                created_at=from_storage(row[4]),
            )
            for row in rows
        ]
