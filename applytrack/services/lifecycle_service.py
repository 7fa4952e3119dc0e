"""Application lifecycle: apply, transition, annotate, summarise.

This is the entry point used by the HTTP routers. Every call takes the
caller's ``user_id`` explicitly; the identity itself is verified upstream.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import duckdb

from applytrack.db import get_connection, transaction
from applytrack.errors import ValidationError
from applytrack.models.application import Application, ApplicationStatus
from applytrack.models.note import ApplicationNote, NoteType
from applytrack.models.stats import Dashboard
from applytrack.services import status_machine
from applytrack.services.application_store import ApplicationStore
from applytrack.services.note_ledger import NoteLedger
from applytrack.services.scheduling import utcnow
from applytrack.services.stats_service import compute_stats

logger = logging.getLogger(__name__)


def _require(value: str, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")
    return value


class ApplicationLifecycleService:
    def __init__(
        self,
        con: duckdb.DuckDBPyConnection | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._con = con
        self._clock = clock
        self.store = ApplicationStore(con, clock)
        self.ledger = NoteLedger(con, clock)

    @property
    def con(self) -> duckdb.DuckDBPyConnection:
        return self._con if self._con is not None else get_connection()

    def apply(self, user_id: str, job_id: str) -> Application:
        """Start tracking an application. Re-applying to the same job is a DuplicateError."""
        return self.store.create(_require(user_id, "user_id"), _require(job_id, "job_id"))

    def list_applications(
        self, user_id: str, status: ApplicationStatus | str | None = None
    ) -> list[Application]:
        if status is not None:
            status = status_machine.parse_status(status)
        return self.store.list_by_user(user_id, status)

    def get_application(self, application_id: str, user_id: str) -> Application:
        return self.store.get(application_id, user_id)

    def update_status(
        self,
        application_id: str,
        user_id: str,
        new_status: ApplicationStatus | str,
        fields: Mapping[str, Any] | None = None,
        note: str | None = None,
        note_type: NoteType | str | None = None,
    ) -> Application:
        """Apply a transition and, optionally, a note in a single transaction.

        If any step fails (ownership, field validation, a blank note, storage)
        neither the status change nor the note is kept.
        """
        with transaction(self.con) as cur:
            current = self.store.get(application_id, user_id, cur=cur)
            patch = status_machine.transition(current, new_status, fields)
            updated = self.store.update(application_id, user_id, patch, cur=cur)
            if note is not None:
                kind = note_type if note_type is not None else status_machine.default_note_type(
                    updated.status
                )
                self.ledger.add(application_id, user_id, kind, note, cur=cur)

        if current.status != updated.status:
            logger.info(
                "Application %s moved %s -> %s",
                application_id,
                current.status.value,
                updated.status.value,
            )
        return updated

    def update_details(
        self, application_id: str, user_id: str, fields: Mapping[str, Any]
    ) -> Application:
        """Change follow-up date, contact info or summary without touching status."""
        patch = status_machine.detail_update(fields)
        if not patch.changes():
            return self.store.get(application_id, user_id)
        return self.store.update(application_id, user_id, patch)

    def add_note(
        self, application_id: str, user_id: str, note_type: NoteType | str, content: str
    ) -> ApplicationNote:
        return self.ledger.add(application_id, user_id, note_type, content)

    def list_notes(self, application_id: str, user_id: str) -> list[ApplicationNote]:
        return self.ledger.list_by_application(application_id, user_id)

    def get_dashboard(self, user_id: str) -> Dashboard:
        applications = self.store.list_by_user(user_id)
        return Dashboard(
            applications=applications,
            stats=compute_stats(applications, self._clock()),
        )


lifecycle_service = ApplicationLifecycleService()
