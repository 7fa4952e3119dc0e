"""Status transitions for applications.

Recruiting rarely follows a straight line, so every status may move to every
other status (including back out of Rejected or Withdrawn). What is checked is
the consistency of the fields that travel with the transition; the result is
an ``ApplicationUpdate`` for the caller to persist atomically.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from applytrack.errors import ValidationError
from applytrack.models.application import (
    INTERVIEW_STATUSES,
    Application,
    ApplicationStatus,
    ApplicationUpdate,
)
from applytrack.models.note import NoteType
from applytrack.services.scheduling import parse_timestamp

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("interview_at", "follow_up_at")
TEXT_FIELDS = ("contact_person", "contact_email", "notes_summary")
TRANSITION_FIELDS = frozenset(TIMESTAMP_FIELDS + TEXT_FIELDS)

_NOTE_TYPE_FOR_STATUS = {
    ApplicationStatus.INTERVIEW_SCHEDULED: NoteType.INTERVIEW,
    ApplicationStatus.INTERVIEW_COMPLETED: NoteType.INTERVIEW,
    ApplicationStatus.OFFER_RECEIVED: NoteType.OFFER,
    ApplicationStatus.REJECTED: NoteType.REJECTION,
}


def _squash(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


_STATUS_LOOKUP: dict[str, ApplicationStatus] = {}
for _status in ApplicationStatus:
    _STATUS_LOOKUP[_squash(_status.value)] = _status
    _STATUS_LOOKUP[_squash(_status.name)] = _status


def parse_status(value: ApplicationStatus | str) -> ApplicationStatus:
    """Accept an enum member, its label ("Interview Scheduled") or its name."""
    if isinstance(value, ApplicationStatus):
        return value
    if isinstance(value, str):
        status = _STATUS_LOOKUP.get(_squash(value))
        if status is not None:
            return status
    raise ValidationError(f"Unknown application status: {value!r}")


def parse_note_type(value: NoteType | str) -> NoteType:
    if isinstance(value, NoteType):
        return value
    try:
        return NoteType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown note type: {value!r}") from None


def default_note_type(status: ApplicationStatus) -> NoteType:
    return _NOTE_TYPE_FOR_STATUS.get(status, NoteType.GENERAL)


def _text_changes(fields: Mapping[str, Any], clear_blank: bool = False) -> dict[str, str | None]:
    changes: dict[str, str | None] = {}
    for name in TEXT_FIELDS:
        value = fields.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be text")
        if value.strip():
            changes[name] = value.strip()
        elif clear_blank:
            changes[name] = None
        # otherwise a blank form input leaves the stored value alone
    return changes


def _check_keys(fields: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(f"Unsupported fields: {', '.join(unknown)}")


def transition(
    application: Application,
    new_status: ApplicationStatus | str,
    fields: Mapping[str, Any] | None = None,
) -> ApplicationUpdate:
    """Validate a status change and build the patch that applies it.

    ``interview_at`` must parse whatever the target status, but is written
    only when moving into an interview status. ``follow_up_at`` is written on
    every transition. Nothing is persisted here.
    """
    fields = fields or {}
    status = parse_status(new_status)
    _check_keys(fields, TRANSITION_FIELDS)

    changes: dict[str, Any] = {"status": status}

    if "interview_at" in fields:
        interview_at = parse_timestamp(fields["interview_at"], "interview_at")
        if status in INTERVIEW_STATUSES:
            changes["interview_at"] = interview_at
        else:
            logger.debug(
                "Ignoring interview_at for %s moving to %s", application.id, status.value
            )

    if "follow_up_at" in fields:
        changes["follow_up_at"] = parse_timestamp(fields["follow_up_at"], "follow_up_at")

    changes.update(_text_changes(fields))
    return ApplicationUpdate(**changes)


def detail_update(fields: Mapping[str, Any]) -> ApplicationUpdate:
    """Build a patch for fields that may change without a status change."""
    allowed = frozenset(("follow_up_at",) + TEXT_FIELDS)
    if "status" in fields or "interview_at" in fields:
        raise ValidationError("Status and interview time change only through a status update")
    _check_keys(fields, allowed)

    changes: dict[str, Any] = {}
    if "follow_up_at" in fields:
        changes["follow_up_at"] = parse_timestamp(fields["follow_up_at"], "follow_up_at")
    changes.update(_text_changes(fields, clear_blank=True))
    return ApplicationUpdate(**changes)
