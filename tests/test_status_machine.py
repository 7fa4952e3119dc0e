"""
Unit Tests for status transitions
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from applytrack.errors import ValidationError
from applytrack.models.application import ApplicationStatus
from applytrack.models.note import NoteType
from applytrack.services import status_machine

from .test_scheduling import make_app

ALL = list(ApplicationStatus)


@pytest.mark.parametrize("source", ALL)
@pytest.mark.parametrize("target", ALL)
def test_every_edge_is_allowed(source, target):
    patch = status_machine.transition(make_app(source), target)
    assert patch.changes() == {"status": target}


@pytest.mark.parametrize(
    "raw",
    ["Interview Scheduled", "interview_scheduled", "InterviewScheduled", "INTERVIEW_SCHEDULED"],
)
def test_status_spellings(raw):
    assert status_machine.parse_status(raw) == ApplicationStatus.INTERVIEW_SCHEDULED


@pytest.mark.parametrize("raw", ["Hired", "", None, 3])
def test_unknown_status_is_rejected(raw):
    with pytest.raises(ValidationError):
        status_machine.parse_status(raw)


def test_interview_time_is_set_for_interview_statuses():
    patch = status_machine.transition(
        make_app(ApplicationStatus.APPLIED),
        "Interview Scheduled",
        {"interview_at": "2025-03-10T15:00:00Z"},
    )
    assert patch.interview_at == datetime(2025, 3, 10, 15, tzinfo=timezone.utc)


def test_interview_time_is_optional():
    patch = status_machine.transition(
        make_app(ApplicationStatus.APPLIED), ApplicationStatus.INTERVIEW_COMPLETED
    )
    assert "interview_at" not in patch.changes()


def test_empty_interview_time_clears_it():
    patch = status_machine.transition(
        make_app(ApplicationStatus.INTERVIEW_SCHEDULED),
        ApplicationStatus.INTERVIEW_SCHEDULED,
        {"interview_at": ""},
    )
    assert patch.changes()["interview_at"] is None


def test_interview_time_is_not_written_outside_interview_statuses():
    patch = status_machine.transition(
        make_app(ApplicationStatus.INTERVIEW_SCHEDULED),
        ApplicationStatus.OFFER_RECEIVED,
        {"interview_at": "2025-03-10T15:00:00Z"},
    )
    assert "interview_at" not in patch.changes()


@pytest.mark.parametrize("target", ALL)
def test_bad_interview_time_fails_for_any_target(target):
    with pytest.raises(ValidationError):
        status_machine.transition(
            make_app(ApplicationStatus.APPLIED), target, {"interview_at": "next tuesday"}
        )


def test_follow_up_applies_on_any_transition():
    patch = status_machine.transition(
        make_app(ApplicationStatus.APPLIED), "Under Review", {"follow_up_at": "2025-03-20"}
    )
    assert patch.follow_up_at == datetime(2025, 3, 20, tzinfo=timezone.utc)


def test_bad_follow_up_fails():
    with pytest.raises(ValidationError):
        status_machine.transition(
            make_app(ApplicationStatus.APPLIED), "Under Review", {"follow_up_at": "soon"}
        )


def test_contact_fields_ride_along_and_blank_is_ignored():
    patch = status_machine.transition(
        make_app(ApplicationStatus.APPLIED),
        "Under Review",
        {"contact_person": " Dana Lee ", "contact_email": "", "notes_summary": "recruiter call"},
    )
    assert patch.changes() == {
        "status": ApplicationStatus.UNDER_REVIEW,
        "contact_person": "Dana Lee",
        "notes_summary": "recruiter call",
    }


def test_unknown_field_is_rejected():
    with pytest.raises(ValidationError):
        status_machine.transition(make_app(ApplicationStatus.APPLIED), "Rejected", {"salary": 1})


def test_detail_update_refuses_status_and_interview():
    with pytest.raises(ValidationError):
        status_machine.detail_update({"status": "Rejected"})
    with pytest.raises(ValidationError):
        status_machine.detail_update({"interview_at": "2025-03-10T15:00:00Z"})


def test_detail_update_blank_text_clears():
    patch = status_machine.detail_update({"contact_email": "", "follow_up_at": None})
    assert patch.changes() == {"contact_email": None, "follow_up_at": None}


@pytest.mark.parametrize(
    "status, expected",
    [
        (ApplicationStatus.INTERVIEW_SCHEDULED, NoteType.INTERVIEW),
        (ApplicationStatus.INTERVIEW_COMPLETED, NoteType.INTERVIEW),
        (ApplicationStatus.OFFER_RECEIVED, NoteType.OFFER),
        (ApplicationStatus.REJECTED, NoteType.REJECTION),
        (ApplicationStatus.WITHDRAWN, NoteType.GENERAL),
    ],
)
def test_default_note_type(status, expected):
    assert status_machine.default_note_type(status) == expected
