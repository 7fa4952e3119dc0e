from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    UNDER_REVIEW = "Under Review"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    INTERVIEW_COMPLETED = "Interview Completed"
    OFFER_RECEIVED = "Offer Received"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"


INTERVIEW_STATUSES = frozenset(
    {ApplicationStatus.INTERVIEW_SCHEDULED, ApplicationStatus.INTERVIEW_COMPLETED}
)


class Application(BaseModel):
    id: str
    user_id: str
    job_id: str
    status: ApplicationStatus = ApplicationStatus.APPLIED
    applied_at: datetime
    updated_at: datetime
    interview_at: datetime | None = None
    follow_up_at: datetime | None = None
    contact_person: str | None = None
    contact_email: str | None = None
    notes_summary: str | None = None


class ApplicationUpdate(BaseModel):
    """Partial update of an application row.

    Only fields explicitly set are written, so ``interview_at=None`` clears the
    column while leaving it unset keeps the stored value.
    """

    status: ApplicationStatus | None = None
    interview_at: datetime | None = None
    follow_up_at: datetime | None = None
    contact_person: str | None = None
    contact_email: str | None = None
    notes_summary: str | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class StatusUpdateRequest(BaseModel):
    """Body of a status transition request."""

    status: str
    interview_at: str | None = Field(None, description="ISO 8601 timestamp; empty clears")
    follow_up_at: str | None = Field(None, description="ISO 8601 timestamp or date; empty clears")
    contact_person: str | None = None
    contact_email: str | None = None
    notes_summary: str | None = None
    note: str | None = Field(None, description="Optional note stored with the transition")
    note_type: str | None = None

    def transition_fields(self) -> dict:
        return self.model_dump(
            exclude_unset=True, exclude={"status", "note", "note_type"}
        )


class DetailsUpdateRequest(BaseModel):
    """Body of a detail update that leaves the status alone."""

    follow_up_at: str | None = None
    contact_person: str | None = None
    contact_email: str | None = None
    notes_summary: str | None = None


class ApplyRequest(BaseModel):
    job_id: str
