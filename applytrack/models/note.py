from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class NoteType(str, Enum):
    GENERAL = "general"
    INTERVIEW = "interview"
    FOLLOW_UP = "follow_up"
    OFFER = "offer"
    REJECTION = "rejection"


class ApplicationNote(BaseModel):
    id: str
    application_id: str
    note_type: NoteType = NoteType.GENERAL
    content: str
    created_at: datetime


class NoteCreateRequest(BaseModel):
    note_type: str = NoteType.GENERAL.value
    content: str
