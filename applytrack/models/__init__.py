from .application import Application, ApplicationStatus, ApplicationUpdate
from .note import ApplicationNote, NoteType
from .stats import ApplicationStats, Dashboard

__all__ = [
    "Application",
    "ApplicationStatus",
    "ApplicationUpdate",
    "ApplicationNote",
    "NoteType",
    "ApplicationStats",
    "Dashboard",
]
