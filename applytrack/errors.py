"""Error kinds surfaced by the tracker.

Each error carries a short ``kind`` and a message that is safe to show to the
end user. Internal details travel only on the chained ``__cause__``.
"""
from __future__ import annotations


class TrackerError(Exception):
    kind = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateError(TrackerError):
    kind = "duplicate"
    default_message = "You have already applied to this job"


class NotFoundError(TrackerError):
    # Used for both "missing" and "owned by someone else"
    kind = "not_found"
    default_message = "Application not found"


class ValidationError(TrackerError):
    kind = "validation"
    default_message = "Invalid input"


class StorageUnavailableError(TrackerError):
    kind = "storage_unavailable"
    default_message = "Storage is temporarily unavailable, please retry"
