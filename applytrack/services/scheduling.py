"""Timestamp handling for interviews and follow-ups.

Interview and follow-up times carry no ordering rules: past values are
accepted (retroactive logging) as are future ones. All values are normalised
to timezone-aware UTC; naive inputs are taken to already be UTC.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timezone

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from applytrack.errors import ValidationError
from applytrack.models.application import Application, ApplicationStatus

_datetime_adapter = TypeAdapter(datetime)
_date_adapter = TypeAdapter(date)
_NUMERIC = re.compile(r"[+-]?\d+(\.\d*)?")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime | None) -> datetime | None:
    """DuckDB TIMESTAMP columns hold naive UTC."""
    if value is None:
        return None
    return to_utc(value).replace(tzinfo=None)


def from_storage(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def parse_timestamp(value: object, field: str = "timestamp") -> datetime | None:
    """Parse a caller-supplied timestamp.

    ``None`` and blank strings mean "no value" and return ``None``. Dates
    without a time (the follow-up picker sends ``YYYY-MM-DD``) become midnight
    UTC. Bare numbers are refused rather than read as Unix epochs. Anything
    that does not parse, or that falls outside the datetime range once moved
    to UTC, raises ``ValidationError``.
    """
    if value is None:
        return None
    try:
        return _parse(value, field)
    except OverflowError:
        raise ValidationError(f"{field} is out of range") from None


def _parse(value: object, field: str) -> datetime | None:
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO 8601 timestamp")

    text = value.strip()
    if not text:
        return None
    if _NUMERIC.fullmatch(text):
        raise ValidationError(f"{field} must be an ISO 8601 timestamp, not a number")
    try:
        return to_utc(_datetime_adapter.validate_python(text))
    except PydanticValidationError:
        pass
    try:
        day = _date_adapter.validate_python(text)
    except PydanticValidationError:
        raise ValidationError(f"{field} is not a valid timestamp: {text!r}") from None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def is_upcoming_interview(application: Application, now: datetime) -> bool:
    return (
        application.status == ApplicationStatus.INTERVIEW_SCHEDULED
        and application.interview_at is not None
        and application.interview_at > to_utc(now)
    )
