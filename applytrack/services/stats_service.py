"""Dashboard rollups computed from a user's applications. No I/O."""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from applytrack.models.application import INTERVIEW_STATUSES, Application, ApplicationStatus
from applytrack.models.stats import ApplicationStats
from applytrack.services.scheduling import is_upcoming_interview, utcnow


def compute_stats(
    applications: Iterable[Application], now: datetime | None = None
) -> ApplicationStats:
    now = now or utcnow()
    applications = list(applications)
    counts = Counter(app.status for app in applications)

    upcoming = sorted(
        (app for app in applications if is_upcoming_interview(app, now)),
        key=lambda app: (app.interview_at, app.id),
    )

    return ApplicationStats(
        total=len(applications),
        applied=counts[ApplicationStatus.APPLIED],
        interviews=sum(counts[status] for status in INTERVIEW_STATUSES),
        offers=counts[ApplicationStatus.OFFER_RECEIVED],
        rejected=counts[ApplicationStatus.REJECTED],
        by_status={status.value: counts[status] for status in ApplicationStatus},
        upcoming_interviews=upcoming,
    )
