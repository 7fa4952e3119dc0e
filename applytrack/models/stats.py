from __future__ import annotations

from pydantic import BaseModel, Field

from .application import Application


class ApplicationStats(BaseModel):
    total: int = 0
    applied: int = 0
    interviews: int = 0  # scheduled + completed
    offers: int = 0
    rejected: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    upcoming_interviews: list[Application] = Field(default_factory=list)


class Dashboard(BaseModel):
    applications: list[Application] = Field(default_factory=list)
    stats: ApplicationStats = Field(default_factory=ApplicationStats)
