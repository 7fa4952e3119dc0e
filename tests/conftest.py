"""Shared fixtures: an in-memory DuckDB and a clock the tests can move."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from applytrack import db
from applytrack.services.application_store import ApplicationStore
from applytrack.services.lifecycle_service import ApplicationLifecycleService
from applytrack.services.note_ledger import NoteLedger

START = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def con():
    connection = db.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def store(con, clock):
    return ApplicationStore(con, clock)


@pytest.fixture
def ledger(con, clock):
    return NoteLedger(con, clock)


@pytest.fixture
def service(con, clock):
    return ApplicationLifecycleService(con, clock)
